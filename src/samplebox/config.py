# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
Configuration of the artificial samples image.

`SamplesImageConfig` gathers every knob of the recipe. The defaults reproduce the reference
image: an Ubuntu Xenial base, a `cwe` user with passwordless sudo, pip and SCons, and the
cross-compilers installed by `install_cross_compilers.sh` from the samples tree.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List

DEFAULT_TAG = "samplebox/artificial-samples"
DEFAULT_BASE_IMAGE = "ubuntu:xenial"
DEFAULT_USER = "cwe"
DEFAULT_INSTALL_SCRIPT = "install_cross_compilers.sh"


@dataclass
class SamplesImageConfig:
    """
    Settings of the artificial samples image.

    Attributes:
        tag: Tag of the built image.
        base_image: Base image the recipe starts from.
        user_name: Non-root user owning the samples; gets passwordless sudo.
        user_password: Password of that user.
        apt_packages: Packages installed (through sudo) once the user is active.
        pip_packages: Python packages installed with pip; SCons drives the sample builds.
        upgrade_pip: Upgrade pip before installing `pip_packages`.
        samples_dirname: Directory, under the user's home, receiving the samples tree.
        install_script: Script of the samples tree run to install the cross-compilers.
        build_samples: Also compile the samples (with SCons) while building the image.
        chown_sources: Give the copied samples tree to the user instead of root.
        match_host_ids: Create the user with the uid of the calling host user, so files
                        written in mounted directories belong to the host user.
    """

    tag: str = DEFAULT_TAG
    base_image: str = DEFAULT_BASE_IMAGE
    user_name: str = DEFAULT_USER
    user_password: str = DEFAULT_USER
    apt_packages: List[str] = field(default_factory=lambda: ["python-pip", "apt-utils"])
    pip_packages: List[str] = field(default_factory=lambda: ["scons"])
    upgrade_pip: bool = True
    samples_dirname: str = "artificial_samples"
    install_script: str = DEFAULT_INSTALL_SCRIPT
    build_samples: bool = False
    chown_sources: bool = False
    match_host_ids: bool = False

    def __post_init__(self) -> None:
        for name in ("tag", "base_image", "user_name", "samples_dirname"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")
        if self.user_name == "root":
            raise ValueError("user_name must be a non-root user")
        if ":" in self.user_name or ":" in self.user_password:
            raise ValueError("user_name and user_password must not contain ':'")
        if not self.install_script or "/" in self.install_script:
            raise ValueError(
                f'install_script must be a file name of the samples tree: "{self.install_script}"'
            )

    @property
    def home_dir(self) -> PurePosixPath:
        return PurePosixPath("/home") / self.user_name

    @property
    def samples_dir(self) -> PurePosixPath:
        return self.home_dir / self.samples_dirname

    @property
    def local_bin_dir(self) -> PurePosixPath:
        """Where `pip install` puts the user's scripts (scons among them)."""
        return self.home_dir / ".local" / "bin"
