# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
Reusable build steps on top of the builders: Python package installation with pip, PATH
manipulation, and checks on the host source tree that gets copied into an image.
"""

from pathlib import Path
from typing import List

from samplebox.builders import PartialDockerBuilder
from samplebox.sysutils import PathType


def pip_install_command(
    packages: List[str],
    upgrade: bool = False,
    user_install: bool = False,
    pip: str = "pip",
) -> str:
    """
    Returns the pip command installing the given packages (in the given order).

    Raises:
        ValueError: If no package is given.
    """
    if not packages:
        raise ValueError("pip_install_command(): at least one package is required")

    options = (["--upgrade"] if upgrade else []) + (["--user"] if user_install else [])
    return " ".join([pip, "install"] + options + list(packages))


def pip_install(
    builder: PartialDockerBuilder,
    packages: List[str],
    upgrade_pip: bool = False,
    user_install: bool = False,
    pip: str = "pip",
) -> None:
    """
    Installs Python packages with pip, each step in its own RUN instruction so that the pip
    upgrade and the package installation are cached as separate layers.

    Parameters:
        builder (PartialDockerBuilder): The builder to add the instructions to.
        packages (List[str]): The packages to install. May be empty when only upgrading pip.
        upgrade_pip (bool): Upgrade pip itself first.
        user_install (bool): Install into the user site (`pip install --user`).
        pip (str): The pip executable to call.
    """
    if upgrade_pip:
        builder.run(
            command=pip_install_command(
                packages=["pip"],
                upgrade=True,
                user_install=user_install,
                pip=pip,
            )
        )
    if packages:
        builder.run(
            command=pip_install_command(packages=packages, user_install=user_install, pip=pip)
        )


def prepend_path(builder: PartialDockerBuilder, directory: PathType) -> None:
    """
    Puts a directory first on the PATH of the image.
    """
    builder.env(name="PATH", value=f"{directory}:${{PATH}}")


def check_source_tree(source_dir: PathType, required_files: List[str]) -> Path:
    """
    Checks that a host source tree exists and contains the given files.

    Returns:
        Path: The resolved source directory.

    Raises:
        FileNotFoundError: If the directory or one of the required files is missing.
    """
    source_path = Path(source_dir).resolve()
    if not source_path.is_dir():
        raise FileNotFoundError(f"Source directory does not exist: {source_path}")

    missing = [f for f in required_files if not (source_path / f).is_file()]
    if missing:
        raise FileNotFoundError(f"Missing in {source_path}: {', '.join(missing)}")

    return source_path
