# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
The artificial samples image.

The image is a plain linear recipe: a base Ubuntu image, a user with passwordless sudo, pip and
SCons, the samples tree copied into the user's home, and the cross-compilers installed by the
samples' own installation script. Every step is a Dockerfile instruction, so a failing step
fails `docker build` and nothing is retried.
"""

from samplebox.builders import UbuntuDockerBuilder
from samplebox.builders.utils import check_source_tree, pip_install, prepend_path
from samplebox.config import SamplesImageConfig
from samplebox.sysutils import PathType


def artificial_samples_builder(
    config: SamplesImageConfig | None = None,
    source_dir: PathType = ".",
) -> UbuntuDockerBuilder:
    """
    Returns the builder of the artificial samples image.

    Parameters:
        config (SamplesImageConfig): The image settings; defaults reproduce the reference image.
        source_dir (PathType): Host directory holding the samples tree and its
                               cross-compiler installation script. It becomes the build context.

    Returns:
        UbuntuDockerBuilder: A builder ready to render or build the image.

    Raises:
        FileNotFoundError: If the source directory or its installation script is missing.
    """
    config = config if config is not None else SamplesImageConfig()
    source_path = check_source_tree(source_dir=source_dir, required_files=[config.install_script])

    builder = UbuntuDockerBuilder(
        tag=config.tag,
        ubuntu_base_tag=config.base_image,
        context_root=source_path,
    )
    builder.space()

    uid = None
    if config.match_host_ids:
        builder.arg(name="UID", value="1000")
        uid = "${UID}"

    builder.desc(f"Create user {config.user_name} with passwordless sudo")
    builder.create_sudo_user(
        username=config.user_name,
        password=config.user_password,
        uid=uid,
    )
    builder.user(name=config.user_name)
    builder.space()

    builder.desc("Python and build tools")
    if config.apt_packages:
        builder.add_packages(
            packages=config.apt_packages,
            use_sudo=True,
            install_recommends=True,
            clean_lists=False,
        )
    pip_install(
        builder=builder,
        packages=config.pip_packages,
        upgrade_pip=config.upgrade_pip,
    )
    prepend_path(builder=builder, directory=f"{config.local_bin_dir}/")
    builder.space()

    builder.desc("Samples tree and cross-compilers")
    chown = f"{config.user_name}:{config.user_name}" if config.chown_sources else None
    builder.copy(source=source_path, destination=config.samples_dir, chown=chown)
    builder.workdir(path=config.samples_dir)
    builder.run(command=f"./{config.install_script}")

    if config.build_samples:
        builder.space()
        builder.desc("Build the samples")
        builder.run(command=f"sudo {config.local_bin_dir / 'scons'}")

    return builder
