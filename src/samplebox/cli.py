# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
CLI interface for samplebox.

This module provides a command-line interface around the artificial samples image:

- `render`: print (or write) the Dockerfile of the image.
- `build`: build the image from a samples tree.
- `script`: write a standalone `docker-build.sh` and its Dockerfile.
- `compile`: run SCons in the built image and collect the compiled samples on the host.
- `scaffold`: generate a starter Python script reproducing the chosen settings, so the user can
  customize the recipe further.

Every option can also be given through a `SAMPLEBOX_<COMMAND>_<OPTION>` environment variable.
"""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

import black
import click
import isort

from samplebox.config import (
    DEFAULT_BASE_IMAGE,
    DEFAULT_TAG,
    DEFAULT_USER,
    SamplesImageConfig,
)
from samplebox.recipes import artificial_samples_builder
from samplebox.runners import ConcreteDockerRunner, scons_runner

# Make "-h" behave like "--help"
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "SAMPLEBOX"}


_RECIPE_OPTIONS = [
    click.option("--tag", default=DEFAULT_TAG, show_default=True, help="Image tag"),
    click.option("--base-image", default=DEFAULT_BASE_IMAGE, show_default=True),
    click.option("--user", "user_name", default=DEFAULT_USER, show_default=True),
    click.option("--password", "user_password", default=DEFAULT_USER, show_default=True),
    click.option("--build-samples", is_flag=True, help="Also compile the samples in the image"),
    click.option("--chown-sources", is_flag=True, help="Give the samples tree to the user"),
    click.option("--match-host-ids", is_flag=True, help="Create the user with the host uid"),
]


def recipe_options(func: Callable) -> Callable:
    """Options shared by every command that describes the image."""
    for option in reversed(_RECIPE_OPTIONS):
        func = option(func)
    return func


def _make_config(**options) -> SamplesImageConfig:
    try:
        return SamplesImageConfig(**options)
    except ValueError as err:
        raise click.BadParameter(str(err)) from err


def _load_builder(config: SamplesImageConfig, source_dir: str):
    try:
        return artificial_samples_builder(config=config, source_dir=source_dir)
    except (FileNotFoundError, ValueError) as err:
        raise click.ClickException(str(err)) from err


def _docker_failure(err: subprocess.CalledProcessError) -> click.ClickException:
    exception = click.ClickException(f"Command failed with exit code {err.returncode}")
    exception.exit_code = err.returncode
    return exception


source_dir_argument = click.argument(
    "source_dir",
    type=click.Path(exists=True, file_okay=False),
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(
    package_name="samplebox",
    prog_name="samplebox",
    message="%(prog)s %(version)s",
)
def cli() -> None:
    """samplebox: build the cross-compilation image of the artificial samples."""


@cli.command()
@source_dir_argument
@recipe_options
@click.option("--output", type=click.Path(), help="Dockerfile path (stdout if omitted)")
def render(source_dir: str, output: Optional[str], **options) -> None:
    """Render the Dockerfile of the image."""
    builder = _load_builder(config=_make_config(**options), source_dir=source_dir)
    content = builder.render()

    if output:
        Path(output).write_text(content)
        click.echo(f"Dockerfile written to {output}")
    else:
        click.echo(content, nl=False)


@cli.command()
@source_dir_argument
@recipe_options
@click.option("--dockerfile-savepath", type=click.Path(), help="Keep a copy of the Dockerfile")
def build(source_dir: str, dockerfile_savepath: Optional[str], **options) -> None:
    """
    Build the image from a samples tree.

    The samples tree must contain the cross-compiler installation script. Any failing step
    aborts the build.
    """
    config = _make_config(**options)
    builder = _load_builder(config=config, source_dir=source_dir)

    click.echo(f"Building image '{config.tag}' from {Path(source_dir).resolve()}")
    try:
        builder.build(dockerfile_savepath=dockerfile_savepath or "")
    except subprocess.CalledProcessError as err:
        raise _docker_failure(err) from err


@cli.command()
@source_dir_argument
@recipe_options
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    default="docker-build.sh",
    show_default=True,
    help="Path of the build script; the Dockerfile is written next to it",
)
def script(source_dir: str, output: str, **options) -> None:
    """
    Write a shell script building the image with plain docker.

    The Dockerfile and a copy of the samples tree (the `context` directory) are written next to
    the script, which builds from them wherever it is run from.
    """
    builder = _load_builder(config=_make_config(**options), source_dir=source_dir)
    try:
        builder.generate_build_script(output_path=output)
    except subprocess.CalledProcessError as err:
        raise _docker_failure(err) from err
    except ValueError as err:
        raise click.ClickException(str(err)) from err
    click.echo(f"Build script written to {output}")


@cli.command(name="compile")
@click.option("--tag", default=DEFAULT_TAG, show_default=True, help="Image tag")
@click.option("--user", "user_name", default=DEFAULT_USER, show_default=True)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default="build",
    show_default=True,
    help="Host directory receiving the compiled samples",
)
@click.option("--dry-run", is_flag=True, help="Print the docker command instead of running it")
def compile_samples(tag: str, user_name: str, output_dir: str, dry_run: bool) -> None:
    """Compile the samples with SCons inside the built image."""
    config = _make_config(tag=tag, user_name=user_name, user_password=user_name)

    runner = ConcreteDockerRunner(
        image=config.tag,
        workdir=config.samples_dir,
        as_host_user=False,
        tty=False,
        interactive=False,
    )
    runner |= scons_runner(output_dir=output_dir, samples_dir=config.samples_dir)
    command: List[str] = ["sudo", f"{config.local_bin_dir / 'scons'}"]

    if dry_run:
        click.echo(runner.get_str_command(command=command))
        return

    try:
        runner.run(command=command)
    except subprocess.CalledProcessError as err:
        raise _docker_failure(err) from err


@cli.command()
@recipe_options
@click.option("--source-dir", default=".", show_default=True, help="Samples tree to copy")
@click.option("--output", type=click.Path(), help="Write scaffold to file (stdout if omitted)")
def scaffold(source_dir: str, output: Optional[str], **options) -> None:
    """
    Generate a starter samplebox script instead of building.

    The generated script describes the image with the given settings and builds it. It can be
    saved to a file (via --output) or printed to stdout.
    """
    config = _make_config(**options)
    settings = {
        "tag": config.tag,
        "base_image": config.base_image,
        "user_name": config.user_name,
        "user_password": config.user_password,
        "build_samples": config.build_samples,
        "chown_sources": config.chown_sources,
        "match_host_ids": config.match_host_ids,
    }

    lines: List[str] = [
        "#!/usr/bin/env python3",
        '"""',
        "Build the artificial samples image using samplebox.",
        "",
        "Steps:",
        "1) Describe the image.",
        "2) Create the builder from the samples tree.",
        "3) Build the image.",
        '"""',
        "",
        "from samplebox.recipes import artificial_samples_builder",
        "from samplebox.config import SamplesImageConfig",
        "",
        f"SOURCE_DIR = {source_dir!r}",
        "",
        "def main() -> None:",
        '    """Build the artificial samples image."""',
        "    config = SamplesImageConfig(",
    ]
    lines.extend(f"        {k}={v!r}," for k, v in settings.items())
    lines.append("    )")
    lines.append("    builder = artificial_samples_builder(config=config, source_dir=SOURCE_DIR)")
    lines.append("")
    lines.append("    builder.build()")
    lines.append("")
    lines.append('if __name__ == "__main__":')
    lines.append("    main()")

    content: str = "\n".join(lines) + "\n"

    content = isort.code(content, config=isort.Config(profile="black", line_length=100))
    content = black.format_str(
        content,
        mode=black.Mode(line_length=100, target_versions={black.TargetVersion.PY310}),
    )

    if output:
        Path(output).write_text(content)
        click.echo(f"Scaffold written to {output}")
    else:
        click.echo(content)


def main() -> None:
    """Entry point for the samplebox CLI when installed as a script."""
    cli()


if __name__ == "__main__":
    main()
