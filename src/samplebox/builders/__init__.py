# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
This module provides classes for building Docker images programmatically: a builder records
Dockerfile instructions (base image, users, packages, copies, commands), renders them into a
Dockerfile, stages the build context and hands everything over to `docker build`.
"""
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Set

from samplebox.builders.cmds import (
    AddPkgDockerBuildCommand,
    CopyDockerBuildCommand,
    DockerBuildCommand,
    StrDockerBuildCommand,
)
from samplebox.builders.contexts import BuildContext
from samplebox.runners import ConcreteDockerRunner
from samplebox.sysutils import (
    PathType,
    get_gid,
    get_uid,
    mkdir,
    mkdir_for_path,
    shell_out,
)

WORK_DIR = Path("/tmp/samplebox/docker")
LATEST_DIR = WORK_DIR / "latest"


def render_dockerfile_content(
    package_manager: str,
    commands: List[DockerBuildCommand],
) -> str:
    """
    Generates the content of a Dockerfile from a list of Docker build commands.

    Parameters:
        package_manager (str): The package manager used in the image (e.g., 'apt').
        commands (List[DockerBuildCommand]): The commands to render, in order.

    Returns:
        str: The Dockerfile content, ending with exactly one newline.
    """
    joined_lines = "\n".join(
        c.get_str_for_dockerfile(pkg_manager=package_manager) for c in commands
    )
    file_content = joined_lines.strip() + "\n"
    return file_content


class PartialDockerBuilder:
    """
    Collect a reusable fragment of Docker build steps.

    A PartialDockerBuilder records build commands (RUN, COPY, etc.) that can be
    merged into a full builder later with `|` or `|=`. It also maintains the Docker build
    context: the host files and directories that must be staged for `docker build`.
    """

    def __init__(
        self,
        context_root: PathType | None = None,
    ) -> None:
        """
        Create an empty partial builder.

        Args:
            context_root:
                Optional directory to treat as the root of the Docker build context.

                When context_root is set, host paths given to COPY are interpreted
                relative to this directory, and that relative path is what appears
                in the build context and in the generated Dockerfile. Copying
                context_root itself gives `COPY . <destination>`.

                When context_root is None, host paths are staged by basename only,
                and two different host paths with the same name collide (ValueError).
        """
        self._build_commands: List[DockerBuildCommand] = []
        self._context: BuildContext = BuildContext(context_root=context_root)
        self._declared_args: Set[str] = set()

    def __or__(self, other: "PartialDockerBuilder") -> "PartialDockerBuilder":
        """
        Returns a new builder with the commands of this builder followed by those of `other`.
        """
        result_builder = PartialDockerBuilder()
        result_builder._extend(other=self)
        result_builder._extend(other=other)
        return result_builder

    def __ior__(self, other: "PartialDockerBuilder") -> "PartialDockerBuilder":
        self._extend(other=other)
        return self

    def _extend(self, other: "PartialDockerBuilder") -> None:
        # pylint: disable=protected-access
        self._build_commands.extend(other._build_commands)
        self._context.extend(other._context)
        self._declared_args |= other._declared_args

    @property
    def context(self) -> BuildContext:
        return self._context

    def space(self) -> None:
        """
        Adds an empty line to the Dockerfile.
        """
        self._build_commands.append(StrDockerBuildCommand(""))

    def desc(self, text: str) -> None:
        """
        Adds a comment line to the Dockerfile.
        """
        self._build_commands.append(StrDockerBuildCommand(f"# {text}"))

    def from_image(self, tag: str) -> None:
        """
        Sets the base image for the Dockerfile.
        """
        self._build_commands.append(StrDockerBuildCommand(f"FROM {tag}"))

    def arg(self, name: str, value: str | None = None) -> None:
        """
        Adds an ARG instruction to the Dockerfile.

        Parameters:
            name (str): The name of the argument.
            value (str, optional): The default value of the argument, if any.
        """
        cmd = f"ARG {name}" if value is None else f"ARG {name}={value}"
        self._declared_args.add(name)
        self._build_commands.append(StrDockerBuildCommand(cmd))

    def env(self, name: str, value: str) -> None:
        """
        Sets an environment variable in the image. Values containing spaces are quoted.
        """
        if " " in value:
            value = f'"{value}"'
        self._build_commands.append(StrDockerBuildCommand(f"ENV {name}={value}"))

    def run(self, command: str) -> None:
        """
        Adds a RUN instruction to the Dockerfile.
        """
        self._build_commands.append(StrDockerBuildCommand(f"RUN {command}"))

    def run_multiple(self, commands: Iterable[str]) -> None:
        """
        Adds several commands chained with `&&` in a single RUN instruction, so that one
        failing command fails the whole step.

        Raises:
            ValueError: If no command is given.
        """
        commands = list(commands)
        if not commands:
            raise ValueError("run_multiple(): at least one command is required")
        self.run(command=" && \\\n    ".join(commands))

    def user(self, name: str) -> None:
        """
        Sets the USER for subsequent instructions.
        """
        if not name:
            raise ValueError("user(): a user name is required")
        self._build_commands.append(StrDockerBuildCommand(f"USER {name}"))

    def root(self) -> None:
        """
        Sets the USER to root for subsequent instructions.
        """
        self.user(name="root")

    def workdir(self, path: PathType) -> None:
        """
        Sets the working directory for subsequent instructions.
        """
        self._build_commands.append(StrDockerBuildCommand(f"WORKDIR {path}"))

    def add_packages(
        self,
        packages: List[str],
        use_sudo: bool = False,
        install_recommends: bool = False,
        clean_lists: bool = True,
    ) -> None:
        """
        Installs packages with the package manager of the final builder.

        Parameters:
            packages (List[str]): The packages to install.
            use_sudo (bool): Whether the installation goes through sudo, for when the current
                             USER is not root.
            install_recommends (bool): Also install the recommended packages.
            clean_lists (bool): Remove the package lists after the install.
        """
        self._build_commands.append(
            AddPkgDockerBuildCommand(
                packages=packages,
                use_sudo=use_sudo,
                install_recommends=install_recommends,
                clean_lists=clean_lists,
            )
        )

    def copy(
        self,
        source: Path | list[Path],
        destination: PathType,
        chown: str | None = None,
        chmod: str | None = None,
    ) -> None:
        """Add a Dockerfile COPY instruction.

        Args:
            source: A single host path or a list of host paths (file or dir).
            destination: Container destination path.
            chown: Optional ownership, forwarded to Dockerfile `COPY --chown=...`.
            chmod: Optional permissions, forwarded to Dockerfile `COPY --chmod=...`.

        Raises:
            ValueError: If the source list is empty or a source cannot be staged.

        Notes:
            COPY reads from the build context. The host paths are registered in the
            builder's context and the instruction refers to their context paths, which
            depend on `context_root` (see `__init__`).
        """
        sources = (source,) if isinstance(source, (str, Path)) else tuple(source)
        if not sources:
            raise ValueError("copy(): at least one source path is required")

        ctx_paths = [
            self._context.add_context_entry(host_path=source_path) for source_path in sources
        ]

        self._build_commands.append(
            CopyDockerBuildCommand(
                sources=ctx_paths,
                destination=Path(destination),
                chown=chown,
                chmod=chmod,
            )
        )


class DockerBuilder(PartialDockerBuilder):
    """
    A builder that can render a complete Dockerfile and build the corresponding image.
    """

    def __init__(
        self,
        tag: str,
        package_manager: str,
        use_buildkit: bool = True,
        context_root: PathType | None = None,
    ) -> None:
        """
        Parameters:
            tag (str): The tag of the image to build.
            package_manager (str): The package manager of the image (e.g., 'apt').
            use_buildkit (bool): Whether to build with BuildKit.
            context_root (PathType): Root of the build context, see PartialDockerBuilder.
        """
        super().__init__(context_root=context_root)
        self._tag = tag
        self._package_manager = package_manager
        self._use_buildkit = use_buildkit

    @property
    def tag(self) -> str:
        return self._tag

    def render(self) -> str:
        """
        Returns the Dockerfile content of this builder.
        """
        return render_dockerfile_content(
            package_manager=self._package_manager,
            commands=self._build_commands,
        )

    def generate_dockerfile(self, dockerfile_paths: List[PathType]) -> None:
        """
        Writes the Dockerfile to the given paths, and to a "latest" copy under
        /tmp/samplebox/docker/latest/ for inspection.
        """
        dockerfile_content = self.render()

        all_dockerfile_paths = list(dockerfile_paths) + [LATEST_DIR / "Dockerfile"]

        for dockerfile_path in all_dockerfile_paths:
            mkdir_for_path(path=dockerfile_path)
            with open(dockerfile_path, "w") as dockerfile:
                dockerfile.write(dockerfile_content)

    def get_build_environment(self) -> Dict[str, str]:
        """
        Returns the environment variables for the `docker build` process itself.
        """
        env = {"BUILDKIT_PROGRESS": "plain"} if self._use_buildkit else {"DOCKER_BUILDKIT": "0"}
        return env

    def get_build_commands(
        self,
        dockerfile_path: PathType,
        docker_build_dir: PathType,
        uid: str | None = None,
        gid: str | None = None,
    ) -> List[str]:
        """
        Constructs the `docker build` command line.

        The uid and gid are only passed as build arguments when the Dockerfile declares
        the UID and GID arguments, and never for root.

        Parameters:
            dockerfile_path (PathType): The path to the Dockerfile.
            docker_build_dir (PathType): The build context directory.
            uid (str): The user ID to pass as the UID build argument, if any.
            gid (str): The group ID to pass as the GID build argument, if any.

        Returns:
            List[str]: The docker build command.
        """
        build_args = []
        if uid and "0" != uid and "UID" in self._declared_args:
            build_args.append(f"--build-arg=UID={uid}")
        if gid and "0" != gid and "GID" in self._declared_args:
            build_args.append(f"--build-arg=GID={gid}")

        docker_path = shell_out(
            command=["which", "docker"],
            output_is_log=False,
        )

        command = (
            [
                docker_path,
                "build",
                "--file",
                f"{dockerfile_path}",
            ]
            + build_args
            + [
                f"--tag={self._tag}",
                f"{docker_build_dir}",
            ]
        )

        return command

    def generate_build_script(
        self,
        output_path: PathType = LATEST_DIR / "docker-build.sh",
    ) -> None:
        """
        Writes a shell script that builds the image with plain docker.

        The Dockerfile is written beside the script and the build context is staged into a
        `context` directory next to it, replacing any previous one. The script changes to its
        own directory first, so it can be run from anywhere.

        Raises:
            ValueError: If the script directory lies inside a directory of the build context.
        """
        output_path = Path(output_path)
        context_path = output_path.parent / "context"
        if context_path.exists():
            shutil.rmtree(context_path)
        self._context.build(context_path=context_path)

        command = self.get_build_commands(
            dockerfile_path="Dockerfile",
            docker_build_dir=context_path.name,
            uid="$(id -u)",
            gid="$(id -g)",
        )
        command_lst = (
            [f"{command[0]} {command[1]} \\"]
            + [f"    {c} \\" for c in command[2:-1]]
            + [f"    {command[-1]}"]
        )

        env_commands = [f"export {k}={v}" for k, v in self.get_build_environment().items()]

        lines = (
            [
                "#!/bin/sh",
                "set -ex",
                "",
                'cd "$(dirname "$0")"',
                "",
            ]
            + env_commands
            + [
                "",
            ]
            + command_lst
        )

        file_content = "\n".join(lines) + "\n"

        mkdir_for_path(path=output_path)
        with open(output_path, "w") as script_file:
            script_file.write(file_content)
        output_path.chmod(0o755)

        self.generate_dockerfile(dockerfile_paths=[output_path.parent / "Dockerfile"])

    def build(self, dockerfile_savepath: PathType = "", docker_context: PathType = "") -> None:
        """
        Builds the image.

        The Dockerfile is rendered in a temporary directory, the build context is staged next
        to it (unless an existing context directory is given) and `docker build` is invoked.
        A failing step aborts the build with subprocess.CalledProcessError.

        Parameters:
            dockerfile_savepath (PathType): Optional path to save a copy of the Dockerfile.
            docker_context (PathType): Optional existing directory to use as build context
                                       instead of staging one.
        """
        mkdir(WORK_DIR)
        with tempfile.TemporaryDirectory(
            prefix="docker-build-",
            dir=WORK_DIR,
        ) as temp_dir:
            temp_path = Path(temp_dir)
            dockerfile_path = (temp_path / "Dockerfile").resolve()
            dockerfile_paths = [dockerfile_path] + (
                [dockerfile_savepath] if dockerfile_savepath else []
            )
            self.generate_dockerfile(dockerfile_paths=dockerfile_paths)

            if docker_context:
                context_path = Path(docker_context).resolve()
            else:
                context_path = temp_path / "context"
                context_path.mkdir(parents=True, exist_ok=True)
                self._context.build(context_path=context_path)

            command = self.get_build_commands(
                dockerfile_path=dockerfile_path,
                docker_build_dir=context_path,
                uid=get_uid(),
                gid=get_gid(),
            )

            shell_out(
                command=command,
                current_dir=context_path,
                environment=self.get_build_environment(),
                output_is_log=True,
            )

    def get_runner(
        self,
        workdir: PathType | None = None,
        as_host_user: bool = True,
    ) -> ConcreteDockerRunner:
        """
        Returns a runner for the image built by this builder, with a container named after
        the tag.
        """
        return ConcreteDockerRunner(
            image=self._tag,
            name=self._tag.replace("/", "-").replace(":", "-"),
            workdir=workdir,
            as_host_user=as_host_user,
        )

    def __or__(
        self,
        other: "PartialDockerBuilder",
    ) -> "DockerBuilder":
        result_builder = DockerBuilder(
            tag=self._tag,
            package_manager=self._package_manager,
            use_buildkit=self._use_buildkit,
        )
        result_builder._extend(other=self)
        result_builder._extend(other=other)
        return result_builder


class UbuntuDockerBuilder(DockerBuilder):
    """
    A DockerBuilder for Ubuntu based images (apt package manager).
    """

    def __init__(
        self,
        tag: str,
        ubuntu_base_tag: str,
        context_root: PathType | None = None,
    ) -> None:
        """
        Parameters:
            tag (str): The tag of the image to build.
            ubuntu_base_tag (str): The Ubuntu base image to start from.
            context_root (PathType): Root of the build context, see PartialDockerBuilder.
        """
        super().__init__(tag=tag, package_manager="apt", context_root=context_root)
        self.from_image(tag=ubuntu_base_tag)

    def create_sudo_user(
        self,
        username: str,
        password: str,
        uid: str | None = None,
    ) -> None:
        """
        Creates a user with a home directory, a password and passwordless sudo rights.

        Everything happens in a single RUN instruction, as root: sudo is installed, the
        user is created and added to the sudo group, and the `%sudo` rule of /etc/sudoers
        is rewritten to NOPASSWD (the previous file is kept as /etc/sudoers.bkp).

        Parameters:
            username (str): The name of the user to create.
            password (str): The password of the user.
            uid (str): Optional user ID (may be a build argument reference like `${UID}`).
        """
        uid_option = f" --uid {uid}" if uid else ""
        sudoers_rule = r"s/%sudo\s\+ALL=(ALL\(:ALL\)\?)\s\+ALL/%sudo ALL=NOPASSWD:ALL/g"
        self.run_multiple(
            commands=[
                "apt-get -y update",
                "apt-get install -y sudo",
                f"useradd -m{uid_option} {username}",
                f'echo "{username}:{password}" | chpasswd',
                f"adduser {username} sudo",
                f"sed -i.bkp -e '{sudoers_rule}' /etc/sudoers",
            ]
        )
