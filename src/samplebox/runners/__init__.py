# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
This module defines DockerRunner and ConcreteDockerRunner, used to run commands in containers of
a built image: environment variables, mounted volumes and other `docker run` options are
accumulated in a DockerRunner, then bound to an image in a ConcreteDockerRunner.
"""

from pathlib import Path, PurePosixPath
from typing import Dict, List

from samplebox.sysutils import Environment, PathType, get_gid, get_uid, mkdir, shell_out


class DockerRunner:
    """
    A reusable set of `docker run` options, not yet bound to an image.
    """

    def __init__(
        self,
        environment_variables: Environment = None,
        volumes: Dict[str, str] | None = None,
        other_options: List[str] | None = None,
    ) -> None:
        """
        Parameters:
            environment_variables (Environment): Environment variables to pass to the container.
            volumes (Dict[str, str]): A dictionary mapping host paths to container paths.
            other_options (List[str]): Additional docker run options.
        """
        self._environment_variables = environment_variables if environment_variables else {}
        self._volumes = volumes if volumes else {}
        self._other_options = other_options if other_options else []

    def __or__(self, other: "DockerRunner") -> "DockerRunner":
        """
        Returns a new DockerRunner with the options of both runners; `other` wins on
        conflicting environment variables and volumes.
        """
        if not isinstance(other, DockerRunner):
            return NotImplemented
        return DockerRunner(
            environment_variables=self._environment_variables | other._environment_variables,
            volumes=self._volumes | other._volumes,
            other_options=self._other_options + other._other_options,
        )

    def concretize(
        self,
        image: str,
        tty: bool,
        interactive: bool,
        name: str | None = None,
        workdir: PathType | None = None,
        as_host_user: bool = True,
    ) -> "ConcreteDockerRunner":
        """
        Binds these options to an image.
        """
        return ConcreteDockerRunner(
            image=image,
            name=name,
            environment_variables=self._environment_variables,
            volumes=self._volumes,
            other_options=self._other_options,
            workdir=workdir,
            as_host_user=as_host_user,
            tty=tty,
            interactive=interactive,
        )


class ConcreteDockerRunner(DockerRunner):
    """
    A DockerRunner bound to an image, able to build and execute the `docker run` command.
    """

    def __init__(
        self,
        image: str,
        name: str | None = None,
        environment_variables: Environment = None,
        volumes: Dict[str, str] | None = None,
        other_options: List[str] | None = None,
        workdir: PathType | None = None,
        as_host_user: bool = True,
        tty: bool = True,
        interactive: bool = True,
    ) -> None:
        """
        Parameters:
            image (str): The image to run.
            name (str): Optional name for the container.
            environment_variables (Environment): Environment variables to pass to the container.
            volumes (Dict[str, str]): A dictionary mapping host paths to container paths.
            other_options (List[str]): Additional docker run options.
            workdir (PathType): Optional working directory inside the container.
            as_host_user (bool): Run as the calling host user (uid:gid) rather than as the
                                 USER of the image.
            tty (bool): Whether to allocate a TTY.
            interactive (bool): Whether to keep stdin open.
        """
        super().__init__(
            environment_variables=environment_variables,
            volumes=volumes,
            other_options=other_options,
        )
        self._image = image
        self._name = name
        self._workdir = workdir
        self._as_host_user = as_host_user
        self._tty = tty
        self._interactive = interactive

    def __or__(self, other: DockerRunner) -> "ConcreteDockerRunner":
        if isinstance(other, ConcreteDockerRunner):
            return NotImplemented
        abstract_runner = super().__or__(other=other)
        return abstract_runner.concretize(
            image=self._image,
            name=self._name,
            workdir=self._workdir,
            as_host_user=self._as_host_user,
            tty=self._tty,
            interactive=self._interactive,
        )

    def get_command(self, command: List[str] | None = None) -> List[str]:
        """
        Constructs the `docker run` command.

        Parameters:
            command (List[str]): The command to run in the container; the image's default
                                 command is used when omitted.

        Returns:
            List[str]: The docker run command as a list of arguments.
        """
        image = self._image

        header = ["docker", "run", "--rm"]
        tty = ["--tty"] if self._tty else []
        interactive = ["--interactive"] if self._interactive else []
        env = [f"--env={k}={v}" for k, v in self._environment_variables.items()]
        vol = [f"--volume={k}:{v}" for k, v in self._volumes.items()]
        opt = [f"{o}" for o in self._other_options]
        name = [f"--name={self._name}"] if self._name else []
        wd = [f"--workdir={self._workdir}"] if self._workdir else []
        use = [f"--user={get_uid()}:{get_gid()}"] if self._as_host_user else []

        return (
            header
            + tty
            + interactive
            + env
            + vol
            + opt
            + name
            + wd
            + use
            + [image]
            + (list(command) if command else [])
        )

    def get_str_command(self, command: List[str] | None = None) -> str:
        return " ".join(self.get_command(command=command))

    def run(self, command: List[str] | None = None) -> None:
        """
        Runs the container, streaming its output.

        Raises:
            subprocess.CalledProcessError: If the container exits with a non-zero status.
        """
        shell_out(
            command=self.get_command(command=command),
            output_is_log=True,
        )

    def generate_script(
        self,
        output_path: PathType = "/tmp/samplebox/docker/latest/docker-run.sh",
    ) -> None:
        """
        Writes a script running the container; its arguments are forwarded as the
        in-container command.
        """
        command = self.get_command() + ['"$@"']

        head = command[:2]
        body = command[2:-1]
        tail = command[-1:]

        first_line = [" ".join(head) + " \\\n"]
        other_lines = [f"    {c} \\\n" for c in body]
        last_line = [f"    {c}" for c in tail]

        output_path = Path(output_path)
        mkdir(output_path.parent)
        with open(output_path, "w") as script:
            script.writelines(
                [
                    "#!/bin/sh\n",
                    "set -ex\n",
                    "\n",
                ]
                + first_line
                + other_lines
                + last_line
                + ["\n"]
            )
        output_path.chmod(0o755)


def scons_runner(output_dir: PathType, samples_dir: PathType) -> DockerRunner:
    """
    Mounts a host directory on the `build` directory of the samples tree, so that the samples
    compiled by SCons in the container end up on the host.

    Parameters:
        output_dir (PathType): Host directory receiving the compiled samples; created if needed.
        samples_dir (PathType): Location of the samples tree in the image.
    """
    host_dir = Path(output_dir).resolve()
    mkdir(host_dir)
    return DockerRunner(
        volumes={f"{host_dir}": f"{PurePosixPath(samples_dir) / 'build'}"},
    )
