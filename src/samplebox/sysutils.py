# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
System-level helpers used by the builders and runners of samplebox.

Everything that touches the host goes through here: spawning the docker CLI (and the few
other tools we need), creating directories for generated files, and looking up the
calling user's uid/gid so that the image user can match it.
"""

import os
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List

PathType = str | Path
Environment = Dict[str, str] | None


def _print_cmd(
    command: List[str],
    environment: Environment,
) -> None:
    """
    Echo the command about to be executed, prefixed by the environment it runs with.

    Parameters:
        command (List[str]): The command to be executed as a list of strings.
        environment (Environment): Extra environment variables of the command, if any.
    """
    if environment:
        printed_env = " ".join([f"{k}={v}" for k, v in environment.items()]) + " "
    else:
        printed_env = ""
    print(f"[{printed_env}{shlex.join(command)}]")


def shell_out(
    command: List[str] | str,
    current_dir: PathType | None = None,
    environment: Environment = None,
    output_is_log: bool = False,
) -> str:
    """
    Executes a command, either streaming its output or capturing it.

    The given environment is merged on top of the current process environment, so that
    tools like docker still find their configuration and PATH.

    Parameters:
        command (List[str] | str): The command to execute, either as a string or a list of strings.
        current_dir (PathType | None): The directory in which to execute the command.
        environment (Environment): Environment variables to add for the command.
        output_is_log (bool): If True, the output goes straight to the console and an empty
                              string is returned.

    Returns:
        str: The stripped output of the command if output_is_log is False;
             otherwise, an empty string.

    Raises:
        subprocess.CalledProcessError: If the command exits with a non-zero status.
    """
    if isinstance(command, str):
        command = shlex.split(command)
    command = [str(c) for c in command]
    _print_cmd(command=command, environment=environment)

    full_env = os.environ | environment if environment else None
    if output_is_log:
        subprocess.check_call(command, text=True, cwd=current_dir, env=full_env)
        result = ""
    else:
        output = subprocess.check_output(command, text=True, cwd=current_dir, env=full_env)
        result = output.strip()
    return result


def mkdir(path: PathType) -> None:
    """
    Creates a directory (and its parents) if it does not already exist.
    """
    os.makedirs(path, exist_ok=True)


def get_uid() -> str:
    """
    Returns the user ID of the current user, as a string.
    """
    return str(os.getuid())


def get_gid() -> str:
    """
    Returns the group ID of the current user, as a string.
    """
    return str(os.getgid())


def mkdir_for_path(path: PathType) -> None:
    """
    Ensures that the parent directory for a given path exists, creating it if necessary.

    Parameters:
        path (PathType): The path for which the parent directory needs verification or creation.

    Raises:
        ValueError: If the parent path exists and is not a directory.
    """
    path = Path(path)
    if path.is_dir():
        return

    parent_path = path.parent
    if parent_path.is_dir():
        return
    if parent_path.is_file():
        raise ValueError(f'Error, parent path is not a directory: "{parent_path}"')

    mkdir(path=parent_path)
