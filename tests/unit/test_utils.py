# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""Unit tests for the reusable build steps and system helpers."""

from pathlib import Path

import pytest

from samplebox.builders import PartialDockerBuilder, render_dockerfile_content
from samplebox.builders.utils import (
    check_source_tree,
    pip_install,
    pip_install_command,
    prepend_path,
)
from samplebox.sysutils import mkdir_for_path, shell_out


def _render(builder: PartialDockerBuilder) -> str:
    return render_dockerfile_content(
        package_manager="apt",
        commands=builder._build_commands,  # pylint: disable=W0212
    )


def test_pip_install_command() -> None:
    assert "pip install scons" == pip_install_command(packages=["scons"])
    assert "pip3 install --upgrade --user a b" == pip_install_command(
        packages=["a", "b"], upgrade=True, user_install=True, pip="pip3"
    )
    with pytest.raises(ValueError):
        pip_install_command(packages=[])


def test_pip_install_upgrades_first() -> None:
    builder = PartialDockerBuilder()
    pip_install(builder=builder, packages=["scons"], upgrade_pip=True)

    assert "RUN pip install --upgrade pip\nRUN pip install scons\n" == _render(builder)


def test_prepend_path() -> None:
    builder = PartialDockerBuilder()
    prepend_path(builder=builder, directory="/home/cwe/.local/bin/")

    assert "ENV PATH=/home/cwe/.local/bin/:${PATH}\n" == _render(builder)


def test_check_source_tree(tmp_path: Path) -> None:
    (tmp_path / "install.sh").write_text("")

    assert tmp_path.resolve() == check_source_tree(tmp_path, required_files=["install.sh"])
    with pytest.raises(FileNotFoundError, match="other.sh"):
        check_source_tree(tmp_path, required_files=["install.sh", "other.sh"])


def test_mkdir_for_path(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "Dockerfile"
    mkdir_for_path(target)
    assert target.parent.is_dir()

    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(ValueError):
        mkdir_for_path(blocker / "Dockerfile")


def test_shell_out_captures_output(capsys: pytest.CaptureFixture[str]) -> None:
    assert "hello world" == shell_out(["echo", "hello world"])

    out, _ = capsys.readouterr()
    assert "[echo 'hello world']" in out
