# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""Unit tests for build context staging."""

from pathlib import Path

import pytest

from samplebox.builders import PartialDockerBuilder
from samplebox.builders.contexts import BuildContext


def _touch(path: Path, content: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def test_basename_entries_collide(tmp_path: Path) -> None:
    first = _touch(tmp_path / "a" / "file.txt")
    second = _touch(tmp_path / "b" / "file.txt")

    context = BuildContext()
    assert Path("file.txt") == context.add_context_entry(first)
    assert Path("file.txt") == context.add_context_entry(first)
    with pytest.raises(ValueError, match="Duplicate context entry"):
        context.add_context_entry(second)


def test_context_root_preserves_structure(tmp_path: Path) -> None:
    nested = _touch(tmp_path / "nested" / "file.txt", "nested")

    context = BuildContext(context_root=tmp_path)
    assert Path("nested/file.txt") == context.add_context_entry(nested)
    assert Path(".") == context.add_context_entry(tmp_path)

    out = tmp_path.parent / f"{tmp_path.name}-out"
    context.build(context_path=out)
    assert "nested" == (out / "nested" / "file.txt").read_text()


def test_entry_outside_context_root(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside = _touch(tmp_path / "outside.txt")

    with pytest.raises(ValueError, match="not under the context root"):
        BuildContext(context_root=root).add_context_entry(outside)


def test_missing_host_path(tmp_path: Path) -> None:
    context = BuildContext()
    context.add_context_entry(tmp_path / "missing.txt")

    with pytest.raises(FileNotFoundError):
        context.build(context_path=tmp_path / "ctx")


def test_staging_inside_host_dir(tmp_path: Path) -> None:
    tree = tmp_path / "tree"
    _touch(tree / "hello.c")
    context = BuildContext(context_root=tree)
    context.add_context_entry(tree)

    with pytest.raises(ValueError, match="Cannot stage the build context"):
        context.build(context_path=tree / "context")
    assert not (tree / "context").exists()


def test_extend_detects_conflicts(tmp_path: Path) -> None:
    left = BuildContext()
    left.add_context_entry(_touch(tmp_path / "a" / "file.txt"))
    right = BuildContext()
    right.add_context_entry(_touch(tmp_path / "b" / "file.txt"))

    with pytest.raises(ValueError, match="Duplicate context entries"):
        left.extend(right)


def test_builder_copy_stages_files(tmp_path: Path) -> None:
    script = _touch(tmp_path / "install.sh", "#!/bin/sh\n")

    builder = PartialDockerBuilder()
    builder.copy(source=script, destination="/opt/install.sh", chmod="755")
    assert 1 == len(builder.context)

    ctx = tmp_path / "ctx"
    builder.context.build(context_path=ctx)
    assert "#!/bin/sh\n" == (ctx / "install.sh").read_text()


def test_merged_builders_keep_context_root(tmp_path: Path) -> None:
    rooted = PartialDockerBuilder(context_root=tmp_path)
    rooted.copy(source=tmp_path, destination="/src")

    merged = PartialDockerBuilder() | rooted
    assert merged.context.context_root == tmp_path.resolve()
    assert 1 == len(merged.context)
