# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
Build context staging.

`docker build` only sees the files of its build context, so every host path a COPY refers to
has to be staged into one directory first. `BuildContext` keeps the mapping from
context-relative paths (what the Dockerfile says) to host paths (where the files are), and
materializes it on disk right before the build.

A source tree copied with `COPY . <dest>` is the common case here: with a `context_root`
equal to the tree itself, the tree maps to the context path `.` and its content becomes the
root of the context.
"""

import shutil
from pathlib import Path

from samplebox.sysutils import PathType


class BuildContext:
    """
    A Docker build context under construction.

    Attributes:
        _context_root:
            Optional root directory used to compute context-relative paths.
            If provided, all added host paths must be located under this root.
        _context_entries:
            Mapping from context-relative paths to host filesystem paths.
    """

    def __init__(self, context_root: PathType | None = None) -> None:
        """
        Initialize an empty build context.

        Args:
            context_root (PathType, optional):
                Directory that defines the root of the build context. Added host paths are
                made relative to it. If `None`, only the basename of each host path is used.
        """
        self._context_root = Path(context_root).resolve() if context_root else None
        self._context_entries: dict[Path, Path] = {}  # ctx_path -> host_path

    @property
    def context_root(self) -> Path | None:
        return self._context_root

    def __len__(self) -> int:
        return len(self._context_entries)

    def extend(self, other: "BuildContext") -> None:
        """
        Merge another build context into this one.

        Raises:
            ValueError: If both contexts map the same context path to different host paths.
        """
        # pylint: disable=protected-access
        collision_paths = self._context_entries.keys() & other._context_entries.keys()
        diff_collision_paths = {
            str(p) for p in collision_paths if self._context_entries[p] != other._context_entries[p]
        }
        if diff_collision_paths:
            raise ValueError(
                f"Duplicate context entries detected before merging: {diff_collision_paths}"
            )

        if self._context_root is None:
            self._context_root = other._context_root
        self._context_entries.update(other._context_entries)

    def add_context_entry(self, host_path: PathType) -> Path:
        """
        Register a host file or directory in the build context.

        Args:
            host_path: Path to a file or directory on the host filesystem.

        Returns:
            The context-relative path under which the entry will appear in the build context.

        Raises:
            ValueError: If the host path is outside `context_root`, or if a different host path
                is already registered under the same context-relative path.
        """
        host_path = Path(host_path).resolve()

        if self._context_root is not None:
            try:
                ctx_path = host_path.relative_to(self._context_root)
            except ValueError as err:
                raise ValueError(
                    f'Host path "{host_path}" is not under the context root "{self._context_root}"'
                ) from err
        else:
            ctx_path = Path(host_path.name)

        if ctx_path in self._context_entries and self._context_entries[ctx_path] != host_path:
            raise ValueError(f"Duplicate context entry: {ctx_path}")

        self._context_entries[ctx_path] = host_path
        return ctx_path

    def build(self, context_path: PathType) -> None:
        """
        Materialize the build context on disk.

        Each host entry is copied to `<context_path>/<ctx_path>`; the entry `.` copies the
        content of its directory into `context_path` itself.

        Raises:
            ValueError:
                If a context path is absolute or contains path traversal components (`..`),
                or if `context_path` lies inside a registered host directory.
            FileNotFoundError:
                If a registered host path does not exist.
        """
        context_root = Path(context_path)
        resolved_root = context_root.resolve()
        for host_path in self._context_entries.values():
            if resolved_root == host_path or host_path in resolved_root.parents:
                raise ValueError(
                    f'Cannot stage the build context "{resolved_root}" inside "{host_path}"'
                )
        context_root.mkdir(parents=True, exist_ok=True)

        for ctx_path, host_path in self._context_entries.items():
            if ctx_path.is_absolute() or ".." in ctx_path.parts:
                raise ValueError(f"Invalid context path (must be relative, no '..'): {ctx_path}")

            if not host_path.exists():
                raise FileNotFoundError(f"Host path does not exist: {host_path}")

            dst_path = context_root / ctx_path

            if host_path.is_file():
                dst_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(host_path, dst_path)
            elif host_path.is_dir():
                dst_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copytree(host_path, dst_path, symlinks=True, dirs_exist_ok=True)
            else:
                raise ValueError(f"Host path must be a file or directory: {host_path}")
