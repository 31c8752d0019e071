# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""
Pytest configuration for samplebox tests.

Registers custom markers:
- integration: requires Docker engine
- slow: long build/pull

and provides a minimal samples tree to build images from.
"""

from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers so --strict-markers doesn’t error."""
    config.addinivalue_line("markers", "integration: requires Docker engine")
    config.addinivalue_line("markers", "slow: long build/pull")


@pytest.fixture
def samples_dir(tmp_path: Path) -> Path:
    """A samples tree with an installation script, a SConstruct and one C sample."""
    root = tmp_path / "artificial_samples"
    root.mkdir()

    script = root / "install_cross_compilers.sh"
    script.write_text("#!/bin/sh\nset -e\necho 'no cross-compiler needed'\n")
    script.chmod(0o755)

    (root / "SConstruct").write_text("Program('build/hello', 'hello.c')\n")
    (root / "hello.c").write_text("int main(void) { return 0; }\n")
    return root
