# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""Integration test for the artificial samples image.

Requires a working Docker engine and network access to pull the base image. It builds the image
from a minimal samples tree (whose installation script installs nothing) and checks that the
build invocation printed by the builder carries the expected tag.
"""

from pathlib import Path

import pytest

from samplebox.config import SamplesImageConfig
from samplebox.recipes import artificial_samples_builder

pytestmark = [pytest.mark.integration, pytest.mark.slow]


def test_build_samples_image(samples_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    tag = "samplebox-itest:samples"
    # Last SCons release running on the Python 2 of the base image.
    config = SamplesImageConfig(
        tag=tag,
        pip_packages=["scons==3.1.2"],
        upgrade_pip=False,
        chown_sources=True,
    )
    builder = artificial_samples_builder(config=config, source_dir=samples_dir)
    builder.build()

    out, _ = capsys.readouterr()
    assert f"--tag={tag}" in out
