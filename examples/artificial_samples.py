#!/usr/bin/env python3
# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

# pylint: disable=missing-module-docstring, invalid-name

import sys
from pathlib import Path

from samplebox.builders import PartialDockerBuilder
from samplebox.config import SamplesImageConfig
from samplebox.recipes import artificial_samples_builder
from samplebox.runners import scons_runner


def debug_tools_builder() -> PartialDockerBuilder:
    """
    A fragment adding gdb and file to the image, to inspect the compiled samples.

    Returns:
        PartialDockerBuilder: Docker builder fragment installing the tools.
    """
    b = PartialDockerBuilder()
    b.add_packages(packages=["file", "gdb"], use_sudo=True)
    return b


source_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(".")
config = SamplesImageConfig(tag="artificial-samples-example")

builder = artificial_samples_builder(config=config, source_dir=source_dir)
builder |= debug_tools_builder()
builder.build()

# Compile the samples in a container and get them back in ./build:

runner = builder.get_runner(workdir=config.samples_dir, as_host_user=False)
runner |= scons_runner(output_dir="build", samples_dir=config.samples_dir)
runner.run(command=["sudo", f"{config.local_bin_dir / 'scons'}"])
