# Copyright (C) 2025 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT
"""Unit tests for the artificial samples recipe.

The default settings must reproduce the reference image (golden Dockerfile), the options must
only add or alter their own instructions, and the samples tree must be checked and staged as
the root of the build context.
"""

from pathlib import Path

import pytest

from samplebox.config import SamplesImageConfig
from samplebox.recipes import artificial_samples_builder

GOLDEN_DIR = Path(__file__).parent.parent / "golden"


def test_default_recipe_matches_golden(samples_dir: Path) -> None:
    builder = artificial_samples_builder(source_dir=samples_dir)

    expected = (GOLDEN_DIR / "Dockerfile").read_text()
    assert expected == builder.render()
    assert builder.tag == "samplebox/artificial-samples"


def test_recipe_is_deterministic(samples_dir: Path) -> None:
    first = artificial_samples_builder(source_dir=samples_dir).render()
    second = artificial_samples_builder(source_dir=samples_dir).render()
    assert first == second


def test_apt_lists_kept_for_install_script(samples_dir: Path) -> None:
    df = artificial_samples_builder(source_dir=samples_dir).render()

    assert "/var/lib/apt/lists" not in df
    assert df.index("apt-get update") < df.index("RUN ./install_cross_compilers.sh")


def test_missing_install_script(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="install_cross_compilers.sh"):
        artificial_samples_builder(source_dir=tmp_path)


def test_missing_source_dir(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="does not exist"):
        artificial_samples_builder(source_dir=tmp_path / "nowhere")


def test_build_samples_appends_scons(samples_dir: Path) -> None:
    config = SamplesImageConfig(build_samples=True)
    df = artificial_samples_builder(config=config, source_dir=samples_dir).render()

    expected_tail = (
        "RUN ./install_cross_compilers.sh\n"
        "\n"
        "# Build the samples\n"
        "RUN sudo /home/cwe/.local/bin/scons\n"
    )
    assert df.endswith(expected_tail)


def test_custom_user_and_chown(samples_dir: Path) -> None:
    config = SamplesImageConfig(user_name="builder", user_password="pw", chown_sources=True)
    df = artificial_samples_builder(config=config, source_dir=samples_dir).render()

    assert "USER builder\n" in df
    assert '    echo "builder:pw" | chpasswd && \\\n' in df
    assert "ENV PATH=/home/builder/.local/bin/:${PATH}\n" in df
    assert "COPY --chown=builder:builder . /home/builder/artificial_samples\n" in df
    assert "WORKDIR /home/builder/artificial_samples\n" in df


def test_match_host_ids_declares_uid(samples_dir: Path) -> None:
    config = SamplesImageConfig(match_host_ids=True)
    builder = artificial_samples_builder(config=config, source_dir=samples_dir)
    df = builder.render()

    assert "ARG UID=1000\n" in df
    assert "useradd -m --uid ${UID} cwe" in df
    assert df.index("ARG UID=1000") < df.index("useradd")


def test_no_pip_upgrade_and_no_apt_packages(samples_dir: Path) -> None:
    config = SamplesImageConfig(apt_packages=[], upgrade_pip=False)
    df = artificial_samples_builder(config=config, source_dir=samples_dir).render()

    assert "--upgrade pip" not in df
    assert "sudo apt-get" not in df
    assert "RUN pip install scons\n" in df


def test_samples_tree_becomes_context_root(samples_dir: Path, tmp_path: Path) -> None:
    builder = artificial_samples_builder(source_dir=samples_dir)
    context_path = tmp_path / "context"
    builder.context.build(context_path=context_path)

    assert (context_path / "install_cross_compilers.sh").is_file()
    assert (context_path / "SConstruct").is_file()
    assert (context_path / "hello.c").read_text() == "int main(void) { return 0; }\n"


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        SamplesImageConfig(user_name="root")
    with pytest.raises(ValueError):
        SamplesImageConfig(tag="")
    with pytest.raises(ValueError):
        SamplesImageConfig(user_password="a:b")
    with pytest.raises(ValueError):
        SamplesImageConfig(install_script="scripts/install.sh")


def test_config_paths() -> None:
    config = SamplesImageConfig(user_name="builder", samples_dirname="samples")
    assert str(config.home_dir) == "/home/builder"
    assert str(config.samples_dir) == "/home/builder/samples"
    assert str(config.local_bin_dir) == "/home/builder/.local/bin"
