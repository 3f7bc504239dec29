"""Pytest configuration and fixtures."""

import textwrap

import pytest

from groupci.ui.console import Console, set_console


SAMPLE_YAML = """\
version: "1.0"
jobs:
  fmt:
    script:
      - cargo fmt -- --check
    group: fmt
  clippy:
    script:
      - cargo clippy -- -D warnings
    group: check
  tests:
    script:
      - cargo build
      - cargo test
    group: check
groups:
  - fmt
  - check
"""


@pytest.fixture(autouse=True)
def fresh_console():
    """Each test gets its own non-debug console."""
    console = Console()
    set_console(console)
    yield console


@pytest.fixture
def sample_yaml():
    return SAMPLE_YAML


@pytest.fixture
def write_doc(tmp_path):
    """Write a document under tmp_path and return its path."""

    def _write(text: str, name: str = "groupci.yml"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(text))
        return path

    return _write
