"""
Fixtures for integration tests.

These tests reopen environments, share one store between threads and
drive the command-line entry point against real LMDB directories.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def env_dir(tmp_path: Path) -> Path:
    """Directory for a shared LMDB environment."""
    return tmp_path / "env"


@pytest.fixture
def config_file(tmp_path: Path, env_dir: Path) -> Path:
    """A complete config.yaml pointing at env_dir."""
    path = tmp_path / "config.yaml"
    path.write_text(f"""
service:
  name: lmdb-store
  version: 0.1.0

store:
  path: "{env_dir}"
  bucket: "blobs"
  map_size: 10485760
  max_buckets: 4
  read_only: false
  sync: true

logging:
  level: "INFO"
  format: "json"
""")
    return path
