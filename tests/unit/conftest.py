"""
Shared fixtures for unit tests.

Each test gets its own LMDB environment in a temporary directory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from lmdb_store.store import open_store

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from lmdb_store.store import LMDBStore


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Directory for the test's LMDB environment."""
    return tmp_path / "store"


@pytest.fixture
def store(store_path: Path) -> Iterator[LMDBStore]:
    """Open store on the main database, closed after the test."""
    s = open_store(store_path)
    yield s
    s.close()


@pytest.fixture
def abc_store(store: LMDBStore) -> LMDBStore:
    """Store holding keys a, b and c, inserted out of order."""
    for key in ("b", "c", "a"):
        store.put(key, key.encode() * 3)
    return store
