"""
Shared test configuration and fixtures.

Test-type-specific fixtures are defined in their respective conftest.py files:
- tests/unit/conftest.py for unit tests (single store per test)
- tests/integration/conftest.py for integration tests (threads, reopen, CLI)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from lmdb_store.config import clear_settings_cache
from lmdb_store.logging import LOGGER_NAME

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def reset_state() -> Iterator[None]:
    """
    Clear cached settings and the package logger around each test.

    setup_logging() binds a handler to the stream current at call time,
    which pytest closes when the test's capture ends.
    """
    clear_settings_cache()
    yield
    clear_settings_cache()
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
