"""
Error taxonomy for store operations.

Engine failures that are not a missing key are never wrapped: they reach
the caller as the `lmdb.Error` the engine raised.
"""

from __future__ import annotations

import lmdb

__all__ = [
    "KeyExists",
    "KeyNotFound",
    "OperationCancelled",
    "StoreError",
    "is_not_found",
]


class StoreError(Exception):
    """
    Base exception for store errors.

    Attributes:
        error: Machine-readable error code
        message: Human-readable description
        details: Additional context
    """

    def __init__(
        self,
        error: str,
        message: str,
        details: dict[str, object] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


class KeyNotFound(StoreError):
    """Raised when a key is absent from the store's bucket."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            error="key_not_found",
            message=f"key not found: {key!r}",
            details={"key": key},
        )


class KeyExists(StoreError):
    """Raised when a non-replacing put targets a key that already has a value."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            error="key_exists",
            message=f"key already exists: {key!r}",
            details={"key": key},
        )


class OperationCancelled(StoreError):
    """Raised when the caller's cancel event is set before or during an operation."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            error="cancelled",
            message=f"{operation} cancelled",
            details={"operation": operation},
        )


def is_not_found(exc: BaseException) -> bool:
    """
    Report whether an error means "no such key".

    Covers the engine's MDB_NOTFOUND as well as absent keys and buckets,
    which the store raises as `KeyNotFound` at the lookup site.
    """
    return isinstance(exc, (KeyNotFound, lmdb.NotFoundError))
