"""
Blob storage contract.

Callers program against `BlobStore` so that any backend implementing the
six storage operations (plus close) can be swapped in.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from threading import Event


class ListControl(Enum):
    """Outcome a list visitor returns for each key it is shown."""

    CONTINUE = "continue"
    STOP = "stop"


STOP_LISTING = ListControl.STOP
"""Returned by a visitor to end a listing early without reporting an error."""

Visitor = Callable[[str], "ListControl | None"]


@runtime_checkable
class BlobStore(Protocol):
    """
    Key/value blob storage.

    Keys are unique within a store. Lookups of absent keys raise
    `KeyNotFound`; a non-replacing put of a present key raises `KeyExists`.
    """

    def get(self, key: str, *, cancel: Event | None = None) -> bytes:
        """Return a copy of the value stored at key."""
        ...

    def put(
        self,
        key: str,
        data: bytes,
        *,
        replace: bool = False,
        cancel: Event | None = None,
    ) -> None:
        """Store data at key, overwriting only when replace is set."""
        ...

    def size(self, key: str, *, cancel: Event | None = None) -> int:
        """Return the length in bytes of the value stored at key."""
        ...

    def delete(self, key: str, *, cancel: Event | None = None) -> None:
        """Remove key."""
        ...

    def list(self, start: str, visit: Visitor, *, cancel: Event | None = None) -> None:
        """Call visit with each key >= start in ascending order."""
        ...

    def len(self, *, cancel: Event | None = None) -> int:
        """Return the number of stored keys."""
        ...

    def close(self) -> None:
        """Release the store. Closing twice is not an error."""
        ...
