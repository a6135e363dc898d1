"""
LMDB Store - blob storage over an embedded key/value engine.

Implements the get/put/size/delete/list/len storage contract on top of
LMDB transactions and cursors.
"""

from __future__ import annotations

from lmdb_store.blob import STOP_LISTING, BlobStore, ListControl, Visitor
from lmdb_store.config import Options, parse_address
from lmdb_store.exceptions import (
    KeyExists,
    KeyNotFound,
    OperationCancelled,
    StoreError,
    is_not_found,
)
from lmdb_store.store import LMDBStore, open_address, open_from_settings, open_store

__all__ = [
    "STOP_LISTING",
    "BlobStore",
    "KeyExists",
    "KeyNotFound",
    "LMDBStore",
    "ListControl",
    "OperationCancelled",
    "Options",
    "StoreError",
    "Visitor",
    "is_not_found",
    "open_address",
    "open_from_settings",
    "open_store",
    "parse_address",
]
