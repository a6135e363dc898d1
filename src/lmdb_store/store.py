"""
LMDB-backed blob storage.

Each store is an LMDB environment directory plus a bucket (a named
database inside it; the empty bucket selects the main database). Every
operation runs in exactly one engine transaction, so check-then-act
sequences such as "put unless present" are atomic with respect to other
threads and processes sharing the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import lmdb

from lmdb_store.blob import STOP_LISTING
from lmdb_store.config import Options, parse_address, resolve_options
from lmdb_store.exceptions import KeyExists, KeyNotFound, OperationCancelled, is_not_found
from lmdb_store.logging import get_logger

if TYPE_CHECKING:
    from threading import Event
    from types import TracebackType

    from lmdb_store.blob import Visitor
    from lmdb_store.config import Settings

__all__ = [
    "LMDBStore",
    "open_address",
    "open_from_settings",
    "open_store",
]

logger = get_logger(__name__)


def _encode_key(key: str) -> bytes:
    return key.encode("utf-8", "surrogateescape")


def _decode_key(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _check_cancelled(cancel: Event | None, operation: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(operation)


class LMDBStore:
    """
    Blob store over one bucket of an LMDB environment.

    Use `open_store`, `open_address` or `open_from_settings` to construct.
    A store may be shared between threads; isolation is provided by the
    engine's transactions.

    Attributes:
        path: Environment directory
        bucket: Bucket name ("" for the main database)
    """

    def __init__(
        self,
        env: lmdb.Environment,
        bucket: str,
        db: lmdb._Database | None,
    ) -> None:
        """
        Wrap an open environment.

        Args:
            env: Open LMDB environment
            bucket: Bucket name the database handle belongs to
            db: Database handle, or None if the bucket does not exist
        """
        self._env = env
        self._db = db
        self.bucket = bucket
        self.path = env.path()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, bucket={self.bucket!r})"

    def __enter__(self) -> LMDBStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """
        Close the underlying environment.

        Closing an already-closed store succeeds. Any operation on a closed
        store raises the engine's `lmdb.Error`.
        """
        # Environment.close() is a no-op once the environment is closed.
        self._env.close()
        logger.debug("Store closed", extra={"path": self.path, "bucket": self.bucket})

    def _fetch(self, txn: lmdb.Transaction, key: str) -> bytes:
        """
        Look up key inside txn.

        Every flavour of absence (missing bucket, missing key, MDB_NOTFOUND)
        is raised as `KeyNotFound`; other engine errors propagate.
        """
        raw = _encode_key(key)
        # LMDB rejects zero-length keys, so the empty key can never be stored.
        if self._db is None or not raw:
            raise KeyNotFound(key)
        try:
            value = txn.get(raw, db=self._db)
        except lmdb.Error as exc:
            if is_not_found(exc):
                raise KeyNotFound(key) from exc
            raise
        if value is None:
            raise KeyNotFound(key)
        return value

    def get(self, key: str, *, cancel: Event | None = None) -> bytes:
        """
        Retrieve the value stored at key.

        The result is a private copy; mutating it cannot affect the store.

        Raises:
            KeyNotFound: If key is absent
            OperationCancelled: If cancel is already set
        """
        _check_cancelled(cancel, "get")
        with self._env.begin() as txn:
            # Without buffers=True the binding copies the value out of the map.
            return self._fetch(txn, key)

    def put(
        self,
        key: str,
        data: bytes,
        *,
        replace: bool = False,
        cancel: Event | None = None,
    ) -> None:
        """
        Store data at key.

        Args:
            key: Key to write
            data: Value bytes
            replace: Overwrite an existing value instead of failing

        Raises:
            KeyExists: If replace is False and key already has a value
            OperationCancelled: If cancel is already set
        """
        _check_cancelled(cancel, "put")
        with self._env.begin(write=True) as txn:
            if not replace:
                try:
                    self._fetch(txn, key)
                except KeyNotFound:
                    pass
                else:
                    logger.debug("Put rejected, key exists", extra={"key": key})
                    # Raising aborts the transaction, so nothing is written.
                    raise KeyExists(key)
            txn.put(_encode_key(key), data, db=self._db)

    def size(self, key: str, *, cancel: Event | None = None) -> int:
        """
        Return the length in bytes of the value stored at key.

        Raises:
            KeyNotFound: If key is absent
            OperationCancelled: If cancel is already set
        """
        _check_cancelled(cancel, "size")
        # Buffers point into the memory map, so the length is read without a copy.
        with self._env.begin(buffers=True) as txn:
            return len(self._fetch(txn, key))

    def delete(self, key: str, *, cancel: Event | None = None) -> None:
        """
        Remove key.

        Raises:
            KeyNotFound: If key is absent
            OperationCancelled: If cancel is already set
        """
        _check_cancelled(cancel, "delete")
        with self._env.begin(write=True) as txn:
            self._fetch(txn, key)
            txn.delete(_encode_key(key), db=self._db)

    def list(self, start: str, visit: Visitor, *, cancel: Event | None = None) -> None:
        """
        Call visit with every key >= start, in ascending byte order.

        The listing ends without error when keys run out or when visit
        returns `STOP_LISTING`. An exception raised by visit propagates
        unchanged. The cancel event is checked before each key.

        Raises:
            OperationCancelled: If cancel is set before the listing finishes
        """
        _check_cancelled(cancel, "list")
        if self._db is None:
            return
        with self._env.begin() as txn:
            cursor = txn.cursor(db=self._db)
            positioned = cursor.set_range(_encode_key(start)) if start else cursor.first()
            while positioned:
                _check_cancelled(cancel, "list")
                if visit(_decode_key(cursor.key())) is STOP_LISTING:
                    return
                positioned = cursor.next()

    def len(self, *, cancel: Event | None = None) -> int:
        """Return the number of keys in the bucket."""
        count = 0

        def tally(_key: str) -> None:
            nonlocal count
            count += 1

        self.list("", tally, cancel=cancel)
        return count

    def __len__(self) -> int:
        return self.len()

    def __bool__(self) -> bool:
        # An open handle is truthy even when its bucket is empty.
        return True


def _open_bucket(env: lmdb.Environment, options: Options) -> lmdb._Database | None:
    """
    Open the database handle for the configured bucket.

    Writable environments create a missing bucket. A read-only environment
    cannot, so a missing bucket yields None and reads report not found.
    """
    if not options.bucket:
        return env.open_db()
    try:
        return env.open_db(options.bucket.encode("utf-8"), create=not options.read_only)
    except lmdb.Error as exc:
        if options.read_only and is_not_found(exc):
            logger.info("Bucket not found", extra={"bucket": options.bucket})
            return None
        raise


def open_store(path: str | os.PathLike[str], options: Options | None = None) -> LMDBStore:
    """
    Open (or create) the LMDB environment at path.

    Args:
        path: Environment directory
        options: Bucket and engine options; defaults apply when None

    Returns:
        Ready-to-use store

    Raises:
        lmdb.Error: If the environment or bucket cannot be opened
    """
    opts = resolve_options(options)
    env_path = os.fspath(path)
    if not opts.read_only:
        Path(env_path).mkdir(parents=True, exist_ok=True)

    env = lmdb.open(
        env_path,
        map_size=opts.map_size,
        max_dbs=opts.max_buckets,
        readonly=opts.read_only,
        create=not opts.read_only,
        sync=opts.sync,
        metasync=opts.sync,
    )
    try:
        db = _open_bucket(env, opts)
    except lmdb.Error:
        env.close()
        raise

    logger.info(
        "Store opened",
        extra={"path": env_path, "bucket": opts.bucket, "read_only": opts.read_only},
    )
    return LMDBStore(env, opts.bucket, db)


def open_address(address: str) -> LMDBStore:
    """Open a store from an address of the form ``[bucket@]path``."""
    path, options = parse_address(address)
    return open_store(path, options)


def open_from_settings(settings: Settings) -> LMDBStore:
    """Open the store described by the store section of settings."""
    store = settings.store
    return open_store(store.path, Options(**store.model_dump(exclude={"path"})))
