"""
Command-line entry point.

Usage:
    lmdb-store --address data/store len
    lmdb-store --address blobs@data/store put greeting hello.txt
    lmdb-store --address blobs@data/store list --start g --limit 10
    CONFIG_PATH=config.yaml lmdb-store get greeting > greeting.txt
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import lmdb
from rich.console import Console

from lmdb_store.blob import STOP_LISTING, ListControl
from lmdb_store.config import (
    ConfigurationError,
    get_safe_config,
    get_settings,
    load_settings,
    load_yaml_config,
)
from lmdb_store.exceptions import StoreError
from lmdb_store.logging import VALID_LOG_LEVELS, get_logger, setup_logging
from lmdb_store.store import LMDBStore, open_address, open_from_settings

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="lmdb-store",
        description="Inspect and modify an LMDB blob store",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config.yaml (overrides CONFIG_PATH)",
    )
    parser.add_argument(
        "--address",
        default=None,
        help="Store address [bucket@]path; skips the configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=sorted(VALID_LOG_LEVELS),
        default="WARNING",
        help="Log level when --address is used (default: WARNING)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    get = commands.add_parser("get", help="Write a value to stdout")
    get.add_argument("key")

    put = commands.add_parser("put", help="Store a value read from FILE or stdin")
    put.add_argument("key")
    put.add_argument("file", type=Path, nargs="?", default=None)
    put.add_argument("--replace", action="store_true", help="Overwrite an existing value")

    size = commands.add_parser("size", help="Print the size of a value in bytes")
    size.add_argument("key")

    delete = commands.add_parser("delete", help="Remove a key")
    delete.add_argument("key")

    listing = commands.add_parser("list", help="Print keys in ascending order")
    listing.add_argument("--start", default="", help="First key to consider")
    listing.add_argument("--limit", type=int, default=0, help="Stop after N keys (0: no limit)")

    commands.add_parser("len", help="Print the number of keys")

    return parser.parse_args(argv)


def _open(args: argparse.Namespace) -> LMDBStore:
    # Logs go to stderr so that stdout carries only command output.
    if args.address is not None:
        setup_logging(args.log_level, stream=sys.stderr)
        return open_address(args.address)

    if args.config is not None:
        settings = load_settings(load_yaml_config(args.config))
    else:
        settings = get_settings()
    setup_logging(settings.logging.level, stream=sys.stderr)
    logger.debug("Configuration loaded", extra={"config": get_safe_config(settings)})
    return open_from_settings(settings)


def _emit(text: str) -> None:
    console.print(text, markup=False)


def _run(store: LMDBStore, args: argparse.Namespace) -> None:
    if args.command == "get":
        sys.stdout.buffer.write(store.get(args.key))
        sys.stdout.buffer.flush()
    elif args.command == "put":
        data = args.file.read_bytes() if args.file is not None else sys.stdin.buffer.read()
        store.put(args.key, data, replace=args.replace)
    elif args.command == "size":
        _emit(str(store.size(args.key)))
    elif args.command == "delete":
        store.delete(args.key)
    elif args.command == "list":
        shown = 0

        def show(key: str) -> ListControl | None:
            nonlocal shown
            _emit(key)
            shown += 1
            if args.limit and shown >= args.limit:
                return STOP_LISTING
            return None

        store.list(args.start, show)
    elif args.command == "len":
        _emit(str(store.len()))


def main(argv: list[str] | None = None) -> int:
    """Run one store command. Returns the process exit code."""
    args = parse_args(argv)

    try:
        store = _open(args)
    except (ConfigurationError, ValueError) as e:
        err_console.print(f"FATAL: Configuration error\n{e}", style="red", markup=False)
        return 1
    except lmdb.Error as e:
        err_console.print(f"FATAL: Cannot open store\n{e}", style="red", markup=False)
        return 1

    with store:
        try:
            _run(store, args)
        except (StoreError, lmdb.Error) as e:
            err_console.print(f"Error: {e}", style="red", markup=False)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
