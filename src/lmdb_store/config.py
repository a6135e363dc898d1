"""
Configuration for the LMDB store.

`Options` is the per-store value object passed to `open_store`. `Settings`
is the process-level configuration loaded from YAML: every section is
required, and only the store's engine knobs fall back to `Options` defaults.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__ = [
    "ADDRESS_SEPARATOR",
    "DEFAULT_MAP_SIZE",
    "REDACTION_MARKER",
    "SENSITIVE_KEYWORDS",
    "ConfigurationError",
    "LoggingConfig",
    "Options",
    "ServiceConfig",
    "Settings",
    "StoreConfig",
    "clear_settings_cache",
    "get_config_path",
    "get_safe_config",
    "get_settings",
    "is_sensitive_key",
    "load_settings",
    "load_yaml_config",
    "parse_address",
    "redact_sensitive_values",
    "resolve_options",
]

ADDRESS_SEPARATOR = "@"

DEFAULT_MAP_SIZE = 1 << 30  # 1 GiB

# Keywords that indicate sensitive data (case-insensitive)
SENSITIVE_KEYWORDS: frozenset[str] = frozenset(
    {
        "key",
        "secret",
        "pass",
        "password",
        "token",
        "credential",
        "auth",
        "api_key",
        "apikey",
        "private",
        "bearer",
    }
)

_SENSITIVE_PATTERN = re.compile(
    r"(" + "|".join(re.escape(kw) for kw in SENSITIVE_KEYWORDS) + r")",
    re.IGNORECASE,
)

REDACTION_MARKER: str = "[REDACTED]"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class Options(BaseModel):
    """Options for opening a store. All fields have defaults."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    bucket: str = ""
    """Named database to use. Empty selects the environment's main database."""

    map_size: int = Field(default=DEFAULT_MAP_SIZE, gt=0)
    """Maximum size of the memory map, in bytes."""

    max_buckets: int = Field(default=16, ge=0)
    """Maximum number of named databases in the environment."""

    read_only: bool = False

    sync: bool = True
    """Flush to disk on every commit."""


def resolve_options(options: Options | None) -> Options:
    """Return options, or the defaults when none were given."""
    if options is None:
        return Options()
    return options


def parse_address(address: str) -> tuple[str, Options | None]:
    """
    Split a store address of the form ``[bucket@]path``.

    Args:
        address: Address string; only the first "@" separates bucket from path

    Returns:
        Tuple of (path, options), where options is None if no bucket was given
    """
    bucket, sep, path = address.partition(ADDRESS_SEPARATOR)
    if not sep:
        return address, None
    return path, Options(bucket=bucket)


class ServiceConfig(BaseModel):
    """Service identity configuration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str


class StoreConfig(Options):
    """Store location plus the engine options it is opened with."""

    path: str


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str
    format: str


class Settings(BaseModel):
    """
    Root configuration container.

    All sections are REQUIRED. Missing sections cause immediate failure.

    Usage:
        from lmdb_store.config import get_settings
        settings = get_settings()
    """

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig
    store: StoreConfig
    logging: LoggingConfig


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load and parse YAML configuration file.

    Args:
        config_path: Path to config.yaml

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigurationError: If file is missing, empty, or invalid
    """
    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}\n"
            f"Expected location: {config_path.absolute()}\n"
            f"Create the file or set CONFIG_PATH environment variable."
        )

    try:
        with config_path.open() as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if config is None:
        raise ConfigurationError(f"Configuration file is empty: {config_path}")

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Configuration must be a YAML mapping, got {type(config).__name__}"
        )

    return config


def load_settings(yaml_config: dict[str, Any]) -> Settings:
    """
    Build typed settings from raw YAML config.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return Settings(**yaml_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def get_config_path() -> Path:
    """
    Determine configuration file path.

    Uses CONFIG_PATH environment variable if set, otherwise defaults
    to ./config.yaml relative to working directory.
    """
    return Path(os.environ.get("CONFIG_PATH", "config.yaml"))


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process from the configured YAML file."""
    return load_settings(load_yaml_config(get_config_path()))


def clear_settings_cache() -> None:
    get_settings.cache_clear()


def is_sensitive_key(key: str) -> bool:
    """Check if a configuration key contains sensitive keywords."""
    return bool(_SENSITIVE_PATTERN.search(key))


def redact_sensitive_values(
    data: dict[str, Any],
    redaction_marker: str,
) -> dict[str, Any]:
    """
    Recursively redact sensitive values from configuration.

    Args:
        data: Configuration dictionary
        redaction_marker: String to replace sensitive values

    Returns:
        New dictionary with sensitive values redacted
    """
    result: dict[str, Any] = {}

    for key, value in data.items():
        if is_sensitive_key(key):
            result[key] = redaction_marker
        elif isinstance(value, dict):
            result[key] = redact_sensitive_values(value, redaction_marker)
        elif isinstance(value, list):
            result[key] = [
                redact_sensitive_values(item, redaction_marker) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            result[key] = value

    return result


def get_safe_config(settings: Settings | None = None) -> dict[str, Any]:
    """
    Get configuration with sensitive values redacted.

    Returns:
        Configuration dictionary safe for logging
    """
    if settings is None:
        settings = get_settings()
    return redact_sensitive_values(settings.model_dump(), REDACTION_MARKER)
