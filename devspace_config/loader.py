"""
Configuration Loader (``devspace_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into a frozen ``StoreConfig``.
Callers go through ``devspace_config.get_active_config()``; the functions
here are exposed for tests and tooling.

Invariants enforced
-------------------
* Every key must be known; an unknown key is a typo, not a silent default.
* Booleans must be YAML booleans, numbers must be numbers.
* ``~`` in ``backup_dir`` and in a SQLite database path is expanded, so
  the stored settings are absolute.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective settings.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type, bad log level  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from devspace_config.schema import StoreConfig

_SQLITE_PREFIX = "sqlite:///"

_FIELD_TYPES: dict[str, type | tuple[type, ...]] = {
    "app_name": str,
    "data_key": str,
    "compression_key": str,
    "default_compression": bool,
    "database_url": str,
    "backup_dir": (str, type(None)),
    "success_display_seconds": (int, float),
    "strict_ids": bool,
    "log_level": str,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _expand_database_url(url: str) -> str:
    if url.startswith(_SQLITE_PREFIX):
        path = url[len(_SQLITE_PREFIX):]
        if path.startswith("~"):
            return _SQLITE_PREFIX + os.path.expanduser(path)
    return url


def _check_types(data: dict[str, Any]) -> None:
    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
    missing = sorted(set(_FIELD_TYPES) - set(data))
    if missing:
        raise ValueError(f"Missing configuration keys: {', '.join(missing)}")
    for key, expected in _FIELD_TYPES.items():
        value = data[key]
        # bool is an int subclass; only the boolean fields accept it
        if isinstance(value, bool) and expected is not bool:
            raise ValueError(f"{key} must not be a boolean")
        if not isinstance(value, expected):
            raise ValueError(f"{key} has invalid value {value!r}")


def parse_store_config(data: dict[str, Any]) -> StoreConfig:
    """
    Parse the merged settings dict into a StoreConfig.

    Raises:
        ValueError: for unknown or missing keys and invalid values.
    """
    _check_types(data)

    if data["success_display_seconds"] <= 0:
        raise ValueError("success_display_seconds must be positive")
    level = data["log_level"].upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log_level {data['log_level']!r}")
    for key in ("app_name", "data_key", "compression_key", "database_url"):
        if not data[key].strip():
            raise ValueError(f"{key} must not be empty")

    settings = dict(data)
    settings["log_level"] = level
    settings["database_url"] = _expand_database_url(data["database_url"])
    settings["backup_dir"] = (
        os.path.expanduser(data["backup_dir"]) if data["backup_dir"] else None
    )
    settings["success_display_seconds"] = float(data["success_display_seconds"])
    return StoreConfig(**settings, checksum=compute_checksum(settings))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
