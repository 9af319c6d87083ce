"""
devspace_config -- single public entrypoint for data store settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``devspace_kernel``.  The kernel MUST NEVER
    import from ``devspace_config``; it reads the attributes of the
    ``StoreConfig`` it is handed (``DataStore.from_config``).

Resolution order:
    1. ``defaults.yaml`` shipped with this package.
    2. The file passed as ``path``, else the file named by the
       ``DEVSPACE_CONFIG`` environment variable, if any.  Its keys replace
       the defaults one by one.

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from devspace_config.loader import compute_checksum, load_yaml_file, parse_store_config
from devspace_config.schema import StoreConfig

_logger = logging.getLogger("devspace_kernel.config")

CONFIG_ENV_VAR = "DEVSPACE_CONFIG"
DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: str | Path | None = None) -> StoreConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        path: Override file.  Defaults to ``$DEVSPACE_CONFIG`` when set.

    Returns:
        The frozen, validated StoreConfig.
    """
    data = load_yaml_file(DEFAULTS_PATH)
    source = path or os.environ.get(CONFIG_ENV_VAR)
    if source:
        data.update(load_yaml_file(Path(source).expanduser()))

    config = parse_store_config(data)
    _logger.info(
        "DEVSPACE_CONFIG_TRACE",
        extra={
            "trace_type": "DEVSPACE_CONFIG_TRACE",
            "source": str(source) if source else "defaults",
            "checksum": config.checksum,
            "strict_ids": config.strict_ids,
        },
    )
    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULTS_PATH",
    "StoreConfig",
    "compute_checksum",
    "get_active_config",
]
