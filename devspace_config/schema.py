"""
StoreConfig schema.

The effective configuration of one DevSpace data store: storage location,
slot keys, backup folder and behaviour switches.  Parsed from YAML by the
loader; frozen so a running store can never see its settings change.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class StoreConfig:
    app_name: str
    data_key: str
    compression_key: str
    default_compression: bool
    database_url: str
    backup_dir: str | None
    success_display_seconds: float
    strict_ids: bool
    log_level: str
    checksum: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Settings as a plain dict, without the checksum."""
        data = asdict(self)
        data.pop("checksum")
        return data
