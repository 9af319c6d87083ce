"""
Storage and document diagnostics for development tooling.

Sizes are measured in UTF-8 bytes, the unit the host storage quota is
counted in.  Nothing here mutates state.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

import simplejson

from devspace_kernel.domain.document import Document
from devspace_kernel.domain.entities import EntityKind
from devspace_kernel.domain.serialization import document_to_dict, dumps, entity_to_wire
from devspace_kernel.persistence.adapter import StorageAdapter

_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """
    Human-readable size, e.g. ``1536 -> "1.5 KB"``.

    Trailing zeros are dropped; values past the largest unit stay in GB.
    """
    if num_bytes < 0:
        raise ValueError("num_bytes must be non-negative")
    if num_bytes == 0:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, decimals):g} {_UNITS[unit]}"


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


@dataclass(frozen=True)
class SlotSize:
    key: str
    bytes: int

    @property
    def size(self) -> str:
        return format_bytes(self.bytes)


@dataclass(frozen=True)
class StorageReport:
    items: tuple[SlotSize, ...]

    @property
    def total_bytes(self) -> int:
        return sum(item.bytes for item in self.items)

    @property
    def total_size(self) -> str:
        return format_bytes(self.total_bytes)


def storage_report(storage: StorageAdapter, keys: Iterable[str]) -> StorageReport:
    """Byte size of each present slot, largest first.  Absent keys are skipped."""
    sizes = []
    for key in keys:
        value = storage.read(key)
        if value is not None:
            sizes.append(SlotSize(key, _byte_length(value)))
    sizes.sort(key=lambda s: (-s.bytes, s.key))
    return StorageReport(tuple(sizes))


@dataclass(frozen=True)
class CollectionSize:
    collection: str
    item_count: int
    bytes: int

    @property
    def size(self) -> str:
        return format_bytes(self.bytes)


def analyze_document_size(document: Document) -> list[CollectionSize]:
    """Compact-JSON size of each collection, plus a ``total`` row for the whole document."""
    rows = []
    for kind in EntityKind:
        items = document.collection(kind)
        rows.append(
            CollectionSize(
                collection=kind.collection,
                item_count=len(items),
                bytes=_byte_length(dumps([entity_to_wire(e) for e in items])),
            )
        )
    total_items = sum(row.item_count for row in rows)
    rows.append(
        CollectionSize("total", total_items, _byte_length(dumps(document_to_dict(document))))
    )
    return rows


def _canonical_decimal(text: str) -> Decimal:
    return Decimal(text).normalize()


def document_checksum(document: Document) -> str:
    """
    SHA-256 of the canonical JSON form (sorted keys, no whitespace).

    Two documents with the same content have the same checksum regardless
    of how they were encoded in storage.  Amounts keep every digit; trailing
    zeros are dropped so 12.50 and 12.5 hash alike.
    """
    canonical = simplejson.dumps(
        simplejson.loads(dumps(document_to_dict(document)), parse_float=_canonical_decimal),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        use_decimal=True,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
