"""
Migrations -- data-version upgrades for raw documents.

Responsibility:
    Upgrades a parsed (dict-shaped) document from the version recorded in
    ``metadata.version`` to the current ``DATA_VERSION`` by applying every
    registered migration newer than the document, oldest first.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Runs inside ``codec.decode`` and ``CollectionStore.import_data`` before
    the dict is turned into typed entities.

Invariants enforced:
    - Migrations run in ascending version order, each at most once.
    - The input dict is never mutated; every step receives a deep copy.
    - After a successful run ``metadata.version`` equals the target version.

Failure modes:
    - MigrationError when a step raises; no partially-migrated document is
      returned.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable

from devspace_kernel.domain.document import DATA_VERSION, LEGACY_DATA_VERSION
from devspace_kernel.domain.values import decimal_to_json, to_decimal
from devspace_kernel.exceptions import MigrationError
from devspace_kernel.logging_config import get_logger

logger = get_logger("domain.migrations")

MigrationFn = Callable[[dict[str, Any]], dict[str, Any]]


def parse_version(version: str) -> tuple[int, ...]:
    """``"1.10.2"`` -> ``(1, 10, 2)``."""
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError as exc:
        raise ValueError(f"Invalid data version: {version!r}") from exc


@dataclass(frozen=True)
class MigrationResult:
    data: dict[str, Any]
    from_version: str
    to_version: str
    applied: tuple[str, ...]


class MigrationRegistry:
    """Ordered set of migrations keyed by the version they produce."""

    def __init__(self) -> None:
        self._migrations: dict[str, MigrationFn] = {}

    def register(self, version: str) -> Callable[[MigrationFn], MigrationFn]:
        """Decorator registering ``fn`` as the migration producing ``version``."""
        parse_version(version)

        def decorator(fn: MigrationFn) -> MigrationFn:
            if version in self._migrations:
                raise ValueError(f"Migration for {version} already registered")
            self._migrations[version] = fn
            return fn

        return decorator

    def versions(self) -> list[str]:
        return sorted(self._migrations, key=parse_version)

    def pending(self, current: str, target: str) -> list[str]:
        low, high = parse_version(current), parse_version(target)
        return [v for v in self.versions() if low < parse_version(v) <= high]

    def migrate(self, data: dict[str, Any], target: str = DATA_VERSION) -> MigrationResult:
        metadata = data.get("metadata")
        current = LEGACY_DATA_VERSION
        if isinstance(metadata, dict) and metadata.get("version"):
            current = str(metadata["version"])

        try:
            pending = self.pending(current, target)
        except ValueError as exc:
            raise MigrationError(current, target, str(exc)) from exc

        result = data
        for version in pending:
            logger.info(
                "migration_applying",
                extra={"from_version": current, "to_version": version},
            )
            try:
                result = self._migrations[version](copy.deepcopy(result))
            except Exception as exc:
                raise MigrationError(current, version, str(exc)) from exc
            if isinstance(result.get("metadata"), dict):
                result["metadata"]["version"] = version

        return MigrationResult(
            data=result,
            from_version=current,
            to_version=target if pending else current,
            applied=tuple(pending),
        )


registry = MigrationRegistry()


# ---------------------------------------------------------------------------
# Built-in migrations
# ---------------------------------------------------------------------------

_NUMERIC_FIELDS = {
    "projects": ("budget",),
    "tasks": ("estimatedHours",),
    "payments": ("amount",),
}


def _number_or_keep(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text == "":
        return None
    try:
        number = to_decimal(text)
    except ValueError:
        return value
    return decimal_to_json(number)


@registry.register("1.1.0")
def _normalise_form_values(data: dict[str, Any]) -> dict[str, Any]:
    """
    1.0.0 documents stored raw form values: ``""`` for "no project",
    numbers typed as strings, and tasks created by older builds under
    ``title`` instead of ``name``.
    """
    for key in ("tasks", "schedules", "payments"):
        for record in data.get(key) or []:
            if isinstance(record, dict) and record.get("projectId") == "":
                record["projectId"] = None

    for key, fields in _NUMERIC_FIELDS.items():
        for record in data.get(key) or []:
            if not isinstance(record, dict):
                continue
            for name in fields:
                if name in record:
                    record[name] = _number_or_keep(record[name])

    for record in data.get("tasks") or []:
        if isinstance(record, dict) and "name" not in record and "title" in record:
            record["name"] = record.pop("title")

    return data


def migrate_document(data: dict[str, Any], target: str = DATA_VERSION) -> MigrationResult:
    """Migrate ``data`` with the built-in registry."""
    return registry.migrate(data, target)
