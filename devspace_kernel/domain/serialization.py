"""
Serialization -- Document <-> JSON-shaped dicts.

Responsibility:
    Maps every entity field between its Python attribute and its camelCase
    wire key, coerces incoming values into the closed enums / Decimal /
    aware datetime types, and validates the top-level document shape.
    The same field table coerces the keyword changes passed to the
    collection store, so form input and imported files follow one set of
    rules.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Consumed by the codec (persisted slot), the collection store
    (import/export, add/update) and the backup service.

Invariants enforced:
    - Unknown wire keys on a record are kept in ``extra`` and written back
      unchanged.
    - ``completedAt``/``paidAt``/``updatedAt``/``createdAt`` are omitted from
      the output when unset, so "present iff Done/Paid" holds on disk too.
    - An empty-string projectId or date field is read as null.

Failure modes:
    - InvalidFieldError for a bad value, an unknown change key or a
      store-managed key in a change set.
    - ImportFormatError for a document whose collections are missing or not
      lists, or whose records are not objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping

import simplejson

from devspace_kernel.domain.document import LEGACY_DATA_VERSION, Document, Metadata
from devspace_kernel.domain.entities import (
    PROTECTED_FIELDS,
    Entity,
    EntityKind,
    PaymentStatus,
    PaymentType,
    ProjectStatus,
    RecurringPattern,
    ScheduleType,
    TaskPriority,
    TaskStatus,
    kind_of,
)
from devspace_kernel.domain.values import (
    decimal_to_json,
    format_timestamp,
    parse_timestamp,
    to_decimal,
)
from devspace_kernel.exceptions import ImportFormatError, InvalidFieldError

COLLECTION_KEYS: tuple[str, ...] = ("projects", "tasks", "schedules", "payments")


# ---------------------------------------------------------------------------
# Coercers
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"expected text, got {type(value).__name__}")


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return _text(value)


def _decimal_or_zero(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return to_decimal(value)


def _optional_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return to_decimal(value)


def _flag(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise ValueError(f"expected true/false, got {value!r}")


def _timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    return parse_timestamp(value)


def _enum(enum_cls: type[Enum], default: Enum | None) -> Callable[[Any], Any]:
    allowed = ", ".join(member.value for member in enum_cls)

    def coerce(value: Any) -> Any:
        if value is None or value == "":
            return default
        try:
            return enum_cls(value)
        except ValueError as exc:
            raise ValueError(f"{value!r} is not one of: {allowed}") from exc

    return coerce


def _timestamp_to_wire(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


def _decimal_to_wire(value: Decimal | None) -> int | Decimal | None:
    return decimal_to_json(value) if value is not None else None


def _enum_to_wire(value: Enum | None) -> str | None:
    return value.value if value is not None else None


def _identity(value: Any) -> Any:
    return value


# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """One entity attribute and how it crosses the wire."""

    attr: str
    wire_key: str
    coerce: Callable[[Any], Any]
    to_wire: Callable[[Any], Any] = _identity
    omit_if_none: bool = False


def _ts(attr: str, wire_key: str) -> FieldSpec:
    return FieldSpec(attr, wire_key, _timestamp, _timestamp_to_wire, omit_if_none=True)


_ID = FieldSpec("id", "id", _text)

FIELD_SPECS: dict[EntityKind, tuple[FieldSpec, ...]] = {
    EntityKind.PROJECT: (
        _ID,
        FieldSpec("name", "name", _text),
        FieldSpec("client", "client", _text),
        FieldSpec("description", "description", _text),
        FieldSpec("start_date", "startDate", _optional_text),
        FieldSpec("end_date", "endDate", _optional_text),
        FieldSpec("budget", "budget", _decimal_or_zero, _decimal_to_wire),
        FieldSpec("status", "status", _enum(ProjectStatus, ProjectStatus.PLANNING), _enum_to_wire),
        _ts("created_at", "createdAt"),
        _ts("updated_at", "updatedAt"),
    ),
    EntityKind.TASK: (
        _ID,
        FieldSpec("name", "name", _text),
        FieldSpec("description", "description", _text),
        FieldSpec("project_id", "projectId", _optional_text),
        FieldSpec("due_date", "dueDate", _optional_text),
        FieldSpec("priority", "priority", _enum(TaskPriority, TaskPriority.MEDIUM), _enum_to_wire),
        FieldSpec("status", "status", _enum(TaskStatus, TaskStatus.TODO), _enum_to_wire),
        FieldSpec("estimated_hours", "estimatedHours", _optional_decimal, _decimal_to_wire),
        _ts("created_at", "createdAt"),
        _ts("updated_at", "updatedAt"),
        _ts("completed_at", "completedAt"),
    ),
    EntityKind.SCHEDULE: (
        _ID,
        FieldSpec("title", "title", _text),
        FieldSpec("description", "description", _text),
        FieldSpec("project_id", "projectId", _optional_text),
        FieldSpec("date", "date", _optional_text),
        FieldSpec("start_time", "startTime", _optional_text),
        FieldSpec("end_time", "endTime", _optional_text),
        FieldSpec("event_type", "type", _enum(ScheduleType, ScheduleType.WORK), _enum_to_wire),
        FieldSpec("is_recurring", "isRecurring", _flag),
        FieldSpec("recurring_pattern", "recurringPattern", _enum(RecurringPattern, None), _enum_to_wire),
        _ts("created_at", "createdAt"),
        _ts("updated_at", "updatedAt"),
    ),
    EntityKind.PAYMENT: (
        _ID,
        FieldSpec("description", "description", _text),
        FieldSpec("amount", "amount", _optional_decimal, _decimal_to_wire),
        FieldSpec("project_id", "projectId", _optional_text),
        FieldSpec("date", "date", _optional_text),
        FieldSpec("due_date", "dueDate", _optional_text),
        FieldSpec("status", "status", _enum(PaymentStatus, PaymentStatus.PENDING), _enum_to_wire),
        FieldSpec("payment_type", "type", _enum(PaymentType, PaymentType.INVOICE), _enum_to_wire),
        FieldSpec("invoice_number", "invoiceNumber", _text),
        FieldSpec("client_name", "clientName", _text),
        FieldSpec("notes", "notes", _text),
        _ts("created_at", "createdAt"),
        _ts("updated_at", "updatedAt"),
        _ts("paid_at", "paidAt"),
    ),
}

_SPECS_BY_ATTR: dict[EntityKind, dict[str, FieldSpec]] = {
    kind: {spec.attr: spec for spec in specs} for kind, specs in FIELD_SPECS.items()
}


def _coerce(kind: EntityKind, spec: FieldSpec, value: Any) -> Any:
    try:
        return spec.coerce(value)
    except ValueError as exc:
        raise InvalidFieldError(kind.value, spec.attr, str(exc)) from exc


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


def coerce_changes(kind: EntityKind, changes: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate and coerce keyword changes for an add/update call.

    Raises:
        InvalidFieldError: unknown attribute, store-managed attribute, or a
            value the attribute cannot hold.
    """
    specs = _SPECS_BY_ATTR[kind]
    coerced: dict[str, Any] = {}
    for name, value in changes.items():
        if name in PROTECTED_FIELDS:
            raise InvalidFieldError(kind.value, name, "managed by the store")
        spec = specs.get(name)
        if spec is None:
            raise InvalidFieldError(kind.value, name, "unknown field")
        coerced[name] = _coerce(kind, spec, value)
    return coerced


def entity_from_wire(kind: EntityKind, data: Any) -> Entity:
    """Build an entity from its JSON object form."""
    if not isinstance(data, Mapping):
        raise InvalidFieldError(kind.value, "*", f"record is not an object: {data!r}")

    entity_id = data.get("id")
    if not isinstance(entity_id, str) or not entity_id:
        raise InvalidFieldError(kind.value, "id", "missing or not a string")

    kwargs: dict[str, Any] = {}
    known_keys: set[str] = set()
    for spec in FIELD_SPECS[kind]:
        known_keys.add(spec.wire_key)
        if spec.wire_key in data:
            kwargs[spec.attr] = _coerce(kind, spec, data[spec.wire_key])
    extra = {k: v for k, v in data.items() if k not in known_keys}
    return kind.entity_class(**kwargs, extra=extra)


def entity_to_wire(entity: Entity) -> dict[str, Any]:
    """Render an entity as its JSON object form."""
    out: dict[str, Any] = {}
    for spec in FIELD_SPECS[kind_of(entity)]:
        value = getattr(entity, spec.attr)
        if value is None and spec.omit_if_none:
            continue
        out[spec.wire_key] = spec.to_wire(value)
    for key, value in entity.extra.items():
        out.setdefault(key, value)
    return out


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def _metadata_from_wire(data: Any, now: datetime) -> Metadata:
    if data is None:
        return Metadata.fresh(now)
    if not isinstance(data, Mapping):
        raise ImportFormatError("metadata is not an object")
    try:
        created_at = _timestamp(data.get("createdAt")) or now
        updated_at = _timestamp(data.get("updatedAt")) or now
        last_backup = _timestamp(data.get("lastBackup"))
    except ValueError as exc:
        raise ImportFormatError(f"metadata timestamp: {exc}") from exc
    version = data.get("version") or LEGACY_DATA_VERSION
    known = {"version", "createdAt", "updatedAt", "lastBackup"}
    return Metadata(
        version=str(version),
        created_at=created_at,
        updated_at=updated_at,
        last_backup=last_backup,
        extra={k: v for k, v in data.items() if k not in known},
    )


def _metadata_to_wire(metadata: Metadata) -> dict[str, Any]:
    out: dict[str, Any] = {
        "version": metadata.version,
        "lastBackup": _timestamp_to_wire(metadata.last_backup),
        "createdAt": format_timestamp(metadata.created_at),
        "updatedAt": format_timestamp(metadata.updated_at),
    }
    for key, value in metadata.extra.items():
        out.setdefault(key, value)
    return out


def check_document_shape(data: Any) -> None:
    """
    Raise ImportFormatError unless ``data`` has all four collection lists.
    """
    if not isinstance(data, Mapping):
        raise ImportFormatError("top level is not an object")
    missing = tuple(
        key for key in COLLECTION_KEYS if not isinstance(data.get(key), list)
    )
    if missing:
        raise ImportFormatError(
            f"missing collection arrays: {', '.join(missing)}", missing=missing
        )


def document_from_dict(data: Any, now: datetime) -> Document:
    """
    Build a Document from its JSON object form.

    Metadata is synthesised from ``now`` when absent.  The caller is
    responsible for migrating ``data`` to the current data version first.

    Raises:
        ImportFormatError: shape errors and any invalid record.
    """
    check_document_shape(data)
    collections: dict[str, tuple[Entity, ...]] = {}
    for kind in EntityKind:
        try:
            collections[kind.collection] = tuple(
                entity_from_wire(kind, item) for item in data[kind.collection]
            )
        except InvalidFieldError as exc:
            raise ImportFormatError(str(exc)) from exc
    return Document(
        metadata=_metadata_from_wire(data.get("metadata"), now),
        **collections,
    )


def document_to_dict(document: Document) -> dict[str, Any]:
    """Render a Document as its JSON object form."""
    out: dict[str, Any] = {
        kind.collection: [entity_to_wire(e) for e in document.collection(kind)]
        for kind in EntityKind
    }
    out["metadata"] = _metadata_to_wire(document.metadata)
    return out


# ---------------------------------------------------------------------------
# JSON text
# ---------------------------------------------------------------------------


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return format_timestamp(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(data: Any, *, pretty: bool = False) -> str:
    """
    JSON text; two-space indent when ``pretty``.

    Decimals are written with every digit, never through float.
    """
    if pretty:
        return simplejson.dumps(
            data, indent=2, ensure_ascii=False, use_decimal=True, default=_json_default
        )
    return simplejson.dumps(
        data, separators=(",", ":"), ensure_ascii=False, use_decimal=True, default=_json_default
    )


def loads(text: str) -> Any:
    """Parse JSON text, reading non-integral numbers as Decimal."""
    return simplejson.loads(text, use_decimal=True)
