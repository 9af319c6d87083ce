"""
Document -- the single persisted aggregate.

Responsibility:
    Holds the four entity collections plus metadata as one frozen value.
    The collection store never edits a Document in place; it builds a new
    one and swaps it in, so a reader always sees a complete snapshot.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Collections are tuples (insertion order preserved, not mutable).
    - ``metadata.version`` names the data version the document conforms to.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from devspace_kernel.domain.entities import (
    Entity,
    EntityKind,
    Payment,
    Project,
    ScheduleEvent,
    Task,
)

# Version of the persisted document shape.  Bumped together with a
# migration registered in ``devspace_kernel.domain.migrations``.
DATA_VERSION = "1.1.0"

# Version assumed for documents that carry no metadata.version.
LEGACY_DATA_VERSION = "1.0.0"


@dataclass(frozen=True)
class Metadata:
    version: str
    created_at: datetime
    updated_at: datetime
    last_backup: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def fresh(cls, now: datetime) -> Metadata:
        return cls(version=DATA_VERSION, created_at=now, updated_at=now)


@dataclass(frozen=True)
class Document:
    metadata: Metadata
    projects: tuple[Project, ...] = ()
    tasks: tuple[Task, ...] = ()
    schedules: tuple[ScheduleEvent, ...] = ()
    payments: tuple[Payment, ...] = ()

    @classmethod
    def empty(cls, now: datetime) -> Document:
        """An empty document created at ``now``."""
        return cls(metadata=Metadata.fresh(now))

    def collection(self, kind: EntityKind) -> tuple[Entity, ...]:
        return getattr(self, kind.collection)

    def with_collection(self, kind: EntityKind, items: tuple[Entity, ...]) -> Document:
        return replace(self, **{kind.collection: tuple(items)})

    def find(self, kind: EntityKind, entity_id: str) -> Entity | None:
        for item in self.collection(kind):
            if item.id == entity_id:
                return item
        return None

    def project_ids(self) -> frozenset[str]:
        return frozenset(p.id for p in self.projects)

    def touched(self, now: datetime) -> Document:
        """Return a copy with ``metadata.updated_at`` stamped to ``now``."""
        return replace(self, metadata=replace(self.metadata, updated_at=now))
