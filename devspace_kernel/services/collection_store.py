"""
CollectionStore -- CRUD over the four collections of the live Document.

Responsibility:
    Owns the in-memory Document for one session.  Every mutator validates
    its field changes, builds a new Document, stamps ``metadata.updatedAt``
    and swaps the new Document in with a single assignment; the
    DocumentWriter then persists it.  Also owns import/export/reset and the
    compression preference.

Architecture position:
    Kernel > Services -- imperative shell.  Depends on the pure domain
    (entities, serialization, codec) and on a DocumentWriter.  Has no
    knowledge of the configuration package; callers pass plain settings.

Invariants enforced:
    - Readers never see a partial change: one mutation is one swap.
    - Every swap stamps ``metadata.updatedAt``.
    - ``id``, ``createdAt``, ``updatedAt``, ``completedAt`` and ``paidAt``
      are set by the store only.
    - When ``status`` is among the changes (or on creation), Task.completedAt
      and Payment.paidAt follow the completion rule.
    - Deleting a project removes every task, schedule and payment whose
      projectId equals the project id, in the same swap.
    - Inside ``with store.batch():`` persistence runs once, at the end of
      the outermost block.

Failure modes:
    - InvalidFieldError for unknown/store-managed fields and bad values;
      nothing is swapped.
    - EntityNotFoundError for an unknown id on update/delete, only when
      ``strict_ids`` is set.  Otherwise the call is a no-op returning
      None/False.
    - Storage failures are absorbed by the DocumentWriter.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Iterable, Iterator
from uuid import uuid4

from devspace_kernel.domain.clock import Clock, SystemClock
from devspace_kernel.domain.codec import encode, parse_export
from devspace_kernel.domain.document import Document
from devspace_kernel.domain.entities import (
    Entity,
    EntityKind,
    Payment,
    Project,
    ScheduleEvent,
    Task,
    apply_completion_rule,
)
from devspace_kernel.domain.serialization import coerce_changes
from devspace_kernel.domain.sync_status import SyncStatusTracker
from devspace_kernel.exceptions import EntityNotFoundError, ImportFormatError
from devspace_kernel.logging_config import LogContext, get_logger
from devspace_kernel.persistence.adapter import StorageAdapter
from devspace_kernel.persistence.writer import DocumentWriter

logger = get_logger("services.collection_store")

DEFAULT_DATA_KEY = "app-data"
DEFAULT_COMPRESSION_KEY = "use-compression"

# Kinds whose records point at a project and follow it on delete.
_DEPENDENT_KINDS = (EntityKind.TASK, EntityKind.SCHEDULE, EntityKind.PAYMENT)


def _new_id() -> str:
    return str(uuid4())


class CollectionStore:
    """
    The live Document plus its mutators.

    Usage:
        with CollectionStore(MemoryStorage()) as store:
            project = store.add_project(name="Site", client="ACME")
            store.add_task(name="Wireframes", project_id=project.id)
    """

    def __init__(
        self,
        storage: StorageAdapter | None = None,
        *,
        clock: Clock | None = None,
        tracker: SyncStatusTracker | None = None,
        data_key: str = DEFAULT_DATA_KEY,
        compression_key: str = DEFAULT_COMPRESSION_KEY,
        default_compression: bool = False,
        strict_ids: bool = False,
        id_factory: Callable[[], str] | None = None,
    ):
        self.clock = clock or SystemClock()
        self.tracker = tracker or SyncStatusTracker(self.clock)
        self.strict_ids = strict_ids
        self.session_id = _new_id()
        self._writer = DocumentWriter(storage, data_key, compression_key, self.tracker)
        self._default_compression = default_compression
        self._use_compression = default_compression
        self._new_id = id_factory or _new_id
        self._document = Document.empty(self.clock.now())
        self._opened = False
        self._batch_depth = 0
        self._dirty = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> CollectionStore:
        """Load the compression preference and the persisted document once."""
        if self._opened:
            return self
        with LogContext.bind(session_id=self.session_id, operation="open"):
            self._use_compression = self._writer.read_preference(self._default_compression)
            loaded = self._writer.read_document(self.clock.now())
            if loaded is not None:
                self._document = loaded
            self._opened = True
            logger.info(
                "store_opened",
                extra={
                    "persistent": self._writer.enabled,
                    "use_compression": self._use_compression,
                    "loaded": loaded is not None,
                },
            )
        return self

    def close(self) -> None:
        if not self._opened:
            return
        with LogContext.bind(session_id=self.session_id, operation="close"):
            if self._dirty:
                self.flush()
            self._opened = False
            logger.info("store_closed")

    def __enter__(self) -> CollectionStore:
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def document(self) -> Document:
        """The current Document snapshot."""
        self.open()
        return self._document

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Iterator[CollectionStore]:
        """Defer persistence until the outermost batch block exits."""
        self.open()
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self.flush()

    def flush(self) -> bool:
        """Write the current Document now; True if storage holds it."""
        self._dirty = False
        return self._writer.write_document(self._document, self._use_compression)

    def replace_document(self, document: Document, operation: str) -> Document:
        """
        Stamp ``document`` and make it the live Document.

        This is the single swap point used by every mutator and by the
        integrity and backup services.
        """
        self.open()
        stamped = document.touched(self.clock.now())
        self._document = stamped
        self._dirty = True
        logger.debug("document_swapped", extra={"swap_operation": operation})
        if self._batch_depth == 0:
            self.flush()
        return stamped

    # ------------------------------------------------------------------
    # Compression
    # ------------------------------------------------------------------

    @property
    def use_compression(self) -> bool:
        self.open()
        return self._use_compression

    def toggle_compression(self) -> bool:
        """Flip the preference, persist it and rewrite the document in the new form."""
        self.open()
        self._use_compression = not self._use_compression
        self._writer.write_preference(self._use_compression)
        self._writer.forget()
        self.flush()
        logger.info("compression_toggled", extra={"use_compression": self._use_compression})
        return self._use_compression

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def _add(self, kind: EntityKind, fields: dict[str, Any]) -> Entity:
        values = coerce_changes(kind, fields)
        now = self.clock.now()
        entity = kind.entity_class(
            id=self._new_id(), created_at=now, updated_at=now, **values
        )
        entity = apply_completion_rule(entity, now)
        with LogContext.bind(operation=f"add_{kind.value}", entity_type=kind.value, entity_id=entity.id):
            document = self.document
            self.replace_document(
                document.with_collection(kind, document.collection(kind) + (entity,)),
                f"add_{kind.value}",
            )
            logger.info(f"{kind.value}_added")
        return entity

    def _update(self, kind: EntityKind, entity_id: str, changes: dict[str, Any]) -> Entity | None:
        values = coerce_changes(kind, changes)
        document = self.document
        current = document.find(kind, entity_id)
        if current is None:
            return self._missing(kind, entity_id, "update")

        now = self.clock.now()
        updated = self._apply_changes(current, values, now)
        with LogContext.bind(operation=f"update_{kind.value}", entity_type=kind.value, entity_id=entity_id):
            self.replace_document(
                document.with_collection(
                    kind,
                    tuple(updated if item.id == entity_id else item for item in document.collection(kind)),
                ),
                f"update_{kind.value}",
            )
            logger.info(f"{kind.value}_updated", extra={"fields": sorted(values)})
        return updated

    @staticmethod
    def _apply_changes(entity: Entity, values: dict[str, Any], now) -> Entity:
        updated = replace(entity, **values, updated_at=now)
        if "status" in values:
            updated = apply_completion_rule(updated, now)
        return updated

    def _delete(self, kind: EntityKind, entity_id: str) -> bool:
        document = self.document
        items = document.collection(kind)
        remaining = tuple(item for item in items if item.id != entity_id)
        if len(remaining) == len(items):
            self._missing(kind, entity_id, "delete")
            return False

        with LogContext.bind(operation=f"delete_{kind.value}", entity_type=kind.value, entity_id=entity_id):
            self.replace_document(document.with_collection(kind, remaining), f"delete_{kind.value}")
            logger.info(f"{kind.value}_deleted")
        return True

    def _get(self, kind: EntityKind, entity_id: str) -> Entity | None:
        return self.document.find(kind, entity_id)

    def _missing(self, kind: EntityKind, entity_id: str, action: str) -> None:
        if self.strict_ids:
            raise EntityNotFoundError(kind.value, entity_id)
        logger.debug(
            "entity_not_found",
            extra={"entity_kind": kind.value, "missing_id": entity_id, "action": action},
        )
        return None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, **fields: Any) -> Project:
        return self._add(EntityKind.PROJECT, fields)

    def update_project(self, project_id: str, **changes: Any) -> Project | None:
        return self._update(EntityKind.PROJECT, project_id, changes)

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and every task, schedule and payment that references it."""
        document = self.document
        if document.find(EntityKind.PROJECT, project_id) is None:
            self._missing(EntityKind.PROJECT, project_id, "delete")
            return False

        cascaded = document.with_collection(
            EntityKind.PROJECT,
            tuple(p for p in document.projects if p.id != project_id),
        )
        removed: dict[str, int] = {}
        for kind in _DEPENDENT_KINDS:
            items = document.collection(kind)
            kept = tuple(item for item in items if item.project_id != project_id)
            removed[kind.collection] = len(items) - len(kept)
            cascaded = cascaded.with_collection(kind, kept)

        with LogContext.bind(operation="delete_project", entity_type="project", entity_id=project_id):
            self.replace_document(cascaded, "delete_project")
            logger.info("project_deleted", extra={"cascaded": removed})
        return True

    def get_project(self, project_id: str) -> Project | None:
        return self._get(EntityKind.PROJECT, project_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, **fields: Any) -> Task:
        return self._add(EntityKind.TASK, fields)

    def update_task(self, task_id: str, **changes: Any) -> Task | None:
        return self._update(EntityKind.TASK, task_id, changes)

    def delete_task(self, task_id: str) -> bool:
        return self._delete(EntityKind.TASK, task_id)

    def get_task(self, task_id: str) -> Task | None:
        return self._get(EntityKind.TASK, task_id)

    def batch_update_tasks(self, task_ids: Iterable[str], **changes: Any) -> int:
        """
        Apply the same changes to every listed task in one swap.

        Unknown ids are skipped.  Returns the number of tasks updated.
        """
        values = coerce_changes(EntityKind.TASK, changes)
        wanted = set(task_ids)
        document = self.document
        now = self.clock.now()

        count = 0
        tasks: list[Task] = []
        for task in document.tasks:
            if task.id in wanted:
                task = self._apply_changes(task, values, now)
                count += 1
            tasks.append(task)
        if not count:
            return 0

        with LogContext.bind(operation="batch_update_tasks", entity_type="task"):
            self.replace_document(
                document.with_collection(EntityKind.TASK, tuple(tasks)), "batch_update_tasks"
            )
            logger.info(
                "tasks_batch_updated",
                extra={"requested": len(wanted), "updated": count, "fields": sorted(values)},
            )
        return count

    def batch_delete_tasks(self, task_ids: Iterable[str]) -> int:
        """Delete every listed task in one swap; returns how many were removed."""
        wanted = set(task_ids)
        document = self.document
        kept = tuple(t for t in document.tasks if t.id not in wanted)
        count = len(document.tasks) - len(kept)
        if not count:
            return 0

        with LogContext.bind(operation="batch_delete_tasks", entity_type="task"):
            self.replace_document(
                document.with_collection(EntityKind.TASK, kept), "batch_delete_tasks"
            )
            logger.info("tasks_batch_deleted", extra={"requested": len(wanted), "deleted": count})
        return count

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def add_schedule(self, **fields: Any) -> ScheduleEvent:
        return self._add(EntityKind.SCHEDULE, fields)

    def update_schedule(self, schedule_id: str, **changes: Any) -> ScheduleEvent | None:
        return self._update(EntityKind.SCHEDULE, schedule_id, changes)

    def delete_schedule(self, schedule_id: str) -> bool:
        return self._delete(EntityKind.SCHEDULE, schedule_id)

    def get_schedule(self, schedule_id: str) -> ScheduleEvent | None:
        return self._get(EntityKind.SCHEDULE, schedule_id)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def add_payment(self, **fields: Any) -> Payment:
        return self._add(EntityKind.PAYMENT, fields)

    def update_payment(self, payment_id: str, **changes: Any) -> Payment | None:
        return self._update(EntityKind.PAYMENT, payment_id, changes)

    def delete_payment(self, payment_id: str) -> bool:
        return self._delete(EntityKind.PAYMENT, payment_id)

    def get_payment(self, payment_id: str) -> Payment | None:
        return self._get(EntityKind.PAYMENT, payment_id)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_data(self) -> str:
        """The current Document as pretty-printed JSON."""
        return encode(self.document, pretty=True)

    def import_data(self, json_text: str) -> bool:
        """
        Replace the whole Document with the contents of ``json_text``.

        Returns False, leaving the Document untouched, when the text is not
        JSON, lacks any of the four collection arrays or holds an invalid
        record.  Missing metadata is synthesised.
        """
        try:
            self.load_export(json_text, "import_data")
        except ImportFormatError as exc:
            logger.warning("import_rejected", extra={"reason": exc.reason, "missing": list(exc.missing)})
            return False
        return True

    def load_export(self, json_text: str, operation: str) -> Document:
        """Parse exported JSON and swap it in; raises ImportFormatError."""
        if not isinstance(json_text, str):
            raise ImportFormatError(f"expected text, got {type(json_text).__name__}")
        imported = parse_export(json_text, self.clock.now())
        with LogContext.bind(operation=operation):
            swapped = self.replace_document(imported, operation)
            logger.info(
                "document_imported",
                extra={
                    "projects": len(swapped.projects),
                    "tasks": len(swapped.tasks),
                    "schedules": len(swapped.schedules),
                    "payments": len(swapped.payments),
                },
            )
        return swapped

    def reset_data(self) -> None:
        """Discard every record and start a fresh Document."""
        with LogContext.bind(operation="reset_data"):
            self.replace_document(Document.empty(self.clock.now()), "reset_data")
            logger.info("document_reset")
