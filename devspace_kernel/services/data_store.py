"""
DataStore -- the public facade consumed by the forms and views layer.

Responsibility:
    One object exposing the whole data surface of the app: CRUD for the
    four collections, batch task operations, import/export/reset, file
    backup/restore, validation and repair, statistics, and the compression
    preference.  Wires a CollectionStore to the integrity and backup
    services and the statistics selector; owns no logic of its own.

Architecture position:
    Kernel > Services -- outermost kernel object.  Built from plain
    arguments or from a configuration object via ``from_config`` /
    ``open_data_store``; the kernel never imports the configuration
    package, it only reads the documented attributes.

Lifecycle:
    open() loads the persisted document once; close() flushes pending
    writes.  ``open_data_store(config)`` does both around a ``with`` block
    and disposes the SQL engine it created.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

from devspace_kernel.domain.clock import Clock
from devspace_kernel.domain.document import Document
from devspace_kernel.domain.entities import Payment, Project, ScheduleEvent, Task
from devspace_kernel.domain.integrity import ValidationResult
from devspace_kernel.domain.sync_status import SyncStatusTracker
from devspace_kernel.exceptions import PersistenceUnavailableError
from devspace_kernel.logging_config import get_logger
from devspace_kernel.persistence.adapter import StorageAdapter
from devspace_kernel.persistence.backup_sink import BackupSink, DirectoryBackupSink
from devspace_kernel.persistence.sql_storage import SqlSlotStorage
from devspace_kernel.selectors.statistics_selector import Statistics, StatisticsSelector
from devspace_kernel.services.backup_service import BackupService
from devspace_kernel.services.collection_store import (
    DEFAULT_COMPRESSION_KEY,
    DEFAULT_DATA_KEY,
    CollectionStore,
)
from devspace_kernel.services.integrity_service import FixResult, IntegrityService

logger = get_logger("services.data_store")


class DataStore:
    def __init__(
        self,
        storage: StorageAdapter | None = None,
        *,
        clock: Clock | None = None,
        backup_sink: BackupSink | None = None,
        app_name: str = "devspace",
        data_key: str = DEFAULT_DATA_KEY,
        compression_key: str = DEFAULT_COMPRESSION_KEY,
        default_compression: bool = False,
        strict_ids: bool = False,
        id_factory: Callable[[], str] | None = None,
    ):
        self.collections = CollectionStore(
            storage,
            clock=clock,
            data_key=data_key,
            compression_key=compression_key,
            default_compression=default_compression,
            strict_ids=strict_ids,
            id_factory=id_factory,
        )
        self.integrity = IntegrityService(self.collections)
        self.backups = BackupService(self.collections, backup_sink, app_name)

    @classmethod
    def from_config(
        cls,
        config: Any,
        storage: StorageAdapter | None = None,
        clock: Clock | None = None,
    ) -> DataStore:
        """
        Build a DataStore from a configuration object.

        Reads ``app_name``, ``data_key``, ``compression_key``,
        ``default_compression``, ``strict_ids`` and ``backup_dir``.
        """
        sink = DirectoryBackupSink(config.backup_dir) if config.backup_dir else None
        return cls(
            storage,
            clock=clock,
            backup_sink=sink,
            app_name=config.app_name,
            data_key=config.data_key,
            compression_key=config.compression_key,
            default_compression=config.default_compression,
            strict_ids=config.strict_ids,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> DataStore:
        self.collections.open()
        return self

    def close(self) -> None:
        self.collections.close()

    def __enter__(self) -> DataStore:
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def clock(self) -> Clock:
        return self.collections.clock

    @property
    def document(self) -> Document:
        return self.collections.document

    @property
    def sync_status(self) -> SyncStatusTracker:
        return self.collections.tracker

    def batch(self):
        """``with store.batch():`` -- persist once at the end of the block."""
        return self.collections.batch()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def add_project(self, **fields: Any) -> Project:
        return self.collections.add_project(**fields)

    def update_project(self, project_id: str, **changes: Any) -> Project | None:
        return self.collections.update_project(project_id, **changes)

    def delete_project(self, project_id: str) -> bool:
        return self.collections.delete_project(project_id)

    def get_project(self, project_id: str) -> Project | None:
        return self.collections.get_project(project_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(self, **fields: Any) -> Task:
        return self.collections.add_task(**fields)

    def update_task(self, task_id: str, **changes: Any) -> Task | None:
        return self.collections.update_task(task_id, **changes)

    def delete_task(self, task_id: str) -> bool:
        return self.collections.delete_task(task_id)

    def get_task(self, task_id: str) -> Task | None:
        return self.collections.get_task(task_id)

    def batch_update_tasks(self, task_ids: Iterable[str], **changes: Any) -> int:
        return self.collections.batch_update_tasks(task_ids, **changes)

    def batch_delete_tasks(self, task_ids: Iterable[str]) -> int:
        return self.collections.batch_delete_tasks(task_ids)

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def add_schedule(self, **fields: Any) -> ScheduleEvent:
        return self.collections.add_schedule(**fields)

    def update_schedule(self, schedule_id: str, **changes: Any) -> ScheduleEvent | None:
        return self.collections.update_schedule(schedule_id, **changes)

    def delete_schedule(self, schedule_id: str) -> bool:
        return self.collections.delete_schedule(schedule_id)

    def get_schedule(self, schedule_id: str) -> ScheduleEvent | None:
        return self.collections.get_schedule(schedule_id)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def add_payment(self, **fields: Any) -> Payment:
        return self.collections.add_payment(**fields)

    def update_payment(self, payment_id: str, **changes: Any) -> Payment | None:
        return self.collections.update_payment(payment_id, **changes)

    def delete_payment(self, payment_id: str) -> bool:
        return self.collections.delete_payment(payment_id)

    def get_payment(self, payment_id: str) -> Payment | None:
        return self.collections.get_payment(payment_id)

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------

    def export_data(self) -> str:
        return self.collections.export_data()

    def import_data(self, json_text: str) -> bool:
        return self.collections.import_data(json_text)

    def reset_data(self) -> None:
        self.collections.reset_data()

    def backup_data_to_file(self) -> bool:
        return self.backups.backup_to_file()

    async def restore_data_from_file(self, path: str | Path) -> bool:
        return await self.backups.restore_from_file(path)

    def validate_data(self) -> ValidationResult:
        return self.integrity.validate()

    def fix_orphaned_records(self) -> FixResult:
        return self.integrity.fix_orphaned_records()

    def get_statistics(self) -> Statistics:
        return StatisticsSelector(self.document, self.clock).get_statistics()

    @property
    def use_compression(self) -> bool:
        return self.collections.use_compression

    def toggle_compression(self) -> bool:
        return self.collections.toggle_compression()


@contextmanager
def open_data_store(config: Any, clock: Clock | None = None) -> Iterator[DataStore]:
    """
    Open a DataStore on the SQL storage named by ``config.database_url``.

    Usage:
        with open_data_store(get_active_config()) as store:
            store.add_project(name="Site", client="ACME")

    An unusable storage location is logged and the store runs in memory
    for the rest of the session.
    """
    storage: SqlSlotStorage | None
    try:
        storage = SqlSlotStorage.from_url(config.database_url, clock=clock)
    except PersistenceUnavailableError as exc:
        logger.warning(
            "persistence_unavailable",
            extra={"key": exc.key, "reason": exc.reason, "action": "open"},
        )
        storage = None
    store = DataStore.from_config(config, storage=storage, clock=clock)
    try:
        with store:
            yield store
    finally:
        if storage is not None:
            storage.dispose()
            logger.debug("data_store_disposed")
