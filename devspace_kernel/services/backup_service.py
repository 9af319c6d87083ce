"""
BackupService -- file backup and restore of the whole Document.

Responsibility:
    ``backup_to_file`` writes a pretty JSON copy of the Document, stamped
    with ``metadata.lastBackup``, to a BackupSink.  ``restore_from_file``
    reads such a file and replaces the live Document with it.

Architecture position:
    Kernel > Services -- imperative shell.  The only async entry point of
    the kernel: the file read runs in a worker thread so an event loop
    driving the UI is never blocked.

Invariants enforced:
    - Stamp on success: ``lastBackup`` is committed to the live Document
      only after the sink accepted the file.  A failed backup leaves the
      Document untouched.
    - A failed restore leaves the Document untouched.
    - Both operations drive the SyncStatusTracker (syncing -> success|error).

Failure modes:
    - backup_to_file returns False when no sink is configured or the sink
      raises BackupWriteError.
    - restore_from_file raises RestoreError (cause chained) when the file
      cannot be read and ImportFormatError when its content is not a
      valid export.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import timezone
from pathlib import Path

from devspace_kernel.domain.codec import encode
from devspace_kernel.exceptions import BackupWriteError, ImportFormatError, RestoreError
from devspace_kernel.logging_config import LogContext, get_logger
from devspace_kernel.persistence.backup_sink import BackupSink
from devspace_kernel.services.base import BaseService
from devspace_kernel.services.collection_store import CollectionStore

logger = get_logger("services.backup")

BACKUP_OPERATION = "backup"
RESTORE_OPERATION = "restore"


class BackupService(BaseService):
    def __init__(
        self,
        store: CollectionStore,
        sink: BackupSink | None = None,
        app_name: str = "devspace",
    ):
        super().__init__(store)
        self.sink = sink
        self.app_name = app_name
        self.last_backup_location: str | None = None

    def backup_filename(self) -> str:
        """``<app>-backup-YYYY-MM-DD.json``, dated in UTC."""
        day = self.clock.now().astimezone(timezone.utc).date()
        return f"{self.app_name}-backup-{day.isoformat()}.json"

    def backup_to_file(self) -> bool:
        tracker = self.store.tracker
        with LogContext.bind(operation=BACKUP_OPERATION):
            tracker.begin(BACKUP_OPERATION)
            document = self.store.document
            candidate = replace(
                document,
                metadata=replace(document.metadata, last_backup=self.clock.now()),
            )
            backup_name = self.backup_filename()

            if self.sink is None:
                logger.warning("backup_failed", extra={"backup_name": backup_name, "reason": "no backup sink"})
                tracker.fail(BACKUP_OPERATION, "no backup sink configured")
                return False

            try:
                location = self.sink.save(backup_name, encode(candidate, pretty=True))
            except BackupWriteError as exc:
                logger.warning(
                    "backup_failed",
                    extra={"backup_name": backup_name, "reason": exc.reason},
                )
                tracker.fail(BACKUP_OPERATION, exc.reason)
                return False

            self.store.replace_document(candidate, BACKUP_OPERATION)
            self.last_backup_location = location
            tracker.succeed(BACKUP_OPERATION)
            logger.info("backup_completed", extra={"location": location})
            return True

    async def restore_from_file(self, path: str | Path) -> bool:
        """
        Replace the live Document with the backup stored at ``path``.

        Raises:
            RestoreError: the file could not be read as UTF-8 text.
            ImportFormatError: the file is not a valid export.
        """
        tracker = self.store.tracker
        source = Path(path)
        with LogContext.bind(operation=RESTORE_OPERATION):
            tracker.begin(RESTORE_OPERATION)
            try:
                text = await asyncio.to_thread(source.read_text, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("restore_failed", extra={"path": str(source), "reason": str(exc)})
                tracker.fail(RESTORE_OPERATION, str(exc))
                raise RestoreError(str(source), str(exc)) from exc

            try:
                self.store.load_export(text, RESTORE_OPERATION)
            except ImportFormatError as exc:
                logger.error("restore_rejected", extra={"path": str(source), "reason": exc.reason})
                tracker.fail(RESTORE_OPERATION, exc.reason)
                raise

            tracker.succeed(RESTORE_OPERATION)
            logger.info("restore_completed", extra={"path": str(source)})
            return True
