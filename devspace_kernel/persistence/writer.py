"""
DocumentWriter -- the persistence effect of the collection store.

Responsibility:
    Reads the compression preference and the persisted document at open,
    and writes the encoded document back after each committed change.
    Drives the SyncStatusTracker around every write.

Architecture position:
    Kernel > Persistence -- imperative shell between the collection store
    and a StorageAdapter.

Invariants enforced:
    - An encoding identical to the last one written is not written again.
    - A missing adapter makes every call a no-op; the store runs in memory.
    - PersistenceUnavailableError never reaches the caller: it is logged at
      WARNING, recorded on the tracker, and the in-memory state stands.
    - An undecodable stored document loads as None (caller starts empty).
"""

from __future__ import annotations

from datetime import datetime

from devspace_kernel.domain.codec import decode, detect_format, encode
from devspace_kernel.domain.document import Document
from devspace_kernel.domain.sync_status import SyncState, SyncStatusTracker
from devspace_kernel.exceptions import DecodeError, PersistenceUnavailableError
from devspace_kernel.logging_config import get_logger
from devspace_kernel.persistence.adapter import StorageAdapter

logger = get_logger("persistence.writer")

PERSIST_OPERATION = "persist"


class DocumentWriter:
    def __init__(
        self,
        storage: StorageAdapter | None,
        data_key: str,
        compression_key: str,
        tracker: SyncStatusTracker | None = None,
    ):
        self._storage = storage
        self.data_key = data_key
        self.compression_key = compression_key
        self._tracker = tracker
        self._last_written: str | None = None

    @property
    def enabled(self) -> bool:
        return self._storage is not None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_preference(self, default: bool) -> bool:
        raw = self._read(self.compression_key)
        if raw is None:
            return default
        return raw.strip().lower() == "true"

    def read_document(self, now: datetime) -> Document | None:
        raw = self._read(self.data_key)
        if raw is None or not raw.strip():
            return None
        try:
            document = decode(raw, now)
        except DecodeError as exc:
            logger.warning(
                "document_decode_failed",
                extra={"key": self.data_key, "reason": exc.reason, "raw_length": exc.raw_length},
            )
            return None
        self._last_written = raw
        logger.info(
            "document_loaded",
            extra={
                "key": self.data_key,
                "format": detect_format(raw).value,
                "projects": len(document.projects),
                "tasks": len(document.tasks),
                "schedules": len(document.schedules),
                "payments": len(document.payments),
            },
        )
        return document

    def _read(self, key: str) -> str | None:
        if self._storage is None:
            return None
        try:
            return self._storage.read(key)
        except PersistenceUnavailableError as exc:
            self._log_unavailable(key, exc, "read")
            return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_preference(self, compressed: bool) -> bool:
        return self._write(self.compression_key, "true" if compressed else "false")

    def write_document(self, document: Document, compressed: bool) -> bool:
        """
        Encode and store ``document``.

        Returns True when the stored value now matches ``document`` (written
        or already identical), False when storage is absent or failed.
        When another operation (backup, restore) already holds the tracker
        in SYNCING, that operation reports the outcome.
        """
        encoded = encode(document, compressed=compressed)
        if encoded == self._last_written:
            logger.debug("document_write_skipped", extra={"key": self.data_key})
            return True
        if self._storage is None:
            return False

        tracker = self._tracker
        if tracker is not None and tracker.state is SyncState.SYNCING:
            tracker = None
        if tracker is not None:
            tracker.begin(PERSIST_OPERATION)
        try:
            self._storage.write(self.data_key, encoded)
        except PersistenceUnavailableError as exc:
            self._log_unavailable(self.data_key, exc, "write")
            if tracker is not None:
                tracker.fail(PERSIST_OPERATION, exc.reason)
            return False
        self._last_written = encoded
        if tracker is not None:
            tracker.succeed(PERSIST_OPERATION)
        logger.debug(
            "document_written",
            extra={"key": self.data_key, "chars": len(encoded), "compressed": compressed},
        )
        return True

    def forget(self) -> None:
        """Drop the last-written cache so the next write always reaches storage."""
        self._last_written = None

    def _write(self, key: str, value: str) -> bool:
        if self._storage is None:
            return False
        try:
            self._storage.write(key, value)
        except PersistenceUnavailableError as exc:
            self._log_unavailable(key, exc, "write")
            return False
        return True

    @staticmethod
    def _log_unavailable(key: str, exc: PersistenceUnavailableError, action: str) -> None:
        logger.warning(
            "persistence_unavailable",
            extra={"key": key, "reason": exc.reason, "action": action},
        )
