"""
SyncStatus -- observable save/backup state for the UI.

Responsibility:
    Tracks the idle -> syncing -> success | error state machine of save
    operations (persistence writes and file backups) and notifies
    subscribers on every transition.  The tracker owns no timer: the UI
    shows SUCCESS for ``success_display_seconds`` and then calls
    ``acknowledge()`` to return to IDLE.

Architecture position:
    Kernel > Domain -- pure state machine, zero I/O.

Invariants enforced:
    - SYNCING is entered only from IDLE, SUCCESS or ERROR (``begin``).
    - SUCCESS and ERROR are entered only from SYNCING.
    - ERROR persists until the next ``begin``; ``acknowledge`` clears only
      SUCCESS.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from devspace_kernel.logging_config import get_logger

logger = get_logger("domain.sync_status")


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SyncEvent:
    state: SyncState
    previous: SyncState
    operation: str
    at: datetime
    error: str | None = None


SyncListener = Callable[[SyncEvent], None]


class SyncStatusTracker:
    """State machine plus listener registry."""

    def __init__(self, clock) -> None:
        self._clock = clock
        self._state = SyncState.IDLE
        self._listeners: list[SyncListener] = []
        self.last_success_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def begin(self, operation: str) -> None:
        if self._state is SyncState.SYNCING:
            return
        self._transition(SyncState.SYNCING, operation)

    def succeed(self, operation: str) -> None:
        self._require_syncing(operation)
        self.last_error = None
        self.last_success_at = self._clock.now()
        self._transition(SyncState.SUCCESS, operation)

    def fail(self, operation: str, error: str) -> None:
        self._require_syncing(operation)
        self.last_error = error
        self._transition(SyncState.ERROR, operation, error)

    def acknowledge(self) -> None:
        """Return from SUCCESS to IDLE once the UI has shown it."""
        if self._state is SyncState.SUCCESS:
            self._transition(SyncState.IDLE, "acknowledge")

    def _require_syncing(self, operation: str) -> None:
        if self._state is not SyncState.SYNCING:
            raise RuntimeError(
                f"Cannot finish '{operation}' from state {self._state.value}"
            )

    def _transition(self, state: SyncState, operation: str, error: str | None = None) -> None:
        event = SyncEvent(
            state=state,
            previous=self._state,
            operation=operation,
            at=self._clock.now(),
            error=error,
        )
        self._state = state
        logger.debug(
            "sync_state_changed",
            extra={"state": state.value, "previous": event.previous.value, "sync_operation": operation},
        )
        for listener in list(self._listeners):
            listener(event)
