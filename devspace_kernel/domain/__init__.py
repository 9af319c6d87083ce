"""
Pure domain layer.

Entities, the Document aggregate, the codec, migrations, integrity checks
and the sync-status state machine, with NO dependencies on:
- ORM (SQLAlchemy)
- Storage adapters
- Wall-clock time (a Clock is always injected)

All domain objects are immutable.
"""

from devspace_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from devspace_kernel.domain.codec import EncodedFormat, decode, detect_format, encode
from devspace_kernel.domain.document import DATA_VERSION, Document, Metadata
from devspace_kernel.domain.entities import (
    EntityKind,
    Payment,
    PaymentStatus,
    PaymentType,
    Project,
    ProjectStatus,
    RecurringPattern,
    ScheduleEvent,
    ScheduleType,
    Task,
    TaskPriority,
    TaskStatus,
)
from devspace_kernel.domain.integrity import (
    IntegrityIssue,
    IssueType,
    ValidationResult,
    validate_document,
)
from devspace_kernel.domain.sync_status import SyncEvent, SyncState, SyncStatusTracker

__all__ = [
    "Clock",
    "DATA_VERSION",
    "DeterministicClock",
    "Document",
    "EncodedFormat",
    "EntityKind",
    "IntegrityIssue",
    "IssueType",
    "Metadata",
    "Payment",
    "PaymentStatus",
    "PaymentType",
    "Project",
    "ProjectStatus",
    "RecurringPattern",
    "ScheduleEvent",
    "ScheduleType",
    "SyncEvent",
    "SyncState",
    "SyncStatusTracker",
    "SystemClock",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "ValidationResult",
    "decode",
    "detect_format",
    "encode",
    "validate_document",
]
