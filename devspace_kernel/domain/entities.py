"""
Entities -- the four record kinds held by the Document.

Responsibility:
    Defines Project, Task, ScheduleEvent and Payment as frozen dataclasses,
    the closed enums for every status/priority/type field, and the
    completion-timestamp rule shared by Task and Payment.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Task.completed_at is set exactly when status == DONE.
    - Payment.paid_at is set exactly when status == PAID.
      Entering the terminal status keeps an existing timestamp; leaving it
      clears the timestamp (``apply_completion_rule``).
    - Entities are immutable; every change produces a new instance via
      ``dataclasses.replace``.

Non-goals:
    - Required-field checks (Project.name/client) are reported by the
      integrity checker, not rejected here.
    - projectId is a lookup key only; resolving it is the integrity
      checker's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar


class ProjectStatus(str, Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_active(self) -> bool:
        return self not in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)


class TaskStatus(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    BLOCKED = "Blocked"
    DONE = "Done"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ScheduleType(str, Enum):
    WORK = "Work"
    MEETING = "Meeting"
    BREAK = "Break"
    PERSONAL = "Personal"
    DEADLINE = "Deadline"


class RecurringPattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class PaymentType(str, Enum):
    INVOICE = "Invoice"
    PAYMENT = "Payment"
    EXPENSE = "Expense"
    REFUND = "Refund"


class EntityKind(str, Enum):
    """
    The four record kinds.

    ``collection`` is the Document attribute (and wire key) holding the
    records of that kind.
    """

    PROJECT = "project"
    TASK = "task"
    SCHEDULE = "schedule"
    PAYMENT = "payment"

    @property
    def collection(self) -> str:
        return f"{self.value}s"

    @property
    def entity_class(self) -> type:
        return _KIND_CLASSES[self]


@dataclass(frozen=True)
class Project:
    id: str
    name: str = ""
    client: str = ""
    description: str = ""
    start_date: str | None = None
    end_date: str | None = None
    budget: Decimal = Decimal("0")
    status: ProjectStatus = ProjectStatus.PLANNING
    created_at: datetime | None = None
    updated_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Task:
    id: str
    name: str = ""
    description: str = ""
    project_id: str | None = None
    due_date: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    estimated_hours: Decimal | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class ScheduleEvent:
    id: str
    title: str = ""
    description: str = ""
    project_id: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    event_type: ScheduleType = ScheduleType.WORK
    is_recurring: bool = False
    recurring_pattern: RecurringPattern | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class Payment:
    id: str
    description: str = ""
    amount: Decimal | None = None
    project_id: str | None = None
    date: str | None = None
    due_date: str | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    payment_type: PaymentType = PaymentType.INVOICE
    invoice_number: str = ""
    client_name: str = ""
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    paid_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)


Entity = Project | Task | ScheduleEvent | Payment
E = TypeVar("E", Project, Task, ScheduleEvent, Payment)

_KIND_CLASSES: dict[EntityKind, type] = {
    EntityKind.PROJECT: Project,
    EntityKind.TASK: Task,
    EntityKind.SCHEDULE: ScheduleEvent,
    EntityKind.PAYMENT: Payment,
}

# Fields the store manages itself; callers may not set them directly.
PROTECTED_FIELDS: frozenset[str] = frozenset(
    {"id", "created_at", "updated_at", "completed_at", "paid_at", "extra"}
)

# entity class -> (terminal status, timestamp attribute)
_COMPLETION_RULES: dict[type, tuple[Enum, str]] = {
    Task: (TaskStatus.DONE, "completed_at"),
    Payment: (PaymentStatus.PAID, "paid_at"),
}


def kind_of(entity: Entity) -> EntityKind:
    """Return the EntityKind of an entity instance."""
    for kind, cls in _KIND_CLASSES.items():
        if isinstance(entity, cls):
            return kind
    raise TypeError(f"Not an entity: {type(entity).__name__}")


def apply_completion_rule(entity: E, now: datetime) -> E:
    """
    Set or clear the completion timestamp to match the entity's status.

    Entering the terminal status stamps ``now`` unless a timestamp is
    already present; any other status clears it.  Kinds without a
    completion rule are returned unchanged.
    """
    rule = _COMPLETION_RULES.get(type(entity))
    if rule is None:
        return entity

    terminal_status, attr = rule
    current = getattr(entity, attr)
    if entity.status == terminal_status:
        if current is None:
            return replace(entity, **{attr: now})
    elif current is not None:
        return replace(entity, **{attr: None})
    return entity
