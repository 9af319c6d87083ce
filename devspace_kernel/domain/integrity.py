"""
Integrity -- referential and required-field checks over a Document.

Responsibility:
    Finds records whose projectId no longer resolves (orphans), projects
    missing required fields, tasks with unparsable due dates and duplicated
    ids; and computes the orphan repair (null the dangling projectId).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``IntegrityService`` binds these functions to the live store.

Invariants enforced:
    - Checks are reported as ``IntegrityIssue`` values, never raised.
    - Repair only ever clears projectId; it never deletes a record and never
      recreates a project.
    - Repair is idempotent: repairing a repaired document changes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Sequence, TypeVar

from devspace_kernel.domain.document import Document
from devspace_kernel.domain.entities import Entity, EntityKind
from devspace_kernel.domain.values import is_parsable_date

T = TypeVar("T")


class IssueType(str, Enum):
    ORPHANED_TASKS = "orphanedTasks"
    ORPHANED_SCHEDULES = "orphanedSchedules"
    ORPHANED_PAYMENTS = "orphanedPayments"
    INVALID_PROJECTS = "invalidProjects"
    INVALID_DATE_TASKS = "invalidDateTasks"
    DUPLICATE_IDS = "duplicateIds"


ORPHAN_ISSUES: dict[EntityKind, IssueType] = {
    EntityKind.TASK: IssueType.ORPHANED_TASKS,
    EntityKind.SCHEDULE: IssueType.ORPHANED_SCHEDULES,
    EntityKind.PAYMENT: IssueType.ORPHANED_PAYMENTS,
}


@dataclass(frozen=True)
class IntegrityIssue:
    type: IssueType
    items: tuple[Entity, ...]

    @property
    def count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ValidationResult:
    issues: tuple[IntegrityIssue, ...]

    @property
    def valid(self) -> bool:
        return not self.issues

    def issue(self, issue_type: IssueType) -> IntegrityIssue | None:
        for issue in self.issues:
            if issue.type == issue_type:
                return issue
        return None

    def has_orphans(self) -> bool:
        return any(self.issue(t) for t in ORPHAN_ISSUES.values())


@dataclass(frozen=True)
class Duplicate:
    key: Any
    item: Any
    index: int
    first_index: int


# ---------------------------------------------------------------------------
# Generic helpers
# ---------------------------------------------------------------------------


def find_broken_references(
    items: Iterable[Any],
    references: Iterable[T],
    item_key: str = "id",
    reference_key: str = "project_id",
) -> list[T]:
    """
    References whose ``reference_key`` is set but matches no item's
    ``item_key``.  Unset (None/empty) references are not broken.
    """
    if not item_key or not reference_key:
        raise ValueError("item_key and reference_key are required")
    valid = {getattr(item, item_key) for item in items}
    return [
        ref for ref in references
        if getattr(ref, reference_key) and getattr(ref, reference_key) not in valid
    ]


def find_duplicates(
    items: Sequence[T],
    key: Callable[[T], Any] | str = "id",
) -> list[Duplicate]:
    """Every repeat occurrence of a key, with the index of its first sighting."""
    key_fn = key if callable(key) else (lambda item: getattr(item, key))
    seen: dict[Any, int] = {}
    duplicates: list[Duplicate] = []
    for index, item in enumerate(items):
        value = key_fn(item)
        if value in seen:
            duplicates.append(Duplicate(value, item, index, seen[value]))
        else:
            seen[value] = index
    return duplicates


# ---------------------------------------------------------------------------
# Document checks
# ---------------------------------------------------------------------------


def find_orphans(document: Document, kind: EntityKind) -> list[Entity]:
    return find_broken_references(document.projects, document.collection(kind))


def validate_document(document: Document) -> ValidationResult:
    """Run every check and collect the non-empty issues in a fixed order."""
    issues: list[IntegrityIssue] = []

    for kind, issue_type in ORPHAN_ISSUES.items():
        orphans = find_orphans(document, kind)
        if orphans:
            issues.append(IntegrityIssue(issue_type, tuple(orphans)))

    invalid_projects = [p for p in document.projects if not p.name or not p.client]
    if invalid_projects:
        issues.append(IntegrityIssue(IssueType.INVALID_PROJECTS, tuple(invalid_projects)))

    invalid_dates = [
        t for t in document.tasks if t.due_date and not is_parsable_date(t.due_date)
    ]
    if invalid_dates:
        issues.append(IntegrityIssue(IssueType.INVALID_DATE_TASKS, tuple(invalid_dates)))

    duplicates = [
        dup.item
        for kind in EntityKind
        for dup in find_duplicates(document.collection(kind))
    ]
    if duplicates:
        issues.append(IntegrityIssue(IssueType.DUPLICATE_IDS, tuple(duplicates)))

    return ValidationResult(tuple(issues))


def repair_orphans(document: Document, now: datetime) -> tuple[Document, int]:
    """
    Null the projectId of every orphaned task, schedule and payment.

    Returns the repaired document and the number of records changed.  When
    nothing is orphaned the input document is returned unchanged.
    """
    valid_ids = document.project_ids()

    def dangling(entity: Entity) -> bool:
        return bool(entity.project_id) and entity.project_id not in valid_ids

    fixed = 0
    repaired = document
    for kind in ORPHAN_ISSUES:
        items = document.collection(kind)
        count = sum(1 for e in items if dangling(e))
        if not count:
            continue
        fixed += count
        repaired = repaired.with_collection(
            kind,
            tuple(
                replace(e, project_id=None, updated_at=now) if dangling(e) else e
                for e in items
            ),
        )
    return repaired, fixed
