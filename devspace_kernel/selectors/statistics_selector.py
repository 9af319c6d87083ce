"""
StatisticsSelector -- dashboard aggregates over a Document snapshot.

Responsibility:
    Counts, completion rates, earnings and the document timestamps shown on
    the dashboard.

Invariants enforced:
    - Pure read: computing statistics never changes the Document.
    - Weeks start on Sunday 00:00 and months on day 1 00:00, both in the
      clock's timezone.
    - Money is summed as Decimal; payments without an amount count as 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from devspace_kernel.domain.entities import (
    Payment,
    PaymentStatus,
    TaskStatus,
)
from devspace_kernel.domain.values import decimal_to_json, format_timestamp
from devspace_kernel.selectors.base import BaseSelector

_ONE_PLACE = Decimal("0.1")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class Counts:
    total_projects: int
    active_projects: int
    total_tasks: int
    completed_tasks: int
    tasks_this_week: int
    completed_tasks_this_week: int
    total_schedules: int
    total_payments: int


@dataclass(frozen=True)
class Rates:
    completion_rate: str
    active_projects_rate: Decimal


@dataclass(frozen=True)
class Financial:
    total_earnings: Decimal
    earnings_this_month: Decimal
    pending_payments: Decimal


@dataclass(frozen=True)
class Timestamps:
    first_created: datetime
    last_updated: datetime
    last_backup: datetime | None


@dataclass(frozen=True)
class Statistics:
    counts: Counts
    rates: Rates
    financial: Financial
    timestamps: Timestamps

    def to_dict(self) -> dict[str, Any]:
        """The camelCase shape the dashboard consumes."""
        c, r, f, t = self.counts, self.rates, self.financial, self.timestamps
        return {
            "counts": {
                "totalProjects": c.total_projects,
                "activeProjects": c.active_projects,
                "totalTasks": c.total_tasks,
                "completedTasks": c.completed_tasks,
                "tasksThisWeek": c.tasks_this_week,
                "completedTasksThisWeek": c.completed_tasks_this_week,
                "totalSchedules": c.total_schedules,
                "totalPayments": c.total_payments,
            },
            "rates": {
                "completionRate": r.completion_rate,
                "activeProjectsRate": decimal_to_json(r.active_projects_rate),
            },
            "financial": {
                "totalEarnings": decimal_to_json(f.total_earnings),
                "earningsThisMonth": decimal_to_json(f.earnings_this_month),
                "pendingPayments": decimal_to_json(f.pending_payments),
            },
            "timestamps": {
                "firstCreated": format_timestamp(t.first_created),
                "lastUpdated": format_timestamp(t.last_updated),
                "lastBackup": format_timestamp(t.last_backup) if t.last_backup else None,
            },
        }


def _percentage(part: int, whole: int) -> Decimal:
    if whole == 0:
        return _ZERO.quantize(_ONE_PLACE)
    return (Decimal(part) * 100 / Decimal(whole)).quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)


def _sum_amounts(payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount or _ZERO for p in payments), _ZERO)


def _on_or_after(value: datetime | None, boundary: datetime) -> bool:
    return value is not None and value >= boundary


class StatisticsSelector(BaseSelector):
    def week_start(self, now: datetime) -> datetime:
        """Sunday 00:00 of the week containing ``now``."""
        days_since_sunday = (now.weekday() + 1) % 7
        return (now - timedelta(days=days_since_sunday)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )

    @staticmethod
    def month_start(now: datetime) -> datetime:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    def get_statistics(self) -> Statistics:
        document = self.document
        now = self.clock.now()
        week_start = self.week_start(now)
        month_start = self.month_start(now)

        active_projects = sum(1 for p in document.projects if p.status.is_active)
        done_tasks = [t for t in document.tasks if t.status == TaskStatus.DONE]
        paid = [p for p in document.payments if p.status == PaymentStatus.PAID]

        counts = Counts(
            total_projects=len(document.projects),
            active_projects=active_projects,
            total_tasks=len(document.tasks),
            completed_tasks=len(done_tasks),
            tasks_this_week=sum(
                1 for t in document.tasks if _on_or_after(t.created_at, week_start)
            ),
            completed_tasks_this_week=sum(
                1 for t in done_tasks
                if _on_or_after(t.completed_at or t.updated_at, week_start)
            ),
            total_schedules=len(document.schedules),
            total_payments=len(document.payments),
        )
        rates = Rates(
            completion_rate=str(_percentage(counts.completed_tasks, counts.total_tasks)),
            active_projects_rate=_percentage(active_projects, counts.total_projects),
        )
        financial = Financial(
            total_earnings=_sum_amounts(paid),
            earnings_this_month=_sum_amounts(
                p for p in paid if _on_or_after(p.created_at, month_start)
            ),
            pending_payments=_sum_amounts(
                p for p in document.payments if p.status == PaymentStatus.PENDING
            ),
        )
        timestamps = Timestamps(
            first_created=document.metadata.created_at,
            last_updated=document.metadata.updated_at,
            last_backup=document.metadata.last_backup,
        )
        return Statistics(counts, rates, financial, timestamps)
