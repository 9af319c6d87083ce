"""
Tests for StatisticsSelector.

The deterministic clock sits on Wednesday 2024-01-03 12:00 UTC, so the
current week starts Sunday 2023-12-31 and the month on 2024-01-01.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from devspace_kernel.domain.document import Document, Metadata
from devspace_kernel.domain.entities import (
    Payment,
    PaymentStatus,
    Project,
    ProjectStatus,
    ScheduleEvent,
    Task,
    TaskStatus,
)
from devspace_kernel.selectors.statistics_selector import StatisticsSelector

NOW = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)
LAST_WEEK = datetime(2023, 12, 30, 23, 59, tzinfo=timezone.utc)
LAST_MONTH = datetime(2023, 12, 31, 8, 0, tzinfo=timezone.utc)


def _stats(deterministic_clock, **collections):
    document = Document(metadata=Metadata.fresh(NOW), **collections)
    return StatisticsSelector(document, deterministic_clock).get_statistics()


class TestBoundaries:
    @pytest.mark.parametrize(
        "now, expected",
        [
            (datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc), datetime(2023, 12, 31, tzinfo=timezone.utc)),
            (datetime(2024, 1, 7, 9, 30, tzinfo=timezone.utc), datetime(2024, 1, 7, tzinfo=timezone.utc)),
            (datetime(2024, 1, 6, 23, 59, tzinfo=timezone.utc), datetime(2023, 12, 31, tzinfo=timezone.utc)),
        ],
    )
    def test_week_starts_sunday(self, deterministic_clock, now, expected):
        selector = StatisticsSelector(Document.empty(NOW), deterministic_clock)
        assert selector.week_start(now) == expected

    def test_month_start(self):
        assert StatisticsSelector.month_start(NOW) == datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestCounts:
    def test_empty_document(self, deterministic_clock):
        stats = _stats(deterministic_clock)
        assert stats.counts.total_tasks == 0
        assert stats.rates.completion_rate == "0.0"
        assert stats.rates.active_projects_rate == Decimal("0.0")
        assert stats.financial.total_earnings == 0

    def test_active_projects(self, deterministic_clock):
        stats = _stats(
            deterministic_clock,
            projects=(
                Project(id="a", status=ProjectStatus.IN_PROGRESS),
                Project(id="b", status=ProjectStatus.ON_HOLD),
                Project(id="c", status=ProjectStatus.COMPLETED),
            ),
        )
        assert stats.counts.active_projects == 2
        assert stats.rates.active_projects_rate == Decimal("66.7")

    def test_weekly_task_counts(self, deterministic_clock):
        stats = _stats(
            deterministic_clock,
            tasks=(
                Task(id="new", created_at=NOW),
                Task(id="old", created_at=LAST_WEEK),
                Task(id="done-now", status=TaskStatus.DONE, created_at=LAST_WEEK, completed_at=NOW),
                Task(id="done-old", status=TaskStatus.DONE, created_at=LAST_WEEK, completed_at=LAST_WEEK),
            ),
            schedules=(ScheduleEvent(id="s1"),),
        )
        assert stats.counts.total_tasks == 4
        assert stats.counts.completed_tasks == 2
        assert stats.counts.tasks_this_week == 1
        assert stats.counts.completed_tasks_this_week == 1
        assert stats.counts.total_schedules == 1
        assert stats.rates.completion_rate == "50.0"

    def test_completed_without_timestamp_uses_updated_at(self, deterministic_clock):
        stats = _stats(
            deterministic_clock,
            tasks=(Task(id="t", status=TaskStatus.DONE, updated_at=NOW - timedelta(hours=1)),),
        )
        assert stats.counts.completed_tasks_this_week == 1

    def test_completion_rate_rounds_half_up(self, deterministic_clock):
        tasks = tuple(Task(id=f"t{i}", status=TaskStatus.DONE if i < 2 else TaskStatus.TODO) for i in range(3))
        assert _stats(deterministic_clock, tasks=tasks).rates.completion_rate == "66.7"


class TestFinancial:
    def test_sums_by_status(self, deterministic_clock):
        stats = _stats(
            deterministic_clock,
            payments=(
                Payment(id="1", amount=Decimal("100.50"), status=PaymentStatus.PAID, created_at=NOW),
                Payment(id="2", amount=Decimal("40"), status=PaymentStatus.PAID, created_at=LAST_MONTH),
                Payment(id="3", amount=Decimal("25"), status=PaymentStatus.PENDING, created_at=NOW),
                Payment(id="4", amount=None, status=PaymentStatus.PAID, created_at=NOW),
                Payment(id="5", amount=Decimal("999"), status=PaymentStatus.CANCELLED, created_at=NOW),
            ),
        )
        assert stats.financial.total_earnings == Decimal("140.50")
        assert stats.financial.earnings_this_month == Decimal("100.50")
        assert stats.financial.pending_payments == Decimal("25")
        assert stats.counts.total_payments == 5


class TestToDict:
    def test_wire_shape(self, deterministic_clock):
        stats = _stats(
            deterministic_clock,
            projects=(Project(id="a", status=ProjectStatus.IN_PROGRESS),),
            payments=(Payment(id="1", amount=Decimal("12.5"), status=PaymentStatus.PAID, created_at=NOW),),
        )
        data = stats.to_dict()

        assert set(data) == {"counts", "rates", "financial", "timestamps"}
        assert data["rates"] == {"completionRate": "0.0", "activeProjectsRate": 100}
        assert data["financial"]["totalEarnings"] == 12.5
        assert data["timestamps"] == {
            "firstCreated": "2024-01-03T12:00:00Z",
            "lastUpdated": "2024-01-03T12:00:00Z",
            "lastBackup": None,
        }
