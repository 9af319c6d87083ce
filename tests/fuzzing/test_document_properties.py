"""
Property-based tests over generated Documents.

Properties:
- Round trip: decode(encode(D)) == D for the plain and compressed forms.
- Cascade delete: deleting a project removes exactly its own tasks,
  schedules and payments.
- Completion timestamps track the terminal status through any sequence
  of status updates.
- Orphan repair is idempotent and leaves a valid document.
"""

from datetime import datetime, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from devspace_kernel.domain.clock import DeterministicClock
from devspace_kernel.domain.codec import decode, encode
from devspace_kernel.domain.document import DATA_VERSION, Document, Metadata
from devspace_kernel.domain.entities import (
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
from devspace_kernel.persistence.adapter import MemoryStorage
from devspace_kernel.services.collection_store import CollectionStore
from devspace_kernel.services.integrity_service import IntegrityService

ids = st.uuids().map(str)
texts = st.text(max_size=20)
optional_texts = st.one_of(st.none(), st.text(min_size=1, max_size=12))
timestamps = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2100, 1, 1),
    timezones=st.just(timezone.utc),
)
optional_timestamps = st.one_of(st.none(), timestamps)
amounts = st.decimals(
    min_value=0, max_value=10**20, places=2, allow_nan=False, allow_infinity=False
)
iso_dates = st.one_of(st.none(), st.dates().map(lambda d: d.isoformat()))

projects = st.builds(
    Project,
    id=ids,
    name=texts,
    client=texts,
    description=texts,
    start_date=iso_dates,
    end_date=iso_dates,
    budget=amounts,
    status=st.sampled_from(ProjectStatus),
    created_at=optional_timestamps,
    updated_at=optional_timestamps,
)
tasks = st.builds(
    Task,
    id=ids,
    name=texts,
    description=texts,
    project_id=optional_texts,
    due_date=iso_dates,
    priority=st.sampled_from(TaskPriority),
    status=st.sampled_from(TaskStatus),
    estimated_hours=st.one_of(st.none(), amounts),
    created_at=optional_timestamps,
    updated_at=optional_timestamps,
    completed_at=optional_timestamps,
)
schedules = st.builds(
    ScheduleEvent,
    id=ids,
    title=texts,
    description=texts,
    project_id=optional_texts,
    date=iso_dates,
    start_time=optional_texts,
    end_time=optional_texts,
    event_type=st.sampled_from(ScheduleType),
    is_recurring=st.booleans(),
    recurring_pattern=st.one_of(st.none(), st.sampled_from(RecurringPattern)),
    created_at=optional_timestamps,
    updated_at=optional_timestamps,
)
payments = st.builds(
    Payment,
    id=ids,
    description=texts,
    amount=st.one_of(st.none(), amounts),
    project_id=optional_texts,
    date=iso_dates,
    due_date=iso_dates,
    status=st.sampled_from(PaymentStatus),
    payment_type=st.sampled_from(PaymentType),
    invoice_number=texts,
    client_name=texts,
    notes=texts,
    created_at=optional_timestamps,
    updated_at=optional_timestamps,
    paid_at=optional_timestamps,
)
metadata = st.builds(
    Metadata,
    version=st.just(DATA_VERSION),
    created_at=timestamps,
    updated_at=timestamps,
    last_backup=optional_timestamps,
)
documents = st.builds(
    Document,
    metadata=metadata,
    projects=st.lists(projects, max_size=4).map(tuple),
    tasks=st.lists(tasks, max_size=6).map(tuple),
    schedules=st.lists(schedules, max_size=4).map(tuple),
    payments=st.lists(payments, max_size=4).map(tuple),
)


def _store() -> CollectionStore:
    counter = iter(range(1, 10_000))
    return CollectionStore(
        MemoryStorage(),
        clock=DeterministicClock(),
        id_factory=lambda: f"id-{next(counter)}",
    ).open()


class TestRoundTrip:
    @given(document=documents)
    @settings(max_examples=75, deadline=None)
    def test_plain_round_trip(self, document):
        assert decode(encode(document)) == document

    @given(document=documents)
    @settings(max_examples=75, deadline=None)
    def test_compressed_round_trip(self, document):
        assert decode(encode(document, compressed=True)) == document

    @given(document=documents)
    @settings(max_examples=25, deadline=None)
    def test_pretty_export_round_trip(self, document):
        assert decode(encode(document, pretty=True)) == document


class TestCascadeDelete:
    @given(
        owners=st.lists(st.integers(min_value=0, max_value=3), max_size=15),
        victim=st.integers(min_value=0, max_value=3),
    )
    @settings(max_examples=50, deadline=None)
    def test_removes_exactly_dependents(self, owners, victim):
        store = _store()
        project_ids = [store.add_project(name=f"p{i}", client="c").id for i in range(4)]
        for n, owner in enumerate(owners):
            project_id = project_ids[owner]
            if n % 3 == 0:
                store.add_task(name=f"t{n}", project_id=project_id)
            elif n % 3 == 1:
                store.add_schedule(title=f"s{n}", project_id=project_id)
            else:
                store.add_payment(description=f"x{n}", project_id=project_id)
        before = store.document
        target = project_ids[victim]

        assert store.delete_project(target) is True

        after = store.document
        assert [p.id for p in after.projects] == [p for p in project_ids if p != target]
        for name in ("tasks", "schedules", "payments"):
            expected = [e for e in getattr(before, name) if e.project_id != target]
            assert list(getattr(after, name)) == expected
        removed = len(owners) - sum(
            len(getattr(after, name)) for name in ("tasks", "schedules", "payments")
        )
        assert removed == owners.count(victim)


class TestCompletionTimestamps:
    @given(statuses=st.lists(st.sampled_from(TaskStatus), min_size=1, max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_task_completed_at_tracks_done(self, statuses):
        store = _store()
        task = store.add_task(name="t")
        for status in statuses:
            task = store.update_task(task.id, status=status)
            assert (task.completed_at is not None) == (status is TaskStatus.DONE)

    @given(statuses=st.lists(st.sampled_from(PaymentStatus), min_size=1, max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_payment_paid_at_tracks_paid(self, statuses):
        store = _store()
        payment = store.add_payment(description="x", amount=10)
        for status in statuses:
            payment = store.update_payment(payment.id, status=status)
            assert (payment.paid_at is not None) == (status is PaymentStatus.PAID)


class TestOrphanRepair:
    @given(dangling=st.lists(st.sampled_from(["gone", "missing", None]), max_size=10))
    @settings(max_examples=50, deadline=None)
    def test_fix_twice(self, dangling):
        store = _store()
        project = store.add_project(name="p", client="c")
        for n, ref in enumerate(dangling):
            store.add_task(name=f"t{n}", project_id=ref or project.id)
        service = IntegrityService(store)

        first = service.fix_orphaned_records()
        second = service.fix_orphaned_records()

        assert first.fixed == sum(1 for ref in dangling if ref)
        assert second.fixed == 0
        assert second.validation.valid
