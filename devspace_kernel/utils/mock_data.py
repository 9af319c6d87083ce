"""
Deterministic mock data for development and tests.

``generate_mock_document`` builds a realistic Document (projects with their
tasks, schedule events and payments) from a seed: the same seed and the
same ``now`` always produce the same Document, ids included.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from devspace_kernel.domain.document import Document, Metadata
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
    apply_completion_rule,
)

_CLIENTS = ("Acme Corp", "Globex", "Initech", "Umbrella", "Hooli", "Stark Industries")
_PROJECT_NAMES = ("Website Redesign", "Mobile App", "API Migration", "Data Dashboard", "CRM Integration")
_TASK_NAMES = ("Wireframes", "Code review", "Write tests", "Deploy staging", "Fix login bug", "Client call notes")
_EVENT_TITLES = ("Standup", "Sprint planning", "Focus block", "Client demo", "Lunch")


def _mock_id(rng: random.Random) -> str:
    return str(UUID(int=rng.getrandbits(128), version=4))


def _day(now: datetime, offset: int) -> str:
    return (now + timedelta(days=offset)).date().isoformat()


def generate_mock_document(
    now: datetime,
    *,
    seed: int = 0,
    projects: int = 3,
    tasks_per_project: int = 4,
    schedules_per_project: int = 2,
    payments_per_project: int = 2,
) -> Document:
    rng = random.Random(seed)
    project_list: list[Project] = []
    task_list: list[Task] = []
    schedule_list: list[ScheduleEvent] = []
    payment_list: list[Payment] = []

    for p_index in range(projects):
        created = now - timedelta(days=rng.randint(0, 60), hours=rng.randint(0, 23))
        project = Project(
            id=_mock_id(rng),
            name=f"{rng.choice(_PROJECT_NAMES)} {p_index + 1}",
            client=rng.choice(_CLIENTS),
            description="Generated project",
            start_date=_day(now, -rng.randint(0, 30)),
            end_date=_day(now, rng.randint(1, 90)),
            budget=Decimal(rng.randrange(1000, 20000, 250)),
            status=rng.choice(list(ProjectStatus)),
            created_at=created,
            updated_at=created,
        )
        project_list.append(project)

        for t_index in range(tasks_per_project):
            t_created = created + timedelta(hours=rng.randint(1, 72))
            task = Task(
                id=_mock_id(rng),
                name=f"{rng.choice(_TASK_NAMES)} #{t_index + 1}",
                project_id=project.id,
                due_date=_day(now, rng.randint(-10, 30)),
                priority=rng.choice(list(TaskPriority)),
                status=rng.choice(list(TaskStatus)),
                estimated_hours=Decimal(rng.randint(1, 16)),
                created_at=t_created,
                updated_at=t_created,
            )
            task_list.append(apply_completion_rule(task, t_created))

        for _ in range(schedules_per_project):
            start_hour = rng.randint(8, 16)
            recurring = rng.random() < 0.3
            schedule_list.append(
                ScheduleEvent(
                    id=_mock_id(rng),
                    title=rng.choice(_EVENT_TITLES),
                    project_id=project.id,
                    date=_day(now, rng.randint(-7, 14)),
                    start_time=f"{start_hour:02d}:00",
                    end_time=f"{start_hour + 1:02d}:00",
                    event_type=rng.choice(list(ScheduleType)),
                    is_recurring=recurring,
                    recurring_pattern=rng.choice(list(RecurringPattern)) if recurring else None,
                    created_at=created,
                    updated_at=created,
                )
            )

        for pay_index in range(payments_per_project):
            pay_created = created + timedelta(days=rng.randint(0, 20))
            payment = Payment(
                id=_mock_id(rng),
                description=f"Milestone {pay_index + 1}",
                amount=Decimal(rng.randrange(100, 5000, 50)),
                project_id=project.id,
                date=_day(now, -rng.randint(0, 30)),
                due_date=_day(now, rng.randint(0, 30)),
                status=rng.choice(list(PaymentStatus)),
                payment_type=rng.choice(list(PaymentType)),
                invoice_number=f"INV-{p_index + 1:03d}-{pay_index + 1:02d}",
                client_name=project.client,
                created_at=pay_created,
                updated_at=pay_created,
            )
            payment_list.append(apply_completion_rule(payment, pay_created))

    return Document(
        metadata=Metadata.fresh(now),
        projects=tuple(project_list),
        tasks=tuple(task_list),
        schedules=tuple(schedule_list),
        payments=tuple(payment_list),
    )
