"""Seed dev data into Postgres: employees, leads and one approved sequence.

Loads employees (by user_id; skipped if present), leads, and a three-step
welcome sequence that is submitted and approved so it can be assigned
straight away.

Usage:
    python -m scripts.seed_dev_data

Requires: DATABASE_BACKEND=postgres, DATABASE_URL and tables created by
scripts.init_db.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from agency.application.use_cases import SequenceLifecycleUseCase
from agency.domain.entities import EmployeeEntity, LeadEntity, SequenceStep
from agency.domain.enums import Department, DelayUnit, EmployeeRole, StepType
from agency.infrastructure.persistence.database import dispose_engine, transactional_session
from agency.infrastructure.persistence.repositories import (
    EmployeeRepository,
    LeadRepository,
    SequenceRepository,
)
from agency.shared.context import ActorContext
from agency.shared.enums import ActorType, UserRole
from agency.shared.utils.generators import generate_cuid

EMPLOYEES = [
    ("seed-dev-1", "Dana Developer", EmployeeRole.DEVELOPER, Department.DEVELOPMENT,
     {"web_development", "frontend"}),
    ("seed-dev-2", "Sam Designer", EmployeeRole.DESIGNER, Department.DEVELOPMENT,
     {"web_design", "ui_ux"}),
    ("seed-seo-1", "Riley SEO", EmployeeRole.SEO_SPECIALIST, Department.MARKETING,
     {"seo", "analytics", "strategy"}),
    ("seed-writer-1", "Jo Writer", EmployeeRole.CONTENT_WRITER, Department.MARKETING,
     {"content_creation", "social_media"}),
    ("seed-am-1", "Alex Manager", EmployeeRole.ACCOUNT_MANAGER, Department.FULFILLMENT,
     {"project_management", "strategy"}),
]

LEADS = [
    ("Acme Bakery", "owner@acme-bakery.example", "Acme Bakery"),
    ("Northwind Fitness", "hello@northwind.example", "Northwind Fitness"),
    ("Blue Harbor Dental", "office@blueharbor.example", "Blue Harbor Dental"),
]

WELCOME_STEPS = [
    SequenceStep(
        order=0,
        step_type=StepType.EMAIL,
        title="Welcome",
        subject="Thanks for reaching out",
        content="Hi {{name}}, thanks for your interest. Here is what happens next.",
    ),
    SequenceStep(order=1, step_type=StepType.DELAY, title="Wait", delay_amount=2,
                 delay_unit=DelayUnit.DAYS),
    SequenceStep(
        order=2,
        step_type=StepType.TASK,
        title="Discovery call",
        content="Call the lead to book a discovery session.",
    ),
]


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


async def seed() -> None:
    admin = ActorContext(user_id="seed-admin", user_role=UserRole.ADMIN, actor_type=ActorType.USER)
    async with transactional_session() as session:
        employees = EmployeeRepository(session)
        for user_id, name, role, department, skills in EMPLOYEES:
            if await employees.get_by_user_id(user_id) is not None:
                continue
            await employees.create_employee(
                EmployeeEntity(
                    id=generate_cuid(),
                    user_id=user_id,
                    name=name,
                    employee_role=role,
                    department=department,
                    skill_set=frozenset(skills),
                )
            )
        leads = LeadRepository(session)
        for name, email, company in LEADS:
            await leads.create_lead(
                LeadEntity(id=generate_cuid(), name=name, email=email, company=company)
            )
        lifecycle = SequenceLifecycleUseCase(SequenceRepository(session), employees)
        sequence = await lifecycle.create(admin, name="Welcome sequence", steps=WELCOME_STEPS)
        await lifecycle.submit(sequence.id, admin)
        await lifecycle.approve(sequence.id, admin)
    print(f"Seeded {len(EMPLOYEES)} employees, {len(LEADS)} leads, sequence {sequence.id}.")


def main() -> None:
    load_dotenv(_project_root() / ".env", override=True)

    async def run() -> None:
        try:
            await seed()
        finally:
            await dispose_engine()

    try:
        asyncio.run(run())
    except Exception as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
