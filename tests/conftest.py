import os

os.environ.setdefault("PROJECT_NAME", "Appraisal Workflow Test")
os.environ.setdefault("POSTGRES_SERVER", "localhost")
os.environ.setdefault("POSTGRES_USER", "appraisal")
os.environ.setdefault("POSTGRES_PASSWORD", "appraisal")
os.environ.setdefault("POSTGRES_DB", "appraisal_test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("SERVICE_NAME", "appraisal-workflow-test")

from datetime import date
from typing import Dict, List

import pytest
import pytest_asyncio
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import src.models  # noqa: F401  registers every table on SQLModel.metadata
from src.auth.identity import RequestIdentityProvider
from src.models.appraisal import Appraisal
from src.models.appraisal_cycle import AppraisalCycle
from src.models.enums import AppraisalStatus, UserRole
from src.models.user import User
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.repositories.user import UserRepository
from src.services.appraisal_workflow import AppraisalWorkflowService
from src.services.notification import TransitionEvent


class RecordingEmitter:
    """Keeps every event it is handed."""

    def __init__(self):
        self.events: List[TransitionEvent] = []

    async def notify(self, event: TransitionEvent) -> None:
        self.events.append(event)


class FailingEmitter:
    async def notify(self, event: TransitionEvent) -> None:
        raise RuntimeError("mail relay unreachable")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(session) -> Dict[str, User]:
    repo = UserRepository(session)
    return {
        "teacher": await repo.create(
            "Dr. Akash Vishwakarma", "akash.vishwakarma@college.edu.in", UserRole.TEACHER,
            department="Computer Science", designation="Assistant Professor", employee_no="T1001",
        ),
        "other_teacher": await repo.create(
            "Meera Iyer", "meera.iyer@college.edu.in", UserRole.TEACHER,
            department="Computer Science", designation="Assistant Professor", employee_no="T1002",
        ),
        "hod": await repo.create(
            "Prof. Rajesh Nair", "rajesh.nair@college.edu.in", UserRole.HOD,
            department="Computer Science", designation="Professor & Head", employee_no="H2001",
        ),
        "other_hod": await repo.create(
            "Prof. Sunita Rao", "sunita.rao@college.edu.in", UserRole.HOD,
            department="Electronics", designation="Professor & Head", employee_no="H2002",
        ),
        "iqac": await repo.create(
            "Dr. Farhan Qureshi", "iqac@college.edu.in", UserRole.IQAC,
            department="IQAC Cell", designation="IQAC Coordinator", employee_no="Q3001",
        ),
        "principal": await repo.create(
            "Dr. Lakshmi Menon", "principal@college.edu.in", UserRole.PRINCIPAL,
            department="Administration", designation="Principal", employee_no="P4001",
        ),
        "admin": await repo.create(
            "System Administrator", "admin@college.edu.in", UserRole.ADMIN,
            department="Administration", designation="Administrator", employee_no="A5001",
        ),
    }


@pytest_asyncio.fixture
async def cycle(session) -> AppraisalCycle:
    return await AppraisalCycleRepository(session).create(
        label="Academic Year 2025-26",
        academic_year="2025-26",
        start_date=date(2025, 6, 1),
        end_date=date(2026, 5, 31),
        is_open=True,
    )


@pytest_asyncio.fixture
async def appraisal(session, users, cycle) -> Appraisal:
    return await AppraisalRepository(session).create(users["teacher"], cycle)


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def service_for(session, emitter):
    """Build a workflow service acting as the given user."""

    def _build(actor, notifier=None) -> AppraisalWorkflowService:
        return AppraisalWorkflowService(
            AppraisalRepository(session),
            RequestIdentityProvider(actor, UserRepository(session)),
            AppraisalCycleRepository(session),
            notifier if notifier is not None else emitter,
        )

    return _build


async def force_status(session: AsyncSession, appraisal_id: int, status: AppraisalStatus) -> None:
    """Put an appraisal straight into a status, bypassing the workflow."""
    await session.execute(
        update(Appraisal)
        .where(Appraisal.id == appraisal_id)
        .values(status=status)
        .execution_options(synchronize_session=False)
    )
    await session.commit()


async def force_totals(session: AsyncSession, appraisal_id: int, totals: dict) -> None:
    await session.execute(
        update(Appraisal)
        .where(Appraisal.id == appraisal_id)
        .values(totals=totals)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
