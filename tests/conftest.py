"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be ready before
# any application module is imported.
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("STRICT_STATUS_TRANSITIONS", "true")

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.middleware.authorization import Principal
from core.security import create_access_token
from core.utils.datetime import now
from database.engine import Base, get_db
from database.models.applications import Application, TimelineEvent  # noqa: F401
from database.models.jobs import Job, JobBookmark, JobStatus, JobType  # noqa: F401
from database.models.users import User, UserRole, UserStatus


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(session):
    """One account per role, plus a second student and recruiter."""
    rows = {
        "student": User(
            email="sam@university.edu",
            name="Sam Student",
            role=UserRole.STUDENT,
            student_profile={"university": "State University", "major": "CS"},
        ),
        "other_student": User(
            email="olivia@university.edu",
            name="Olivia Other",
            role=UserRole.STUDENT,
        ),
        "recruiter": User(
            email="rita@acme-corp.com",
            name="Rita Recruiter",
            role=UserRole.RECRUITER,
            recruiter_profile={"company": "Acme Corp", "position": "Talent Lead"},
        ),
        "other_recruiter": User(
            email="oscar@globex.com",
            name="Oscar Recruiter",
            role=UserRole.RECRUITER,
            recruiter_profile={"company": "Globex"},
        ),
        "admin": User(
            email="ada@placement-portal.com",
            name="Ada Admin",
            role=UserRole.ADMIN,
        ),
        "suspended_student": User(
            email="sid@university.edu",
            name="Sid Suspended",
            role=UserRole.STUDENT,
            status=UserStatus.SUSPENDED,
        ),
    }
    session.add_all(rows.values())
    await session.commit()
    return rows


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, role=user.role)


@pytest.fixture
def principals(users):
    return {name: principal_for(user) for name, user in users.items()}


@pytest.fixture
def make_job(session, users):
    """Factory creating jobs owned by the default recruiter."""

    async def _make(**overrides) -> Job:
        fields = dict(
            recruiter_id=users["recruiter"].id,
            title="Backend Engineering Intern",
            description="Build APIs with Python.",
            company="Acme Corp",
            location="Berlin",
            job_type=JobType.INTERNSHIP,
            status=JobStatus.ACTIVE,
        )
        fields.update(overrides)
        job = Job(**fields)
        session.add(job)
        await session.commit()
        return job

    return _make


@pytest_asyncio.fixture
async def job(make_job):
    return await make_job()


@pytest.fixture
def past_deadline():
    return now() - timedelta(days=1)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers(users):
    return {name: auth_headers(user) for name, user in users.items()}


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app with the test database."""
    from api.main import app

    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
