"""
Test configuration and fixtures for the admissions backend.

Every test gets its own in-memory SQLite database. API tests talk to the
app through httpx with the session dependency pointed at that database.
"""

import pytest
from types import SimpleNamespace
from typing import AsyncGenerator, Callable, Dict, Optional
from uuid import UUID, uuid4

from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from app.infrastructure.db.database import DatabaseManager, get_session
from app.infrastructure.db.models import Application, Department, Student
from app.infrastructure.services.hierarchy_store import HierarchyStore


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application."""
    from app.main import app
    return app


@pytest.fixture
def client(app):
    """Synchronous test client for routes that never touch the database."""
    return TestClient(app)


@pytest.fixture
async def async_client(app, db) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the per-test database."""
    async def override_get_session():
        async with db.session() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_for() -> Callable[[UUID], Dict[str, str]]:
    """Build the Authorization header the identity provider would forward."""
    def _headers(student_id: UUID) -> Dict[str, str]:
        return {"Authorization": f"Bearer {student_id}"}
    return _headers


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def db() -> AsyncGenerator[DatabaseManager, None]:
    """Fresh in-memory database with all tables."""
    manager = DatabaseManager("sqlite+aiosqlite://")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
async def session(db):
    """Session for service-level tests. Seed data is committed separately."""
    async with db.session_factory() as session:
        yield session


@pytest.fixture
async def hierarchy(db) -> SimpleNamespace:
    """
    Two universities:

    Alpha
      Science: Physics (2), Chemistry (3)
      Engineering: Computing (1)
    Beta
      Arts: History (5)
    """
    async with db.session() as session:
        store = HierarchyStore(session)
        alpha = await store.create_university("Alpha")
        science = await store.create_college(alpha.id, "Science")
        physics = await store.create_department(science.id, "Physics", 2)
        chemistry = await store.create_department(science.id, "Chemistry", 3)
        engineering = await store.create_college(alpha.id, "Engineering")
        computing = await store.create_department(engineering.id, "Computing", 1)

        beta = await store.create_university("Beta")
        arts = await store.create_college(beta.id, "Arts")
        history = await store.create_department(arts.id, "History", 5)

        ids = SimpleNamespace(
            alpha=alpha.id,
            science=science.id,
            physics=physics.id,
            chemistry=chemistry.id,
            engineering=engineering.id,
            computing=computing.id,
            beta=beta.id,
            arts=arts.id,
            history=history.id,
        )
    return ids


@pytest.fixture
def make_student(db):
    """Factory: insert a student and return its id."""
    async def _make(
        overall_gpa: Optional[float] = 3.5,
        is_admin: bool = False,
        email: Optional[str] = None,
    ) -> UUID:
        student_id = uuid4()
        async with db.session() as session:
            session.add(Student(
                id=student_id,
                email=email or f"{student_id.hex[:8]}@example.com",
                overall_gpa=overall_gpa,
                is_admin=is_admin,
            ))
        return student_id
    return _make


@pytest.fixture
def read_counter(db):
    """Factory: current_applications of a department, read from the store."""
    async def _read(department_id: UUID) -> int:
        async with db.session() as session:
            return await session.scalar(
                select(Department.current_applications)
                .where(Department.id == department_id)
            )
    return _read


@pytest.fixture
def count_applications(db):
    """Factory: number of application rows, optionally for one department."""
    async def _count(department_id: Optional[UUID] = None) -> int:
        stmt = select(func.count(Application.id))
        if department_id is not None:
            stmt = stmt.where(Application.department_id == department_id)
        async with db.session() as session:
            return await session.scalar(stmt)
    return _count


@pytest.fixture
def assert_counters_match(db):
    """Factory: every department counter equals its number of application rows."""
    async def _check() -> None:
        async with db.session() as session:
            counters = dict((await session.execute(
                select(Department.id, Department.current_applications)
            )).all())
            counts = dict((await session.execute(
                select(Application.department_id, func.count(Application.id))
                .group_by(Application.department_id)
            )).all())
        for department_id, counter in counters.items():
            assert counter == counts.get(department_id, 0), department_id
    return _check
