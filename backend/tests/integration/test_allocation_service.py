"""
Integration tests for the allocation service against SQLite.

Verifies:
- One application per student per university
- Department counters always equal their application rows
- Submits are idempotent and switches are atomic
- Lost races are retried, then reported as conflicts
- Truly concurrent submits by one student leave one application
"""

import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.infrastructure.db.database import DatabaseManager
from app.infrastructure.db.models import Application, Department, Student
from app.infrastructure.db.repositories.application_repository import ApplicationRepository
from app.infrastructure.exceptions import (
    AdmissionsError,
    ConflictError,
    MissingGpaError,
    NotFoundError,
    StoreFailureError,
)
from app.infrastructure.services.allocation_service import AllocationService
from app.infrastructure.services.hierarchy_store import HierarchyStore


@pytest.fixture
def allocation(session):
    return AllocationService(session, max_attempts=3)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_first_submit_creates_application(
        self, allocation, hierarchy, make_student, read_counter, count_applications
    ):
        student_id = await make_student(3.9)

        result = await allocation.submit(student_id, hierarchy.physics)

        assert result.success is True
        assert result.unchanged is False
        assert result.replaced is False
        assert result.application.department_id == hierarchy.physics
        assert result.application.university_id == hierarchy.alpha
        assert result.ranking.applicant_count == 1
        assert result.ranking.requesting_student_rank == 1
        assert await read_counter(hierarchy.physics) == 1
        assert await count_applications(hierarchy.physics) == 1

    @pytest.mark.asyncio
    async def test_submitting_twice_is_a_no_op(
        self, allocation, hierarchy, make_student, read_counter, count_applications
    ):
        student_id = await make_student(3.9)
        first = await allocation.submit(student_id, hierarchy.physics)

        second = await allocation.submit(student_id, hierarchy.physics)

        assert second.unchanged is True
        assert second.application.id == first.application.id
        assert await read_counter(hierarchy.physics) == 1
        assert await count_applications() == 1

    @pytest.mark.asyncio
    async def test_switch_within_university_moves_application(
        self, allocation, hierarchy, make_student, read_counter, assert_counters_match
    ):
        student_id = await make_student(3.2)
        await allocation.submit(student_id, hierarchy.physics)

        result = await allocation.submit(student_id, hierarchy.computing)

        assert result.replaced is True
        assert result.replaced_department_id == hierarchy.physics
        assert await read_counter(hierarchy.physics) == 0
        assert await read_counter(hierarchy.computing) == 1

        applications = await allocation.list_for_student(student_id)
        assert [a.department_id for a in applications] == [hierarchy.computing]
        await assert_counters_match()

    @pytest.mark.asyncio
    async def test_other_university_is_left_alone(
        self, allocation, hierarchy, make_student, read_counter
    ):
        student_id = await make_student(3.2)
        await allocation.submit(student_id, hierarchy.physics)

        result = await allocation.submit(student_id, hierarchy.history)

        assert result.replaced is False
        assert await read_counter(hierarchy.physics) == 1
        assert await read_counter(hierarchy.history) == 1
        applications = await allocation.list_for_student(student_id)
        assert {a.university_id for a in applications} == {hierarchy.alpha, hierarchy.beta}

    @pytest.mark.asyncio
    async def test_missing_gpa_changes_nothing(
        self, allocation, hierarchy, make_student, read_counter, count_applications
    ):
        student_id = await make_student(None)

        with pytest.raises(MissingGpaError):
            await allocation.submit(student_id, hierarchy.physics)

        assert await read_counter(hierarchy.physics) == 0
        assert await count_applications() == 0

    @pytest.mark.asyncio
    async def test_not_provided_gpa_may_apply(self, allocation, hierarchy, make_student):
        """-1 means no semesters were entered, which is still a saved GPA."""
        student_id = await make_student(-1.0)

        result = await allocation.submit(student_id, hierarchy.physics)

        assert result.ranking.entries[0].gpa == -1.0

    @pytest.mark.asyncio
    async def test_unknown_department(self, allocation, make_student):
        from uuid import uuid4
        student_id = await make_student(3.0)

        with pytest.raises(NotFoundError):
            await allocation.submit(student_id, uuid4())

    @pytest.mark.asyncio
    async def test_unknown_student(self, allocation, hierarchy, count_applications):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            await allocation.submit(uuid4(), hierarchy.physics)
        assert await count_applications() == 0

    @pytest.mark.asyncio
    async def test_ranking_orders_by_gpa(self, allocation, hierarchy, make_student):
        students = [await make_student(gpa) for gpa in (3.8, 4.2, 4.0)]
        for student_id in students:
            result = await allocation.submit(student_id, hierarchy.physics)

        ranking = result.ranking
        assert [e.gpa for e in ranking.entries] == [4.2, 4.0, 3.8]
        assert ranking.requesting_student_rank == 2
        assert ranking.applicant_count == 3
        assert ranking.current_applications == 3
        # Physics takes 2; capacity is advisory
        assert ranking.over_capacity is True


class TestWithdraw:

    @pytest.mark.asyncio
    async def test_withdraw_removes_application(
        self, allocation, hierarchy, make_student, read_counter, count_applications
    ):
        student_id = await make_student(3.0)
        await allocation.submit(student_id, hierarchy.chemistry)

        await allocation.withdraw(student_id, hierarchy.chemistry)

        assert await read_counter(hierarchy.chemistry) == 0
        assert await count_applications() == 0

    @pytest.mark.asyncio
    async def test_withdraw_twice_is_not_found(
        self, allocation, hierarchy, make_student, read_counter
    ):
        student_id = await make_student(3.0)
        await allocation.submit(student_id, hierarchy.chemistry)
        await allocation.withdraw(student_id, hierarchy.chemistry)

        with pytest.raises(NotFoundError):
            await allocation.withdraw(student_id, hierarchy.chemistry)
        assert await read_counter(hierarchy.chemistry) == 0


class TestPurgeStudent:

    @pytest.mark.asyncio
    async def test_purge_uncounts_every_application(
        self, allocation, session, hierarchy, make_student, read_counter, assert_counters_match
    ):
        student_id = await make_student(3.0)
        other_id = await make_student(2.0)
        await allocation.submit(student_id, hierarchy.physics)
        await allocation.submit(student_id, hierarchy.history)
        await allocation.submit(other_id, hierarchy.physics)

        touched = await allocation.purge_student(student_id)

        assert set(touched) == {hierarchy.physics, hierarchy.history}
        assert await read_counter(hierarchy.physics) == 1
        assert await read_counter(hierarchy.history) == 0
        assert await session.scalar(select(Student.id).where(Student.id == student_id)) is None
        await assert_counters_match()

    @pytest.mark.asyncio
    async def test_purge_unknown_student(self, allocation):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            await allocation.purge_student(uuid4())


class TestRacesAndFailures:

    @pytest.mark.asyncio
    async def test_lost_race_is_retried(
        self, allocation, hierarchy, make_student, monkeypatch, read_counter, assert_counters_match
    ):
        """
        A writer that misses a concurrent insert trips the unique constraint,
        rolls back and succeeds on the next attempt.
        """
        student_id = await make_student(3.4)
        await allocation.submit(student_id, hierarchy.physics)

        original = ApplicationRepository.find_in_university
        calls = {"count": 0}

        async def stale_first_read(self, student_id, university_id):
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return await original(self, student_id, university_id)

        monkeypatch.setattr(ApplicationRepository, "find_in_university", stale_first_read)

        result = await allocation.submit(student_id, hierarchy.chemistry)

        assert calls["count"] == 2
        assert result.replaced_department_id == hierarchy.physics
        assert await read_counter(hierarchy.physics) == 0
        assert await read_counter(hierarchy.chemistry) == 1
        await assert_counters_match()

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_conflict(
        self, session, hierarchy, make_student, monkeypatch, read_counter, count_applications
    ):
        allocation = AllocationService(session, max_attempts=2)
        student_id = await make_student(3.4)
        await allocation.submit(student_id, hierarchy.physics)

        async def always_stale(self, student_id, university_id):
            return None

        monkeypatch.setattr(ApplicationRepository, "find_in_university", always_stale)

        with pytest.raises(ConflictError):
            await allocation.submit(student_id, hierarchy.chemistry)

        assert await read_counter(hierarchy.physics) == 1
        assert await read_counter(hierarchy.chemistry) == 0
        assert await count_applications() == 1

    @pytest.mark.asyncio
    async def test_store_failure_rolls_back_switch(
        self, allocation, session, hierarchy, make_student, monkeypatch, read_counter
    ):
        """The old application survives when inserting the new one fails."""
        student_id = await make_student(3.4)
        await allocation.submit(student_id, hierarchy.physics)

        async def failing_add(self, student_id, department_id, university_id):
            raise OperationalError("INSERT INTO applications", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ApplicationRepository, "add", failing_add)

        with pytest.raises(StoreFailureError):
            await allocation.submit(student_id, hierarchy.chemistry)

        assert await read_counter(hierarchy.physics) == 1
        assert await read_counter(hierarchy.chemistry) == 0
        remaining = await session.scalar(
            select(Application.department_id).where(Application.student_id == student_id)
        )
        assert remaining == hierarchy.physics

    @pytest.mark.asyncio
    async def test_many_students_keep_counters_consistent(
        self, allocation, hierarchy, make_student, assert_counters_match
    ):
        students = [await make_student(2.0 + i / 10) for i in range(6)]
        departments = [hierarchy.physics, hierarchy.chemistry, hierarchy.computing]

        for i, student_id in enumerate(students):
            await allocation.submit(student_id, departments[i % 3])
            await allocation.submit(student_id, departments[(i + 1) % 3])
            await allocation.submit(student_id, hierarchy.history)
        for student_id in students[:2]:
            await allocation.withdraw(student_id, hierarchy.history)

        await assert_counters_match()


@pytest.fixture
async def file_db(tmp_path):
    """File-backed database, so each session gets its own connection."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'admissions.db'}")
    await manager.create_tables()
    yield manager
    await manager.drop_tables()
    await manager.close()


class TestConcurrentSubmits:

    @pytest.mark.asyncio
    async def test_two_departments_of_one_university(self, file_db):
        async with file_db.session() as session:
            store = HierarchyStore(session)
            university = await store.create_university("Alpha")
            college = await store.create_college(university.id, "Science")
            first = await store.create_department(college.id, "Physics", 2)
            second = await store.create_department(college.id, "Chemistry", 2)
            student = Student(email="racer@example.com", overall_gpa=3.7)
            session.add(student)
        department_ids = [first.id, second.id]

        async def submit(department_id):
            async with file_db.session_factory() as session:
                return await AllocationService(session).submit(student.id, department_id)

        results = await asyncio.gather(
            *(submit(department_id) for department_id in department_ids),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        failed = [r for r in results if isinstance(r, BaseException)]
        assert succeeded
        # A loser may only surface as a categorized store error
        assert all(isinstance(e, AdmissionsError) for e in failed)

        async with file_db.session() as session:
            applications = (await session.execute(
                select(Application.department_id).where(Application.student_id == student.id)
            )).scalars().all()
            counters = [
                await session.scalar(
                    select(Department.current_applications).where(Department.id == department_id)
                )
                for department_id in department_ids
            ]

        assert len(applications) == 1
        assert sorted(counters) == [0, 1]
        assert counters[department_ids.index(applications[0])] == 1
