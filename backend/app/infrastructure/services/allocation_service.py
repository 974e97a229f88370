"""
Allocation Service

Owns the rule that a student holds at most one application per
university. Submitting to another department of the same university moves
the application: old row deleted, old counter decremented, new row
inserted, new counter incremented, all in one transaction.

Concurrency:
- The student row is locked (SELECT ... FOR UPDATE) for the whole unit of
  work, so two submits by one student run one after the other.
- The (student, university) unique constraint backs that up on stores
  without row locks. A writer that trips it is rolled back and re-run
  against fresh state, so the last commit wins and no submit is lost.
- Counters change through SQL increments, never read-modify-write.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import ApplicationSummary, DepartmentRanking, SubmitResult
from app.infrastructure.db.repositories.application_repository import ApplicationRepository
from app.infrastructure.db.repositories.student_repository import StudentRepository
from app.infrastructure.exceptions import (
    ConflictError,
    MissingGpaError,
    NotFoundError,
    StoreFailureError,
)
from app.infrastructure.services.hierarchy_store import HierarchyStore
from app.infrastructure.services.ranking_service import RankingService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _SubmitOutcome:
    application: ApplicationSummary
    unchanged: bool = False
    replaced_department_id: Optional[UUID] = None


class AllocationService:
    """
    Applies, withdraws and lists applications.

    Each write commits its own transaction on the injected session and
    rolls it back on any failure.

    Args:
        session: Async database session
        max_attempts: Tries before a racing submit becomes a ConflictError
    """

    def __init__(self, session: AsyncSession, max_attempts: int = 3):
        self.session = session
        self._max_attempts = max_attempts
        self._students = StudentRepository(session)
        self._applications = ApplicationRepository(session)
        self._hierarchy = HierarchyStore(session)
        self._ranking = RankingService(session)

    # =========================================================================
    # Writes
    # =========================================================================

    async def submit(self, student_id: UUID, department_id: UUID) -> SubmitResult:
        """
        Apply to a department, replacing the student's application elsewhere
        in the same university.

        Raises:
            NotFoundError: unknown student or department
            MissingGpaError: the student has no GPA on file
            ConflictError: retries exhausted against concurrent writers
            StoreFailureError: the store rejected the transaction
        """
        outcome = await self._run_atomically(
            "submit", lambda: self._submit_once(student_id, department_id)
        )

        if outcome.unchanged:
            logger.info(f"Student {student_id} already applied to {department_id}")
        elif outcome.replaced_department_id:
            logger.info(
                f"Student {student_id} moved application "
                f"{outcome.replaced_department_id} -> {department_id}"
            )
        else:
            logger.info(f"Student {student_id} applied to {department_id}")

        ranking = await self._ranking.rank(department_id, student_id)
        return SubmitResult(
            unchanged=outcome.unchanged,
            replaced=outcome.replaced_department_id is not None,
            replaced_department_id=outcome.replaced_department_id,
            application=outcome.application,
            ranking=ranking,
        )

    async def withdraw(self, student_id: UUID, department_id: UUID) -> None:
        """
        Withdraw the student's application to a department.

        Raises:
            NotFoundError: no such application (already withdrawn)
        """
        async def work() -> None:
            await self._students.get_for_update(student_id)
            application = await self._applications.find(student_id, department_id)
            if application is None or not await self._applications.remove(
                application.id, department_id
            ):
                raise NotFoundError("Application not found", resource="application")

        await self._run_atomically("withdraw", work)
        logger.info(f"Student {student_id} withdrew from {department_id}")

    async def purge_student(self, student_id: UUID) -> List[UUID]:
        """Delete a student and uncount their applications. Returns departments touched."""
        async def work() -> List[UUID]:
            student = await self._students.get_for_update(student_id)
            if student is None:
                raise NotFoundError("Student not found", resource="student")
            touched = await self._applications.remove_for_student(student_id)
            await self._students.delete_by_id(student_id)
            return touched

        touched = await self._run_atomically("purge_student", work)
        logger.info(f"Deleted student {student_id} and {len(touched)} applications")
        return touched

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_for_department(
        self,
        department_id: UUID,
        requesting_student_id: Optional[UUID] = None
    ) -> DepartmentRanking:
        return await self._ranking.rank(department_id, requesting_student_id)

    async def list_for_student(self, student_id: UUID) -> List[ApplicationSummary]:
        applications = await self._applications.list_for_student(student_id)
        return [ApplicationSummary.model_validate(a) for a in applications]

    # =========================================================================
    # Internals
    # =========================================================================

    async def _submit_once(self, student_id: UUID, department_id: UUID) -> _SubmitOutcome:
        student = await self._students.get_for_update(student_id)
        if student is None:
            raise NotFoundError("Student not found", resource="student")
        if student.overall_gpa is None:
            raise MissingGpaError()

        university_id = await self._hierarchy.university_of_department(department_id)
        existing = await self._applications.find_in_university(student_id, university_id)

        if existing and existing.department_id == department_id:
            return _SubmitOutcome(
                application=ApplicationSummary.model_validate(existing),
                unchanged=True,
            )

        replaced_department_id = None
        if existing:
            replaced_department_id = existing.department_id
            await self._applications.remove(existing.id, replaced_department_id)

        application = await self._applications.add(student_id, department_id, university_id)
        return _SubmitOutcome(
            application=ApplicationSummary.model_validate(application),
            replaced_department_id=replaced_department_id,
        )

    async def _run_atomically(
        self,
        operation: str,
        work: Callable[[], Awaitable[T]]
    ) -> T:
        """Run ``work`` and commit; roll back on failure, retry lost races."""
        for attempt in range(1, self._max_attempts + 1):
            try:
                result = await work()
                await self.session.commit()
                return result
            except IntegrityError as e:
                await self.session.rollback()
                if attempt == self._max_attempts:
                    logger.error(f"{operation} gave up after {attempt} attempts: {e}")
                    raise ConflictError(
                        "The application changed concurrently, please try again",
                        operation=operation,
                        resource="application",
                        original_error=e,
                    ) from e
                logger.warning(
                    f"{operation} lost a race (attempt {attempt}/{self._max_attempts}), retrying"
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"{operation} failed: {e}")
                raise StoreFailureError(
                    "Could not save the application",
                    operation=operation,
                    resource="application",
                    original_error=e,
                ) from e
            except Exception:
                await self.session.rollback()
                raise
        raise AssertionError("unreachable")
