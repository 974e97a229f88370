"""
Application Repository

Application rows and the department counter that mirrors them. Every
method that inserts or deletes an application adjusts
``Department.current_applications`` in the same transaction, so the counter
never moves on its own. Commit/rollback is the caller's job.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.ranking import Applicant
from app.infrastructure.db.models.application import Application
from app.infrastructure.db.models.hierarchy import Department
from app.infrastructure.db.models.student import Student
from app.infrastructure.db.repositories.base_repository import BaseRepository


class ApplicationRepository(BaseRepository[Application]):
    """Repository for applications and their department counters."""

    def __init__(self, session: AsyncSession):
        super().__init__(Application, session)

    async def find_in_university(
        self,
        student_id: UUID,
        university_id: UUID
    ) -> Optional[Application]:
        """The student's application in a university, if any (at most one)."""
        stmt = select(Application).where(and_(
            Application.student_id == student_id,
            Application.university_id == university_id,
        ))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find(
        self,
        student_id: UUID,
        department_id: UUID
    ) -> Optional[Application]:
        stmt = select(Application).where(and_(
            Application.student_id == student_id,
            Application.department_id == department_id,
        ))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_student(self, student_id: UUID) -> List[Application]:
        stmt = (
            select(Application)
            .where(Application.student_id == student_id)
            .order_by(Application.submitted_at, Application.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def applicants_for_department(self, department_id: UUID) -> List[Applicant]:
        """Applicants of a department with the GPA they are ranked by."""
        stmt = (
            select(
                Application.id,
                Application.student_id,
                Student.overall_gpa,
                Application.submitted_at,
            )
            .join(Student, Student.id == Application.student_id)
            .where(Application.department_id == department_id)
        )
        result = await self.session.execute(stmt)
        return [
            Applicant(
                application_id=app_id,
                student_id=student_id,
                gpa=gpa,
                submitted_at=submitted_at,
            )
            for app_id, student_id, gpa, submitted_at in result.all()
        ]

    async def add(
        self,
        student_id: UUID,
        department_id: UUID,
        university_id: UUID
    ) -> Application:
        """
        Insert an application and count it on its department.

        Raises:
            IntegrityError: the student already holds an application in
                this university (surfaced at flush)
        """
        application = Application(
            student_id=student_id,
            department_id=department_id,
            university_id=university_id,
        )
        self.session.add(application)
        await self.session.flush()
        await self._adjust_counter(department_id, 1)
        return application

    async def remove(self, application_id: UUID, department_id: UUID) -> bool:
        """Delete an application and uncount it. False if it was already gone."""
        result = await self.session.execute(
            delete(Application).where(Application.id == application_id)
        )
        if result.rowcount == 0:
            return False
        await self._adjust_counter(department_id, -1)
        return True

    async def remove_for_student(self, student_id: UUID) -> List[UUID]:
        """Delete all of a student's applications; returns the departments touched."""
        applications = await self.list_for_student(student_id)
        touched = []
        for application in applications:
            if await self.remove(application.id, application.department_id):
                touched.append(application.department_id)
        return touched

    async def delete_for_departments(self, department_ids: List[UUID]) -> int:
        """
        Drop the applications of departments that are being deleted.

        The departments' counters go away with the departments, so no
        counter is adjusted here.
        """
        if not department_ids:
            return 0
        result = await self.session.execute(
            delete(Application).where(Application.department_id.in_(department_ids))
        )
        return result.rowcount

    async def _adjust_counter(self, department_id: UUID, delta: int) -> None:
        await self.session.execute(
            update(Department)
            .where(Department.id == department_id)
            .values(current_applications=Department.current_applications + delta)
        )
