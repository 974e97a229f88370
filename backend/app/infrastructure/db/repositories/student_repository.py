"""
Student Repository

Student rows keyed by the identity provider's user id.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.student import Student
from app.infrastructure.db.repositories.base_repository import BaseRepository


class StudentRepository(BaseRepository[Student]):
    """
    Repository for students.

    Extends base repository with:
    - get_for_update: row lock serializing one student's applications
    - get_or_create: first contact from the identity provider
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Student, session)

    async def get_for_update(self, student_id: UUID) -> Optional[Student]:
        """
        Load a student and lock the row until the transaction ends.

        SQLite has no row locks; there the unique constraints on
        applications catch racing writers instead.
        """
        stmt = (
            select(Student)
            .where(Student.id == student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        student_id: UUID,
        email: Optional[str] = None
    ) -> Student:
        student = await self.get_by_id(student_id)
        if student:
            return student
        student = Student(id=student_id, email=email)
        self.session.add(student)
        await self.session.flush()
        return student

    async def list_students(self, skip: int = 0, limit: int = 500) -> List[Student]:
        return await self.get_all(skip=skip, limit=limit)

    async def delete_by_id(self, student_id: UUID) -> None:
        await self.session.execute(delete(Student).where(Student.id == student_id))

    async def set_admin(
        self,
        student_id: UUID,
        email: Optional[str] = None,
        is_admin: bool = True
    ) -> Student:
        """Flag a student as administrator, creating the row if needed."""
        student = await self.get_or_create(student_id, email=email)
        if email is not None:
            student.email = email
        student.is_admin = is_admin
        self.session.add(student)
        await self.session.flush()
        return student
