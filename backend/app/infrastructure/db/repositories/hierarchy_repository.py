"""
Hierarchy Repositories

Row access for universities, colleges and departments:
- UniversityRepository: lookup by name, name index for imports
- CollegeRepository: children of a university in insertion order
- DepartmentRepository: children of a college, department -> university

These never touch ``Department.current_applications``; that column belongs
to ApplicationRepository.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.hierarchy import University, College, Department
from app.infrastructure.db.repositories.base_repository import BaseRepository


class UniversityRepository(BaseRepository[University]):
    """Repository for universities."""

    def __init__(self, session: AsyncSession):
        super().__init__(University, session)

    async def list_all(self) -> List[University]:
        stmt = select(University).order_by(University.created_at, University.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_name(self, name: str) -> Optional[University]:
        stmt = select(University).where(University.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def name_index(self) -> Dict[str, UUID]:
        """Map every university name to its id in one query."""
        result = await self.session.execute(select(University.name, University.id))
        return {name: id for name, id in result.all()}

    async def create(self, name: str) -> University:
        university = University(name=name)
        self.session.add(university)
        await self.session.flush()
        return university

    async def delete_by_id(self, university_id: UUID) -> None:
        await self.session.execute(
            delete(University).where(University.id == university_id)
        )


class CollegeRepository(BaseRepository[College]):
    """Repository for colleges, scoped to their university."""

    def __init__(self, session: AsyncSession):
        super().__init__(College, session)

    async def list_for_universities(
        self,
        university_ids: Iterable[UUID]
    ) -> List[College]:
        """Colleges of the given universities, each university's in insertion order."""
        ids = list(university_ids)
        if not ids:
            return []
        stmt = (
            select(College)
            .where(College.university_id.in_(ids))
            .order_by(College.position, College.created_at, College.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_university(self, university_id: UUID) -> List[College]:
        return await self.list_for_universities([university_id])

    async def get_by_name(self, university_id: UUID, name: str) -> Optional[College]:
        stmt = select(College).where(
            College.university_id == university_id,
            College.name == name,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def key_index(self) -> Dict[Tuple[UUID, str], UUID]:
        """Map (university_id, college name) to college id."""
        result = await self.session.execute(
            select(College.university_id, College.name, College.id)
        )
        return {(uid, name): cid for uid, name, cid in result.all()}

    async def create(self, university_id: UUID, name: str) -> College:
        next_position = await self.session.execute(
            select(func.coalesce(func.max(College.position) + 1, 0))
            .where(College.university_id == university_id)
        )
        college = College(
            university_id=university_id,
            name=name,
            position=next_position.scalar_one(),
        )
        self.session.add(college)
        await self.session.flush()
        return college

    async def ids_for_university(self, university_id: UUID) -> List[UUID]:
        result = await self.session.execute(
            select(College.id).where(College.university_id == university_id)
        )
        return list(result.scalars().all())

    async def delete_many(self, college_ids: List[UUID]) -> None:
        if college_ids:
            await self.session.execute(
                delete(College).where(College.id.in_(college_ids))
            )


class DepartmentRepository(BaseRepository[Department]):
    """Repository for departments, scoped to their college."""

    def __init__(self, session: AsyncSession):
        super().__init__(Department, session)

    async def list_for_colleges(self, college_ids: Iterable[UUID]) -> List[Department]:
        ids = list(college_ids)
        if not ids:
            return []
        stmt = (
            select(Department)
            .where(Department.college_id.in_(ids))
            .order_by(Department.position, Department.created_at, Department.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_college(self, college_id: UUID) -> List[Department]:
        return await self.list_for_colleges([college_id])

    async def get_by_name(self, college_id: UUID, name: str) -> Optional[Department]:
        stmt = select(Department).where(
            Department.college_id == college_id,
            Department.name == name,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def key_index(self) -> Dict[Tuple[UUID, str], UUID]:
        """Map (college_id, department name) to department id."""
        result = await self.session.execute(
            select(Department.college_id, Department.name, Department.id)
        )
        return {(cid, name): did for cid, name, did in result.all()}

    async def create(self, college_id: UUID, name: str, capacity: int) -> Department:
        next_position = await self.session.execute(
            select(func.coalesce(func.max(Department.position) + 1, 0))
            .where(Department.college_id == college_id)
        )
        department = Department(
            college_id=college_id,
            name=name,
            capacity=capacity,
            current_applications=0,
            position=next_position.scalar_one(),
        )
        self.session.add(department)
        await self.session.flush()
        return department

    async def set_capacity(self, department_id: UUID, capacity: int) -> bool:
        result = await self.session.execute(
            update(Department)
            .where(Department.id == department_id)
            .values(capacity=capacity)
        )
        return result.rowcount > 0

    async def university_id_for(self, department_id: UUID) -> Optional[UUID]:
        stmt = (
            select(College.university_id)
            .join(Department, Department.college_id == College.id)
            .where(Department.id == department_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def ids_for_colleges(self, college_ids: List[UUID]) -> List[UUID]:
        if not college_ids:
            return []
        result = await self.session.execute(
            select(Department.id).where(Department.college_id.in_(college_ids))
        )
        return list(result.scalars().all())

    async def delete_many(self, department_ids: List[UUID]) -> None:
        if department_ids:
            await self.session.execute(
                delete(Department).where(Department.id.in_(department_ids))
            )
