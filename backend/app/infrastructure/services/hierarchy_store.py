"""
Hierarchy Store

University -> College -> Department CRUD with cascading deletes, plus the
lookups other components rely on (department -> university, natural-key
indexes for imports). Every hierarchy write goes through this class.

Methods flush but never commit. Callers either own the transaction or hand
the unit of work to ``run_write``, which commits it and maps store errors.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Tuple, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import CollegeView, DepartmentView, UniversityView
from app.infrastructure.db.models.hierarchy import College, Department, University
from app.infrastructure.db.repositories.application_repository import ApplicationRepository
from app.infrastructure.db.repositories.hierarchy_repository import (
    CollegeRepository,
    DepartmentRepository,
    UniversityRepository,
)
from app.infrastructure.exceptions import (
    AdmissionsError,
    ConflictError,
    NotFoundError,
    StoreFailureError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HierarchyStore:
    """Owner of university, college and department rows."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.universities = UniversityRepository(session)
        self.colleges = CollegeRepository(session)
        self.departments = DepartmentRepository(session)
        self._applications = ApplicationRepository(session)

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_university(self, university_id: UUID) -> University:
        university = await self.universities.get_by_id(university_id)
        if not university:
            raise NotFoundError("University not found", resource="university")
        return university

    async def get_college(self, college_id: UUID) -> College:
        college = await self.colleges.get_by_id(college_id)
        if not college:
            raise NotFoundError("College not found", resource="college")
        return college

    async def get_department(self, department_id: UUID) -> Department:
        department = await self.departments.get_by_id(department_id)
        if not department:
            raise NotFoundError("Department not found", resource="department")
        return department

    async def university_of_department(self, department_id: UUID) -> UUID:
        """
        Resolve the university a department belongs to.

        Raises:
            NotFoundError: the department does not exist
        """
        university_id = await self.departments.university_id_for(department_id)
        if university_id is None:
            raise NotFoundError("Department not found", resource="department")
        return university_id

    async def colleges_of(self, university_id: UUID) -> List[College]:
        return await self.colleges.list_for_university(university_id)

    async def departments_of(self, college_id: UUID) -> List[Department]:
        """Departments of a college in insertion order."""
        return await self.departments.list_for_college(college_id)

    async def university_index(self) -> Dict[str, UUID]:
        return await self.universities.name_index()

    async def college_index(self) -> Dict[Tuple[UUID, str], UUID]:
        return await self.colleges.key_index()

    async def department_index(self) -> Dict[Tuple[UUID, str], UUID]:
        return await self.departments.key_index()

    # =========================================================================
    # Tree views
    # =========================================================================

    async def list_tree(self) -> List[UniversityView]:
        """Every university with its colleges and departments, in three queries."""
        universities = await self.universities.list_all()
        return await self._build_tree(universities)

    async def get_tree(self, university_id: UUID) -> UniversityView:
        university = await self.get_university(university_id)
        trees = await self._build_tree([university])
        return trees[0]

    async def _build_tree(self, universities: List[University]) -> List[UniversityView]:
        colleges = await self.colleges.list_for_universities(u.id for u in universities)
        departments = await self.departments.list_for_colleges(c.id for c in colleges)

        departments_by_college: Dict[UUID, List[DepartmentView]] = {}
        for department in departments:
            departments_by_college.setdefault(department.college_id, []).append(
                DepartmentView.model_validate(department)
            )

        colleges_by_university: Dict[UUID, List[CollegeView]] = {}
        for college in colleges:
            colleges_by_university.setdefault(college.university_id, []).append(
                CollegeView(
                    id=college.id,
                    name=college.name,
                    departments=departments_by_college.get(college.id, []),
                )
            )

        return [
            UniversityView(
                id=university.id,
                name=university.name,
                colleges=colleges_by_university.get(university.id, []),
            )
            for university in universities
        ]

    # =========================================================================
    # Writes
    # =========================================================================

    async def run_write(
        self,
        operation: str,
        resource: str,
        work: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run ``work`` and commit it as one transaction.

        Raises:
            ConflictError: a unique constraint rejected the commit
            StoreFailureError: any other store error; nothing is kept
        """
        try:
            result = await work()
            await self.session.commit()
            return result
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(f"{operation} {resource} collided with a concurrent write: {e}")
            raise ConflictError(
                f"The {resource} changed concurrently, please retry",
                operation=operation,
                resource=resource,
                original_error=e,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"{operation} {resource} failed: {e}")
            raise StoreFailureError(
                f"Could not {operation} the {resource}",
                operation=operation,
                resource=resource,
                original_error=e,
            ) from e
        except AdmissionsError:
            await self.session.rollback()
            raise

    async def create_university(self, name: str) -> University:
        name = name.strip()
        if await self.universities.get_by_name(name):
            raise ConflictError(
                f"University '{name}' already exists",
                operation="create",
                resource="university",
            )
        try:
            return await self.universities.create(name)
        except IntegrityError as e:
            raise ConflictError(
                f"University '{name}' already exists",
                operation="create",
                resource="university",
                original_error=e,
            ) from e

    async def create_college(self, university_id: UUID, name: str) -> College:
        await self.get_university(university_id)
        name = name.strip()
        if await self.colleges.get_by_name(university_id, name):
            raise ConflictError(
                f"College '{name}' already exists in this university",
                operation="create",
                resource="college",
            )
        try:
            return await self.colleges.create(university_id, name)
        except IntegrityError as e:
            raise ConflictError(
                f"College '{name}' already exists in this university",
                operation="create",
                resource="college",
                original_error=e,
            ) from e

    async def create_department(
        self,
        college_id: UUID,
        name: str,
        capacity: int
    ) -> Department:
        await self.get_college(college_id)
        name = name.strip()
        if await self.departments.get_by_name(college_id, name):
            raise ConflictError(
                f"Department '{name}' already exists in this college",
                operation="create",
                resource="department",
            )
        try:
            return await self.departments.create(college_id, name, capacity)
        except IntegrityError as e:
            raise ConflictError(
                f"Department '{name}' already exists in this college",
                operation="create",
                resource="department",
                original_error=e,
            ) from e

    async def update_capacity(self, department_id: UUID, capacity: int) -> Department:
        """Change a department's advisory capacity; the counter is untouched."""
        if not await self.departments.set_capacity(department_id, capacity):
            raise NotFoundError("Department not found", resource="department")
        department = await self.get_department(department_id)
        await self.session.refresh(department)
        return department

    async def delete_university(self, university_id: UUID) -> int:
        """Delete a university and everything under it. Returns applications removed."""
        await self.get_university(university_id)
        college_ids = await self.colleges.ids_for_university(university_id)
        department_ids = await self.departments.ids_for_colleges(college_ids)

        removed = await self._applications.delete_for_departments(department_ids)
        await self.departments.delete_many(department_ids)
        await self.colleges.delete_many(college_ids)
        await self.universities.delete_by_id(university_id)

        logger.info(
            f"Deleted university {university_id}: {len(college_ids)} colleges, "
            f"{len(department_ids)} departments, {removed} applications"
        )
        return removed

    async def delete_college(self, college_id: UUID) -> int:
        await self.get_college(college_id)
        department_ids = await self.departments.ids_for_colleges([college_id])

        removed = await self._applications.delete_for_departments(department_ids)
        await self.departments.delete_many(department_ids)
        await self.colleges.delete_many([college_id])

        logger.info(
            f"Deleted college {college_id}: {len(department_ids)} departments, "
            f"{removed} applications"
        )
        return removed

    async def delete_department(self, department_id: UUID) -> int:
        await self.get_department(department_id)
        removed = await self._applications.delete_for_departments([department_id])
        await self.departments.delete_many([department_id])

        logger.info(f"Deleted department {department_id}: {removed} applications")
        return removed
