"""
Ranking Service

Read-side projection of a department's applicants ordered by GPA. Nothing
is cached: each call reads the current applications and sorts them, which
is cheap at the tens-to-hundreds of applicants a department sees.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.models import DepartmentRanking
from app.domain.ranking import rank_applicants
from app.infrastructure.db.models.hierarchy import Department
from app.infrastructure.db.repositories.application_repository import ApplicationRepository
from app.infrastructure.exceptions import NotFoundError


class RankingService:
    """Builds ranking snapshots; never writes."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._applications = ApplicationRepository(session)

    async def rank(
        self,
        department_id: UUID,
        requesting_student_id: Optional[UUID] = None
    ) -> DepartmentRanking:
        """
        Rank a department's applicants, highest GPA first.

        Args:
            department_id: Department to rank
            requesting_student_id: Flag this student's entry, if present

        Raises:
            NotFoundError: the department does not exist
        """
        # Column select so a stale identity-map row never hides the counter
        result = await self.session.execute(
            select(
                Department.name,
                Department.capacity,
                Department.current_applications,
            ).where(Department.id == department_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Department not found", resource="department")
        name, capacity, current_applications = row

        applicants = await self._applications.applicants_for_department(department_id)
        entries = rank_applicants(applicants, requesting_student_id)

        requesting_rank = next(
            (entry.rank for entry in entries if entry.is_requesting_student),
            None,
        )

        return DepartmentRanking(
            department_id=department_id,
            department_name=name,
            capacity=capacity,
            current_applications=current_applications,
            applicant_count=len(entries),
            over_capacity=len(entries) > capacity,
            requesting_student_rank=requesting_rank,
            entries=entries,
        )
