"""
University Catalogue Routes

Public read access to the university -> college -> department tree.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter

from app.api.dependencies import (
    HierarchyStoreDep,
    OptionalStudentId,
    RankingServiceDep,
)
from app.domain.models import UniversityView

router = APIRouter(prefix="/api", tags=["universities"])


@router.get("/universities", response_model=List[UniversityView])
async def list_universities(store: HierarchyStoreDep):
    """All universities with their colleges and departments."""
    return await store.list_tree()


@router.get("/universities/{university_id}", response_model=UniversityView)
async def get_university(
    university_id: UUID,
    store: HierarchyStoreDep,
    ranking: RankingServiceDep,
    student_id: OptionalStudentId,
):
    """One university, with the current ranking of every department."""
    tree = await store.get_tree(university_id)
    for college in tree.colleges:
        for department in college.departments:
            department.ranking = await ranking.rank(department.id, student_id)
    return tree
