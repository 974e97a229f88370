"""
Application Routes

Apply to a department, withdraw, and read department rankings.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from app.api.dependencies import (
    AllocationServiceDep,
    CurrentStudentId,
    OptionalStudentId,
)
from app.domain.models import ApplicationSummary, DepartmentRanking, SubmitResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["applications"])


class SubmitRequest(BaseModel):
    department_id: UUID


@router.get("/applications", response_model=DepartmentRanking)
async def get_department_ranking(
    allocation: AllocationServiceDep,
    student_id: OptionalStudentId,
    department_id: UUID = Query(...),
):
    """Applicants of a department ranked by GPA; the caller's entry is flagged."""
    return await allocation.list_for_department(department_id, student_id)


@router.post("/applications", response_model=SubmitResult)
async def submit_application(
    request: SubmitRequest,
    student_id: CurrentStudentId,
    allocation: AllocationServiceDep,
):
    """
    Apply to a department.

    Any existing application in the same university is replaced.
    """
    return await allocation.submit(student_id, request.department_id)


@router.get("/applications/me", response_model=List[ApplicationSummary])
async def get_my_applications(
    student_id: CurrentStudentId,
    allocation: AllocationServiceDep,
):
    """The caller's active applications, one per university at most."""
    return await allocation.list_for_student(student_id)


@router.delete("/applications/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw_application(
    department_id: UUID,
    student_id: CurrentStudentId,
    allocation: AllocationServiceDep,
):
    """Withdraw the caller's application to a department."""
    await allocation.withdraw(student_id, department_id)
