"""
Profile Routes

The caller's student record: name and grades. The first save creates the
record for the id the identity provider handed us.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import AllocationServiceDep, CurrentStudentId, SessionDep
from app.domain.gpa import SEMESTER_FIELDS, profile_grades
from app.infrastructure.db.models.student import Student
from app.infrastructure.db.repositories.student_repository import StudentRepository
from app.infrastructure.exceptions import StoreFailureError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profile"])


# ============================================================================
# Request/Response Models
# ============================================================================

class ProfileUpdateRequest(BaseModel):
    """Grades arrive either as one overall GPA or as up to five semester GPAs."""
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    use_overall_gpa: bool = False
    overall_gpa: Optional[float] = Field(None, ge=0.0, le=4.5)
    semester_gpas: Optional[List[Optional[float]]] = Field(
        None, max_length=len(SEMESTER_FIELDS)
    )

    @model_validator(mode="after")
    def require_overall_when_selected(self) -> "ProfileUpdateRequest":
        if self.use_overall_gpa and self.overall_gpa is None:
            raise ValueError("overall_gpa is required when use_overall_gpa is true")
        return self


class ProfileResponse(BaseModel):
    id: UUID
    email: Optional[str]
    name: Optional[str]
    is_admin: bool
    overall_gpa: Optional[float]
    semester_gpas: List[float]


def _student_to_response(student: Student) -> ProfileResponse:
    return ProfileResponse(
        id=student.id,
        email=student.email,
        name=student.name,
        is_admin=student.is_admin,
        overall_gpa=student.overall_gpa,
        semester_gpas=[getattr(student, field) for field in SEMESTER_FIELDS],
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/profile", response_model=ProfileResponse)
async def get_profile(student_id: CurrentStudentId, session: SessionDep):
    """Get the caller's profile."""
    student = await StudentRepository(session).get_by_id(student_id)
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    return _student_to_response(student)


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    student_id: CurrentStudentId,
    session: SessionDep,
):
    """Save name and grades; overall GPA is recomputed from semesters unless given."""
    grades = profile_grades(
        request.use_overall_gpa,
        request.overall_gpa,
        request.semester_gpas,
    )

    try:
        student = await StudentRepository(session).get_or_create(
            student_id, email=request.email
        )
        if request.name is not None:
            student.name = request.name
        if request.email is not None:
            student.email = request.email
        for field, value in grades.items():
            setattr(student, field, value)

        session.add(student)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Saving profile {student_id} failed: {e}")
        raise StoreFailureError(
            "Could not save the profile",
            operation="update",
            resource="profile",
            original_error=e,
        ) from e

    logger.info(f"Student {student_id} saved grades (overall {student.overall_gpa})")
    return _student_to_response(student)


@router.delete("/profile", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    student_id: CurrentStudentId,
    allocation: AllocationServiceDep,
):
    """Delete the caller's record and withdraw all of their applications."""
    await allocation.purge_student(student_id)
