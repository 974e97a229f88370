"""
Domain Models for the Admissions Backend

Pydantic models returned by the services and relayed by the API.
These carry no ORM state.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RankingEntry(BaseModel):
    """One applicant in a department ranking."""
    rank: int = Field(..., ge=1)
    gpa: Optional[float]
    is_requesting_student: bool = False


class DepartmentRanking(BaseModel):
    """Ranking snapshot for one department, highest GPA first."""
    department_id: UUID
    department_name: str
    capacity: int
    current_applications: int
    applicant_count: int
    over_capacity: bool
    requesting_student_rank: Optional[int] = None
    entries: List[RankingEntry] = Field(default_factory=list)


class ApplicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    department_id: UUID
    university_id: UUID
    submitted_at: datetime


class SubmitResult(BaseModel):
    """Outcome of a submit: the active application and the fresh ranking."""
    success: bool = True
    unchanged: bool = False
    replaced: bool = False
    replaced_department_id: Optional[UUID] = None
    application: ApplicationSummary
    ranking: DepartmentRanking


class MergeResult(BaseModel):
    """Counts reported by a bulk hierarchy import."""
    success: bool = True
    added: int = 0
    new_universities: int = 0
    new_colleges: int = 0
    new_departments: int = 0
    skipped: int = 0
    message: str = ""


# =============================================================================
# Catalogue views
# =============================================================================

class DepartmentView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    capacity: int
    current_applications: int
    ranking: Optional[DepartmentRanking] = None


class CollegeView(BaseModel):
    id: UUID
    name: str
    departments: List[DepartmentView] = Field(default_factory=list)


class UniversityView(BaseModel):
    id: UUID
    name: str
    colleges: List[CollegeView] = Field(default_factory=list)
