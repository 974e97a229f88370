"""
Application SQLModel

One student's intent to enroll in one department. ``university_id`` is
copied from the department's college so the one-application-per-university
rule can be declared as a unique constraint.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from app.infrastructure.db.models.base import BaseModel, utcnow


class Application(BaseModel, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "university_id", name="uq_applications_student_university"
        ),
        UniqueConstraint(
            "student_id", "department_id", name="uq_applications_student_department"
        ),
    )

    student_id: UUID = Field(
        ...,
        foreign_key="students.id",
        ondelete="CASCADE",
        index=True,
    )
    department_id: UUID = Field(
        ...,
        foreign_key="departments.id",
        ondelete="CASCADE",
        index=True,
    )
    university_id: UUID = Field(
        ...,
        foreign_key="universities.id",
        ondelete="CASCADE",
        index=True,
    )
    submitted_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        description="Submission time, used as the ranking tiebreak"
    )
