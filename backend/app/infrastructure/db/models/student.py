"""
Student SQLModel

The id is the identity provider's user id. GPA components use -1 for
"not provided"; ``overall_gpa`` stays NULL until the student first saves
their grades.
"""

from typing import Optional

from sqlmodel import Field, SQLModel

from app.domain.gpa import NOT_PROVIDED
from app.infrastructure.db.models.base import BaseModel


class StudentBase(SQLModel):
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    name: Optional[str] = Field(default=None, max_length=100)

    overall_gpa: Optional[float] = Field(
        default=None,
        description="Aggregate GPA used for ranking; -1 when no component was given"
    )
    gpa_1_1: float = Field(default=NOT_PROVIDED)
    gpa_1_2: float = Field(default=NOT_PROVIDED)
    gpa_2_1: float = Field(default=NOT_PROVIDED)
    gpa_2_2: float = Field(default=NOT_PROVIDED)
    gpa_3_1: float = Field(default=NOT_PROVIDED)


class Student(StudentBase, BaseModel, table=True):
    __tablename__ = "students"

    is_admin: bool = Field(default=False, nullable=False)
