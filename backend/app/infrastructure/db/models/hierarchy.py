"""
Hierarchy SQLModels

University -> College -> Department. Colleges and departments keep a
``position`` so each parent lists its children in insertion order.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.infrastructure.db.models.base import BaseModel


class UniversityBase(SQLModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="University name (globally unique)"
    )


class University(UniversityBase, BaseModel, table=True):
    __tablename__ = "universities"
    __table_args__ = (
        UniqueConstraint("name", name="uq_universities_name"),
    )


class UniversityCreate(UniversityBase):
    pass


class CollegeBase(SQLModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="College name (unique within its university)"
    )


class College(CollegeBase, BaseModel, table=True):
    __tablename__ = "colleges"
    __table_args__ = (
        UniqueConstraint("university_id", "name", name="uq_colleges_university_name"),
    )

    university_id: UUID = Field(
        ...,
        foreign_key="universities.id",
        ondelete="CASCADE",
        index=True,
    )
    position: int = Field(default=0, nullable=False)


class CollegeCreate(CollegeBase):
    university_id: UUID


class DepartmentBase(SQLModel):
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Department name (unique within its college)"
    )
    capacity: int = Field(
        ...,
        gt=0,
        description="Advisory admission capacity"
    )


class Department(DepartmentBase, BaseModel, table=True):
    """
    Department table.

    ``current_applications`` is a denormalized count of the application rows
    pointing here. Only ApplicationRepository writes it, always in the same
    transaction as the row change.
    """

    __tablename__ = "departments"
    __table_args__ = (
        UniqueConstraint("college_id", "name", name="uq_departments_college_name"),
        CheckConstraint("capacity > 0", name="ck_departments_capacity_positive"),
        CheckConstraint(
            "current_applications >= 0",
            name="ck_departments_current_applications_non_negative",
        ),
    )

    college_id: UUID = Field(
        ...,
        foreign_key="colleges.id",
        ondelete="CASCADE",
        index=True,
    )
    position: int = Field(default=0, nullable=False)
    current_applications: int = Field(default=0, nullable=False)


class DepartmentCreate(DepartmentBase):
    college_id: UUID


class DepartmentUpdate(SQLModel):
    capacity: Optional[int] = Field(default=None, gt=0)
