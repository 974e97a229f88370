"""
SQLModel ORM Models for the Admissions Backend

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from app.infrastructure.db.models.base import (
    BaseModel,
    TimestampMixin,
    UUIDMixin,
)
from app.infrastructure.db.models.hierarchy import (
    University,
    UniversityCreate,
    College,
    CollegeCreate,
    Department,
    DepartmentCreate,
    DepartmentUpdate,
)
from app.infrastructure.db.models.student import Student, StudentBase
from app.infrastructure.db.models.application import Application


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    # Hierarchy
    "University",
    "UniversityCreate",
    "College",
    "CollegeCreate",
    "Department",
    "DepartmentCreate",
    "DepartmentUpdate",
    # Students
    "Student",
    "StudentBase",
    "Application",
]
