"""
Repository Layer for the Admissions Backend

Exports all repository classes for dependency injection.
"""

from app.infrastructure.db.repositories.base_repository import BaseRepository
from app.infrastructure.db.repositories.hierarchy_repository import (
    UniversityRepository,
    CollegeRepository,
    DepartmentRepository,
)
from app.infrastructure.db.repositories.student_repository import StudentRepository
from app.infrastructure.db.repositories.application_repository import (
    ApplicationRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    # Hierarchy
    "UniversityRepository",
    "CollegeRepository",
    "DepartmentRepository",
    # Admissions
    "StudentRepository",
    "ApplicationRepository",
]
