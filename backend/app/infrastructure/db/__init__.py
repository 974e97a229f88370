"""
Database Infrastructure Package for the Admissions Backend

Exports database utilities and dependency providers.
"""

from app.infrastructure.db.database import (
    DatabaseManager,
    get_session,
    normalize_database_url,
)

from app.infrastructure.db.dependencies import (
    SessionDep,
    StudentRepoDep,
    HierarchyStoreDep,
    RankingServiceDep,
    AllocationServiceDep,
    ImportServiceDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_session",
    "normalize_database_url",
    # Dependencies
    "SessionDep",
    "StudentRepoDep",
    "HierarchyStoreDep",
    "RankingServiceDep",
    "AllocationServiceDep",
    "ImportServiceDep",
]
