"""
Dependency Injection Providers for the Admissions Backend

Provides FastAPI dependencies for database sessions, repositories and the
admission services. Each request gets its own session; every service built
for that request shares it.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import get_settings
from app.infrastructure.db.database import get_session
from app.infrastructure.db.repositories import StudentRepository
from app.infrastructure.services.allocation_service import AllocationService
from app.infrastructure.services.hierarchy_import_service import HierarchyImportService
from app.infrastructure.services.hierarchy_store import HierarchyStore
from app.infrastructure.services.ranking_service import RankingService


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_student_repository(
    session: SessionDep,
) -> AsyncGenerator[StudentRepository, None]:
    yield StudentRepository(session)


async def get_hierarchy_store(
    session: SessionDep,
) -> AsyncGenerator[HierarchyStore, None]:
    """
    Dependency provider for HierarchyStore.

    Usage:
        @router.get("/universities")
        async def list_universities(store: HierarchyStoreDep):
            ...
    """
    yield HierarchyStore(session)


async def get_ranking_service(
    session: SessionDep,
) -> AsyncGenerator[RankingService, None]:
    yield RankingService(session)


async def get_allocation_service(
    session: SessionDep,
) -> AsyncGenerator[AllocationService, None]:
    """AllocationService with the retry budget from settings."""
    yield AllocationService(
        session,
        max_attempts=get_settings().allocation_max_retries,
    )


async def get_import_service(
    session: SessionDep,
) -> AsyncGenerator[HierarchyImportService, None]:
    yield HierarchyImportService(session)


# Type aliases for service dependencies
StudentRepoDep = Annotated[StudentRepository, Depends(get_student_repository)]
HierarchyStoreDep = Annotated[HierarchyStore, Depends(get_hierarchy_store)]
RankingServiceDep = Annotated[RankingService, Depends(get_ranking_service)]
AllocationServiceDep = Annotated[AllocationService, Depends(get_allocation_service)]
ImportServiceDep = Annotated[HierarchyImportService, Depends(get_import_service)]
