"""
Admin Routes for Hierarchy Maintenance

Create, resize and delete universities, colleges and departments, and
bulk-merge a hierarchy from CSV. Protected by the student ``is_admin`` flag.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict

from app.api.dependencies import (
    HierarchyStoreDep,
    ImportServiceDep,
    StudentRepoDep,
    require_admin,
)
from app.config.settings import settings
from app.domain.models import MergeResult, UniversityView
from app.infrastructure.db.models.hierarchy import (
    CollegeCreate,
    DepartmentCreate,
    DepartmentUpdate,
    UniversityCreate,
)
from app.infrastructure.exceptions import MalformedInputError

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)]  # Protect ALL admin routes
)


# ============================================================================
# Request/Response Models
# ============================================================================

class CreatedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    college_id: UUID
    name: str
    capacity: int
    current_applications: int


class DeleteResult(BaseModel):
    success: bool
    removed_applications: int


class StudentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: Optional[str]
    name: Optional[str]
    overall_gpa: Optional[float]
    is_admin: bool


class AdminOverview(BaseModel):
    universities: List[UniversityView]
    students: List[StudentSummary]


# ============================================================================
# Overview
# ============================================================================

@router.get("/overview", response_model=AdminOverview)
async def get_overview(store: HierarchyStoreDep, students: StudentRepoDep):
    """The whole hierarchy with counters, plus every registered student."""
    return AdminOverview(
        universities=await store.list_tree(),
        students=[
            StudentSummary.model_validate(student)
            for student in await students.list_students()
        ],
    )


# ============================================================================
# Universities
# ============================================================================

@router.post(
    "/universities",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_university(request: UniversityCreate, store: HierarchyStoreDep):
    university = await store.run_write(
        "create", "university", lambda: store.create_university(request.name)
    )
    logger.info(f"Created university {university.id} ({university.name})")
    return university


@router.delete("/universities/{university_id}", response_model=DeleteResult)
async def delete_university(university_id: UUID, store: HierarchyStoreDep):
    """Delete a university with all colleges, departments and applications."""
    removed = await store.run_write(
        "delete", "university", lambda: store.delete_university(university_id)
    )
    return DeleteResult(success=True, removed_applications=removed)


# ============================================================================
# Colleges
# ============================================================================

@router.post(
    "/colleges",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_college(request: CollegeCreate, store: HierarchyStoreDep):
    college = await store.run_write(
        "create",
        "college",
        lambda: store.create_college(request.university_id, request.name),
    )
    logger.info(f"Created college {college.id} ({college.name})")
    return college


@router.delete("/colleges/{college_id}", response_model=DeleteResult)
async def delete_college(college_id: UUID, store: HierarchyStoreDep):
    removed = await store.run_write(
        "delete", "college", lambda: store.delete_college(college_id)
    )
    return DeleteResult(success=True, removed_applications=removed)


# ============================================================================
# Departments
# ============================================================================

@router.post(
    "/departments",
    response_model=DepartmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_department(request: DepartmentCreate, store: HierarchyStoreDep):
    department = await store.run_write(
        "create",
        "department",
        lambda: store.create_department(
            request.college_id, request.name, request.capacity
        ),
    )
    logger.info(f"Created department {department.id} ({department.name})")
    return department


@router.patch("/departments/{department_id}", response_model=DepartmentResponse)
async def update_department_capacity(
    department_id: UUID,
    request: DepartmentUpdate,
    store: HierarchyStoreDep,
):
    """Change capacity. Existing applications are kept even if now over capacity."""
    if request.capacity is None:
        return await store.get_department(department_id)
    return await store.run_write(
        "update",
        "department",
        lambda: store.update_capacity(department_id, request.capacity),
    )


@router.delete("/departments/{department_id}", response_model=DeleteResult)
async def delete_department(department_id: UUID, store: HierarchyStoreDep):
    removed = await store.run_write(
        "delete", "department", lambda: store.delete_department(department_id)
    )
    return DeleteResult(success=True, removed_applications=removed)


# ============================================================================
# Bulk import
# ============================================================================

@router.post("/import-csv", response_model=MergeResult)
async def import_hierarchy_csv(request: Request, importer: ImportServiceDep):
    """
    Merge a CSV hierarchy into the store.

    The request body is the raw CSV text. Existing entries are reused and
    nothing is deleted.
    """
    body = await request.body()
    if len(body) > settings.import_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"CSV larger than {settings.import_max_bytes} bytes",
        )
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedInputError("CSV must be UTF-8 encoded", original_error=e) from e

    return await importer.import_csv(text)
