"""
API Dependencies

FastAPI dependency injection for the caller's identity and common services.

Authentication itself belongs to the identity provider in front of this
service. By the time a request arrives here the provider has resolved the
student, and the student's id travels as ``Authorization: Bearer <uuid>``.
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from app.infrastructure.db.dependencies import StudentRepoDep


logger = logging.getLogger(__name__)


def _parse_bearer(authorization: str) -> UUID:
    try:
        scheme, token = authorization.split()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization scheme",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return UUID(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_student_id(
    authorization: Optional[str] = Header(None)
) -> UUID:
    """
    Extract the authenticated student's id.

    Raises:
        HTTPException 401: header missing or malformed
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _parse_bearer(authorization)


async def get_optional_student_id(
    authorization: Optional[str] = Header(None)
) -> Optional[UUID]:
    """
    Optionally extract the student id.

    Returns ``None`` if no usable header is provided (for public endpoints).
    """
    if not authorization:
        return None
    try:
        return _parse_bearer(authorization)
    except HTTPException:
        return None


CurrentStudentId = Annotated[UUID, Depends(get_current_student_id)]
OptionalStudentId = Annotated[Optional[UUID], Depends(get_optional_student_id)]


async def require_admin(
    student_id: CurrentStudentId,
    students: StudentRepoDep,
) -> UUID:
    """
    Allow only students flagged ``is_admin``.

    Raises:
        HTTPException 401: unknown student
        HTTPException 403: student is not an administrator
    """
    student = await students.get_by_id(student_id)
    if student is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    if not student.is_admin:
        logger.warning(f"Non-admin {student_id} attempted an admin operation")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return student_id


# =============================================================================
# Re-export DB dependencies for a single import source
# Routers should import from api.dependencies, not db.dependencies directly.
# =============================================================================
from app.infrastructure.db.dependencies import (  # noqa: E402, F401
    SessionDep,
    HierarchyStoreDep,
    RankingServiceDep,
    AllocationServiceDep,
    ImportServiceDep,
)
