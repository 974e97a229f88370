"""
Base Model for SQLModel ORM

Provides common fields for all admission tables.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """Mixin providing creation/update timestamps."""

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utcnow},
        description="Last update timestamp (UTC)"
    )


class UUIDMixin(SQLModel):
    """Mixin providing a UUID primary key."""

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
        description="Unique identifier (UUID v4)"
    )


class BaseModel(UUIDMixin, TimestampMixin):
    """
    Base model combining UUID and timestamp mixins.

    Provides: id, created_at, updated_at
    """
