# API Routes Module
from app.api.routes import (
    admin,
    applications,
    profiles,
    universities,
)

__all__ = [
    "admin",
    "applications",
    "profiles",
    "universities",
]
