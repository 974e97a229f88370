"""
Custom Exceptions for the Admissions Backend

Hierarchical exception classes for proper error handling across layers.
Every error carries a short category code; API handlers map the code to a
status and never expose driver messages or stack traces.
"""

from typing import Optional, Dict, Any


class AdmissionsError(Exception):
    """Base exception for all admissions errors."""

    code = "internal_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class MissingGpaError(AdmissionsError):
    """Raised when a student applies without a GPA on file."""

    code = "missing_gpa"

    def __init__(self, message: str = "Please enter your GPA before applying"):
        super().__init__(message)


class MalformedInputError(AdmissionsError):
    """Raised when a bulk import batch is structurally invalid."""

    code = "malformed_input"

    def __init__(
        self,
        message: str,
        missing_columns: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_columns:
            details["missing_columns"] = missing_columns
        super().__init__(message, details, original_error)


class DatabaseError(AdmissionsError):
    """Raised when database operations fail."""

    code = "store_failure"

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        resource: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if resource:
            details["resource"] = resource
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a referenced entity does not exist."""

    code = "not_found"


class ConflictError(DatabaseError):
    """Raised when a write would violate a uniqueness invariant."""

    code = "conflict"


class StoreFailureError(DatabaseError):
    """Raised when the underlying store rejects or loses a write."""

    code = "store_failure"
