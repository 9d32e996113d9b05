"""
Custom exception classes for the application.

All errors carry a machine-readable code, an HTTP status and a details dict
so routes can return them without translation.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNameExistsError(DuplicateError):
    """A product with the same name (case-insensitive) already exists."""

    def __init__(self, name: str):
        super().__init__(
            resource="Product",
            field="name",
            value=name
        )


# ===================
# CSV IMPORT ERRORS
# ===================

class ImportConfigurationError(ValidationError):
    """
    Required CSV columns could not be resolved from the header row.

    Fatal: raised before any data row is processed.
    """

    def __init__(self, missing_fields: list[str], headers: Optional[list[str]] = None):
        super().__init__(
            code="IMPORT_MISSING_COLUMNS",
            message=(
                'CSV must contain at least "Product Name" and "Category" columns. '
                "Please check column headers and try again."
            ),
            details={"missing": missing_fields, "headers": headers or []}
        )


class RecordImportError(AppError):
    """A single record could not be created downstream."""

    def __init__(self, name: str, message: str, details: Optional[dict] = None):
        super().__init__(
            code="RECORD_IMPORT_FAILED",
            message=message,
            status_code=502,
            details={"name": name, **(details or {})}
        )


class ImportAlreadyRunningError(ConflictError):
    """Another import is still running on this pipeline."""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__(
            code="IMPORT_ALREADY_RUNNING",
            message="An import is already in progress",
            details={"session_id": session_id}
        )


class ImportSessionNotFoundError(NotFoundError):
    """Import session not found."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )
