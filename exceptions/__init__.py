"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    DatabaseError,

    # Product-specific
    ProductNameExistsError,

    # CSV import
    ImportConfigurationError,
    RecordImportError,
    ImportAlreadyRunningError,
    ImportSessionNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "DatabaseError",

    # Product
    "ProductNameExistsError",

    # CSV import
    "ImportConfigurationError",
    "RecordImportError",
    "ImportAlreadyRunningError",
    "ImportSessionNotFoundError",
]
