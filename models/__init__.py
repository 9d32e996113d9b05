"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema
from models.product import (
    ProductCreate,
    ProductResponse,
)
from models.catalog_import import (
    ImportPhase,
    ImportStatsResponse,
    FailedRecordResponse,
    ImportSessionResponse,
    CandidateRecordResponse,
    ImportPreviewResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Product
    "ProductCreate",
    "ProductResponse",

    # Catalog import
    "ImportPhase",
    "ImportStatsResponse",
    "FailedRecordResponse",
    "ImportSessionResponse",
    "CandidateRecordResponse",
    "ImportPreviewResponse",
]
