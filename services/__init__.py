"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.unit_inference_service import (
    UnitInferenceService,
    get_unit_inference_service,
    determine_unit,
    normalize_unit_token,
    UnitRule,
    NameRule,
    DEFAULT_UNIT_RULES,
)
from services.import_session import ImportSession, ImportStats, FailedRecord
from services.import_service import (
    CatalogImportService,
    get_catalog_import_service,
    BatchImporter,
    ImportResult,
    create_product_record,
)

__all__ = [
    "ProductService",
    "get_product_service",
    "UnitInferenceService",
    "get_unit_inference_service",
    "determine_unit",
    "normalize_unit_token",
    "UnitRule",
    "NameRule",
    "DEFAULT_UNIT_RULES",
    "ImportSession",
    "ImportStats",
    "FailedRecord",
    "CatalogImportService",
    "get_catalog_import_service",
    "BatchImporter",
    "ImportResult",
    "create_product_record",
]
