"""
Product service for business logic operations.

Product names are unique case-insensitively; create() enforces this before
inserting.
"""

import threading
from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import ProductCreate, ProductResponse
from exceptions import (
    ProductNameExistsError,
    DatabaseError
)
from utils.retry_utils import retry_query

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Product business logic.

    Backs the catalog importer's create capability.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_name(self, name: str) -> Optional[ProductResponse]:
        """
        Get a product by name (case-insensitive).

        Transient connection errors are retried.

        Args:
            name: Product name

        Returns:
            ProductResponse or None if not found
        """
        logger.debug("getting_product_by_name", name=name)

        try:
            result = retry_query(
                lambda: (
                    self.db.table(self.table)
                    .select("*")
                    .ilike("name", name)
                    .execute()
                ),
                max_retries=settings.db_max_retries,
                delay=settings.db_retry_delay_seconds,
            )
        except Exception as e:
            logger.error(
                "get_product_by_name_failed",
                name=name,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None

        return ProductResponse(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Args:
            data: Product creation data

        Returns:
            Created ProductResponse

        Raises:
            ProductNameExistsError: If a product with this name exists
            DatabaseError: If the insert fails
        """
        logger.info("creating_product", name=data.name, category=data.category)

        if self.get_by_name(data.name):
            raise ProductNameExistsError(data.name)

        try:
            insert_data = {
                "name": data.name,
                "category": data.category,
                "description": data.description or None,
                "unit": data.unit,
            }

            result = (
                self.db.table(self.table)
                .insert(insert_data)
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_created",
                product_id=product.id,
                name=product.name,
                unit=product.unit
            )

            return product

        except Exception as e:
            logger.error(
                "create_product_failed",
                name=data.name,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None
_product_service_lock = threading.Lock()


def get_product_service() -> ProductService:
    """
    Get or create ProductService instance.

    Import batches call this from several threads at once; creation is
    serialized so only one instance (and one Supabase client) is built.
    """
    global _product_service
    if _product_service is None:
        with _product_service_lock:
            if _product_service is None:
                _product_service = ProductService()
    return _product_service
