"""
Product schemas for validation and serialization.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name, category, unit
    Optional: description
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Product name (unique, case-insensitive)",
        examples=["Bolo de Chocolate", "Pão de Queijo"]
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Product category as written in the catalog",
        examples=["Refrigerado/Doces", "Salgados"]
    )
    unit: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unit of measure (piece, slice, cake, ...)"
    )
    description: Optional[str] = Field(
        None,
        description="Free text description"
    )


class ProductResponse(BaseSchema):
    """
    Product row as stored.
    """

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., description="Product name")
    category: str = Field(..., description="Product category")
    unit: str = Field(..., description="Unit of measure")
    description: Optional[str] = Field(None, description="Description")
    created_at: Optional[datetime] = None
