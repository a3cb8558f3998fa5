"""
Product schemas for validation and serialization.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import date, datetime

from models.base import BaseSchema, Pagination


class ProductSortField(str, Enum):
    """Fields products can be sorted by."""
    NAME = "name"
    SKU = "sku"
    QUANTITY = "quantity"
    PRICE = "price"
    LAST_UPDATED = "lastUpdated"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name, sku, category, quantity, min_threshold, price, supplier
    """

    name: str = Field(..., min_length=1, max_length=200, examples=["Premium Coffee Beans"])
    sku: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Stock keeping unit (unique, case-insensitive)",
        examples=["PCB-001"]
    )
    barcode: Optional[str] = Field(None, max_length=64)
    category: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=0, description="Units in stock")
    min_threshold: int = Field(..., ge=0, description="Reorder point")
    price: float = Field(..., ge=0)
    cost: Optional[float] = Field(None, ge=0)
    supplier: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    unit: Optional[str] = Field(None, max_length=20)
    expiration_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=200)

    @field_validator("sku")
    @classmethod
    def sku_uppercase(cls, v: str) -> str:
        """SKU must be uppercase and trimmed."""
        return v.upper().strip()


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided, non-null fields are updated. SKU is
    immutable.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    barcode: Optional[str] = Field(None, max_length=64)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    quantity: Optional[int] = Field(None, ge=0)
    min_threshold: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    unit: Optional[str] = Field(None, max_length=20)
    expiration_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=200)


class ProductResponse(ProductCreate):
    """Product with identity and timestamps."""

    id: str = Field(..., description="Product UUID")
    created_at: datetime
    updated_at: datetime
    last_updated: datetime

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_threshold

    @property
    def inventory_value(self) -> float:
        return self.price * self.quantity


class ProductListMeta(BaseSchema):
    total_value: float
    total_items: int


class ProductListResponse(BaseSchema):
    """List of products with pagination."""

    data: list[ProductResponse]
    pagination: Pagination
    meta: ProductListMeta


class CategoryBreakdown(BaseSchema):
    category: str
    item_count: int
    value: float
