"""
Customer store schemas.

A customer profile owns its purchase records and interaction events;
both collections are append-only.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from models.base import BaseSchema, ensure_utc


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"
    WISHLIST = "wishlist"
    SEARCH = "search"


class CustomerPreferences(BaseSchema):
    preferred_categories: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)
    budget_range: Optional[str] = Field(None, max_length=50)
    shopping_frequency: Optional[str] = Field(None, max_length=50)


class CustomerProfileCreate(BaseSchema):
    customer_id: Optional[str] = Field(
        None,
        max_length=100,
        description="Defaults to the authenticated user's id"
    )
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    age: Optional[int] = Field(None, ge=0, le=130)
    gender: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=200)
    preferences: CustomerPreferences = Field(default_factory=CustomerPreferences)


class CustomerProfileUpdate(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    age: Optional[int] = Field(None, ge=0, le=130)
    gender: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=200)
    segment: Optional[str] = Field(None, max_length=50)


class CustomerProfile(BaseSchema):
    customer_id: str
    name: str
    email: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    location: Optional[str] = None
    preferences: CustomerPreferences = Field(default_factory=CustomerPreferences)
    segment: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PurchaseCreate(BaseSchema):
    product_id: str = Field(..., min_length=1)
    product_name: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    timestamp: Optional[datetime] = Field(None, description="Defaults to now")

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class PurchaseRecord(BaseSchema):
    id: str
    customer_id: str
    product_id: str
    product_name: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    total_amount: float = 0.0
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def fill_total(self) -> "PurchaseRecord":
        if not self.total_amount:
            self.__dict__["total_amount"] = round(self.quantity * self.unit_price, 2)
        return self


class PurchaseImport(BaseSchema):
    purchases: list[dict] = Field(..., min_length=1, max_length=5000)


class PurchaseImportResult(BaseSchema):
    imported: int
    failed: int


class InteractionCreate(BaseSchema):
    product_id: str = Field(..., min_length=1)
    interaction_type: InteractionType
    duration_seconds: Optional[float] = Field(None, ge=0)
    timestamp: Optional[datetime] = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class ProductInteraction(BaseSchema):
    id: str
    customer_id: str
    product_id: str
    interaction_type: InteractionType
    duration_seconds: Optional[float] = None
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)
