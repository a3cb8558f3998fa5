"""
Purchase order schemas.

Orders are placed with suppliers to restock the catalogue.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema, Pagination


class OrderStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    SHIPPED = "shipped"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class OrderPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Only these may be deleted
DELETABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.CANCELLED)


class OrderItemCreate(BaseSchema):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(..., ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class OrderItem(OrderItemCreate):
    """Order line enriched with catalogue data."""
    product_name: str
    sku: str
    total_price: float


class OrderCreate(BaseSchema):
    supplier: str = Field(..., min_length=1, max_length=200)
    items: list[OrderItemCreate] = Field(..., min_length=1)
    priority: OrderPriority = OrderPriority.MEDIUM
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=1000)


class OrderUpdate(BaseSchema):
    """Only provided, non-null fields are updated."""
    status: Optional[OrderStatus] = None
    priority: Optional[OrderPriority] = None
    expected_delivery_date: Optional[datetime] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderResponse(BaseSchema):
    id: str
    order_number: str
    supplier: str
    items: list[OrderItem]
    total_items: int
    total_amount: float
    status: OrderStatus
    priority: OrderPriority
    created_by: str
    created_at: datetime
    updated_at: datetime
    expected_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None


class OrderListResponse(BaseSchema):
    data: list[OrderResponse]
    pagination: Pagination


class OrdersByPriority(BaseSchema):
    urgent: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class OrderSummary(BaseSchema):
    total_orders: int
    pending_orders: int
    approved_orders: int
    shipped_orders: int
    received_orders: int
    total_order_value: float
    average_order_value: float
    orders_by_priority: OrdersByPriority
    recent_orders: list[OrderResponse]
