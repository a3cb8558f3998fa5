"""
Purchase order API routes.

All endpoints require an authenticated user.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.base import Pagination
from models.order import (
    OrderCreate,
    OrderUpdate,
    OrderResponse,
    OrderListResponse,
    OrderStatus,
    OrderPriority,
    OrderSummary,
)
from routes.deps import get_current_user
from services.order_service import get_order_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=OrderListResponse)
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    priority: Optional[OrderPriority] = Query(None, description="Filter by priority"),
    supplier: Optional[str] = Query(None, description="Filter by supplier"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List orders, newest first."""
    try:
        service = get_order_service()
        orders, total = service.get_all(
            status=status,
            priority=priority,
            supplier=supplier,
            page=page,
            limit=limit,
        )
        return OrderListResponse(
            data=orders,
            pagination=Pagination.create(total, page, limit),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/summary", response_model=OrderSummary)
async def get_order_summary():
    """Counts by status and priority, value totals and recent orders."""
    try:
        return get_order_service().get_summary()

    except Exception as e:
        return handle_error(e)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str):
    """
    Raises:
        404: Order not found
    """
    try:
        return get_order_service().get_by_id(order_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(data: OrderCreate, user: dict = Depends(get_current_user)):
    """
    Create an order from catalogue products.

    Raises:
        404: A line references an unknown product
    """
    try:
        return get_order_service().create(data, user["sub"])

    except Exception as e:
        return handle_error(e)


@router.patch("/{order_id}", response_model=OrderResponse)
@router.put("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: str,
    data: OrderUpdate,
    user: dict = Depends(get_current_user),
):
    """
    Update an order's status, priority or tracking details.

    Raises:
        404: Order not found
    """
    try:
        return get_order_service().update(order_id, data, user["sub"])

    except Exception as e:
        return handle_error(e)


@router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str):
    """
    Delete a pending or cancelled order.

    Raises:
        404: Order not found
        409: Order already in progress
    """
    try:
        get_order_service().delete(order_id)
        return None

    except Exception as e:
        return handle_error(e)
