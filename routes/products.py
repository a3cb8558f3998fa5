"""
Product API routes.

Error responses use the standard {"error": {...}} body from AppError.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.base import Pagination
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductListMeta,
    ProductSortField,
    SortOrder,
)
from services.product_service import get_product_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


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
    # Unexpected error
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

@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Match name, SKU or barcode"),
    category: Optional[str] = Query(None, description="Filter by category"),
    supplier: Optional[str] = Query(None, description="Filter by supplier"),
    low_stock: bool = Query(False, alias="lowStock", description="Only low-stock products"),
    sort_by: ProductSortField = Query(ProductSortField.NAME, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.ASC, alias="sortOrder"),
):
    """
    List products with filters, sorting and pagination.

    meta carries catalogue-wide inventory value and unit count.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            page=page,
            limit=limit,
            search=search,
            category=category,
            supplier=supplier,
            low_stock=low_stock,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        total_value, total_items = service.get_totals()

        return ProductListResponse(
            data=products,
            pagination=Pagination.create(total, page, limit),
            meta=ProductListMeta(total_value=total_value, total_items=total_items),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        return service.get_by_id(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreate):
    """
    Create a new product.

    Raises:
        409: SKU already exists
        422: Validation error
    """
    try:
        service = get_product_service()
        return service.create(data)

    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, data: ProductUpdate):
    """
    Update an existing product.

    Only provided fields are updated.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        return service.update(product_id, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str):
    """
    Delete a product.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        service.delete(product_id)
        return None

    except Exception as e:
        return handle_error(e)
