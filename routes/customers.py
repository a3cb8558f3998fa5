"""
Customer API routes.

Profiles, purchase history, interactions and the customer analysis
endpoints. All endpoints require an authenticated user.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
import structlog

from models.analysis import (
    AIAnalysisResult,
    ConsumptionPattern,
    CustomerInsight,
    PurchasePrediction,
    ReplenishmentAlerts,
)
from models.customer import (
    CustomerPreferences,
    CustomerProfile,
    CustomerProfileCreate,
    CustomerProfileUpdate,
    InteractionCreate,
    ProductInteraction,
    PurchaseCreate,
    PurchaseImport,
    PurchaseImportResult,
    PurchaseRecord,
)
from models.recommendation import Recommendation
from routes.deps import get_current_user
from services.ai_analysis_service import get_ai_analysis_service
from services.customer_service import get_customer_service
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
# PROFILES
# ===================

@router.post("/register", response_model=CustomerProfile, status_code=201)
async def register_customer(
    data: CustomerProfileCreate,
    user: dict = Depends(get_current_user),
):
    """
    Register a customer profile.

    customerId defaults to the authenticated user's id.

    Raises:
        409: Customer already registered
    """
    try:
        customer_id = data.customer_id or user["sub"]
        return get_customer_service().register(data, customer_id)

    except Exception as e:
        return handle_error(e)


@router.get("", response_model=list[CustomerProfile])
async def list_customers(limit: int = Query(100, ge=1, le=1000)):
    try:
        return get_customer_service().get_all(limit=limit)

    except Exception as e:
        return handle_error(e)


@router.get("/segment/{segment}", response_model=list[CustomerProfile])
async def list_customers_by_segment(segment: str):
    try:
        return get_customer_service().get_by_segment(segment)

    except Exception as e:
        return handle_error(e)


@router.get("/products/{product_id}/interactions", response_model=list[ProductInteraction])
async def list_product_interactions(
    product_id: str,
    limit: int = Query(100, ge=1, le=1000),
):
    """Interactions with a product across all customers, newest first."""
    try:
        return get_customer_service().get_product_interactions(product_id, limit=limit)

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/profile", response_model=CustomerProfile)
async def get_customer_profile(customer_id: str):
    """
    Raises:
        404: Customer not found
    """
    try:
        return get_customer_service().get_profile(customer_id)

    except Exception as e:
        return handle_error(e)


@router.put("/{customer_id}/profile", response_model=CustomerProfile)
async def update_customer_profile(customer_id: str, data: CustomerProfileUpdate):
    try:
        return get_customer_service().update_profile(customer_id, data)

    except Exception as e:
        return handle_error(e)


@router.patch("/{customer_id}/preferences", response_model=CustomerProfile)
async def update_customer_preferences(customer_id: str, data: CustomerPreferences):
    try:
        return get_customer_service().update_preferences(customer_id, data)

    except Exception as e:
        return handle_error(e)


# ===================
# PURCHASES & INTERACTIONS
# ===================

@router.get("/{customer_id}/purchases", response_model=list[PurchaseRecord])
async def list_purchases(
    customer_id: str,
    limit: int = Query(50, ge=1, le=1000),
    start: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    end: Optional[datetime] = Query(None, description="Exclusive upper bound"),
    product_id: Optional[str] = Query(None, alias="productId"),
):
    """
    Purchases newest first.

    With start, end or productId the time-range query is used instead,
    returning matches oldest first.
    """
    try:
        service = get_customer_service()
        if start or end or product_id:
            return service.get_purchases_in_range(
                customer_id,
                start=start,
                end=end,
                product_id=product_id,
            )[:limit]
        return service.get_purchases(customer_id, limit=limit)

    except Exception as e:
        return handle_error(e)


@router.post("/{customer_id}/purchases", response_model=PurchaseRecord, status_code=201)
async def add_purchase(customer_id: str, data: PurchaseCreate):
    """
    Raises:
        404: Customer not found
    """
    try:
        return get_customer_service().add_purchase(customer_id, data)

    except Exception as e:
        return handle_error(e)


@router.post("/{customer_id}/purchases/import", response_model=PurchaseImportResult)
async def import_purchases(customer_id: str, data: PurchaseImport):
    """Bulk purchase import; invalid rows are counted as failed."""
    try:
        return get_customer_service().import_purchases(customer_id, data.purchases)

    except Exception as e:
        return handle_error(e)


@router.post("/{customer_id}/interactions", response_model=ProductInteraction, status_code=201)
async def track_interaction(customer_id: str, data: InteractionCreate):
    try:
        return get_customer_service().track_interaction(customer_id, data)

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/interactions", response_model=list[ProductInteraction])
async def list_interactions(customer_id: str, limit: int = Query(100, ge=1, le=1000)):
    try:
        return get_customer_service().get_interactions(customer_id, limit=limit)

    except Exception as e:
        return handle_error(e)


# ===================
# ANALYSIS
# ===================

@router.get("/{customer_id}/ai-analysis", response_model=AIAnalysisResult)
async def get_ai_analysis(customer_id: str):
    """
    Full consumption analysis.

    Uses the hosted model when available and the local heuristics
    otherwise; provenance says which. Nothing is recorded; use POST
    analyze to store a run.

    Raises:
        503: Both analysis paths failed
    """
    try:
        return await get_ai_analysis_service().analyze_customer(customer_id, record=False)

    except Exception as e:
        return handle_error(e)


@router.post("/{customer_id}/analyze", response_model=AIAnalysisResult)
async def trigger_analysis(customer_id: str):
    """Run and record a fresh analysis."""
    try:
        return await get_ai_analysis_service().analyze_customer(customer_id)

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/consumption-predictions", response_model=list[ConsumptionPattern])
async def get_consumption_predictions(customer_id: str):
    try:
        result = await get_ai_analysis_service().analyze_customer(customer_id, record=False)
        return result.consumption_patterns

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/customer-profile-analysis", response_model=CustomerInsight)
async def get_customer_profile_analysis(customer_id: str):
    try:
        result = await get_ai_analysis_service().analyze_customer(customer_id, record=False)
        return result.customer_profile

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/ai-recommendations", response_model=list[Recommendation])
async def get_ai_recommendations(customer_id: str, limit: int = Query(5, ge=1, le=50)):
    """Top recommendations, most urgent first."""
    try:
        return await get_ai_analysis_service().generate_recommendations(customer_id, limit=limit)

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/replenishment-alerts", response_model=ReplenishmentAlerts)
async def get_replenishment_alerts(customer_id: str):
    try:
        return await get_ai_analysis_service().get_replenishment_alerts(customer_id)

    except Exception as e:
        return handle_error(e)


@router.get(
    "/{customer_id}/purchase-prediction/{product_id}",
    response_model=PurchasePrediction,
)
async def predict_next_purchase(customer_id: str, product_id: str):
    """Predicted next purchase of one product; confidence 0 without history."""
    try:
        return get_ai_analysis_service().predict_next_purchase(customer_id, product_id)

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_id}/analysis-history", response_model=list[AIAnalysisResult])
async def get_analysis_history(customer_id: str, limit: int = Query(10, ge=1, le=100)):
    """Recorded analyses, newest first."""
    try:
        return get_ai_analysis_service().get_analysis_history(customer_id, limit=limit)

    except Exception as e:
        return handle_error(e)
