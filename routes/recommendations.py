"""
Recommendations API routes.

Lists the active recommendation set produced by customer analysis and
lets users accept or dismiss entries.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.recommendation import (
    RecommendationActionResponse,
    RecommendationListResponse,
    RecommendationPriority,
    RecommendationType,
)
from services.recommendation_service import get_recommendation_service
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

@router.get("", response_model=RecommendationListResponse)
async def list_recommendations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[RecommendationType] = Query(None),
    priority: Optional[RecommendationPriority] = Query(None),
    category: Optional[str] = Query(None),
):
    """
    Active recommendations, most urgent first.

    meta counts priorities and sums estimated savings across all matches.
    """
    try:
        return get_recommendation_service().get_all(
            page=page,
            limit=limit,
            type=type,
            priority=priority,
            category=category,
        )

    except Exception as e:
        return handle_error(e)


@router.post("/{recommendation_id}/accept", response_model=RecommendationActionResponse)
async def accept_recommendation(recommendation_id: str):
    """
    Raises:
        404: Recommendation not in the active set
    """
    try:
        recommendation = get_recommendation_service().accept(recommendation_id)
        return RecommendationActionResponse(
            success=True,
            message="Recommendation accepted successfully",
            recommendation=recommendation,
        )

    except Exception as e:
        return handle_error(e)


@router.post("/{recommendation_id}/dismiss", response_model=RecommendationActionResponse)
async def dismiss_recommendation(recommendation_id: str):
    """
    Raises:
        404: Recommendation not in the active set
    """
    try:
        recommendation = get_recommendation_service().dismiss(recommendation_id)
        return RecommendationActionResponse(
            success=True,
            message="Recommendation dismissed successfully",
            recommendation=recommendation,
        )

    except Exception as e:
        return handle_error(e)
