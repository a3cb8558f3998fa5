"""
Dashboard API routes.

Provides the stock health summary for the home screen.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.dashboard import DashboardSummaryResponse
from services.dashboard_service import get_dashboard_service
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

@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_dashboard_summary():
    """
    Inventory value, stock health counts, active alerts and category
    shares.
    """
    try:
        summary = get_dashboard_service().get_summary()
        return DashboardSummaryResponse(data=summary)

    except Exception as e:
        return handle_error(e)
