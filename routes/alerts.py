"""
Alerts API routes.

Provides endpoints for alert management and stock alert generation.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.alert import (
    AlertType,
    AlertSeverity,
    AlertCreate,
    AlertResponse,
    AlertListResponse,
)
from services.alert_service import get_alert_service
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

@router.get("", response_model=AlertListResponse)
async def list_alerts(
    type: Optional[AlertType] = Query(None, description="Filter by alert type"),
    severity: Optional[AlertSeverity] = Query(None, description="Filter by severity"),
    limit: int = Query(50, ge=1, le=500),
):
    """Active alerts, newest first."""
    try:
        alerts = get_alert_service().get_all(type=type, severity=severity, limit=limit)
        return AlertListResponse(data=alerts, count=len(alerts))

    except Exception as e:
        return handle_error(e)


@router.post("/generate", response_model=AlertListResponse)
async def generate_alerts():
    """Create stock alerts for low and depleted products."""
    try:
        created = get_alert_service().generate_stock_alerts()
        return AlertListResponse(data=created, count=len(created))

    except Exception as e:
        return handle_error(e)


@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(alert_id: str):
    """
    Raises:
        404: Alert not found
    """
    try:
        return get_alert_service().get_by_id(alert_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=AlertResponse, status_code=201)
async def create_alert(data: AlertCreate):
    try:
        return get_alert_service().create(data)

    except Exception as e:
        return handle_error(e)


@router.post("/{alert_id}/dismiss")
async def dismiss_alert(alert_id: str):
    """
    Dismiss an alert, removing it from the active list.

    Raises:
        404: Alert not found
    """
    try:
        get_alert_service().dismiss(alert_id)
        return {"success": True, "message": "Alert dismissed successfully"}

    except Exception as e:
        return handle_error(e)
