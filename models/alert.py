"""
Alert models and schemas.

Alerts notify store managers about:
- Low or depleted stock
- Expired products
- Demand forecast warnings
- System notices
"""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import Field

from models.base import BaseSchema


class AlertType(str, Enum):
    """Alert type enumeration."""

    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    EXPIRED = "expired"
    FORECAST_WARNING = "forecast-warning"
    SYSTEM = "system"


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    HIGH = "high"      # Requires immediate action
    MEDIUM = "medium"  # Should be addressed soon
    LOW = "low"        # Informational only


class AlertCreate(BaseSchema):
    """Create a new alert."""

    type: AlertType = Field(..., description="Alert type")
    severity: AlertSeverity = Field(..., description="Alert severity")
    message: str = Field(..., min_length=1, max_length=1000, description="Alert message")
    details: Optional[str] = Field(None, max_length=2000)
    product_id: Optional[str] = Field(None, description="Related product UUID")
    product_name: Optional[str] = None
    action_required: bool = False
    expires_at: Optional[datetime] = None


class AlertResponse(AlertCreate):
    """Alert response model."""

    id: str
    created_at: datetime


class AlertListResponse(BaseSchema):
    """Alerts, newest first."""

    data: list[AlertResponse]
    count: int
