"""
Recommendation schemas.

Recommendations are produced by customer analysis and stay in the active
set until a user accepts or dismisses them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import NAMESPACE_URL, uuid5

from pydantic import Field

from models.base import BaseSchema, Pagination


class RecommendationType(str, Enum):
    REORDER = "reorder"
    OPTIMIZE = "optimize"
    DISCONTINUE = "discontinue"
    PROMOTION = "promotion"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Higher is more urgent."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class Recommendation(BaseSchema):
    id: str
    type: RecommendationType
    priority: RecommendationPriority
    confidence: float = Field(..., ge=0, le=1)
    product_id: str
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    category: Optional[str] = None
    title: str
    description: str
    action: str
    impact: Optional[str] = None
    estimated_savings: Optional[float] = None
    days_until_action: Optional[int] = None
    recommended_quantity: Optional[int] = None
    customer_id: Optional[str] = None
    source: Optional[str] = Field(None, description="model or fallback")
    created_at: datetime


def recommendation_id(customer_id: str, product_id: str, rec_type: RecommendationType) -> str:
    """Stable id, so re-running an analysis replaces rather than duplicates."""
    return str(uuid5(NAMESPACE_URL, f"omnix:{customer_id}:{product_id}:{rec_type.value}"))


def sort_recommendations(recommendations: list[Recommendation]) -> list[Recommendation]:
    """Priority desc, then confidence desc; product id keeps ties stable."""
    return sorted(
        recommendations,
        key=lambda r: (-r.priority.rank, -r.confidence, r.product_id, r.id),
    )


class RecommendationListMeta(BaseSchema):
    high_priority: int
    medium_priority: int
    low_priority: int
    total_savings: float


class RecommendationListResponse(BaseSchema):
    data: list[Recommendation]
    pagination: Pagination
    meta: RecommendationListMeta


class RecommendationActionResponse(BaseSchema):
    success: bool
    message: str
    recommendation: Recommendation
