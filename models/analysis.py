"""
Customer analysis schemas.

ConsumptionPattern and AIAnalysisResult are derived values, recomputed on
every analysis request from the customer's records.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from models.base import BaseSchema
from models.customer import CustomerProfile, ProductInteraction, PurchaseRecord
from models.recommendation import Recommendation


class Provenance(str, Enum):
    """Which path produced an analysis result."""
    MODEL = "model"
    FALLBACK = "fallback"


class CustomerSegment(str, Enum):
    FREQUENT = "frequent"
    OCCASIONAL = "occasional"
    RARE = "rare"
    BROWSER = "browser"
    UNKNOWN = "unknown"


class ShoppingFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    IRREGULAR = "irregular"


class ConsumptionPattern(BaseSchema):
    product_id: str
    product_name: Optional[str] = None
    average_days_between_purchases: Optional[float] = None
    predicted_next_purchase_date: Optional[datetime] = None
    confidence: float = Field(..., ge=0, le=1)
    purchase_count: int = 0
    interval_count: int = 0
    last_purchase_date: Optional[datetime] = None
    average_quantity: Optional[float] = None
    days_until_next_purchase: Optional[float] = None


class CustomerInsight(BaseSchema):
    segment: CustomerSegment
    shopping_frequency: Optional[ShoppingFrequency] = None
    purchase_count: int = 0
    total_spent: float = 0.0
    average_basket_value: float = 0.0
    favorite_products: list[str] = Field(default_factory=list)
    interaction_count: int = 0


class AIAnalysisResult(BaseSchema):
    model_config = ConfigDict(protected_namespaces=())

    analysis_id: str
    customer_id: str
    generated_at: datetime
    provenance: Provenance
    consumption_patterns: list[ConsumptionPattern] = Field(default_factory=list)
    customer_profile: CustomerInsight
    recommendations: list[Recommendation] = Field(default_factory=list)
    confidence: float = Field(..., ge=0, le=1)
    model_id: Optional[str] = None


class AnalysisRequest(BaseSchema):
    """Everything the model gateway and the fallback need for one customer."""
    customer_id: str
    profile: Optional[CustomerProfile] = None
    purchase_history: list[PurchaseRecord] = Field(default_factory=list)
    interactions: list[ProductInteraction] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.purchase_history and not self.interactions


class ReplenishmentAlerts(BaseSchema):
    urgent: list[ConsumptionPattern]
    upcoming: list[ConsumptionPattern]


class PurchasePrediction(BaseSchema):
    product_id: str
    predicted_date: Optional[datetime] = None
    confidence: float = 0.0
    average_days_between: Optional[float] = None
    purchase_count: int = 0
