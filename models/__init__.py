"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    Pagination,
    utc_now,
)
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    ProductSortField,
    SortOrder,
    CategoryBreakdown,
)
from models.order import (
    OrderStatus,
    OrderPriority,
    OrderCreate,
    OrderUpdate,
    OrderResponse,
    OrderListResponse,
    OrderSummary,
)
from models.customer import (
    CustomerProfile,
    CustomerProfileCreate,
    CustomerProfileUpdate,
    CustomerPreferences,
    PurchaseCreate,
    PurchaseRecord,
    InteractionCreate,
    ProductInteraction,
    InteractionType,
)
from models.alert import (
    AlertType,
    AlertSeverity,
    AlertCreate,
    AlertResponse,
    AlertListResponse,
)
from models.recommendation import (
    Recommendation,
    RecommendationType,
    RecommendationPriority,
    RecommendationListResponse,
    sort_recommendations,
)
from models.analysis import (
    AIAnalysisResult,
    AnalysisRequest,
    ConsumptionPattern,
    CustomerInsight,
    CustomerSegment,
    Provenance,
    PurchasePrediction,
    ReplenishmentAlerts,
)
from models.dashboard import DashboardSummary

__all__ = [
    # Base
    "BaseSchema",
    "Pagination",
    "utc_now",

    # Product
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "ProductSortField",
    "SortOrder",
    "CategoryBreakdown",

    # Order
    "OrderStatus",
    "OrderPriority",
    "OrderCreate",
    "OrderUpdate",
    "OrderResponse",
    "OrderListResponse",
    "OrderSummary",

    # Customer
    "CustomerProfile",
    "CustomerProfileCreate",
    "CustomerProfileUpdate",
    "CustomerPreferences",
    "PurchaseCreate",
    "PurchaseRecord",
    "InteractionCreate",
    "ProductInteraction",
    "InteractionType",

    # Alert
    "AlertType",
    "AlertSeverity",
    "AlertCreate",
    "AlertResponse",
    "AlertListResponse",

    # Recommendation
    "Recommendation",
    "RecommendationType",
    "RecommendationPriority",
    "RecommendationListResponse",
    "sort_recommendations",

    # Analysis
    "AIAnalysisResult",
    "AnalysisRequest",
    "ConsumptionPattern",
    "CustomerInsight",
    "CustomerSegment",
    "Provenance",
    "PurchasePrediction",
    "ReplenishmentAlerts",

    # Dashboard
    "DashboardSummary",
]
