"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.order_service import OrderService, get_order_service
from services.customer_service import CustomerService, get_customer_service
from services.alert_service import AlertService, get_alert_service
from services.recommendation_service import RecommendationService, get_recommendation_service
from services.dashboard_service import DashboardService, get_dashboard_service
from services.consumption_service import ConsumptionAnalyzer
from services.model_gateway_service import ModelGateway, get_model_gateway
from services.fallback_analysis_service import (
    FallbackAnalysisService,
    get_fallback_analysis_service,
)
from services.ai_analysis_service import (
    AIAnalysisService,
    AnalysisState,
    get_ai_analysis_service,
)

__all__ = [
    "ProductService",
    "get_product_service",
    "OrderService",
    "get_order_service",
    "CustomerService",
    "get_customer_service",
    "AlertService",
    "get_alert_service",
    "RecommendationService",
    "get_recommendation_service",
    "DashboardService",
    "get_dashboard_service",
    "ConsumptionAnalyzer",
    "ModelGateway",
    "get_model_gateway",
    "FallbackAnalysisService",
    "get_fallback_analysis_service",
    "AIAnalysisService",
    "AnalysisState",
    "get_ai_analysis_service",
]
