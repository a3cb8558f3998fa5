"""
Customer analysis orchestration.

Each request tries the hosted model first and falls back to the local
heuristics on any expected model failure:

    ATTEMPT_MODEL -> USE_MODEL_RESULT | ATTEMPT_FALLBACK
    ATTEMPT_FALLBACK -> USE_FALLBACK_RESULT | UNAVAILABLE

Results are recomputed on every call. They are appended to the analysis
history and their recommendations join the active recommendation set,
but neither is read back as a cache.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

import structlog

from config import settings as default_settings
from config.settings import Settings
from models.analysis import (
    AIAnalysisResult,
    AnalysisRequest,
    ConsumptionPattern,
    PurchasePrediction,
    ReplenishmentAlerts,
)
from models.base import utc_now, ensure_utc
from models.recommendation import Recommendation, sort_recommendations
from repositories import Repository, get_repository
from services.consumption_service import ConsumptionAnalyzer
from services.customer_service import CustomerService, get_customer_service
from services.fallback_analysis_service import (
    FallbackAnalysisService,
    get_fallback_analysis_service,
)
from services.model_gateway_service import ModelGateway, get_model_gateway
from services.product_service import ProductService, get_product_service
from services.recommendation_service import (
    RecommendationService,
    get_recommendation_service,
)
from exceptions import AnalysisUnavailableError, InsufficientDataError, ModelError

logger = structlog.get_logger(__name__)


class AnalysisState(str, Enum):
    ATTEMPT_MODEL = "attempt_model"
    USE_MODEL_RESULT = "use_model_result"
    ATTEMPT_FALLBACK = "attempt_fallback"
    USE_FALLBACK_RESULT = "use_fallback_result"
    UNAVAILABLE = "unavailable"


class AIAnalysisService:
    """
    Recommendation assembler.

    Orchestrates model-then-fallback analysis, enriches and ranks the
    recommendations, and records the result.
    """

    def __init__(
        self,
        customer_service: Optional[CustomerService] = None,
        product_service: Optional[ProductService] = None,
        gateway: Optional[ModelGateway] = None,
        fallback: Optional[FallbackAnalysisService] = None,
        recommendation_service: Optional[RecommendationService] = None,
        history: Optional[Repository] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.customers = customer_service or get_customer_service()
        self.products = product_service or get_product_service()
        self.gateway = gateway or get_model_gateway()
        self.fallback = fallback or get_fallback_analysis_service()
        self.recommendations = recommendation_service or get_recommendation_service()
        self.history = history or get_repository("analysis_history")
        self.analyzer = ConsumptionAnalyzer(self.config.full_confidence_intervals)

    # ===================
    # ANALYSIS
    # ===================

    async def analyze_customer(
        self,
        customer_id: str,
        limit: Optional[int] = None,
        as_of: Optional[datetime] = None,
        record: bool = True,
    ) -> AIAnalysisResult:
        """
        Full analysis for one customer.

        Args:
            customer_id: Customer to analyze
            limit: Keep at most this many recommendations
            as_of: Reference time (defaults to now)
            record: Append to history and refresh the active recommendations.
                Ignored for customers without a profile.

        Raises:
            AnalysisUnavailableError: If the fallback fails as well
        """
        request = self.build_request(customer_id)
        result = await self.assemble(request, limit=limit, as_of=as_of)
        if record and request.profile is not None:
            self._record(result)
        return result

    async def generate_recommendations(
        self,
        customer_id: str,
        limit: int = 5,
        as_of: Optional[datetime] = None,
    ) -> list[Recommendation]:
        """Top recommendations for a customer."""
        result = await self.analyze_customer(customer_id, limit=limit, as_of=as_of)
        return result.recommendations

    async def get_replenishment_alerts(
        self,
        customer_id: str,
        as_of: Optional[datetime] = None,
    ) -> ReplenishmentAlerts:
        """
        Split predicted purchases into urgent and upcoming.

        Urgent includes overdue predictions. Patterns without a predicted
        date are left out.
        """
        result = await self.analyze_customer(customer_id, as_of=as_of, record=False)

        urgent: list[ConsumptionPattern] = []
        upcoming: list[ConsumptionPattern] = []
        for pattern in result.consumption_patterns:
            days = pattern.days_until_next_purchase
            if days is None:
                continue
            if days <= self.config.urgent_window_days:
                urgent.append(pattern)
            elif days <= self.config.upcoming_window_days:
                upcoming.append(pattern)

        def soonest(p: ConsumptionPattern) -> tuple:
            return (p.days_until_next_purchase, p.product_id)

        return ReplenishmentAlerts(
            urgent=sorted(urgent, key=soonest),
            upcoming=sorted(upcoming, key=soonest),
        )

    def predict_next_purchase(
        self,
        customer_id: str,
        product_id: str,
        as_of: Optional[datetime] = None,
    ) -> PurchasePrediction:
        """Next purchase date of one product; no history gives confidence 0."""
        history = self.customers.get_purchases_in_range(customer_id, product_id=product_id)

        try:
            pattern = self.analyzer.analyze(history, product_id, as_of)
        except InsufficientDataError:
            logger.info(
                "purchase_prediction_no_history",
                customer_id=customer_id,
                product_id=product_id
            )
            return PurchasePrediction(product_id=product_id)

        return PurchasePrediction(
            product_id=product_id,
            predicted_date=pattern.predicted_next_purchase_date,
            confidence=pattern.confidence,
            average_days_between=pattern.average_days_between_purchases,
            purchase_count=pattern.purchase_count,
        )

    def get_analysis_history(self, customer_id: str, limit: int = 10) -> list[AIAnalysisResult]:
        """Recorded analyses, newest first."""
        rows = self.history.query(
            {"customer_id": customer_id},
            order_by="generated_at",
            descending=True,
            limit=limit,
        )
        return [AIAnalysisResult(**row) for row in rows]

    # ===================
    # ASSEMBLY
    # ===================

    def build_request(self, customer_id: str) -> AnalysisRequest:
        """Snapshot of everything the analysis paths read."""
        return AnalysisRequest(
            customer_id=customer_id,
            profile=self.customers.find_profile(customer_id),
            purchase_history=self.customers.get_purchase_history(customer_id),
            interactions=self.customers.get_interactions(customer_id, limit=None),
        )

    async def assemble(
        self,
        request: AnalysisRequest,
        limit: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> AIAnalysisResult:
        """
        Run the model-then-fallback state machine for one request.

        Raises:
            AnalysisUnavailableError: If the fallback fails
        """
        as_of = ensure_utc(as_of) or utc_now()
        customer_id = request.customer_id
        result: Optional[AIAnalysisResult] = None

        # Nothing to send the model; the fallback classifies the empty case
        state = AnalysisState.ATTEMPT_FALLBACK if request.is_empty else AnalysisState.ATTEMPT_MODEL

        if state == AnalysisState.ATTEMPT_MODEL:
            try:
                result = await self.gateway.analyze(request, as_of)
                state = AnalysisState.USE_MODEL_RESULT
            except ModelError as e:
                logger.warning(
                    "analysis_fallback_used",
                    customer_id=customer_id,
                    reason=e.code,
                    error=e.message
                )
                state = AnalysisState.ATTEMPT_FALLBACK

        if state == AnalysisState.ATTEMPT_FALLBACK:
            try:
                result = self.fallback.analyze(request, as_of)
                state = AnalysisState.USE_FALLBACK_RESULT
            except Exception as e:
                state = AnalysisState.UNAVAILABLE
                logger.error(
                    "analysis_unavailable",
                    customer_id=customer_id,
                    error=str(e)
                )
                raise AnalysisUnavailableError(customer_id, str(e)) from e

        result.recommendations = self.rank(self.enrich(result.recommendations), limit)

        logger.info(
            "customer_analysis_completed",
            customer_id=customer_id,
            state=state.value,
            provenance=result.provenance.value,
            recommendations=len(result.recommendations)
        )
        return result

    def enrich(self, recommendations: list[Recommendation]) -> list[Recommendation]:
        """Fill product name, SKU and category from the catalogue."""
        enriched = []
        for recommendation in recommendations:
            product = self.products.find_by_id(recommendation.product_id)
            if product is not None:
                recommendation = recommendation.model_copy(update={
                    "product_name": recommendation.product_name or product.name,
                    "product_sku": recommendation.product_sku or product.sku,
                    "category": recommendation.category or product.category,
                })
            enriched.append(recommendation)
        return enriched

    @staticmethod
    def rank(recommendations: list[Recommendation], limit: Optional[int] = None) -> list[Recommendation]:
        """Priority desc, then confidence desc, truncated to limit."""
        ranked = sort_recommendations(recommendations)
        return ranked[:limit] if limit is not None else ranked

    def _record(self, result: AIAnalysisResult) -> None:
        self.history.insert(result.to_record())
        self.recommendations.upsert_many(result.recommendations)
        self.customers.set_segment(result.customer_id, result.customer_profile.segment.value)


# Singleton instance for convenience
_ai_analysis_service: Optional[AIAnalysisService] = None

def get_ai_analysis_service() -> AIAnalysisService:
    """Get or create AIAnalysisService instance."""
    global _ai_analysis_service
    if _ai_analysis_service is None:
        _ai_analysis_service = AIAnalysisService()
    return _ai_analysis_service
