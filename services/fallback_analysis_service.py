"""
Deterministic fallback analysis.

Used whenever the hosted model cannot produce a result. Works only on the
customer's own records plus current catalogue stock, makes no network
calls, and returns the same answer for the same records and reference time
regardless of record order.
"""

import math
from collections import defaultdict
from datetime import datetime
from statistics import median
from typing import Optional
from uuid import uuid4

import structlog

from config import settings as default_settings
from config.settings import Settings
from models.analysis import (
    AIAnalysisResult,
    AnalysisRequest,
    ConsumptionPattern,
    CustomerInsight,
    CustomerSegment,
    Provenance,
    ShoppingFrequency,
)
from models.base import utc_now, ensure_utc
from models.customer import PurchaseRecord
from models.product import ProductResponse
from models.recommendation import (
    Recommendation,
    RecommendationPriority,
    RecommendationType,
    recommendation_id,
)
from services.consumption_service import (
    ConsumptionAnalyzer,
    basket_stats,
    purchase_occasions,
)
from services.product_service import ProductService, get_product_service

logger = structlog.get_logger(__name__)

DAYS_PER_MONTH = 30
FAVORITE_PRODUCT_COUNT = 3

# Median days between purchase occasions -> shopping frequency
FREQUENCY_BANDS = [
    (1.5, ShoppingFrequency.DAILY),
    (10, ShoppingFrequency.WEEKLY),
    (21, ShoppingFrequency.BIWEEKLY),
    (45, ShoppingFrequency.MONTHLY),
]


class FallbackAnalysisService:
    """
    Rule-based customer analysis.

    Segments come from purchase frequency; the only recommendation type
    produced is reorder, for products the customer will need soon that are
    at or below their stock threshold.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        analyzer: Optional[ConsumptionAnalyzer] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.products = product_service or get_product_service()
        self.analyzer = analyzer or ConsumptionAnalyzer(self.config.full_confidence_intervals)

    def analyze(
        self,
        request: AnalysisRequest,
        as_of: Optional[datetime] = None,
    ) -> AIAnalysisResult:
        """Best-effort analysis from the raw records."""
        as_of = ensure_utc(as_of) or utc_now()
        history = request.purchase_history

        patterns = self.analyzer.analyze_all(history, as_of)
        insight = self.build_insight(request, as_of)
        recommendations = self.build_recommendations(request.customer_id, patterns, as_of)

        confidence = (
            round(sum(p.confidence for p in patterns) / len(patterns), 4)
            if patterns else 0.0
        )

        logger.info(
            "fallback_analysis_completed",
            customer_id=request.customer_id,
            segment=insight.segment.value,
            patterns=len(patterns),
            recommendations=len(recommendations)
        )

        return AIAnalysisResult(
            analysis_id=str(uuid4()),
            customer_id=request.customer_id,
            generated_at=utc_now(),
            provenance=Provenance.FALLBACK,
            consumption_patterns=patterns,
            customer_profile=insight,
            recommendations=recommendations,
            confidence=confidence,
        )

    # ===================
    # CUSTOMER PROFILE
    # ===================

    def build_insight(self, request: AnalysisRequest, as_of: datetime) -> CustomerInsight:
        history = request.purchase_history
        occasions, total_spent, average_basket = basket_stats(history)

        return CustomerInsight(
            segment=self.classify_segment(history, len(request.interactions), as_of),
            shopping_frequency=self.shopping_frequency(history),
            purchase_count=occasions,
            total_spent=total_spent,
            average_basket_value=average_basket,
            favorite_products=self.favorite_products(history),
            interaction_count=len(request.interactions),
        )

    def classify_segment(
        self,
        history: list[PurchaseRecord],
        interaction_count: int,
        as_of: datetime,
    ) -> CustomerSegment:
        """
        Every input maps to exactly one segment.

        Purchase occasions per 30 days are measured from the first purchase
        to the later of the last purchase and as_of, over at least 30 days.
        """
        if not history:
            return CustomerSegment.BROWSER if interaction_count else CustomerSegment.UNKNOWN

        times = purchase_occasions(history)
        end = max(times[-1], as_of)
        span_days = max((end - times[0]).total_seconds() / 86400, DAYS_PER_MONTH)
        per_month = len(times) / (span_days / DAYS_PER_MONTH)

        if per_month >= self.config.frequent_purchases_per_month:
            return CustomerSegment.FREQUENT
        if per_month >= self.config.occasional_purchases_per_month:
            return CustomerSegment.OCCASIONAL
        return CustomerSegment.RARE

    @staticmethod
    def shopping_frequency(history: list[PurchaseRecord]) -> Optional[ShoppingFrequency]:
        times = purchase_occasions(history)
        if len(times) < 2:
            return None

        gaps = [
            (later - earlier).total_seconds() / 86400
            for earlier, later in zip(times, times[1:])
        ]
        typical = median(gaps)
        for upper, label in FREQUENCY_BANDS:
            if typical <= upper:
                return label
        return ShoppingFrequency.IRREGULAR

    @staticmethod
    def favorite_products(history: list[PurchaseRecord]) -> list[str]:
        """Most purchased products by units; product id breaks ties."""
        units: dict[str, int] = defaultdict(int)
        for record in history:
            units[record.product_id] += record.quantity
        ranked = sorted(units.items(), key=lambda item: (-item[1], item[0]))
        return [product_id for product_id, _ in ranked[:FAVORITE_PRODUCT_COUNT]]

    # ===================
    # RECOMMENDATIONS
    # ===================

    def build_recommendations(
        self,
        customer_id: str,
        patterns: list[ConsumptionPattern],
        as_of: datetime,
    ) -> list[Recommendation]:
        """Reorder recommendations for due products that are low on stock."""
        recommendations = []
        for pattern in patterns:
            if pattern.days_until_next_purchase is None:
                continue
            if pattern.days_until_next_purchase > self.config.urgent_window_days:
                continue

            product = self.products.find_by_id(pattern.product_id)
            if product is None or not product.is_low_stock:
                continue

            recommendations.append(self._reorder(customer_id, pattern, product, as_of))

        return recommendations

    @staticmethod
    def reorder_priority(days_until: float, stock: int) -> RecommendationPriority:
        if days_until <= 2 or stock <= 0:
            return RecommendationPriority.HIGH
        if days_until <= 5:
            return RecommendationPriority.MEDIUM
        return RecommendationPriority.LOW

    def _reorder(
        self,
        customer_id: str,
        pattern: ConsumptionPattern,
        product: ProductResponse,
        as_of: datetime,
    ) -> Recommendation:
        days_until = pattern.days_until_next_purchase
        expected = max(1, math.ceil(pattern.average_quantity or 1))
        quantity = expected + max(0, product.min_threshold - product.quantity)

        if days_until < 0:
            timing = f"is overdue by {abs(days_until):.0f} days"
        else:
            timing = f"is expected in {days_until:.0f} days"

        return Recommendation(
            id=recommendation_id(customer_id, product.id, RecommendationType.REORDER),
            type=RecommendationType.REORDER,
            priority=self.reorder_priority(days_until, product.quantity),
            confidence=pattern.confidence,
            product_id=product.id,
            product_name=product.name,
            product_sku=product.sku,
            category=product.category,
            title=f"Reorder {product.name}",
            description=(
                f"Next purchase of {product.name} {timing}; "
                f"only {product.quantity} {product.unit or 'units'} in stock "
                f"(threshold {product.min_threshold})"
            ),
            action=f"Reorder {quantity} units",
            impact="Prevents a stockout before the predicted purchase",
            days_until_action=max(0, math.floor(days_until)),
            recommended_quantity=quantity,
            customer_id=customer_id,
            source=Provenance.FALLBACK.value,
            created_at=as_of,
        )


# Singleton instance for convenience
_fallback_service: Optional[FallbackAnalysisService] = None

def get_fallback_analysis_service() -> FallbackAnalysisService:
    """Get or create FallbackAnalysisService instance."""
    global _fallback_service
    if _fallback_service is None:
        _fallback_service = FallbackAnalysisService()
    return _fallback_service
