"""
Active recommendation set.

Customer analysis upserts its recommendations here; users work through
them by accepting or dismissing, which removes them from the set.
"""

from typing import Optional
import structlog

from models.base import Pagination
from models.recommendation import (
    Recommendation,
    RecommendationListMeta,
    RecommendationListResponse,
    RecommendationPriority,
    RecommendationType,
    sort_recommendations,
)
from repositories import Repository, get_repository
from exceptions import RecommendationNotFoundError

logger = structlog.get_logger(__name__)


class RecommendationService:
    """Listing, upsert and resolution of active recommendations."""

    def __init__(self, repository: Optional[Repository] = None):
        self.repo = repository or get_repository("recommendations")

    def get_all(
        self,
        page: int = 1,
        limit: int = 20,
        type: Optional[RecommendationType] = None,
        priority: Optional[RecommendationPriority] = None,
        category: Optional[str] = None,
    ) -> RecommendationListResponse:
        """
        Paginated recommendations, most urgent first.

        meta counts priorities and sums savings over every match, not just
        the page.
        """
        filters = {}
        if type:
            filters["type"] = type.value
        if priority:
            filters["priority"] = priority.value

        recommendations = [Recommendation(**row) for row in self.repo.query(filters)]
        if category:
            recommendations = [
                r for r in recommendations
                if r.category and r.category.lower() == category.lower()
            ]
        recommendations = sort_recommendations(recommendations)

        def with_priority(p: RecommendationPriority) -> int:
            return sum(1 for r in recommendations if r.priority == p)

        meta = RecommendationListMeta(
            high_priority=with_priority(RecommendationPriority.HIGH),
            medium_priority=with_priority(RecommendationPriority.MEDIUM),
            low_priority=with_priority(RecommendationPriority.LOW),
            total_savings=round(sum(r.estimated_savings or 0 for r in recommendations), 2),
        )

        total = len(recommendations)
        offset = (page - 1) * limit

        logger.info("recommendations_retrieved", total=total, page=page)
        return RecommendationListResponse(
            data=recommendations[offset:offset + limit],
            pagination=Pagination.create(total, page, limit),
            meta=meta,
        )

    def get_by_id(self, recommendation_id: str) -> Recommendation:
        """
        Raises:
            RecommendationNotFoundError: If not in the active set
        """
        row = self.repo.get(recommendation_id)
        if row is None:
            raise RecommendationNotFoundError(recommendation_id)
        return Recommendation(**row)

    def upsert_many(self, recommendations: list[Recommendation]) -> None:
        """Add or replace recommendations by id."""
        for recommendation in recommendations:
            self.repo.put(recommendation.to_record())
        if recommendations:
            logger.info("recommendations_upserted", count=len(recommendations))

    def accept(self, recommendation_id: str) -> Recommendation:
        """Accept a recommendation and remove it from the active set."""
        return self._resolve(recommendation_id, "accepted")

    def dismiss(self, recommendation_id: str) -> Recommendation:
        """Dismiss a recommendation and remove it from the active set."""
        return self._resolve(recommendation_id, "dismissed")

    def _resolve(self, recommendation_id: str, outcome: str) -> Recommendation:
        recommendation = self.get_by_id(recommendation_id)
        if not self.repo.delete(recommendation_id):
            raise RecommendationNotFoundError(recommendation_id)

        logger.info(
            f"recommendation_{outcome}",
            recommendation_id=recommendation_id,
            product_id=recommendation.product_id,
            type=recommendation.type.value
        )
        return recommendation


# Singleton instance for convenience
_recommendation_service: Optional[RecommendationService] = None

def get_recommendation_service() -> RecommendationService:
    """Get or create RecommendationService instance."""
    global _recommendation_service
    if _recommendation_service is None:
        _recommendation_service = RecommendationService()
    return _recommendation_service
