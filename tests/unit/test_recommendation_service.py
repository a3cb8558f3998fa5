"""
Unit tests for RecommendationService.

Run: pytest tests/unit/test_recommendation_service.py -v
"""

import pytest

from services.recommendation_service import RecommendationService
from models.recommendation import (
    Recommendation,
    RecommendationPriority,
    RecommendationType,
)
from exceptions import RecommendationNotFoundError

from tests.factories import RecommendationFactory


@pytest.fixture
def repo(memory_repo):
    return memory_repo("recommendations")


@pytest.fixture
def service(repo):
    return RecommendationService(repo)


def seed(repo, *records):
    for record in records:
        repo.put(record)


class TestGetAll:

    def test_sorted_by_priority_then_confidence(self, service, repo):
        seed(
            repo,
            RecommendationFactory.create(id="a", priority="low", confidence=0.99),
            RecommendationFactory.create(id="b", priority="high", confidence=0.9),
            RecommendationFactory.create(id="c", priority="high", confidence=0.95),
            RecommendationFactory.create(id="d", priority="medium", confidence=0.5),
        )

        result = service.get_all()

        assert [r.id for r in result.data] == ["c", "b", "d", "a"]

    def test_meta_covers_every_match_not_just_page(self, service, repo):
        seed(
            repo,
            RecommendationFactory.create(priority="high", estimated_savings=100.5),
            RecommendationFactory.create(priority="high", estimated_savings=20),
            RecommendationFactory.create(priority="low"),
        )

        result = service.get_all(page=1, limit=1)

        assert len(result.data) == 1
        assert result.pagination.total == 3
        assert result.pagination.has_next
        assert result.meta.high_priority == 2
        assert result.meta.low_priority == 1
        assert result.meta.total_savings == 120.5

    def test_filters(self, service, repo):
        seed(
            repo,
            RecommendationFactory.create(id="a", type="reorder", category="Beverages"),
            RecommendationFactory.create(id="b", type="promotion", category="Beverages"),
            RecommendationFactory.create(id="c", type="reorder", category="Snacks"),
        )

        by_type = service.get_all(type=RecommendationType.REORDER)
        by_category = service.get_all(category="snacks")
        by_priority = service.get_all(priority=RecommendationPriority.HIGH)

        assert {r.id for r in by_type.data} == {"a", "c"}
        assert [r.id for r in by_category.data] == ["c"]
        assert by_priority.data == []


class TestResolve:

    def test_accept_removes_from_active_set(self, service, repo):
        seed(repo, RecommendationFactory.create(id="rec-1"))

        accepted = service.accept("rec-1")

        assert accepted.id == "rec-1"
        with pytest.raises(RecommendationNotFoundError):
            service.get_by_id("rec-1")

    def test_dismiss_twice_is_not_found(self, service, repo):
        seed(repo, RecommendationFactory.create(id="rec-1"))
        service.dismiss("rec-1")

        with pytest.raises(RecommendationNotFoundError) as exc_info:
            service.dismiss("rec-1")

        assert exc_info.value.status_code == 404


class TestUpsert:

    def test_same_id_replaces(self, service):
        first = Recommendation(**RecommendationFactory.create(id="rec-1", confidence=0.2))
        second = first.model_copy(update={"confidence": 0.8})

        service.upsert_many([first])
        service.upsert_many([second])

        result = service.get_all()
        assert len(result.data) == 1
        assert result.data[0].confidence == 0.8
