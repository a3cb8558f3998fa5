"""
Unit tests for AIAnalysisService (model-then-fallback assembly).

Run: pytest tests/unit/test_ai_analysis_service.py -v
"""

import asyncio

import pytest

from services.ai_analysis_service import AIAnalysisService
from services.customer_service import CustomerService
from services.fallback_analysis_service import FallbackAnalysisService
from services.model_gateway_service import ModelGateway
from services.recommendation_service import RecommendationService
from models.analysis import CustomerSegment, Provenance
from models.customer import CustomerProfileCreate
from models.recommendation import RecommendationPriority
from repositories import get_repository
from exceptions import AnalysisUnavailableError

from tests.factories import ProductFactory, PurchaseFactory, RecommendationFactory, day
from tests.fakes import (
    FakeClock,
    FakeModelClient,
    bad_request_error,
    model_answer,
    timeout_error,
)
from models.recommendation import Recommendation


class BrokenFallback:
    def analyze(self, request, as_of=None):
        raise RuntimeError("catalogue offline")


def build_service(settings, *outcomes, fallback=None):
    clock = FakeClock()
    client = FakeModelClient(*outcomes)
    gateway = ModelGateway(
        client=client,
        config=settings,
        sleep=clock.sleep,
        clock=clock,
    )
    service = AIAnalysisService(
        gateway=gateway,
        fallback=fallback or FallbackAnalysisService(config=settings),
        config=settings,
    )
    return service, client


def seed_customer(customer_id="cust-1", series=None):
    """Register a customer and store purchase series {product_id: [days]}."""
    CustomerService().register(CustomerProfileCreate(name="Dana"), customer_id)
    purchases = get_repository("purchases")
    for product_id, days in (series or {}).items():
        for row in PurchaseFactory.create_series(customer_id, product_id, days, quantity=2):
            purchases.put(row)


def seed_products(*records):
    repo = get_repository("products")
    for record in records:
        repo.put(record)


@pytest.fixture
def offline_settings(test_settings):
    """Model switched off, so every analysis takes the fallback path."""
    return test_settings.model_copy(update={"ai_analysis_enabled": False})


class TestModelPath:

    def test_model_result_is_used(self, test_settings):
        seed_products(ProductFactory.create(id="prod-x", name="Coffee", sku="PCB-001"))
        seed_customer(series={"prod-x": [0, 10, 20]})
        service, client = build_service(test_settings, model_answer())

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(20)))

        assert result.provenance == Provenance.MODEL
        assert result.model_id == test_settings.ai_model_id
        assert len(client.calls) == 1
        rec = result.recommendations[0]
        assert rec.product_sku == "PCB-001"
        assert rec.category == "Beverages"

    def test_recommendations_ranked_by_priority_then_confidence(self, test_settings):
        seed_customer(series={"prod-x": [0, 10], "prod-y": [0, 10]})
        base = model_answer()["recommendations"][0]
        answer = model_answer(recommendations=[
            {**base, "product_id": "prod-x", "priority": "high", "confidence": 0.9},
            {**base, "product_id": "prod-y", "priority": "high", "confidence": 0.95},
            {**base, "product_id": "prod-x", "type": "promotion", "priority": "low", "confidence": 0.99},
        ])
        service, _ = build_service(test_settings, answer)

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(10)))

        assert [(r.product_id, r.confidence) for r in result.recommendations] == [
            ("prod-y", 0.95),
            ("prod-x", 0.9),
            ("prod-x", 0.99),
        ]

    def test_limit_truncates_after_ranking(self, test_settings):
        seed_customer(series={"prod-x": [0, 10]})
        base = model_answer()["recommendations"][0]
        answer = model_answer(recommendations=[
            {**base, "priority": "low", "confidence": 0.99},
            {**base, "type": "promotion", "priority": "high", "confidence": 0.5},
        ])
        service, _ = build_service(test_settings, answer)

        recs = asyncio.run(service.generate_recommendations("cust-1", limit=1, as_of=day(10)))

        assert len(recs) == 1
        assert recs[0].priority == RecommendationPriority.HIGH


class TestFallbackPath:

    def test_model_timeouts_fall_back(self, test_settings):
        """Every attempt times out; the fallback answers instead."""
        seed_products(ProductFactory.create_low_stock(id="prod-x"))
        seed_customer(series={"prod-x": [0, 10, 20]})
        service, client = build_service(
            test_settings, timeout_error(), timeout_error(), timeout_error()
        )

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(25)))

        assert len(client.calls) == test_settings.model_max_retries + 1
        assert result.provenance == Provenance.FALLBACK
        assert result.model_id is None
        assert result.consumption_patterns[0].days_until_next_purchase == pytest.approx(5)
        assert [r.source for r in result.recommendations] == ["fallback"]

    def test_non_retryable_model_error_falls_back_at_once(self, test_settings):
        seed_customer(series={"prod-x": [0, 10]})
        service, client = build_service(test_settings, bad_request_error())

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(10)))

        assert len(client.calls) == 1
        assert result.provenance == Provenance.FALLBACK

    def test_invalid_model_json_falls_back(self, test_settings):
        seed_customer(series={"prod-x": [0, 10]})
        service, _ = build_service(test_settings, "{not json")

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(10)))

        assert result.provenance == Provenance.FALLBACK

    def test_answer_about_unknown_products_falls_back(self, test_settings):
        seed_customer(series={"prod-x": [0, 10]})
        base = model_answer()["recommendations"][0]
        answer = model_answer(recommendations=[{**base, "product_id": "prod-does-not-exist"}])
        service, client = build_service(test_settings, answer)

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(10)))

        assert len(client.calls) == 1
        assert result.provenance == Provenance.FALLBACK
        assert "prod-does-not-exist" not in [r.product_id for r in result.recommendations]
        assert RecommendationService().get_all().data == []

    def test_empty_customer_skips_model(self, test_settings):
        seed_customer()
        service, client = build_service(test_settings, model_answer())

        result = asyncio.run(service.analyze_customer("cust-1"))

        assert client.calls == []
        assert result.provenance == Provenance.FALLBACK
        assert result.customer_profile.segment == CustomerSegment.UNKNOWN

    def test_unregistered_customer_gets_unknown_analysis(self, offline_settings):
        service, _ = build_service(offline_settings)

        result = asyncio.run(service.analyze_customer("nobody"))

        assert result.customer_profile.segment == CustomerSegment.UNKNOWN
        assert result.recommendations == []

    def test_fallback_failure_is_unavailable(self, test_settings):
        seed_customer(series={"prod-x": [0, 10]})
        service, _ = build_service(
            test_settings, bad_request_error(), fallback=BrokenFallback()
        )

        with pytest.raises(AnalysisUnavailableError) as exc_info:
            asyncio.run(service.analyze_customer("cust-1"))

        assert exc_info.value.status_code == 503
        assert "catalogue offline" in exc_info.value.details["reason"]


class TestRecording:

    def test_history_recommendations_and_segment_are_stored(self, offline_settings):
        seed_products(ProductFactory.create_low_stock(id="prod-x"))
        seed_customer(series={"prod-x": [0, 7, 14, 21, 28]})
        service, _ = build_service(offline_settings)

        asyncio.run(service.analyze_customer("cust-1", as_of=day(30)))
        asyncio.run(service.analyze_customer("cust-1", as_of=day(31)))

        history = service.get_analysis_history("cust-1")
        assert len(history) == 2
        assert history[0].generated_at >= history[1].generated_at

        # Stable ids: a second run replaces the reorder, it does not add one
        active = RecommendationService().get_all().data
        assert len(active) == 1
        assert active[0].product_id == "prod-x"

        profile = CustomerService().get_profile("cust-1")
        assert profile.segment == CustomerSegment.FREQUENT.value

    def test_read_only_analysis_records_nothing(self, offline_settings):
        seed_products(ProductFactory.create_low_stock(id="prod-x"))
        seed_customer(series={"prod-x": [0, 7, 14, 21, 28]})
        service, _ = build_service(offline_settings)

        result = asyncio.run(service.analyze_customer("cust-1", as_of=day(30), record=False))
        asyncio.run(service.get_replenishment_alerts("cust-1", as_of=day(30)))

        assert result.recommendations
        assert service.get_analysis_history("cust-1") == []
        assert RecommendationService().get_all().data == []
        assert CustomerService().get_profile("cust-1").segment is None

    def test_unregistered_customer_is_not_recorded(self, offline_settings):
        service, _ = build_service(offline_settings)

        asyncio.run(service.analyze_customer("nobody"))

        assert service.get_analysis_history("nobody") == []

    def test_history_limit(self, offline_settings):
        seed_customer(series={"prod-x": [0, 10]})
        service, _ = build_service(offline_settings)

        for _ in range(3):
            asyncio.run(service.analyze_customer("cust-1"))

        assert len(service.get_analysis_history("cust-1", limit=2)) == 2


class TestReplenishmentAlerts:

    def test_split_into_urgent_and_upcoming(self, offline_settings):
        seed_customer(series={
            "prod-x": [0, 10, 20],
            "prod-y": [0, 20],
            "prod-z": [5],
            "prod-w": [0, 50],
        })
        service, _ = build_service(offline_settings)

        alerts = asyncio.run(service.get_replenishment_alerts("cust-1", as_of=day(25)))

        assert [p.product_id for p in alerts.urgent] == ["prod-x"]
        assert [p.product_id for p in alerts.upcoming] == ["prod-y"]

    def test_overdue_is_urgent(self, offline_settings):
        seed_customer(series={"prod-x": [0, 10], "prod-y": [0, 3]})
        service, _ = build_service(offline_settings)

        alerts = asyncio.run(service.get_replenishment_alerts("cust-1", as_of=day(30)))

        # prod-y was due on day 6, prod-x on day 20
        assert [p.product_id for p in alerts.urgent] == ["prod-y", "prod-x"]
        assert alerts.upcoming == []


class TestPredictNextPurchase:

    def test_no_history_has_zero_confidence(self, offline_settings):
        seed_customer()
        service, _ = build_service(offline_settings)

        prediction = service.predict_next_purchase("cust-1", "prod-x")

        assert prediction.confidence == 0
        assert prediction.predicted_date is None
        assert prediction.purchase_count == 0

    def test_prediction_from_history(self, offline_settings):
        seed_customer(series={"prod-x": [0, 10, 20], "prod-y": [0, 1]})
        service, _ = build_service(offline_settings)

        prediction = service.predict_next_purchase("cust-1", "prod-x", as_of=day(20))

        assert prediction.predicted_date == day(30)
        assert prediction.confidence == pytest.approx(0.4)
        assert prediction.average_days_between == 10
        assert prediction.purchase_count == 3


def test_rank_without_limit_keeps_everything():
    recs = [
        Recommendation(**RecommendationFactory.create(priority="low", confidence=0.9)),
        Recommendation(**RecommendationFactory.create(priority="medium", confidence=0.1)),
    ]

    ranked = AIAnalysisService.rank(recs)

    assert [r.priority for r in ranked] == [
        RecommendationPriority.MEDIUM,
        RecommendationPriority.LOW,
    ]
