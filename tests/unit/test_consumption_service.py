"""
Unit tests for ConsumptionAnalyzer.

Run: pytest tests/unit/test_consumption_service.py -v
"""

import pytest

from services.consumption_service import (
    ConsumptionAnalyzer,
    basket_stats,
    purchase_occasions,
)
from models.customer import PurchaseRecord
from exceptions import InsufficientDataError

from tests.factories import PurchaseFactory, day


def records(rows: list) -> list[PurchaseRecord]:
    return [PurchaseRecord(**row) for row in rows]


class TestAnalyze:
    """Tests for ConsumptionAnalyzer.analyze()"""

    def test_three_purchases_ten_days_apart(self):
        """Purchases on day 0, 10, 20 predict day 30 with two of five intervals."""
        history = records(PurchaseFactory.create_series("cust-1", "prod-x", [0, 10, 20]))

        pattern = ConsumptionAnalyzer(full_confidence_intervals=5).analyze(
            history, "prod-x", as_of=day(20)
        )

        assert pattern.average_days_between_purchases == 10
        assert pattern.predicted_next_purchase_date == day(30)
        assert pattern.confidence == pytest.approx(0.4)
        assert pattern.interval_count == 2
        assert pattern.purchase_count == 3
        assert pattern.days_until_next_purchase == pytest.approx(10)

    def test_unsorted_input_gives_same_pattern(self):
        """Records are sorted by time before intervals are taken."""
        rows = PurchaseFactory.create_series("cust-1", "prod-x", [0, 10, 20])
        analyzer = ConsumptionAnalyzer(5)

        forward = analyzer.analyze(records(rows), "prod-x", as_of=day(25))
        backward = analyzer.analyze(records(list(reversed(rows))), "prod-x", as_of=day(25))

        assert forward == backward

    def test_confidence_caps_at_one(self):
        history = records(PurchaseFactory.create_series("cust-1", "prod-x", range(0, 80, 7)))

        pattern = ConsumptionAnalyzer(5).analyze(history, "prod-x")

        assert pattern.confidence == 1.0

    def test_single_purchase_has_no_prediction(self):
        history = records([PurchaseFactory.create(product_id="prod-x", at=day(3))])

        pattern = ConsumptionAnalyzer(5).analyze(history, "prod-x")

        assert pattern.confidence == 0
        assert pattern.predicted_next_purchase_date is None
        assert pattern.purchase_count == 1
        assert pattern.last_purchase_date == day(3)

    def test_duplicate_timestamps_are_not_intervals(self):
        """Two lines at the same instant plus one later give one interval."""
        rows = PurchaseFactory.create_series("cust-1", "prod-x", [0, 0, 6])

        pattern = ConsumptionAnalyzer(5).analyze(records(rows), "prod-x")

        assert pattern.interval_count == 1
        assert pattern.average_days_between_purchases == 6
        assert pattern.confidence == pytest.approx(0.2)

    def test_only_duplicate_timestamps_has_no_prediction(self):
        rows = PurchaseFactory.create_series("cust-1", "prod-x", [4, 4, 4])

        pattern = ConsumptionAnalyzer(5).analyze(records(rows), "prod-x")

        assert pattern.confidence == 0
        assert pattern.predicted_next_purchase_date is None

    def test_no_purchases_raises(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            ConsumptionAnalyzer(5).analyze([], "prod-x")

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["product_id"] == "prod-x"

    def test_other_products_are_ignored(self):
        rows = (
            PurchaseFactory.create_series("cust-1", "prod-x", [0, 10])
            + PurchaseFactory.create_series("cust-1", "prod-y", [0, 1, 2, 3])
        )

        pattern = ConsumptionAnalyzer(5).analyze(records(rows), "prod-x")

        assert pattern.purchase_count == 2
        assert pattern.average_days_between_purchases == 10

    def test_overdue_prediction_is_negative(self):
        history = records(PurchaseFactory.create_series("cust-1", "prod-x", [0, 10]))

        pattern = ConsumptionAnalyzer(5).analyze(history, "prod-x", as_of=day(25))

        assert pattern.days_until_next_purchase == pytest.approx(-5)


class TestAnalyzeAll:
    """Tests for ConsumptionAnalyzer.analyze_all()"""

    def test_groups_by_product_in_id_order(self):
        rows = (
            PurchaseFactory.create_series("cust-1", "prod-b", [0, 5])
            + PurchaseFactory.create_series("cust-1", "prod-a", [0])
        )

        patterns = ConsumptionAnalyzer(5).analyze_all(records(rows), as_of=day(5))

        assert [p.product_id for p in patterns] == ["prod-a", "prod-b"]
        assert patterns[0].confidence == 0
        assert patterns[1].average_days_between_purchases == 5

    def test_empty_history_gives_no_patterns(self):
        assert ConsumptionAnalyzer(5).analyze_all([]) == []


class TestBasketStats:

    def test_lines_at_same_time_are_one_occasion(self):
        rows = [
            PurchaseFactory.create(product_id="a", at=day(0), quantity=2, unit_price=5),
            PurchaseFactory.create(product_id="b", at=day(0), quantity=1, unit_price=10),
            PurchaseFactory.create(product_id="a", at=day(7), quantity=1, unit_price=5),
        ]

        occasions, total, average = basket_stats(records(rows))

        assert occasions == 2
        assert total == 25
        assert average == 12.5
        assert purchase_occasions(records(rows)) == [day(0), day(7)]

    def test_empty(self):
        assert basket_stats([]) == (0, 0.0, 0.0)
