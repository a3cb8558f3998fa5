"""
Consumption analysis by interval averaging.

For one customer and one product, the gaps between consecutive purchases
give an average consumption interval; the next purchase is predicted one
interval after the last one. Confidence grows with the number of observed
intervals until it reaches full_confidence_intervals.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional

import structlog

from config import settings
from models.analysis import ConsumptionPattern
from models.base import utc_now, ensure_utc
from models.customer import PurchaseRecord
from exceptions import InsufficientDataError

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 86400


class ConsumptionAnalyzer:
    """
    Derive ConsumptionPatterns from purchase records.

    Stateless; every call works only on the records passed in.
    """

    def __init__(self, full_confidence_intervals: Optional[int] = None):
        self.full_confidence_intervals = (
            full_confidence_intervals or settings.full_confidence_intervals
        )

    def analyze(
        self,
        records: Iterable[PurchaseRecord],
        product_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> ConsumptionPattern:
        """
        Consumption pattern for a single product.

        Args:
            records: Purchases of one customer; other products are ignored
                when product_id is given
            product_id: Product to analyze (defaults to the first record's)
            as_of: Reference time for days_until_next_purchase

        Raises:
            InsufficientDataError: If there are no purchases of the product
        """
        purchases = list(records)
        if product_id is None and purchases:
            product_id = purchases[0].product_id
        purchases = [p for p in purchases if p.product_id == product_id]

        if not purchases:
            raise InsufficientDataError(
                customer_id=None,
                product_id=product_id
            )

        purchases.sort(key=lambda p: (p.timestamp, p.id))
        as_of = ensure_utc(as_of) or utc_now()

        # Duplicate timestamps carry no interval information
        intervals = []
        for previous, current in zip(purchases, purchases[1:]):
            delta = (current.timestamp - previous.timestamp).total_seconds() / SECONDS_PER_DAY
            if delta > 0:
                intervals.append(delta)

        last = purchases[-1]
        names = [p.product_name for p in purchases if p.product_name]
        average_quantity = sum(p.quantity for p in purchases) / len(purchases)

        pattern = ConsumptionPattern(
            product_id=product_id,
            product_name=names[-1] if names else None,
            purchase_count=len(purchases),
            interval_count=len(intervals),
            last_purchase_date=last.timestamp,
            average_quantity=round(average_quantity, 2),
            confidence=0.0,
        )

        if not intervals:
            return pattern

        average = sum(intervals) / len(intervals)
        predicted = last.timestamp + timedelta(days=average)

        pattern.average_days_between_purchases = round(average, 2)
        pattern.predicted_next_purchase_date = predicted
        pattern.days_until_next_purchase = round(
            (predicted - as_of).total_seconds() / SECONDS_PER_DAY, 2
        )
        pattern.confidence = round(
            min(1.0, len(intervals) / self.full_confidence_intervals), 4
        )
        return pattern

    def analyze_all(
        self,
        records: Iterable[PurchaseRecord],
        as_of: Optional[datetime] = None,
    ) -> list[ConsumptionPattern]:
        """Patterns for every product in a mixed history, ordered by product id."""
        by_product: dict[str, list[PurchaseRecord]] = defaultdict(list)
        for record in records:
            by_product[record.product_id].append(record)

        patterns = [
            self.analyze(by_product[product_id], product_id, as_of)
            for product_id in sorted(by_product)
        ]

        logger.debug(
            "consumption_patterns_computed",
            products=len(patterns),
            predicted=sum(1 for p in patterns if p.predicted_next_purchase_date)
        )
        return patterns


def purchase_occasions(records: Iterable[PurchaseRecord]) -> list[datetime]:
    """Distinct purchase times, ascending. Lines bought together are one basket."""
    return sorted({r.timestamp for r in records})


def basket_stats(records: list[PurchaseRecord]) -> tuple[int, float, float]:
    """
    Returns:
        Tuple of (purchase occasions, total spent, average basket value)
    """
    occasions = len(purchase_occasions(records))
    total = round(sum(r.total_amount for r in records), 2)
    average = round(total / occasions, 2) if occasions else 0.0
    return occasions, total, average
