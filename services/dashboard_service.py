"""
Dashboard summary.

Single-call overview of stock health for the home screen.
"""

from datetime import date
from typing import Optional
import structlog

from models.dashboard import DashboardSummary, TopCategory
from services.alert_service import AlertService, get_alert_service
from services.product_service import ProductService, get_product_service

logger = structlog.get_logger(__name__)

TOP_CATEGORY_COUNT = 3


class DashboardService:
    """Aggregates catalogue and alert figures."""

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        alert_service: Optional[AlertService] = None,
    ):
        self.products = product_service or get_product_service()
        self.alerts = alert_service or get_alert_service()

    def get_summary(self, today: Optional[date] = None) -> DashboardSummary:
        """
        Inventory value, stock health counts and category shares.

        Top categories are the largest by share of inventory value.
        """
        today = today or date.today()
        products = self.products.get_low_stock()
        low_stock = [p for p in products if p.quantity > 0]
        out_of_stock = [p for p in products if p.quantity == 0]

        total_value, total_items = self.products.get_totals()
        breakdown = self.products.get_category_breakdown()
        expired = len(self.products.get_expired(today))

        ranked = sorted(breakdown, key=lambda c: (-c.value, c.category))
        top_categories = [
            TopCategory(
                category=c.category,
                percentage=round(c.value / total_value * 100, 1) if total_value else 0.0,
            )
            for c in ranked[:TOP_CATEGORY_COUNT]
        ]

        summary = DashboardSummary(
            total_inventory_value=total_value,
            total_items=total_items,
            low_stock_items=len(low_stock),
            out_of_stock_items=len(out_of_stock),
            expired_items=expired,
            active_alerts=self.alerts.count(),
            category_breakdown=breakdown,
            top_categories=top_categories,
        )

        logger.info(
            "dashboard_summary_built",
            total_value=total_value,
            low_stock=summary.low_stock_items,
            out_of_stock=summary.out_of_stock_items
        )
        return summary


# Singleton instance for convenience
_dashboard_service: Optional[DashboardService] = None

def get_dashboard_service() -> DashboardService:
    """Get or create DashboardService instance."""
    global _dashboard_service
    if _dashboard_service is None:
        _dashboard_service = DashboardService()
    return _dashboard_service
