"""
Alert service for business logic operations.

Alerts are active until dismissed; dismissing removes them from the list.
"""

from typing import Optional
from uuid import uuid4
import structlog

from models.alert import (
    AlertType,
    AlertSeverity,
    AlertCreate,
    AlertResponse,
)
from models.base import utc_now
from repositories import Repository, get_repository
from services.product_service import ProductService, get_product_service
from exceptions import AlertNotFoundError

logger = structlog.get_logger(__name__)


class AlertService:
    """
    Alert business logic.

    Handles listing, creation and dismissal of alerts, plus stock alert
    generation from the catalogue.
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        product_service: Optional[ProductService] = None,
    ):
        self.repo = repository or get_repository("alerts")
        self._products = product_service

    @property
    def products(self) -> ProductService:
        if self._products is None:
            self._products = get_product_service()
        return self._products

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        type: Optional[AlertType] = None,
        severity: Optional[AlertSeverity] = None,
        limit: int = 50,
    ) -> list[AlertResponse]:
        """
        Get active alerts, newest first.

        Args:
            type: Filter by alert type
            severity: Filter by severity
            limit: Maximum alerts returned
        """
        filters = {}
        if type:
            filters["type"] = type.value
        if severity:
            filters["severity"] = severity.value

        rows = self.repo.query(filters, order_by="created_at", descending=True, limit=limit)
        alerts = [AlertResponse(**row) for row in rows]

        logger.info(
            "alerts_retrieved",
            type=type,
            severity=severity,
            count=len(alerts)
        )
        return alerts

    def get_by_id(self, alert_id: str) -> AlertResponse:
        """
        Raises:
            AlertNotFoundError: If alert doesn't exist
        """
        row = self.repo.get(alert_id)
        if row is None:
            raise AlertNotFoundError(alert_id)
        return AlertResponse(**row)

    def count(self) -> int:
        return self.repo.count()

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: AlertCreate) -> AlertResponse:
        """Create a new alert."""
        alert = AlertResponse(
            **data.model_dump(),
            id=str(uuid4()),
            created_at=utc_now(),
        )
        self.repo.insert(alert.to_record())

        logger.info(
            "alert_created",
            alert_id=alert.id,
            type=alert.type.value,
            severity=alert.severity.value
        )
        return alert

    def dismiss(self, alert_id: str) -> None:
        """
        Dismiss an alert, removing it from the active list.

        Raises:
            AlertNotFoundError: If alert doesn't exist
        """
        if not self.repo.delete(alert_id):
            raise AlertNotFoundError(alert_id)
        logger.info("alert_dismissed", alert_id=alert_id)

    # ===================
    # ALERT GENERATION
    # ===================

    def generate_stock_alerts(self) -> list[AlertResponse]:
        """
        Create alerts for out-of-stock and low-stock products.

        Skips products that already have an active alert of the same type.
        """
        logger.info("generating_stock_alerts")

        existing = {
            (row.get("product_id"), row.get("type"))
            for row in self.repo.query()
        }

        created = []
        for product in self.products.get_low_stock():
            if product.quantity == 0:
                alert_type = AlertType.OUT_OF_STOCK
                severity = AlertSeverity.HIGH
                message = f"{product.name} is out of stock"
            else:
                alert_type = AlertType.LOW_STOCK
                severity = AlertSeverity.MEDIUM
                message = f"{product.name} is running low"

            if (product.id, alert_type.value) in existing:
                continue

            created.append(self.create(AlertCreate(
                type=alert_type,
                severity=severity,
                message=message,
                details=(
                    f"Current stock: {product.quantity} {product.unit or 'units'}. "
                    f"Minimum threshold: {product.min_threshold}."
                ),
                product_id=product.id,
                product_name=product.name,
                action_required=True,
            )))

        logger.info("stock_alerts_generated", count=len(created))
        return created


# Singleton instance for convenience
_alert_service: Optional[AlertService] = None

def get_alert_service() -> AlertService:
    """Get or create AlertService instance."""
    global _alert_service
    if _alert_service is None:
        _alert_service = AlertService()
    return _alert_service
