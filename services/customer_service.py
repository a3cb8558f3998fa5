"""
Customer store.

Profiles plus the append-only purchase and interaction logs each profile
owns. Profiles are never hard-deleted.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

import pydantic
import structlog

from models.base import utc_now, ensure_utc
from models.customer import (
    CustomerPreferences,
    CustomerProfile,
    CustomerProfileCreate,
    CustomerProfileUpdate,
    InteractionCreate,
    ProductInteraction,
    PurchaseCreate,
    PurchaseImportResult,
    PurchaseRecord,
)
from repositories import Repository, get_repository
from exceptions import (
    CustomerExistsError,
    CustomerNotFoundError,
    DuplicateKeyError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


class CustomerService:
    """Customer profiles, purchase history and product interactions."""

    def __init__(
        self,
        customers: Optional[Repository] = None,
        purchases: Optional[Repository] = None,
        interactions: Optional[Repository] = None,
    ):
        self.customers = customers or get_repository("customers")
        self.purchases = purchases or get_repository("purchases")
        self.interactions = interactions or get_repository("interactions")

    # ===================
    # PROFILES
    # ===================

    def register(self, data: CustomerProfileCreate, customer_id: str) -> CustomerProfile:
        """
        Create a customer profile.

        Raises:
            CustomerExistsError: If the id is already registered
        """
        logger.info("registering_customer", customer_id=customer_id)

        now = utc_now()
        profile = CustomerProfile(
            **data.model_dump(exclude={"customer_id"}),
            customer_id=customer_id,
            created_at=now,
            updated_at=now,
        )

        try:
            self.customers.insert(profile.to_record())
        except DuplicateKeyError:
            raise CustomerExistsError(customer_id)

        logger.info("customer_registered", customer_id=customer_id)
        return profile

    def get_profile(self, customer_id: str) -> CustomerProfile:
        """
        Raises:
            CustomerNotFoundError: If no profile exists
        """
        row = self.customers.get(customer_id)
        if row is None:
            raise CustomerNotFoundError(customer_id)
        return CustomerProfile(**row)

    def find_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        row = self.customers.get(customer_id)
        return CustomerProfile(**row) if row else None

    def update_profile(self, customer_id: str, data: CustomerProfileUpdate) -> CustomerProfile:
        changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        return self._apply(customer_id, changes)

    def update_preferences(self, customer_id: str, preferences: CustomerPreferences) -> CustomerProfile:
        return self._apply(customer_id, {"preferences": preferences.to_record()})

    def set_segment(self, customer_id: str, segment: str) -> None:
        """Record the latest inferred segment on the profile, if it exists."""
        if self.customers.get(customer_id) is not None:
            self._apply(customer_id, {"segment": segment})

    def get_all(self, limit: int = 100) -> list[CustomerProfile]:
        rows = self.customers.query(order_by="created_at", limit=limit)
        return [CustomerProfile(**row) for row in rows]

    def get_by_segment(self, segment: str) -> list[CustomerProfile]:
        rows = self.customers.query({"segment": segment}, order_by="created_at")
        return [CustomerProfile(**row) for row in rows]

    def _apply(self, customer_id: str, changes: dict) -> CustomerProfile:
        changes["updated_at"] = utc_now().isoformat()
        row = self.customers.update(customer_id, changes)
        if row is None:
            raise CustomerNotFoundError(customer_id)

        logger.info("customer_updated", customer_id=customer_id, fields=sorted(changes))
        return CustomerProfile(**row)

    # ===================
    # PURCHASES
    # ===================

    def add_purchase(self, customer_id: str, data: PurchaseCreate) -> PurchaseRecord:
        """Append a purchase to the customer's history."""
        self.get_profile(customer_id)

        record = PurchaseRecord(
            **data.model_dump(exclude={"timestamp"}),
            id=str(uuid4()),
            customer_id=customer_id,
            timestamp=data.timestamp or utc_now(),
        )
        self.purchases.insert(record.to_record())

        logger.info(
            "purchase_recorded",
            customer_id=customer_id,
            product_id=record.product_id,
            quantity=record.quantity
        )
        return record

    def import_purchases(self, customer_id: str, purchases: list[dict]) -> PurchaseImportResult:
        """
        Append many purchases; invalid rows are counted, not fatal.

        Raises:
            CustomerNotFoundError: If no profile exists
        """
        self.get_profile(customer_id)

        imported = 0
        failed = 0
        for index, raw in enumerate(purchases):
            try:
                self.add_purchase(customer_id, PurchaseCreate.model_validate(raw))
                imported += 1
            except (pydantic.ValidationError, ValidationError) as e:
                failed += 1
                logger.warning("purchase_import_row_failed", row=index, error=str(e))

        logger.info(
            "purchases_imported",
            customer_id=customer_id,
            imported=imported,
            failed=failed
        )
        return PurchaseImportResult(imported=imported, failed=failed)

    def get_purchases(self, customer_id: str, limit: Optional[int] = 50) -> list[PurchaseRecord]:
        """Purchases newest first."""
        records = self._purchases_of(customer_id)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit] if limit is not None else records

    def get_purchase_history(self, customer_id: str) -> list[PurchaseRecord]:
        """Complete history, oldest first."""
        records = self._purchases_of(customer_id)
        records.sort(key=lambda r: r.timestamp)
        return records

    def get_purchases_in_range(
        self,
        customer_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        product_id: Optional[str] = None,
    ) -> list[PurchaseRecord]:
        """Purchases with start <= timestamp < end, oldest first."""
        start = ensure_utc(start)
        end = ensure_utc(end)
        records = [
            r for r in self.get_purchase_history(customer_id)
            if (start is None or r.timestamp >= start)
            and (end is None or r.timestamp < end)
            and (product_id is None or r.product_id == product_id)
        ]
        return records

    def _purchases_of(self, customer_id: str) -> list[PurchaseRecord]:
        return [
            PurchaseRecord(**row)
            for row in self.purchases.query({"customer_id": customer_id})
        ]

    # ===================
    # INTERACTIONS
    # ===================

    def track_interaction(self, customer_id: str, data: InteractionCreate) -> ProductInteraction:
        """Append an interaction event."""
        self.get_profile(customer_id)

        event = ProductInteraction(
            **data.model_dump(exclude={"timestamp"}),
            id=str(uuid4()),
            customer_id=customer_id,
            timestamp=data.timestamp or utc_now(),
        )
        self.interactions.insert(event.to_record())

        logger.debug(
            "interaction_tracked",
            customer_id=customer_id,
            product_id=event.product_id,
            interaction_type=event.interaction_type.value
        )
        return event

    def get_interactions(self, customer_id: str, limit: Optional[int] = 100) -> list[ProductInteraction]:
        """Interactions newest first."""
        return self._recent(self.interactions.query({"customer_id": customer_id}), limit)

    def get_product_interactions(self, product_id: str, limit: Optional[int] = 100) -> list[ProductInteraction]:
        return self._recent(self.interactions.query({"product_id": product_id}), limit)

    @staticmethod
    def _recent(rows: list[dict], limit: Optional[int]) -> list[ProductInteraction]:
        events = [ProductInteraction(**row) for row in rows]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit] if limit is not None else events


# Singleton instance for convenience
_customer_service: Optional[CustomerService] = None

def get_customer_service() -> CustomerService:
    """Get or create CustomerService instance."""
    global _customer_service
    if _customer_service is None:
        _customer_service = CustomerService()
    return _customer_service
