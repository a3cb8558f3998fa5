"""
Purchase order service.

Orders are created from catalogue products; status changes record who
approved an order and when it was received.
"""

import itertools
import threading
from typing import Optional
from uuid import uuid4
import structlog

from models.base import utc_now
from models.order import (
    DELETABLE_STATUSES,
    OrderCreate,
    OrderItem,
    OrderPriority,
    OrderResponse,
    OrderStatus,
    OrderSummary,
    OrderUpdate,
    OrdersByPriority,
)
from repositories import Repository, get_repository
from services.product_service import ProductService, get_product_service
from exceptions import OrderNotDeletableError, OrderNotFoundError

logger = structlog.get_logger(__name__)

FIRST_ORDER_NUMBER = 1000


class OrderService:
    """
    Order business logic.

    Handles CRUD operations, status side effects and the summary view.
    """

    def __init__(
        self,
        repository: Optional[Repository] = None,
        product_service: Optional[ProductService] = None,
    ):
        self.repo = repository or get_repository("orders")
        self.products = product_service or get_product_service()
        self._numbers = itertools.count(FIRST_ORDER_NUMBER + self.repo.count())
        self._numbers_lock = threading.Lock()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        status: Optional[OrderStatus] = None,
        priority: Optional[OrderPriority] = None,
        supplier: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[OrderResponse], int]:
        """
        Get orders, newest first.

        Returns:
            Tuple of (orders on this page, total matching)
        """
        logger.info(
            "getting_orders",
            status=status,
            priority=priority,
            supplier=supplier,
            page=page
        )

        filters = {}
        if status:
            filters["status"] = status.value
        if priority:
            filters["priority"] = priority.value

        orders = [OrderResponse(**row) for row in self.repo.query(filters)]
        if supplier:
            orders = [o for o in orders if supplier.lower() in o.supplier.lower()]
        orders.sort(key=lambda o: o.created_at, reverse=True)

        total = len(orders)
        offset = (page - 1) * limit

        logger.info("orders_retrieved", total=total)
        return orders[offset:offset + limit], total

    def get_by_id(self, order_id: str) -> OrderResponse:
        """
        Raises:
            OrderNotFoundError: If order doesn't exist
        """
        row = self.repo.get(order_id)
        if row is None:
            raise OrderNotFoundError(order_id)
        return OrderResponse(**row)

    def get_summary(self) -> OrderSummary:
        """Counts by status and priority, value totals, five newest orders."""
        orders = [OrderResponse(**row) for row in self.repo.query()]
        orders.sort(key=lambda o: o.created_at, reverse=True)

        def with_status(status: OrderStatus) -> int:
            return sum(1 for o in orders if o.status == status)

        total_value = sum(o.total_amount for o in orders)
        average = total_value / len(orders) if orders else 0.0

        by_priority = OrdersByPriority(**{
            p.value: sum(1 for o in orders if o.priority == p)
            for p in OrderPriority
        })

        return OrderSummary(
            total_orders=len(orders),
            pending_orders=with_status(OrderStatus.PENDING),
            approved_orders=with_status(OrderStatus.APPROVED),
            shipped_orders=with_status(OrderStatus.SHIPPED),
            received_orders=with_status(OrderStatus.RECEIVED),
            total_order_value=round(total_value, 2),
            average_order_value=round(average, 2),
            orders_by_priority=by_priority,
            recent_orders=orders[:5],
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: OrderCreate, user_id: str) -> OrderResponse:
        """
        Create an order, enriching each line from the catalogue.

        Raises:
            ProductNotFoundError: If a line references an unknown product
        """
        logger.info("creating_order", supplier=data.supplier, lines=len(data.items))

        items = []
        for line in data.items:
            product = self.products.get_by_id(line.product_id)
            items.append(OrderItem(
                **line.model_dump(),
                product_name=product.name,
                sku=product.sku,
                total_price=round(line.quantity * line.unit_price, 2),
            ))

        now = utc_now()
        order = OrderResponse(
            id=str(uuid4()),
            order_number=f"ORD-{self._next_number()}",
            supplier=data.supplier,
            items=items,
            total_items=sum(i.quantity for i in items),
            total_amount=round(sum(i.total_price for i in items), 2),
            status=OrderStatus.PENDING,
            priority=data.priority,
            created_by=user_id,
            created_at=now,
            updated_at=now,
            expected_delivery_date=data.expected_delivery_date,
            notes=data.notes,
        )
        self.repo.insert(order.to_record())

        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            total_amount=order.total_amount
        )
        return order

    def update(self, order_id: str, data: OrderUpdate, user_id: str) -> OrderResponse:
        """
        Update an order.

        Approving a pending order records the approver; moving to received
        records the delivery time.

        Raises:
            OrderNotFoundError: If order doesn't exist
        """
        order = self.get_by_id(order_id)
        now = utc_now()
        changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)

        if data.status is not None:
            if data.status == OrderStatus.APPROVED and order.status == OrderStatus.PENDING:
                changes["approved_by"] = user_id
                changes["approved_at"] = now.isoformat()
            if data.status == OrderStatus.RECEIVED and order.status != OrderStatus.RECEIVED:
                changes["actual_delivery_date"] = now.isoformat()

        changes["updated_at"] = now.isoformat()
        row = self.repo.update(order_id, changes)
        if row is None:
            raise OrderNotFoundError(order_id)

        logger.info(
            "order_updated",
            order_id=order_id,
            from_status=order.status.value,
            to_status=row.get("status")
        )
        return OrderResponse(**row)

    def delete(self, order_id: str) -> None:
        """
        Delete a pending or cancelled order.

        Raises:
            OrderNotFoundError: If order doesn't exist
            OrderNotDeletableError: If the order is already in progress
        """
        order = self.get_by_id(order_id)
        if order.status not in DELETABLE_STATUSES:
            raise OrderNotDeletableError(order_id, order.status.value)

        if not self.repo.delete(order_id):
            raise OrderNotFoundError(order_id)
        logger.info("order_deleted", order_id=order_id)

    def _next_number(self) -> int:
        with self._numbers_lock:
            return next(self._numbers)


# Singleton instance for convenience
_order_service: Optional[OrderService] = None

def get_order_service() -> OrderService:
    """Get or create OrderService instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
