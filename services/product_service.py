"""
Product service for business logic operations.

Catalogue CRUD plus the stock helpers other services rely on
(low-stock lists, category breakdown, stock lookups for analysis).
"""

from datetime import date
from typing import Optional
from uuid import uuid4
import structlog

from models.base import utc_now
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductSortField,
    SortOrder,
    CategoryBreakdown,
)
from repositories import Repository, get_repository
from exceptions import (
    DuplicateKeyError,
    ProductNotFoundError,
    ProductSKUExistsError,
)

logger = structlog.get_logger(__name__)

SORT_COLUMNS = {
    ProductSortField.NAME: "name",
    ProductSortField.SKU: "sku",
    ProductSortField.QUANTITY: "quantity",
    ProductSortField.PRICE: "price",
    ProductSortField.LAST_UPDATED: "last_updated",
}


class ProductService:
    """
    Product business logic.

    Handles CRUD operations for products.
    """

    def __init__(self, repository: Optional[Repository] = None):
        self.repo = repository or get_repository("products")

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        category: Optional[str] = None,
        supplier: Optional[str] = None,
        low_stock: bool = False,
        sort_by: ProductSortField = ProductSortField.NAME,
        sort_order: SortOrder = SortOrder.ASC,
    ) -> tuple[list[ProductResponse], int]:
        """
        Get products with optional filters.

        Args:
            page: Page number (1-indexed)
            limit: Items per page
            search: Substring of name, SKU or barcode (case-insensitive)
            category: Exact category (case-insensitive)
            supplier: Substring of supplier name (case-insensitive)
            low_stock: Only products at or below their threshold
            sort_by: Sort column
            sort_order: asc or desc

        Returns:
            Tuple of (products on this page, total matching)
        """
        logger.info(
            "getting_products",
            page=page,
            limit=limit,
            search=search,
            category=category,
            low_stock=low_stock
        )

        products = self._all()

        if search:
            term = search.lower()
            products = [
                p for p in products
                if term in p.name.lower()
                or term in p.sku.lower()
                or (p.barcode and term in p.barcode.lower())
            ]
        if category:
            products = [p for p in products if p.category.lower() == category.lower()]
        if supplier:
            products = [p for p in products if supplier.lower() in p.supplier.lower()]
        if low_stock:
            products = [p for p in products if p.is_low_stock]

        column = SORT_COLUMNS[sort_by]
        products.sort(
            key=lambda p: getattr(p, column),
            reverse=sort_order == SortOrder.DESC
        )

        total = len(products)
        offset = (page - 1) * limit
        page_items = products[offset:offset + limit]

        logger.info(
            "products_retrieved",
            count=len(page_items),
            total=total
        )

        return page_items, total

    def get_by_id(self, product_id: str) -> ProductResponse:
        """
        Get a single product by ID.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        product = self.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def find_by_id(self, product_id: str) -> Optional[ProductResponse]:
        """Get a product by ID, or None."""
        logger.debug("getting_product", product_id=product_id)
        row = self.repo.get(product_id)
        return ProductResponse(**row) if row else None

    def get_by_sku(self, sku: str) -> Optional[ProductResponse]:
        """
        Get a product by SKU (case-insensitive).

        Returns:
            ProductResponse or None if not found
        """
        wanted = sku.strip().upper()
        for product in self._all():
            if product.sku.upper() == wanted:
                return product
        return None

    def get_low_stock(self) -> list[ProductResponse]:
        """Products at or below their reorder threshold."""
        return [p for p in self._all() if p.is_low_stock]

    def get_expired(self, today: date) -> list[ProductResponse]:
        """Products whose expiration date has passed."""
        return [
            p for p in self._all()
            if p.expiration_date is not None and p.expiration_date < today
        ]

    def get_by_category(self, category: str) -> list[ProductResponse]:
        return [p for p in self._all() if p.category.lower() == category.lower()]

    def get_totals(self) -> tuple[float, int]:
        """
        Inventory value and unit count across the whole catalogue.

        Returns:
            Tuple of (total value, total items)
        """
        products = self._all()
        total_value = round(sum(p.inventory_value for p in products), 2)
        total_items = sum(p.quantity for p in products)
        return total_value, total_items

    def get_category_breakdown(self) -> list[CategoryBreakdown]:
        """Units and value per category, in first-seen order."""
        breakdown: dict[str, CategoryBreakdown] = {}
        for product in self._all():
            entry = breakdown.setdefault(
                product.category,
                CategoryBreakdown(category=product.category, item_count=0, value=0.0)
            )
            entry.item_count += product.quantity
            entry.value = round(entry.value + product.inventory_value, 2)
        return list(breakdown.values())

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product.

        Raises:
            ProductSKUExistsError: If SKU already exists
        """
        logger.info("creating_product", sku=data.sku)

        now = utc_now()
        product = ProductResponse(
            **data.model_dump(),
            id=str(uuid4()),
            created_at=now,
            updated_at=now,
            last_updated=now,
        )

        try:
            self.repo.insert(product.to_record(), unique_on="sku")
        except DuplicateKeyError:
            logger.warning("product_sku_exists", sku=data.sku)
            raise ProductSKUExistsError(data.sku)

        logger.info(
            "product_created",
            product_id=product.id,
            sku=product.sku
        )

        return product

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("updating_product", product_id=product_id)

        changes = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        now = utc_now().isoformat()
        changes["updated_at"] = now
        changes["last_updated"] = now

        row = self.repo.update(product_id, changes)
        if row is None:
            raise ProductNotFoundError(product_id)

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=[k for k in changes if k not in ("updated_at", "last_updated")]
        )

        return ProductResponse(**row)

    def delete(self, product_id: str) -> None:
        """
        Delete a product.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id)

        if not self.repo.delete(product_id):
            raise ProductNotFoundError(product_id)

        logger.info("product_deleted", product_id=product_id)

    # ===================
    # UTILITY METHODS
    # ===================

    def count(self) -> int:
        """Count total products."""
        return self.repo.count()

    def _all(self) -> list[ProductResponse]:
        return [ProductResponse(**row) for row in self.repo.query()]


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
