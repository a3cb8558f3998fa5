"""
Unit tests for ProductService.

Run: pytest tests/unit/test_product_service.py -v
Run with coverage: pytest tests/unit/test_product_service.py --cov=services/product_service
"""

from datetime import date

import pytest

# Import what we're testing
from services.product_service import ProductService, get_product_service
from models.product import ProductCreate, ProductUpdate, ProductSortField, SortOrder
from exceptions import ProductNotFoundError, ProductSKUExistsError

# Import test utilities
from tests.factories import ProductFactory


@pytest.fixture
def repo(memory_repo):
    return memory_repo("products")


@pytest.fixture
def service(repo):
    return ProductService(repo)


def new_product(**overrides) -> ProductCreate:
    data = {
        "name": "Premium Coffee Beans",
        "sku": "pcb-001",
        "category": "Beverages",
        "quantity": 25,
        "min_threshold": 10,
        "price": 24.99,
        "supplier": "Coffee Roasters Inc.",
    }
    data.update(overrides)
    return ProductCreate(**data)


class TestProductServiceGetAll:
    """Tests for ProductService.get_all()"""

    def test_get_all_returns_products(self, service, repo):
        """Should return list of products with total count."""
        # Arrange
        for product in ProductFactory.create_batch(3):
            repo.put(product)

        # Act
        products, total = service.get_all()

        # Assert
        assert len(products) == 3
        assert total == 3

    def test_get_all_empty_returns_empty_list(self, service):
        products, total = service.get_all()

        assert products == []
        assert total == 0

    def test_get_all_with_pagination(self, service, repo):
        """Should respect page and limit, total counts every match."""
        for product in ProductFactory.create_batch(5):
            repo.put(product)

        products, total = service.get_all(page=2, limit=2)

        assert len(products) == 2
        assert total == 5

    def test_search_matches_name_sku_and_barcode(self, service, repo):
        repo.put(ProductFactory.create(name="Organic Green Tea", sku="OGT-002"))
        repo.put(ProductFactory.create(name="Water", sku="WWF-003", barcode="7290001"))
        repo.put(ProductFactory.create(name="Coffee", sku="PCB-001"))

        assert [p.sku for p in service.get_all(search="green")[0]] == ["OGT-002"]
        assert [p.sku for p in service.get_all(search="wwf")[0]] == ["WWF-003"]
        assert [p.sku for p in service.get_all(search="72900")[0]] == ["WWF-003"]

    def test_category_filter_is_case_insensitive(self, service, repo):
        repo.put(ProductFactory.create(category="Beverages"))
        repo.put(ProductFactory.create(category="Snacks"))

        products, total = service.get_all(category="beverages")

        assert total == 1
        assert products[0].category == "Beverages"

    def test_low_stock_filter(self, service, repo):
        repo.put(ProductFactory.create_low_stock(sku="LOW-001"))
        repo.put(ProductFactory.create(sku="OK-001", quantity=50, min_threshold=10))
        repo.put(ProductFactory.create(sku="EDGE-001", quantity=10, min_threshold=10))

        products, _ = service.get_all(low_stock=True, sort_by=ProductSortField.SKU)

        assert [p.sku for p in products] == ["EDGE-001", "LOW-001"]

    def test_sort_by_quantity_desc(self, service, repo):
        for quantity in (5, 50, 20):
            repo.put(ProductFactory.create(quantity=quantity))

        products, _ = service.get_all(sort_by=ProductSortField.QUANTITY, sort_order=SortOrder.DESC)

        assert [p.quantity for p in products] == [50, 20, 5]


class TestProductServiceGetById:
    """Tests for ProductService.get_by_id()"""

    def test_get_by_id_returns_product(self, service, repo):
        repo.put(ProductFactory.create(id="test-uuid-123", sku="PCB-001"))

        product = service.get_by_id("test-uuid-123")

        assert product.id == "test-uuid-123"
        assert product.sku == "PCB-001"

    def test_get_by_id_not_found_raises_error(self, service):
        """Should raise ProductNotFoundError when product doesn't exist."""
        with pytest.raises(ProductNotFoundError) as exc_info:
            service.get_by_id("nonexistent-id")

        assert exc_info.value.status_code == 404
        assert "PRODUCT_NOT_FOUND" in exc_info.value.code

    def test_find_by_id_returns_none(self, service):
        assert service.find_by_id("nonexistent-id") is None


class TestProductServiceGetBySku:
    """Tests for ProductService.get_by_sku()"""

    def test_get_by_sku_case_insensitive(self, service, repo):
        repo.put(ProductFactory.create(sku="PCB-001"))

        assert service.get_by_sku(" pcb-001 ").sku == "PCB-001"

    def test_get_by_sku_not_found_returns_none(self, service):
        assert service.get_by_sku("NOPE") is None


class TestProductServiceCreate:
    """Tests for ProductService.create()"""

    def test_create_product_success(self, service):
        product = service.create(new_product())

        assert product.id
        assert product.sku == "PCB-001"
        assert service.get_by_id(product.id).name == "Premium Coffee Beans"

    def test_create_product_duplicate_sku_raises_error(self, service):
        """SKU uniqueness ignores case."""
        service.create(new_product(sku="PCB-001"))

        with pytest.raises(ProductSKUExistsError) as exc_info:
            service.create(new_product(sku="pcb-001", name="Other"))

        assert exc_info.value.status_code == 409
        assert service.count() == 1


class TestProductServiceUpdate:
    """Tests for ProductService.update()"""

    def test_update_product_success(self, service):
        product = service.create(new_product())

        updated = service.update(product.id, ProductUpdate(quantity=3))

        assert updated.quantity == 3
        assert updated.name == product.name
        assert updated.is_low_stock
        assert updated.last_updated >= product.last_updated

    def test_update_ignores_explicit_nulls(self, service):
        product = service.create(new_product())

        updated = service.update(product.id, ProductUpdate(name=None, quantity=7))

        assert updated.name == product.name
        assert updated.quantity == 7
        products, total = service.get_all()
        assert total == 1
        assert products[0].name == product.name

    def test_update_product_not_found_raises_error(self, service):
        with pytest.raises(ProductNotFoundError):
            service.update("nonexistent-id", ProductUpdate(quantity=3))


class TestProductServiceDelete:
    """Tests for ProductService.delete()"""

    def test_delete_product_success(self, service, repo):
        repo.put(ProductFactory.create(id="test-uuid-123"))

        service.delete("test-uuid-123")

        assert service.find_by_id("test-uuid-123") is None

    def test_delete_product_not_found_raises_error(self, service):
        with pytest.raises(ProductNotFoundError):
            service.delete("nonexistent-id")


class TestProductServiceStock:
    """Tests for the catalogue aggregates."""

    def test_totals_and_breakdown(self, service, repo):
        repo.put(ProductFactory.create(category="Beverages", quantity=10, price=2.5))
        repo.put(ProductFactory.create(category="Beverages", quantity=4, price=10))
        repo.put(ProductFactory.create(category="Snacks", quantity=1, price=3))

        total_value, total_items = service.get_totals()
        breakdown = {b.category: b for b in service.get_category_breakdown()}

        assert total_value == 68.0
        assert total_items == 15
        assert breakdown["Beverages"].item_count == 14
        assert breakdown["Beverages"].value == 65.0
        assert breakdown["Snacks"].value == 3.0

    def test_get_expired(self, service, repo):
        repo.put(ProductFactory.create(sku="OLD-001", expiration_date="2024-12-31"))
        repo.put(ProductFactory.create(sku="NEW-001", expiration_date="2025-06-30"))
        repo.put(ProductFactory.create(sku="NONE-001"))

        expired = service.get_expired(date(2025, 1, 1))

        assert [p.sku for p in expired] == ["OLD-001"]


class TestGetProductService:
    """Tests for get_product_service() singleton."""

    def test_get_product_service_returns_same_instance(self):
        assert get_product_service() is get_product_service()
