"""
Shared test fixtures.

Every test starts with empty in-memory repositories, fresh service
singletons and no model API key, so nothing reaches the network.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from typing import Generator

from config import settings
from config.settings import Settings
from repositories import InMemoryRepository, reset_repositories

SERVICE_SINGLETONS = [
    ("services.product_service", "_product_service"),
    ("services.order_service", "_order_service"),
    ("services.customer_service", "_customer_service"),
    ("services.alert_service", "_alert_service"),
    ("services.recommendation_service", "_recommendation_service"),
    ("services.dashboard_service", "_dashboard_service"),
    ("services.model_gateway_service", "_model_gateway"),
    ("services.fallback_analysis_service", "_fallback_service"),
    ("services.ai_analysis_service", "_ai_analysis_service"),
]


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods that records calls."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error
        self.calls = []

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args, **kwargs)

    def insert(self, data):
        self._data = [data] if isinstance(data, dict) else list(data)
        return self._record("insert", data)

    def upsert(self, data):
        self._data = [data] if isinstance(data, dict) else list(data)
        return self._record("upsert", data)

    def update(self, data):
        self._data = [{**item, **data} for item in self._data]
        return self._record("update", data)

    def delete(self):
        return self._record("delete")

    def eq(self, column, value):
        self._data = [item for item in self._data if item.get(column) == value]
        return self._record("eq", column, value)

    def ilike(self, column, value):
        self._data = [
            item for item in self._data
            if str(item.get(column, "")).lower() == str(value).lower()
        ]
        return self._record("ilike", column, value)

    def order(self, column, **kwargs):
        return self._record("order", column, **kwargs)

    def range(self, start, end):
        return self._record("range", start, end)

    def limit(self, count):
        return self._record("limit", count)

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._error = error
        self.queries = []

    def _query(self) -> MockSupabaseQuery:
        query = MockSupabaseQuery([dict(item) for item in self._data], self._count, self._error)
        self.queries.append(query)
        return query

    def select(self, *args, **kwargs):
        return self._query().select(*args, **kwargs)

    def insert(self, data):
        return self._query().insert(data)

    def upsert(self, data):
        return self._query().upsert(data)

    def update(self, data):
        return self._query().update(data)

    def delete(self):
        return self._query().delete()


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list, count: int = None, error: Exception = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data, count, error)

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_state(monkeypatch) -> Generator:
    """Empty repositories, fresh singletons, auth on, model off."""
    import importlib

    reset_repositories()
    for module_name, attribute in SERVICE_SINGLETONS:
        monkeypatch.setattr(importlib.import_module(module_name), attribute, None)

    monkeypatch.setattr(settings, "storage_backend", "memory")
    monkeypatch.setattr(settings, "auth_enabled", True)
    monkeypatch.setattr(settings, "anthropic_api_key", None)
    monkeypatch.setattr(settings, "seed_demo_data", False)

    yield

    reset_repositories()


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "sku": "TEST", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def memory_repo():
    """Build a standalone in-memory repository for a table."""
    def _make(table: str = "products", id_field: str = "id") -> InMemoryRepository:
        return InMemoryRepository(table, id_field=id_field)
    return _make


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a model key, no jitter and the default thresholds."""
    return Settings(
        _env_file=None,
        anthropic_api_key="test-key",
        ai_analysis_enabled=True,
        model_request_timeout_seconds=10,
        model_max_retries=2,
        model_backoff_base_seconds=0.5,
        model_backoff_jitter_seconds=0,
        model_deadline_seconds=30,
        model_min_confidence=0.3,
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def auth_headers() -> dict:
    """Bearer token for the test user."""
    from routes.deps import create_access_token

    token = create_access_token({"sub": "user-1", "email": "manager@omnix-ai.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_client() -> Generator:
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/v1/products")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as client:
        yield client
