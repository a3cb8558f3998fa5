"""
Storage repositories.

get_repository(table) returns the process-wide repository for a table,
backed by memory or Supabase depending on STORAGE_BACKEND.
"""

import threading
from typing import Optional

from config import settings
from repositories.base import Repository
from repositories.memory_repository import InMemoryRepository

# Table name -> resource name used in error messages
TABLES = {
    "products": "Product",
    "orders": "Order",
    "alerts": "Alert",
    "recommendations": "Recommendation",
    "customers": "Customer",
    "purchases": "Purchase",
    "interactions": "Interaction",
    "analysis_history": "Analysis",
}

# Tables keyed by something other than "id"
ID_FIELDS = {
    "customers": "customer_id",
    "analysis_history": "analysis_id",
}

_repositories: dict[str, Repository] = {}
_lock = threading.Lock()


def get_repository(table: str, backend: Optional[str] = None) -> Repository:
    """Get or create the repository for a table."""
    if table not in TABLES:
        raise KeyError(f"Unknown table: {table}")

    with _lock:
        repo = _repositories.get(table)
        if repo is None:
            repo = _create(table, backend or settings.storage_backend)
            _repositories[table] = repo
        return repo


def _create(table: str, backend: str) -> Repository:
    id_field = ID_FIELDS.get(table, "id")
    if backend == "supabase":
        from repositories.supabase_repository import SupabaseRepository
        return SupabaseRepository(table, TABLES[table], id_field)
    return InMemoryRepository(table, TABLES[table], id_field)


def reset_repositories() -> None:
    """Forget every repository (next call recreates them empty)."""
    with _lock:
        _repositories.clear()


__all__ = [
    "Repository",
    "InMemoryRepository",
    "get_repository",
    "reset_repositories",
    "TABLES",
]
