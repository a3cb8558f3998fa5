"""
In-memory repository.

Used for development, demos and tests. Each collection has its own lock and
callers only ever receive copies of stored records.
"""

import copy
import threading
from typing import Any, Optional

import structlog

from exceptions import DuplicateKeyError
from repositories.base import Repository

logger = structlog.get_logger(__name__)


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class InMemoryRepository(Repository):
    """Dict-backed repository guarded by a re-entrant lock."""

    def __init__(self, table: str, resource: Optional[str] = None, id_field: str = "id"):
        super().__init__(table, resource, id_field)
        self._items: dict[str, dict] = {}
        self._lock = threading.RLock()

    def get(self, item_id: str) -> Optional[dict]:
        with self._lock:
            item = self._items.get(item_id)
            return copy.deepcopy(item) if item is not None else None

    def query(
        self,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        with self._lock:
            rows = [
                copy.deepcopy(item)
                for item in self._items.values()
                if self._matches(item, filters)
            ]

        if order_by:
            # None sorts last regardless of direction
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing

        if offset:
            rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        with self._lock:
            return sum(1 for item in self._items.values() if self._matches(item, filters))

    def insert(self, item: dict, unique_on: Optional[str] = None) -> dict:
        item_id = item[self.id_field]
        with self._lock:
            if item_id in self._items:
                raise DuplicateKeyError(self.resource, self.id_field, item_id)

            if unique_on is not None:
                wanted = _normalize(item.get(unique_on))
                for existing in self._items.values():
                    if _normalize(existing.get(unique_on)) == wanted:
                        raise DuplicateKeyError(self.resource, unique_on, item.get(unique_on))

            self._items[item_id] = copy.deepcopy(item)

        logger.debug("memory_insert", table=self.table, id=item_id)
        return copy.deepcopy(item)

    def put(self, item: dict) -> dict:
        with self._lock:
            self._items[item[self.id_field]] = copy.deepcopy(item)
        return copy.deepcopy(item)

    def update(self, item_id: str, changes: dict) -> Optional[dict]:
        with self._lock:
            existing = self._items.get(item_id)
            if existing is None:
                return None
            merged = {**existing, **copy.deepcopy(changes)}
            merged[self.id_field] = item_id
            self._items[item_id] = merged
            return copy.deepcopy(merged)

    def delete(self, item_id: str) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def clear(self) -> None:
        """Drop every record (tests and re-seeding)."""
        with self._lock:
            self._items.clear()

    @staticmethod
    def _matches(item: dict, filters: Optional[dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(item.get(field) == value for field, value in filters.items())
