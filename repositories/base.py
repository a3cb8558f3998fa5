"""
Repository interface shared by every storage backend.

Records are plain JSON-compatible dicts keyed by an id field. Services
convert them to and from pydantic models; repositories never see models.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class Repository(ABC):
    """
    Key-value store for one collection (table).

    Implementations must make insert(), update() and put() atomic per key,
    including the uniqueness check done by insert(unique_on=...).
    """

    def __init__(self, table: str, resource: Optional[str] = None, id_field: str = "id"):
        self.table = table
        self.resource = resource or table.rstrip("s").capitalize()
        self.id_field = id_field

    @abstractmethod
    def get(self, item_id: str) -> Optional[dict]:
        """Return the record with this id, or None."""

    @abstractmethod
    def query(
        self,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        """Return records whose fields equal every value in filters."""

    @abstractmethod
    def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        """Count records matching filters."""

    @abstractmethod
    def insert(self, item: dict, unique_on: Optional[str] = None) -> dict:
        """
        Add a new record.

        Raises:
            DuplicateKeyError: If the id, or the unique_on field compared
                case-insensitively, already exists.
        """

    @abstractmethod
    def put(self, item: dict) -> dict:
        """Insert or replace a record by id."""

    @abstractmethod
    def update(self, item_id: str, changes: dict) -> Optional[dict]:
        """Merge changes into an existing record. None if absent."""

    @abstractmethod
    def delete(self, item_id: str) -> bool:
        """Remove a record. False if absent."""

    def list(self, limit: Optional[int] = None) -> list[dict]:
        """All records, optionally limited."""
        return self.query(limit=limit)
