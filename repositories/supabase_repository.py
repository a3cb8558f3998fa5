"""
Supabase-backed repository.

Maps the repository interface onto PostgREST table queries. Uniqueness is
enforced by table constraints; the pre-insert lookup only produces a nicer
error for the common case.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from exceptions import DatabaseError, DuplicateKeyError
from repositories.base import Repository

logger = structlog.get_logger(__name__)


class SupabaseRepository(Repository):
    """Repository over a single Supabase table."""

    def __init__(self, table: str, resource: Optional[str] = None, id_field: str = "id"):
        super().__init__(table, resource, id_field)
        self.db = get_supabase_client()

    def get(self, item_id: str) -> Optional[dict]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq(self.id_field, item_id)
                .limit(1)
                .execute()
            )
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error("supabase_get_failed", table=self.table, id=item_id, error=str(e))
            raise DatabaseError("select", str(e))

    def query(
        self,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        try:
            query = self.db.table(self.table).select("*")
            for field, value in (filters or {}).items():
                query = query.eq(field, value)
            if order_by:
                query = query.order(order_by, desc=descending)
            if limit is not None:
                query = query.range(offset, offset + limit - 1)
            elif offset:
                query = query.range(offset, offset + 10_000)
            return query.execute().data or []
        except Exception as e:
            logger.error("supabase_query_failed", table=self.table, error=str(e))
            raise DatabaseError("select", str(e))

    def count(self, filters: Optional[dict[str, Any]] = None) -> int:
        try:
            query = self.db.table(self.table).select(self.id_field, count="exact")
            for field, value in (filters or {}).items():
                query = query.eq(field, value)
            return query.execute().count or 0
        except Exception as e:
            logger.error("supabase_count_failed", table=self.table, error=str(e))
            raise DatabaseError("count", str(e))

    def insert(self, item: dict, unique_on: Optional[str] = None) -> dict:
        if unique_on is not None and item.get(unique_on) is not None:
            existing = (
                self.db.table(self.table)
                .select(self.id_field)
                .ilike(unique_on, str(item[unique_on]))
                .limit(1)
                .execute()
            )
            if existing.data:
                raise DuplicateKeyError(self.resource, unique_on, item[unique_on])

        try:
            result = self.db.table(self.table).insert(item).execute()
            return result.data[0]
        except Exception as e:
            if "duplicate key" in str(e).lower():
                raise DuplicateKeyError(self.resource, unique_on or self.id_field, str(item.get(unique_on or self.id_field)))
            logger.error("supabase_insert_failed", table=self.table, error=str(e))
            raise DatabaseError("insert", str(e))

    def put(self, item: dict) -> dict:
        try:
            result = self.db.table(self.table).upsert(item).execute()
            return result.data[0]
        except Exception as e:
            logger.error("supabase_upsert_failed", table=self.table, error=str(e))
            raise DatabaseError("upsert", str(e))

    def update(self, item_id: str, changes: dict) -> Optional[dict]:
        try:
            result = (
                self.db.table(self.table)
                .update(changes)
                .eq(self.id_field, item_id)
                .execute()
            )
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error("supabase_update_failed", table=self.table, id=item_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, item_id: str) -> bool:
        try:
            result = (
                self.db.table(self.table)
                .delete()
                .eq(self.id_field, item_id)
                .execute()
            )
            return bool(result.data)
        except Exception as e:
            logger.error("supabase_delete_failed", table=self.table, id=item_id, error=str(e))
            raise DatabaseError("delete", str(e))
