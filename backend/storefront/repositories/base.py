"""
Base repository for soft-deletable tables

Every storefront entity follows the same lifecycle:
create -> soft delete (is_deleted = TRUE) -> optional restore -> optional hard delete.
Subclasses declare their table, alias and SELECT; entity-specific queries
live in the subclass.

Author: Online Store Team
Date: 2025-02-14
"""
from typing import Generic, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from storefront.core.database import get_db_connection_dict

ModelT = TypeVar("ModelT", bound=BaseModel)


class SoftDeleteRepository(Generic[ModelT]):
    """
    Shared lookups and lifecycle operations.

    Subclasses set:
        model: domain model class rows are mapped into
        table: table name
        alias: table alias used in select_sql
        select_sql: SELECT ... FROM ... (joins allowed, no WHERE)
    """

    model: Type[ModelT]
    table: str
    alias: str
    select_sql: str
    default_order: str = "created_at DESC"

    def _map_row(self, row: dict) -> ModelT:
        return self.model.model_validate(dict(row))

    def _count_sql(self) -> str:
        return f"SELECT COUNT(*) AS total FROM {self.table} {self.alias}"

    def find_by_id(self, entity_id: int, include_deleted: bool = False) -> Optional[ModelT]:
        """
        Find one row by primary key

        Args:
            entity_id: Primary key
            include_deleted: Also return soft-deleted rows

        Returns:
            Domain model or None
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            query = f"{self.select_sql} WHERE {self.alias}.id = %s"
            if not include_deleted:
                query += f" AND {self.alias}.is_deleted = FALSE"
            cursor.execute(query, (entity_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row(row)

        finally:
            cursor.close()
            conn.close()

    def _paginate(
        self,
        conditions: List[str],
        params: list,
        limit: int,
        offset: int,
        order_by: Optional[str] = None
    ) -> Tuple[List[ModelT], int]:
        """Run COUNT + windowed SELECT for the given WHERE conditions"""
        where_clause = " AND ".join(conditions) if conditions else "TRUE"
        order_by = order_by or f"{self.alias}.{self.default_order}"

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{self._count_sql()} WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {self.select_sql}
                WHERE {where_clause}
                ORDER BY {order_by}
                LIMIT %s OFFSET %s
            """, params + [limit, offset])

            items = [self._map_row(row) for row in cursor.fetchall()]
            return items, total

        finally:
            cursor.close()
            conn.close()

    def find_deleted(self, limit: int = 10, offset: int = 0) -> Tuple[List[ModelT], int]:
        """Soft-deleted rows, most recently deleted first"""
        return self._paginate(
            [f"{self.alias}.is_deleted = TRUE"],
            [],
            limit,
            offset,
            order_by=f"{self.alias}.updated_at DESC"
        )

    def _set_deleted(self, entity_id: int, deleted: bool) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE {self.table}
                SET is_deleted = %s
                WHERE id = %s AND is_deleted = %s
                RETURNING id
            """, (deleted, entity_id, not deleted))
            changed = cursor.fetchone() is not None
            conn.commit()
            return changed

        finally:
            cursor.close()
            conn.close()

    def soft_delete(self, entity_id: int) -> bool:
        """Flag a live row as deleted. Returns False if it was not live."""
        return self._set_deleted(entity_id, True)

    def restore(self, entity_id: int) -> bool:
        """Clear the deleted flag. Returns False if the row was not deleted."""
        return self._set_deleted(entity_id, False)

    def hard_delete(self, entity_id: int) -> bool:
        """Permanently remove the row"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"DELETE FROM {self.table} WHERE id = %s RETURNING id", (entity_id,))
            removed = cursor.fetchone() is not None
            conn.commit()
            return removed

        finally:
            cursor.close()
            conn.close()

    def _update_fields(self, entity_id: int, fields: dict) -> Optional[ModelT]:
        """
        UPDATE the given columns on a live row and return the fresh model.

        Column names come from pydantic payload models, never from user keys.
        """
        if not fields:
            return self.find_by_id(entity_id)

        assignments = ", ".join(f"{column} = %s" for column in fields)

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE {self.table}
                SET {assignments}
                WHERE id = %s AND is_deleted = FALSE
                RETURNING id
            """, list(fields.values()) + [entity_id])
            updated = cursor.fetchone()
            conn.commit()

        finally:
            cursor.close()
            conn.close()

        if not updated:
            return None
        return self.find_by_id(entity_id)
