"""
Category Repository - Data Access Layer for Categories

Author: Online Store Team
Date: 2025-02-14
"""
from typing import List, Optional, Tuple

from storefront.domain.catalog import Category, CategoryCreate, CategoryUpdate
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository


class CategoryRepository(SoftDeleteRepository[Category]):
    """Repository for product categories"""

    model = Category
    table = "categories"
    alias = "c"
    select_sql = """
        SELECT c.id, c.name, c.description, c.is_deleted, c.created_at, c.updated_at
        FROM categories c
    """
    default_order = "name ASC"

    def find_all(
        self,
        keyword: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Category], int]:
        """
        Live categories, optionally filtered by a case-insensitive name search

        Returns:
            (categories, total matching)
        """
        conditions = ["c.is_deleted = FALSE"]
        params = []

        if keyword:
            conditions.append("c.name ILIKE %s")
            params.append(f"%{keyword}%")

        return self._paginate(conditions, params, limit, offset)

    def find_by_name(self, name: str) -> Optional[Category]:
        """Exact (case-insensitive) name match, deleted rows included since names stay unique"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{self.select_sql} WHERE LOWER(c.name) = LOWER(%s)", (name.strip(),))
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: CategoryCreate) -> Category:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO categories (name, description)
                VALUES (%s, %s)
                RETURNING id, name, description, is_deleted, created_at, updated_at
            """, (data.name.strip(), data.description))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        finally:
            cursor.close()
            conn.close()

    def update(self, category_id: int, data: CategoryUpdate) -> Optional[Category]:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in fields:
            fields["name"] = fields["name"].strip()
        return self._update_fields(category_id, fields)
