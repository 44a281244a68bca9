"""
Supplier Repository - Data Access Layer for Suppliers

Author: Online Store Team
Date: 2025-02-14
"""
from typing import Dict, List, Optional, Tuple

from storefront.domain.catalog import Supplier, SupplierCreate, SupplierUpdate
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository


class SupplierRepository(SoftDeleteRepository[Supplier]):
    """Repository for product suppliers"""

    model = Supplier
    table = "suppliers"
    alias = "s"
    select_sql = """
        SELECT s.id, s.name, s.phone, s.email, s.description,
               s.is_deleted, s.created_at, s.updated_at
        FROM suppliers s
    """

    def find_all(
        self,
        keyword: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Supplier], int]:
        """Live suppliers, searching name and email"""
        conditions = ["s.is_deleted = FALSE"]
        params = []

        if keyword:
            conditions.append("(s.name ILIKE %s OR s.email ILIKE %s)")
            params.extend([f"%{keyword}%", f"%{keyword}%"])

        return self._paginate(conditions, params, limit, offset)

    def list_names(self) -> List[Dict]:
        """id + name of every live supplier, alphabetical (storefront filters)"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, name
                FROM suppliers
                WHERE is_deleted = FALSE
                ORDER BY name ASC
            """)
            return [dict(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_email(self, email: str) -> Optional[Supplier]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{self.select_sql} WHERE LOWER(s.email) = LOWER(%s)", (email,))
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: SupplierCreate) -> Supplier:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO suppliers (name, phone, email, description)
                VALUES (%s, %s, %s, %s)
                RETURNING id, name, phone, email, description, is_deleted, created_at, updated_at
            """, (data.name.strip(), data.phone, data.email.lower(), data.description))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        finally:
            cursor.close()
            conn.close()

    def update(self, supplier_id: int, data: SupplierUpdate) -> Optional[Supplier]:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in fields:
            fields["email"] = fields["email"].lower()
        return self._update_fields(supplier_id, fields)
