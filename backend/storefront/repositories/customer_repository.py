"""
Customer Repository - Data Access Layer for Customers

Email uniqueness only applies to live customers, so every email lookup
filters on is_deleted.

Author: Online Store Team
Date: 2025-02-14
"""
from typing import List, Optional, Tuple

from storefront.domain.customer import Customer, CustomerCreate, CustomerUpdate
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository


class CustomerRepository(SoftDeleteRepository[Customer]):
    """Repository for customers"""

    model = Customer
    table = "customers"
    alias = "cu"
    select_sql = """
        SELECT cu.id, cu.name, cu.email, cu.phone, cu.address,
               cu.is_deleted, cu.created_at, cu.updated_at
        FROM customers cu
    """

    def find_all(
        self,
        keyword: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Customer], int]:
        """Live customers, searching name, email and phone"""
        conditions = ["cu.is_deleted = FALSE"]
        params = []

        if keyword:
            conditions.append("(cu.name ILIKE %s OR cu.email ILIKE %s OR cu.phone ILIKE %s)")
            params.extend([f"%{keyword}%"] * 3)

        return self._paginate(conditions, params, limit, offset)

    def _find_one(self, condition: str, value) -> Optional[Customer]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"{self.select_sql} WHERE {condition} AND cu.is_deleted = FALSE "
                f"ORDER BY cu.created_at DESC LIMIT 1",
                (value,)
            )
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        """Most recent live customer with this phone"""
        return self._find_one("cu.phone = %s", phone.strip())

    def find_by_email(self, email: str) -> Optional[Customer]:
        return self._find_one("cu.email = %s", email.strip().lower())

    def email_in_use(self, email: str, exclude_id: Optional[int] = None) -> bool:
        """Whether a live customer other than exclude_id owns this email"""
        existing = self.find_by_email(email)
        return existing is not None and existing.id != exclude_id

    def create(self, data: CustomerCreate) -> Customer:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO customers (name, email, phone, address)
                VALUES (%s, %s, %s, %s)
                RETURNING id, name, email, phone, address, is_deleted, created_at, updated_at
            """, (data.name.strip(), data.email.strip().lower(), data.phone, data.address))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        finally:
            cursor.close()
            conn.close()

    def update(self, customer_id: int, data: CustomerUpdate) -> Optional[Customer]:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in fields:
            fields["email"] = fields["email"].strip().lower()
        return self._update_fields(customer_id, fields)
