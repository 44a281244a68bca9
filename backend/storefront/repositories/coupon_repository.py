"""
Coupon Repository - Data Access Layer for coupons

Author: Online Store Team
Date: 2025-03-02
"""
from typing import List, Optional, Tuple

from storefront.domain.coupon import Coupon, CouponCreate
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository

_COLUMNS = """
    id, code, description, discount_type, discount_value, max_uses, current_uses,
    min_order_amount, applicable_products, applicable_categories,
    start_date, end_date, is_active, is_deleted, created_at, updated_at
"""


class CouponRepository(SoftDeleteRepository[Coupon]):
    """Repository for discount coupons"""

    model = Coupon
    table = "coupons"
    alias = "co"
    select_sql = f"SELECT {_COLUMNS} FROM coupons co"

    def find_active(self, limit: int = 10, offset: int = 0) -> Tuple[List[Coupon], int]:
        """Active coupons inside their date window"""
        conditions = [
            "co.is_deleted = FALSE",
            "co.is_active = TRUE",
            "co.start_date <= NOW()",
            "co.end_date >= NOW()",
        ]
        return self._paginate(conditions, [], limit, offset)

    def find_all(self, limit: int = 10, offset: int = 0) -> Tuple[List[Coupon], int]:
        """Every live coupon, including inactive and expired ones (admin view)"""
        return self._paginate(["co.is_deleted = FALSE"], [], limit, offset)

    def find_by_code(self, code: str) -> Optional[Coupon]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"{self.select_sql} WHERE co.code = %s AND co.is_deleted = FALSE",
                (code.strip().upper(),)
            )
            row = cursor.fetchone()
            return self._map_row(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def code_exists(self, code: str) -> bool:
        """Codes are unique across deleted rows too"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT 1 FROM coupons WHERE code = %s", (code.strip().upper(),))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, data: CouponCreate) -> Coupon:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO coupons (
                    code, description, discount_type, discount_value, max_uses,
                    min_order_amount, applicable_products, applicable_categories,
                    start_date, end_date, is_active
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_COLUMNS}
            """, (
                data.code, data.description, data.discount_type, data.discount_value,
                data.max_uses, data.min_order_amount,
                data.applicable_products, data.applicable_categories,
                data.start_date, data.end_date, data.is_active
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row(row)

        finally:
            cursor.close()
            conn.close()

    def update(self, coupon_id: int, fields: dict) -> Optional[Coupon]:
        return self._update_fields(coupon_id, fields)
