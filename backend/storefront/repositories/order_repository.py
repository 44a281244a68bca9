"""
Order Repository - Data Access Layer for Orders

Orders are read with their customer (JOIN) and their items (second query
per page), and written together with their items in one transaction.

Author: Online Store Team
Date: 2025-02-20
"""
from collections import defaultdict
from datetime import datetime
from typing import List, Optional, Tuple

from psycopg2.extras import Json

from storefront.domain.order import Order, OrderItem
from storefront.core.database import get_db_connection_dict
from storefront.repositories.base import SoftDeleteRepository


class CouponUnavailableError(Exception):
    """The coupon ran out of uses between validation and order creation"""


class OrderRepository(SoftDeleteRepository[Order]):
    """
    Repository for Order data access

    Returns Order domain models with items attached.
    """

    model = Order
    table = "orders"
    alias = "o"
    select_sql = """
        SELECT
            o.id, o.user_id, o.customer_id,
            cu.name AS customer_name, cu.email AS customer_email, cu.phone AS customer_phone,
            o.items_price, o.discount_price, o.coupon_code, o.tax_price,
            o.shipping_fee, o.total_price, o.payment_method,
            o.is_paid, o.paid_at, o.is_delivered, o.delivered_at,
            o.shipping_address, o.shipping_provider, o.shipping_service,
            o.is_deleted, o.created_at, o.updated_at
        FROM orders o
        LEFT JOIN customers cu ON cu.id = o.customer_id
    """

    def _count_sql(self) -> str:
        return "SELECT COUNT(*) AS total FROM orders o LEFT JOIN customers cu ON cu.id = o.customer_id"

    def _map_row(self, row: dict) -> Order:
        data = dict(row)
        data["shipping_address"] = data.get("shipping_address") or {}
        return Order.model_validate(data)

    def _attach_items(self, orders: List[Order]) -> List[Order]:
        """Load the items of several orders in one query"""
        if not orders:
            return orders

        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT id, order_id, product_id, name, qty, image, price
                FROM order_items
                WHERE order_id = ANY(%s)
                ORDER BY id
            """, ([order.id for order in orders],))

            items_by_order = defaultdict(list)
            for row in cursor.fetchall():
                items_by_order[row['order_id']].append(OrderItem(
                    id=row['id'],
                    product_id=row['product_id'],
                    name=row['name'],
                    qty=row['qty'],
                    image=row.get('image'),
                    price=row['price']
                ))

        finally:
            cursor.close()
            conn.close()

        return [order.model_copy(update={"items": items_by_order[order.id]}) for order in orders]

    def find_by_id(self, entity_id: int, include_deleted: bool = False) -> Optional[Order]:
        order = super().find_by_id(entity_id, include_deleted)
        if not order:
            return None
        return self._attach_items([order])[0]

    def _paginate(self, conditions, params, limit, offset, order_by=None) -> Tuple[List[Order], int]:
        orders, total = super()._paginate(conditions, params, limit, offset, order_by)
        return self._attach_items(orders), total

    def find_all(self, limit: int = 10, offset: int = 0) -> Tuple[List[Order], int]:
        """Live orders, newest first (admin view)"""
        return self._paginate(["o.is_deleted = FALSE"], [], limit, offset)

    def find_by_user(
        self,
        user_id: int,
        email: Optional[str] = None,
        limit: int = 10,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Orders placed by a user.

        Orders created before the account existed carry no user_id; when the
        user has none of their own, orders whose customer shares the user's
        email are returned instead.
        """
        orders, total = self._paginate(["o.is_deleted = FALSE", "o.user_id = %s"], [user_id], limit, offset)
        if total == 0 and email:
            return self._paginate(
                ["o.is_deleted = FALSE", "cu.email = %s"],
                [email.strip().lower()],
                limit,
                offset
            )
        return orders, total

    def create(
        self,
        user_id: Optional[int],
        customer_id: Optional[int],
        items: List[OrderItem],
        items_price: float,
        discount_price: float,
        tax_price: float,
        shipping_fee: float,
        total_price: float,
        payment_method: str,
        shipping_address: dict,
        shipping_provider: Optional[str] = None,
        shipping_service: Optional[str] = None,
        coupon_id: Optional[int] = None,
        coupon_code: Optional[str] = None
    ) -> Order:
        """
        Insert the order, its items and the coupon usage in one transaction.

        Raises:
            CouponUnavailableError: coupon reached max_uses meanwhile
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO orders (
                    user_id, customer_id, items_price, discount_price, coupon_code,
                    tax_price, shipping_fee, total_price, payment_method,
                    shipping_address, shipping_provider, shipping_service
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (
                user_id, customer_id, items_price, discount_price, coupon_code,
                tax_price, shipping_fee, total_price, payment_method,
                Json(shipping_address), shipping_provider, shipping_service
            ))
            order_id = cursor.fetchone()['id']

            for item in items:
                cursor.execute("""
                    INSERT INTO order_items (order_id, product_id, name, qty, image, price)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (order_id, item.product_id, item.name, item.qty, item.image, item.price))

            if coupon_id is not None:
                cursor.execute("""
                    UPDATE coupons
                    SET current_uses = current_uses + 1
                    WHERE id = %s AND current_uses < max_uses
                    RETURNING id
                """, (coupon_id,))
                if cursor.fetchone() is None:
                    raise CouponUnavailableError(coupon_code)

            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            cursor.close()
            conn.close()

        return self.find_by_id(order_id)

    def mark_delivered(self, order_id: int, delivered_at: datetime) -> Optional[Order]:
        return self._update_fields(order_id, {"is_delivered": True, "delivered_at": delivered_at})

    def mark_paid(self, order_id: int, paid_at: datetime, payment_method: Optional[str] = None) -> Optional[Order]:
        fields = {"is_paid": True, "paid_at": paid_at}
        if payment_method:
            fields["payment_method"] = payment_method
        return self._update_fields(order_id, fields)
