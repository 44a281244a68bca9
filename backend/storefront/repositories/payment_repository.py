"""
Payment Repository - Data Access Layer for gateway payment attempts

Author: Online Store Team
Date: 2025-03-02
"""
from datetime import datetime
from typing import List, Optional

from psycopg2.extras import Json

from storefront.domain.payment import Payment
from storefront.core.database import get_db_connection_dict

_COLUMNS = """
    id, order_id, gateway, amount, currency, status, transaction_ref,
    gateway_transaction_id, raw_request, raw_response, redirect_url,
    webhook_verified, failure_reason, paid_at, created_at, updated_at
"""


class PaymentRepository:
    """
    Repository for Payment rows

    Payments are an audit trail and are never soft-deleted.
    """

    @staticmethod
    def _map_row_to_payment(row: dict) -> Payment:
        data = dict(row)
        data["raw_request"] = data.get("raw_request") or {}
        data["raw_response"] = data.get("raw_response") or {}
        return Payment.model_validate(data)

    def create(
        self,
        order_id: int,
        gateway: str,
        amount: float,
        transaction_ref: str,
        raw_request: dict,
        redirect_url: str,
        currency: str = "VND"
    ) -> Payment:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO payments (
                    order_id, gateway, amount, currency, status,
                    transaction_ref, raw_request, redirect_url
                )
                VALUES (%s, %s, %s, %s, 'pending', %s, %s, %s)
                RETURNING {_COLUMNS}
            """, (order_id, gateway, amount, currency, transaction_ref, Json(raw_request), redirect_url))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_payment(row)

        finally:
            cursor.close()
            conn.close()

    def find_by_transaction_ref(self, transaction_ref: str) -> Optional[Payment]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE transaction_ref = %s",
                (transaction_ref,)
            )
            row = cursor.fetchone()
            return self._map_row_to_payment(row) if row else None

        finally:
            cursor.close()
            conn.close()

    def find_by_order(self, order_id: int) -> List[Payment]:
        """All attempts for an order, newest first"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE order_id = %s ORDER BY created_at DESC",
                (order_id,)
            )
            return [self._map_row_to_payment(row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def record_callback(
        self,
        payment_id: int,
        status: str,
        raw_response: dict,
        webhook_verified: bool,
        gateway_transaction_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
        paid_at: Optional[datetime] = None
    ) -> Payment:
        """Store the gateway callback outcome on the payment"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE payments
                SET status = %s,
                    raw_response = %s,
                    webhook_verified = %s,
                    gateway_transaction_id = COALESCE(%s, gateway_transaction_id),
                    failure_reason = %s,
                    paid_at = COALESCE(%s, paid_at)
                WHERE id = %s
                RETURNING {_COLUMNS}
            """, (
                status, Json(raw_response), webhook_verified,
                gateway_transaction_id, failure_reason, paid_at, payment_id
            ))
            row = cursor.fetchone()
            conn.commit()
            return self._map_row_to_payment(row)

        finally:
            cursor.close()
            conn.close()
