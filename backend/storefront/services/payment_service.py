"""
Payment Service - gateway payments for orders

Initiates VNPAY payments (signed redirect URL + pending Payment row) and
processes the gateway's IPN callbacks.

Author: Online Store Team
Date: 2025-03-02
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from storefront.connectors.vnpay_gateway import VnpayConfigError, VnpayGateway
from storefront.core.errors import ServiceError
from storefront.domain.payment import Payment, PaymentInitiate
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.payment_repository import PaymentRepository

logger = logging.getLogger(__name__)

FINAL_STATUSES = ("success", "failed", "cancelled", "expired")


class PaymentService:
    """Coordinates orders, payments and the VNPAY gateway"""

    def __init__(
        self,
        gateway: VnpayGateway,
        orders: Optional[OrderRepository] = None,
        payments: Optional[PaymentRepository] = None
    ):
        self.gateway = gateway
        self.orders = orders or OrderRepository()
        self.payments = payments or PaymentRepository()

    def supported_gateways(self) -> List[str]:
        return [self.gateway.name] if self.gateway.is_configured else []

    def _check_gateway(self, gateway: str) -> None:
        if gateway.lower() != self.gateway.name:
            raise ServiceError(f"Gateway \"{gateway}\" is not supported", 400)

    def initiate(self, data: PaymentInitiate, client_ip: str) -> Dict:
        """
        Start a payment for an unpaid order.

        The amount, when given, must equal the order total.

        Raises:
            ServiceError 400: unsupported gateway, order already paid,
                amount differs from the order total, gateway not configured
            ServiceError 404: order not found
        """
        self._check_gateway(data.gateway)

        order = self.orders.find_by_id(data.order_id)
        if not order:
            raise ServiceError(f"Order not found: {data.order_id}", 404)
        if order.is_paid:
            raise ServiceError(f"Order {data.order_id} is already paid", 400)

        amount = data.amount if data.amount is not None else order.total_price
        if abs(amount - order.total_price) > 0.01:
            raise ServiceError(
                f"Payment amount {amount} does not match order total {order.total_price}",
                400
            )
        order_info = data.order_info or f"Thanh toan don hang {order.id}"

        try:
            redirect_url, transaction_ref, params = self.gateway.build_payment_url(
                order_id=order.id,
                amount=amount,
                order_info=order_info,
                client_ip=client_ip,
                locale=data.locale,
                bank_code=data.bank_code
            )
        except VnpayConfigError as e:
            logger.error(f"Payment initiation for order {order.id} failed: {e}")
            raise ServiceError("Payment gateway is not configured", 400)
        except ValueError as e:
            raise ServiceError(str(e), 400)

        payment = self.payments.create(
            order_id=order.id,
            gateway=self.gateway.name,
            amount=amount,
            transaction_ref=transaction_ref,
            raw_request=params,
            redirect_url=redirect_url
        )

        logger.info(f"Payment {payment.id} initiated: order {order.id}, {amount} VND via {self.gateway.name}")
        return {
            "payment_id": payment.id,
            "redirect_url": redirect_url,
            "gateway": self.gateway.name,
            "amount": amount,
            "order_id": order.id,
            "transaction_ref": transaction_ref
        }

    def handle_callback(self, gateway: str, params: Dict[str, str]) -> Dict:
        """
        Process an IPN callback.

        Never raises, database errors included: the result is always
        {"success": bool, "message": str} so the route can answer 200 and
        the gateway stops retrying.
        """
        try:
            return self._process_callback(gateway, params)
        except Exception as e:
            logger.error(
                f"VNPAY callback processing failed (ref {params.get('vnp_TxnRef')}): {str(e)}",
                exc_info=True
            )
            return {"success": False, "message": "Webhook processing failed"}

    def _process_callback(self, gateway: str, params: Dict[str, str]) -> Dict:
        if gateway.lower() != self.gateway.name:
            return {"success": False, "message": f"Gateway \"{gateway}\" is not supported"}

        if not params.get("vnp_SecureHash"):
            return {"success": False, "message": "Missing signature in webhook"}

        if not self.gateway.verify_callback(params):
            logger.warning(f"Rejected VNPAY callback with invalid signature (ref {params.get('vnp_TxnRef')})")
            return {"success": False, "message": "Invalid signature"}

        callback = self.gateway.parse_callback(params)
        payment = self.payments.find_by_transaction_ref(callback.transaction_ref)
        if not payment:
            return {"success": False, "message": f"Payment record not found for ref {callback.transaction_ref}"}

        if abs(payment.amount - callback.amount) > 0.01:
            logger.warning(
                f"VNPAY amount mismatch on payment {payment.id}: expected {payment.amount}, got {callback.amount}"
            )
            return {"success": False, "message": "Invalid amount"}

        if payment.status == "success":
            return {"success": True, "message": "Payment already confirmed", "order_id": payment.order_id}
        if payment.status in FINAL_STATUSES:
            return {
                "success": True,
                "message": f"Payment already {payment.status}",
                "order_id": payment.order_id
            }

        paid_at = (callback.pay_date or datetime.now(timezone.utc)) if callback.is_success else None
        self.payments.record_callback(
            payment_id=payment.id,
            status=callback.status,
            raw_response=dict(params),
            webhook_verified=True,
            gateway_transaction_id=callback.transaction_no,
            failure_reason=callback.failure_reason,
            paid_at=paid_at
        )

        if callback.is_success:
            self.orders.mark_paid(payment.order_id, paid_at, payment_method=self.gateway.name)

        logger.info(f"Webhook processed: {self.gateway.name} - order {payment.order_id} - {callback.status}")
        return {
            "success": True,
            "message": "Webhook processed",
            "order_id": payment.order_id,
            "status": callback.status
        }

    def confirm(self, order_id: int) -> Dict:
        """
        Payment state of an order after the shopper returns from the gateway.

        Raises:
            ServiceError 404: order not found
            ServiceError 400: no successful or pending-at-gateway payment
        """
        order = self.orders.find_by_id(order_id)
        if not order:
            raise ServiceError(f"Order {order_id} not found", 404)

        payment = next(
            (p for p in self.payments.find_by_order(order_id) if p.status in ("success", "processing")),
            None
        )
        if not payment:
            raise ServiceError(f"No successful payment found for order {order_id}", 400)

        return {
            "order_id": order.id,
            "is_paid": order.is_paid,
            "payment_status": payment.status,
            "paid_amount": payment.amount
        }

    def history(self, order_id: int) -> List[Payment]:
        return self.payments.find_by_order(order_id)
