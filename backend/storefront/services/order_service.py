"""
Order Service - checkout

Validates the cart against the catalog, resolves (or creates) the customer
the order ships to, applies a coupon and persists the order.

Author: Online Store Team
Date: 2025-02-20
"""
import time
import random
import logging
from typing import Optional

from pydantic import ValidationError

from storefront.core.errors import ServiceError
from storefront.domain.customer import Customer, CustomerCreate, CustomerUpdate
from storefront.domain.order import Order, OrderCreate, OrderItem
from storefront.domain.user import User
from storefront.repositories.customer_repository import CustomerRepository
from storefront.repositories.order_repository import CouponUnavailableError, OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

GENERATED_EMAIL_DOMAIN = "guest.onlinestore.vn"


def generate_phone() -> str:
    """Placeholder phone for customers who checked out without one"""
    return f"090{random.randint(0, 9_999_999):07d}"


def generate_email() -> str:
    return f"customer-{int(time.time() * 1000)}@{GENERATED_EMAIL_DOMAIN}"


def _normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email and email.strip() else None


class OrderService:
    """Places orders"""

    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        products: Optional[ProductRepository] = None,
        customers: Optional[CustomerRepository] = None,
        coupons: Optional[CouponService] = None
    ):
        self.orders = orders or OrderRepository()
        self.products = products or ProductRepository()
        self.customers = customers or CustomerRepository()
        self.coupons = coupons or CouponService()

    # ------------------------------------------------------------------
    # Customer resolution
    # ------------------------------------------------------------------

    def _create_customer(self, name: str, email: str, phone: str) -> Customer:
        try:
            data = CustomerCreate(name=name, email=email, phone=phone)
        except ValidationError:
            raise ServiceError("Invalid customer email", 400)
        return self.customers.create(data)

    def _resolve_by_phone(self, phone: str, name: Optional[str], email: Optional[str]) -> Customer:
        customer = self.customers.find_by_phone(phone)

        if customer:
            changes = {}
            if name:
                changes["name"] = name
            if email and email != customer.email:
                if self.customers.email_in_use(email, exclude_id=customer.id):
                    raise ServiceError("Email already in use by another customer", 409)
                changes["email"] = email
            if not changes:
                return customer
            try:
                update = CustomerUpdate(**changes)
            except ValidationError:
                raise ServiceError("Invalid customer email", 400)
            return self.customers.update(customer.id, update) or customer

        if not name or not email:
            raise ServiceError("Customer name and email are required for new customer", 400)
        if self.customers.email_in_use(email):
            raise ServiceError("Email already in use", 409)
        return self._create_customer(name, email, phone)

    def _resolve_by_email(self, email: str, name: Optional[str]) -> Customer:
        customer = self.customers.find_by_email(email)
        if customer:
            if name and name != customer.name:
                return self.customers.update(customer.id, CustomerUpdate(name=name)) or customer
            return customer
        return self._create_customer(name or "Customer", email, generate_phone())

    def resolve_customer(
        self,
        phone: Optional[str],
        name: Optional[str],
        email: Optional[str]
    ) -> Optional[Customer]:
        """
        Find or create the customer for a checkout.

        Phone is the primary key: an existing customer with that phone is
        updated, otherwise one is created (name and email required). Without
        a phone the email is used, and with only a name a placeholder phone
        and email are generated.

        Raises:
            ServiceError 400: missing name/email for a new phone customer
            ServiceError 409: email belongs to another live customer
        """
        phone = phone.strip() if phone and phone.strip() else None
        name = name.strip() if name and name.strip() else None
        email = _normalize_email(email)

        if phone:
            return self._resolve_by_phone(phone, name, email)
        if email:
            return self._resolve_by_email(email, name)
        if name:
            return self._create_customer(name, generate_email(), generate_phone())
        return None

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def _build_items(self, data: OrderCreate):
        items = []
        for line in data.order_items:
            product = self.products.find_by_id(line.product_id)
            if not product:
                raise ServiceError(f"Product {line.product_id} not found", 404)
            if product.count_in_stock < line.qty:
                raise ServiceError(
                    f"Insufficient stock for product {product.name}. "
                    f"Available: {product.count_in_stock}, Requested: {line.qty}",
                    400
                )
            items.append(OrderItem(
                product_id=product.id,
                name=product.name,
                qty=line.qty,
                image=product.image,
                price=product.deal_price
            ))
        return items

    def place_order(self, user: User, data: OrderCreate) -> Order:
        """
        Create an order for the authenticated user.

        Prices are taken from the catalog, never from the request. Stock is
        checked but not reserved.

        Raises:
            ServiceError: empty cart, unknown product, insufficient stock,
                customer conflicts or an unusable coupon
        """
        if not data.order_items:
            raise ServiceError("No order items", 400)

        items = self._build_items(data)
        items_price = round(sum(item.line_total for item in items), 2)

        coupon = None
        discount = 0.0
        if data.coupon_code:
            quote = self.coupons.quote(data.coupon_code, items_price)
            coupon, discount = quote.coupon, quote.discount

        customer = self.resolve_customer(data.customer_phone, data.customer_name, data.customer_email)

        total_price = round(max(items_price - discount, 0) + data.tax_price + data.shipping_fee, 2)

        try:
            order = self.orders.create(
                user_id=user.id,
                customer_id=customer.id if customer else None,
                items=items,
                items_price=items_price,
                discount_price=discount,
                tax_price=data.tax_price,
                shipping_fee=data.shipping_fee,
                total_price=total_price,
                payment_method=data.payment_method,
                shipping_address=data.shipping_address,
                shipping_provider=data.shipping_provider,
                shipping_service=data.shipping_service,
                coupon_id=coupon.id if coupon else None,
                coupon_code=coupon.code if coupon else None
            )
        except CouponUnavailableError:
            raise ServiceError("Coupon usage limit reached", 400)

        logger.info(f"Order {order.id} placed by user {user.id}: {len(items)} lines, total {total_price}")
        return order
