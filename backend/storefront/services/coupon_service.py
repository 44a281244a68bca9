"""
Coupon Service - checkout-time coupon validation and discount math

Author: Online Store Team
Date: 2025-03-02
"""
from dataclasses import dataclass
from typing import Optional

from storefront.core.errors import ServiceError
from storefront.domain.coupon import Coupon
from storefront.repositories.coupon_repository import CouponRepository


@dataclass
class CouponQuote:
    coupon: Coupon
    original_amount: float
    discount: float

    @property
    def final_amount(self) -> float:
        return max(self.original_amount - self.discount, 0)

    def to_dict(self) -> dict:
        return {
            "coupon": self.coupon.code,
            "discount_type": self.coupon.discount_type,
            "discount_value": self.coupon.discount_value,
            "original_amount": self.original_amount,
            "discount": self.discount,
            "final_amount": self.final_amount
        }


class CouponService:
    """Validates coupon codes against an order amount"""

    def __init__(self, repo: Optional[CouponRepository] = None):
        self.repo = repo or CouponRepository()

    def get_usable(self, code: str) -> Coupon:
        """
        Coupon by code if it can be applied right now.

        Raises:
            ServiceError 404: unknown, inactive or outside its date window
            ServiceError 400: usage limit reached
        """
        coupon = self.repo.find_by_code(code)
        if not coupon or not coupon.is_valid_at():
            raise ServiceError("Coupon not found or expired", 404)
        if coupon.is_exhausted:
            raise ServiceError("Coupon usage limit reached", 400)
        return coupon

    def quote(self, code: str, order_amount: float) -> CouponQuote:
        """
        Discount for an order amount.

        Raises:
            ServiceError 404: unknown code
            ServiceError 400: expired, inactive, exhausted or below the minimum order amount
        """
        coupon = self.repo.find_by_code(code)
        if not coupon:
            raise ServiceError("Coupon not found", 404)
        if not coupon.is_valid_at():
            raise ServiceError("Coupon expired", 400)
        if coupon.is_exhausted:
            raise ServiceError("Coupon usage limit reached", 400)
        if order_amount < coupon.min_order_amount:
            raise ServiceError(f"Order amount must be at least {coupon.min_order_amount:g}", 400)

        return CouponQuote(
            coupon=coupon,
            original_amount=order_amount,
            discount=coupon.calculate_discount(order_amount)
        )
