"""
Coupon Domain Models

Discount codes applied at checkout.

Author: Online Store Team
Date: 2025-03-02
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime, timezone


DiscountType = Literal["percentage", "fixed"]


def as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class Coupon(BaseModel):
    """
    Coupon domain model

    Fields:
        code: Uppercase, unique code typed by the shopper
        discount_type: percentage (0-100) or fixed amount in VND
        max_uses / current_uses: usage cap and counter
        min_order_amount: minimum order total the coupon applies to
        applicable_products / applicable_categories: empty means all
    """

    id: int = Field(..., description="Coupon ID")
    code: str = Field(..., description="Coupon code")
    description: Optional[str] = None
    discount_type: DiscountType = "percentage"
    discount_value: float = Field(..., ge=0)
    max_uses: int = Field(100, ge=0)
    current_uses: int = Field(0, ge=0)
    min_order_amount: float = Field(0, ge=0)
    applicable_products: List[int] = Field(default_factory=list)
    applicable_categories: List[int] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    def is_valid_at(self, moment: Optional[datetime] = None) -> bool:
        """Active, not deleted and inside its date window"""
        moment = moment or datetime.now(timezone.utc)
        return (
            self.is_active
            and not self.is_deleted
            and as_aware(self.start_date) <= moment <= as_aware(self.end_date)
        )

    @property
    def is_exhausted(self) -> bool:
        return self.current_uses >= self.max_uses

    def calculate_discount(self, order_amount: float) -> float:
        """Discount for an order amount; never more than the amount itself"""
        if self.discount_type == "percentage":
            discount = order_amount * self.discount_value / 100
        else:
            discount = self.discount_value
        return round(min(discount, order_amount), 2)


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: float = Field(..., ge=0)
    max_uses: int = Field(100, ge=1)
    min_order_amount: float = Field(0, ge=0)
    applicable_products: List[int] = Field(default_factory=list)
    applicable_categories: List[int] = Field(default_factory=list)
    start_date: datetime
    end_date: datetime
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    min_order_amount: Optional[float] = Field(None, ge=0)
    applicable_products: Optional[List[int]] = None
    applicable_categories: Optional[List[int]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class CouponCalculateRequest(BaseModel):
    coupon_code: str = Field(..., min_length=1)
    order_amount: float = Field(..., ge=0)
