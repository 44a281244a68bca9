"""
Order Domain Models

Represents orders placed through the storefront checkout.

Author: Online Store Team
Date: 2025-02-14
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime


PaymentMethod = Literal["cod", "card", "bank_transfer", "e_wallet", "vnpay"]


class OrderItem(BaseModel):
    """
    Order line. Name, image and price are copied from the product at
    order time so later catalog edits do not change past orders.
    """

    id: Optional[int] = Field(None, description="Order item ID")
    product_id: int = Field(..., description="Product ID")
    name: str = Field(..., description="Product name at order time")
    qty: int = Field(..., ge=1, description="Quantity")
    image: Optional[str] = Field(None, description="Product image at order time")
    price: float = Field(..., ge=0, description="Unit price at order time")

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> float:
        return self.price * self.qty


class Order(BaseModel):
    """
    Order domain model

    Fields:
        user_id: Account that placed the order
        customer_id: Customer the order ships to
        items_price: Sum of line totals
        discount_price: Coupon discount applied to items_price
        tax_price: Tax amount
        shipping_fee: Carrier fee
        total_price: items - discount + tax + shipping
        shipping_address: Snapshot of the delivery address
    """

    id: int = Field(..., description="Order ID")
    user_id: Optional[int] = Field(None, description="Ordering user ID")
    customer_id: Optional[int] = Field(None, description="Customer ID")
    customer_name: Optional[str] = Field(None, description="Customer name (from JOIN)")
    customer_email: Optional[str] = Field(None, description="Customer email (from JOIN)")
    customer_phone: Optional[str] = Field(None, description="Customer phone (from JOIN)")

    items: List[OrderItem] = Field(default_factory=list, description="Order lines")
    items_price: float = Field(0, ge=0)
    discount_price: float = Field(0, ge=0)
    coupon_code: Optional[str] = None
    tax_price: float = Field(0, ge=0)
    shipping_fee: float = Field(0, ge=0)
    total_price: float = Field(0, ge=0)

    payment_method: PaymentMethod = "cod"
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None

    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    shipping_provider: Optional[str] = None
    shipping_service: Optional[str] = None

    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        return sum(item.qty for item in self.items)


class OrderItemCreate(BaseModel):
    product_id: int
    qty: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    """
    Checkout payload

    Customer identity is resolved from customer_phone first, then
    customer_email, then customer_name alone.
    """
    order_items: List[OrderItemCreate] = Field(default_factory=list)
    customer_name: Optional[str] = Field(None, max_length=150)
    customer_email: Optional[str] = Field(None, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=20)
    shipping_address: Dict[str, Any] = Field(default_factory=dict)
    shipping_fee: float = Field(0, ge=0)
    tax_price: float = Field(0, ge=0)
    shipping_provider: Optional[str] = None
    shipping_service: Optional[str] = None
    payment_method: PaymentMethod = "cod"
    coupon_code: Optional[str] = None
