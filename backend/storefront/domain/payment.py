"""
Payment Domain Models

One Payment row per gateway attempt for an order.

Author: Online Store Team
Date: 2025-03-02
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict, Any, Literal
from datetime import datetime


PaymentStatus = Literal["pending", "processing", "success", "failed", "cancelled", "expired"]


class Payment(BaseModel):
    """
    Payment attempt

    Fields:
        transaction_ref: Reference we sent to the gateway (vnp_TxnRef)
        gateway_transaction_id: Gateway's own id (vnp_TransactionNo)
        raw_request: Parameters sent to the gateway
        raw_response: Parameters received on the IPN callback
        webhook_verified: Whether the callback signature checked out
    """

    id: int = Field(..., description="Payment ID")
    order_id: int = Field(..., description="Order ID")
    gateway: str = Field(..., description="Gateway name (vnpay)")
    amount: float = Field(..., ge=0)
    currency: str = "VND"
    status: PaymentStatus = "pending"
    transaction_ref: Optional[str] = None
    gateway_transaction_id: Optional[str] = None
    raw_request: Dict[str, Any] = Field(default_factory=dict)
    raw_response: Dict[str, Any] = Field(default_factory=dict)
    redirect_url: Optional[str] = None
    webhook_verified: bool = False
    failure_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class PaymentInitiate(BaseModel):
    order_id: int
    gateway: str = "vnpay"
    amount: Optional[float] = Field(None, gt=0, description="Defaults to the order total")
    order_info: Optional[str] = Field(None, max_length=255)
    bank_code: Optional[str] = None
    locale: Literal["vn", "en"] = "vn"
