"""
Customer and Address Domain Models

Customers are the people orders ship to. They are keyed by phone for the
checkout upsert, and own a book of shipping addresses, at most one of which
is the default.

Author: Online Store Team
Date: 2025-02-14
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional, Literal
from datetime import datetime


PHONE_PATTERN = r"^[0-9\-\+]{9,15}$"


class Customer(BaseModel):
    """
    Customer domain model

    Fields:
        name: Full name
        email: Lowercase email, unique among live customers
        phone: Phone number used to look customers up at checkout
        address: Free-form address text (structured addresses live in Address)
    """

    id: int = Field(..., description="Customer ID")
    name: str = Field(..., description="Customer name")
    email: str = Field(..., description="Customer email")
    phone: Optional[str] = Field(None, description="Customer phone")
    address: Optional[str] = Field(None, description="Free-form address")
    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None


class CustomerPhoneUpsert(BaseModel):
    """Body of POST /customers/phone/{phone}; name and email are required only on create"""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    address: Optional[str] = None


class Address(BaseModel):
    """
    Shipping address domain model

    Province, district and ward ids are GHN master-data ids; the names are
    filled in from GHN when the address is validated.
    """

    id: int = Field(..., description="Address ID")
    customer_id: int = Field(..., description="Owning customer")
    full_name: str = Field(..., description="Recipient name")
    phone: str = Field(..., description="Recipient phone")
    province_id: int = Field(..., description="GHN province id")
    province_name: str = Field(..., description="Province name")
    district_id: int = Field(..., description="GHN district id")
    district_name: str = Field(..., description="District name")
    ward_code: str = Field(..., description="GHN ward code")
    ward_name: str = Field(..., description="Ward name")
    street: str = Field(..., description="Street address")
    zip_code: Optional[str] = Field(None, description="Postal code")
    address_type: Literal["home", "office"] = Field("home", description="home or office")
    is_default: bool = Field(False, description="Default address for the customer")
    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def full_address(self) -> str:
        return ", ".join([self.street, self.ward_name, self.district_name, self.province_name])


class AddressCreate(BaseModel):
    customer_id: int
    full_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    province_id: int
    district_id: int
    ward_code: str = Field(..., min_length=1)
    street: str = Field(..., min_length=5, max_length=255)
    zip_code: Optional[str] = Field(None, max_length=10)
    address_type: Literal["home", "office"] = "home"
    is_default: bool = False


class AddressUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    province_id: Optional[int] = None
    district_id: Optional[int] = None
    ward_code: Optional[str] = Field(None, min_length=1)
    street: Optional[str] = Field(None, min_length=5, max_length=255)
    zip_code: Optional[str] = Field(None, max_length=10)
    address_type: Optional[Literal["home", "office"]] = None
    is_default: Optional[bool] = None

    @property
    def changes_location(self) -> bool:
        return any(v is not None for v in (self.province_id, self.district_id, self.ward_code))
