"""
Catalog Domain Models

Categories and suppliers referenced by products.

Author: Online Store Team
Date: 2025-02-14
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime


class Category(BaseModel):
    """Product category. Names are unique."""

    id: int = Field(..., description="Category ID")
    name: str = Field(..., description="Unique category name")
    description: Optional[str] = Field(None, description="Category description")
    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class Supplier(BaseModel):
    """Product supplier. Both name and email are unique."""

    id: int = Field(..., description="Supplier ID")
    name: str = Field(..., description="Unique supplier name")
    phone: Optional[str] = Field(None, description="Contact phone")
    email: str = Field(..., description="Unique contact email")
    description: Optional[str] = Field(None, description="Notes about the supplier")
    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
