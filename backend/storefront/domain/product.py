"""
Product Domain Model

Represents a product in the storefront catalog, plus its reviews.

Author: Online Store Team
Date: 2025-02-14
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone


class Deal(BaseModel):
    """Time-limited discount (percent) shown on the product card"""
    discount: float = Field(0, ge=0, le=100, description="Discount percent")
    end_time: Optional[datetime] = Field(None, description="When the deal ends")


class Product(BaseModel):
    """
    Product domain model

    Fields:
        user_id: Admin who created the product
        image: Main image URL (required)
        images: Additional gallery image URLs
        features: Bullet-point feature list
        specs: Free-form technical specifications
        rating: Average rating of live reviews (0 when none)
        num_reviews: Number of live reviews
        price: Selling price in VND
        original_price: List price before discount
        count_in_stock: Units available
        deal: Optional time-limited discount
    """

    id: int = Field(..., description="Product ID")
    user_id: Optional[int] = Field(None, description="Creator user ID")
    name: str = Field(..., description="Product name")
    image: str = Field(..., description="Main image URL")
    images: List[str] = Field(default_factory=list, description="Gallery image URLs")
    brand: Optional[str] = Field(None, description="Brand")
    category_id: Optional[int] = Field(None, description="Category ID")
    category_name: Optional[str] = Field(None, description="Category name (from JOIN)")
    supplier_id: Optional[int] = Field(None, description="Supplier ID")
    supplier_name: Optional[str] = Field(None, description="Supplier name (from JOIN)")
    description: Optional[str] = Field(None, description="Product description")
    features: List[str] = Field(default_factory=list, description="Feature bullet points")
    specs: Dict[str, Any] = Field(default_factory=dict, description="Technical specifications")

    rating: float = Field(0, ge=0, le=5, description="Average review rating")
    num_reviews: int = Field(0, ge=0, description="Number of reviews")
    price: float = Field(..., ge=0, description="Selling price")
    original_price: Optional[float] = Field(None, ge=0, description="Price before discount")
    count_in_stock: int = Field(0, ge=0, description="Units in stock")
    featured: bool = Field(False, description="Shown on the home page")
    deal: Optional[Deal] = Field(None, description="Active deal, if any")

    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def in_stock(self) -> bool:
        return self.count_in_stock > 0

    @property
    def has_active_deal(self) -> bool:
        """A deal counts only while it has a discount and has not ended"""
        if not self.deal or not self.deal.discount:
            return False
        if self.deal.end_time is None:
            return True
        end_time = self.deal.end_time
        if end_time.tzinfo is None:
            end_time = end_time.replace(tzinfo=timezone.utc)
        return end_time > datetime.now(timezone.utc)

    @property
    def deal_price(self) -> float:
        """Price after the active deal discount, rounded to whole dong"""
        if not self.has_active_deal:
            return self.price
        return round(self.price * (100 - self.deal.discount) / 100)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["in_stock"] = self.in_stock
        data["deal_price"] = self.deal_price
        return data


class ProductCreate(BaseModel):
    """
    Product fields accepted on create

    The main image comes from the multipart upload, not from this model.
    """
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    brand: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    specs: Dict[str, Any] = Field(default_factory=dict)
    count_in_stock: int = Field(0, ge=0)
    featured: bool = False
    deal: Optional[Deal] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    brand: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    features: Optional[List[str]] = None
    specs: Optional[Dict[str, Any]] = None
    count_in_stock: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    deal: Optional[Deal] = None


class ProductFilters(BaseModel):
    """Listing filters shared by the public list and the featured list"""
    keyword: Optional[str] = None
    category_id: Optional[int] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None


class Review(BaseModel):
    """Product review. One live review per user and product."""

    id: int = Field(..., description="Review ID")
    name: str = Field(..., description="Reviewer display name")
    rating: int = Field(..., ge=1, le=5, description="Stars, 1 to 5")
    comment: str = Field(..., description="Review text")
    avatar: Optional[str] = Field(None, description="Reviewer avatar URL")
    user_id: int = Field(..., description="Reviewer user ID")
    product_id: int = Field(..., description="Reviewed product ID")
    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1)
