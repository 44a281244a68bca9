"""
Domain Layer - Business Entities

Pydantic models for the storefront entities and their request payloads.

Author: Online Store Team
Date: 2025-02-14
"""
from storefront.domain.user import User
from storefront.domain.catalog import Category, Supplier
from storefront.domain.customer import Customer, Address
from storefront.domain.product import Product, Review, Deal
from storefront.domain.order import Order, OrderItem
from storefront.domain.coupon import Coupon
from storefront.domain.payment import Payment

__all__ = [
    'User', 'Category', 'Supplier', 'Customer', 'Address',
    'Product', 'Review', 'Deal', 'Order', 'OrderItem', 'Coupon', 'Payment'
]
