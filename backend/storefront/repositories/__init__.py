"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: Online Store Team
Date: 2025-02-14
"""
from storefront.repositories.category_repository import CategoryRepository
from storefront.repositories.supplier_repository import SupplierRepository
from storefront.repositories.customer_repository import CustomerRepository
from storefront.repositories.address_repository import AddressRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.review_repository import ReviewRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.user_repository import UserRepository
from storefront.repositories.coupon_repository import CouponRepository
from storefront.repositories.payment_repository import PaymentRepository

__all__ = [
    'CategoryRepository',
    'SupplierRepository',
    'CustomerRepository',
    'AddressRepository',
    'ProductRepository',
    'ReviewRepository',
    'OrderRepository',
    'UserRepository',
    'CouponRepository',
    'PaymentRepository'
]
