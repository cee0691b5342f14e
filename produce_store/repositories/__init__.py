"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.

Author: TM3
Date: 2026-02-11
"""
from produce_store.repositories.product_repository import ProductRepository
from produce_store.repositories.category_repository import CategoryRepository
from produce_store.repositories.order_repository import OrderRepository
from produce_store.repositories.address_repository import AddressRepository
from produce_store.repositories.banner_repository import BannerRepository
from produce_store.repositories.preorder_repository import PreOrderRepository
from produce_store.repositories.settings_repository import SettingsRepository
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.repositories.analytics_repository import AnalyticsRepository
from produce_store.repositories.otp_repository import OtpRepository
from produce_store.repositories.user_role_repository import UserRoleRepository

__all__ = [
    'ProductRepository',
    'CategoryRepository',
    'OrderRepository',
    'AddressRepository',
    'BannerRepository',
    'PreOrderRepository',
    'SettingsRepository',
    'CustomerRepository',
    'AnalyticsRepository',
    'OtpRepository',
    'UserRoleRepository',
]
