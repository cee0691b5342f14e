"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities,
plus the pure business rules that belong to them (status machines,
discounts, cart totals, order days, delivery pricing).

Author: TM3
Date: 2026-02-11
"""
from produce_store.domain.product import Product, ProductVariant, calculate_discounted_price
from produce_store.domain.order import Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod
from produce_store.domain.preorder import PreOrder, PreOrderStatus, PromotionalBanner
from produce_store.domain.catalog import Category, Subcategory
from produce_store.domain.address import Address
from produce_store.domain.settings import SiteSettings
from produce_store.domain.cart import Cart, CartItem
from produce_store.domain.delivery import DeliveryQuote, DeliveryZone

__all__ = [
    'Product', 'ProductVariant', 'calculate_discounted_price',
    'Order', 'OrderItem', 'OrderStatus', 'PaymentStatus', 'PaymentMethod',
    'PreOrder', 'PreOrderStatus', 'PromotionalBanner',
    'Category', 'Subcategory',
    'Address',
    'SiteSettings',
    'Cart', 'CartItem',
    'DeliveryQuote', 'DeliveryZone',
]
