"""Database models package."""

from .product import Product, Category, product_categories
from .attribute import Attribute
from .coupon import Coupon
from .order import Order, OrderItem

__all__ = [
    'Product',
    'Category',
    'product_categories',
    'Attribute',
    'Coupon',
    'Order',
    'OrderItem',
]
