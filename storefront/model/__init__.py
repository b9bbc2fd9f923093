# ------ storefront/model/__init__.py ------

from .user import User
from .category import Category, Brand
from .product import Product
from .cart import CartItem
from .promotion import Promotion
from .order import Order, OrderItem, OrderDiscount, ORDER_STATUSES

__all__ = [
    "User",
    "Category",
    "Brand",
    "Product",
    "CartItem",
    "Promotion",
    "Order",
    "OrderItem",
    "OrderDiscount",
    "ORDER_STATUSES",
]
