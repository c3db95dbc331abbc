from storefront.models.cache import CacheStatsReport
from storefront.models.enums import OrderStatus, UserRole
from storefront.models.order import Order, OrderCreate, OrderUpdate
from storefront.models.product import Product, ProductCreate, ProductUpdate
from storefront.models.user import User, UserCreate, UserUpdate

__all__ = [
    "CacheStatsReport",
    "Order",
    "OrderCreate",
    "OrderStatus",
    "OrderUpdate",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "User",
    "UserCreate",
    "UserRole",
    "UserUpdate",
]
