from .user import AdminUser, AdminSession
from .products import Product, Category, Tag, ProductTag, CategoryTag, StockUpdate
from .order import Order, OrderItem, OrderStatus
from .admin_settings import SiteSettings

__all__ = [
    "AdminUser",
    "AdminSession",
    "Product",
    "Category",
    "Tag",
    "ProductTag",
    "CategoryTag",
    "StockUpdate",
    "Order",
    "OrderItem",
    "OrderStatus",
    "SiteSettings",
]
