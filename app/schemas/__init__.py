from .auth import (
    AdminRegister,
    AdminLogin,
    Identity,
    AuthSession
)
from .products import (
    TagCreate,
    TagUpdate,
    CategoryCreate,
    CategoryUpdate,
    CategoryTagAdd,
    ProductCreate,
    ProductUpdate
)
from .orders import OrderCreate, OrderItemCreate, OrderStatusUpdate
from .admin_settings import SiteSettingsUpdate

__all__ = [
    "AdminRegister",
    "AdminLogin",
    "Identity",
    "AuthSession",
    "TagCreate",
    "TagUpdate",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryTagAdd",
    "ProductCreate",
    "ProductUpdate",
    "OrderCreate",
    "OrderItemCreate",
    "OrderStatusUpdate",
    "SiteSettingsUpdate",
]
