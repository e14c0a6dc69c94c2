"""Marketplace domain API package."""

from marketplace.api.handlers import register_error_handlers
from marketplace.api.routes import (
    admin_router,
    cart_router,
    order_router,
    phone_router,
    user_router,
    wishlist_router,
)

ROUTERS = [user_router, phone_router, cart_router, order_router, wishlist_router, admin_router]

__all__ = [
    "ROUTERS",
    "admin_router",
    "cart_router",
    "order_router",
    "phone_router",
    "register_error_handlers",
    "user_router",
    "wishlist_router",
]
