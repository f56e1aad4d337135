# API Routes

from .sessions import router as sessions_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .notifications import router as notifications_router
from .devices import router as devices_router

__all__ = [
    "sessions_router",
    "cart_router",
    "checkout_router",
    "notifications_router",
    "devices_router",
]
