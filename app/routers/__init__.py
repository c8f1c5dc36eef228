"""
Routers for the Stockroom API
"""

from .auth import router as auth_router
from .inventory import router as inventory_router, categories_router
from .activity import router as activity_router

__all__ = ["auth_router", "inventory_router", "categories_router", "activity_router"]
