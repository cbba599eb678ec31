"""
API route handlers for the Real Estate Marketplace API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .agents import router as agents_router
from .users import router as users_router
from .contact import router as contact_router
from .messages import router as messages_router
from .admin import router as admin_router

__all__ = [
    "auth_router",
    "properties_router",
    "agents_router",
    "users_router",
    "contact_router",
    "messages_router",
    "admin_router",
]
