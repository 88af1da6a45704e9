"""
API route modules.
"""

from .collections import router as collections_router
from .settings import router as settings_router
from .feeds import router as feeds_router
from .misc import router as misc_router

__all__ = [
    "collections_router",
    "settings_router",
    "feeds_router",
    "misc_router",
]
