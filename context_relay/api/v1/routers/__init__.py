"""
API роутеры v1.
"""

from .contexts_router import router as contexts_router
from .health_router import router as health_router
from .messages_router import router as messages_router
from .webhook_router import router as webhook_router

__all__ = [
    "contexts_router",
    "health_router",
    "messages_router",
    "webhook_router",
]
