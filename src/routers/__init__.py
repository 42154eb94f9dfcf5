"""API router factories."""

from .chat import create_chat_router
from .extraction import create_extraction_router
from .health import create_health_router
from .realtime import create_realtime_router

__all__ = [
    "create_chat_router",
    "create_extraction_router",
    "create_health_router",
    "create_realtime_router",
]
