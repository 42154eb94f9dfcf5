"""Chat completion routes."""

from .routes import create_chat_router
from .handlers import ChatHandler

__all__ = ["create_chat_router", "ChatHandler"]
