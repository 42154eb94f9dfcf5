"""Chat threads and the realtime hub that broadcasts their changes."""

from .store import ChatStore, DEFAULT_TITLE, DEFAULT_MAX_MESSAGES, title_from_text
from .hub import ChatHub, PeerConnection

__all__ = [
    "ChatStore",
    "DEFAULT_TITLE",
    "DEFAULT_MAX_MESSAGES",
    "title_from_text",
    "ChatHub",
    "PeerConnection",
]
