"""In-memory chat threads. Nothing here survives a restart."""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from errors import ChatNotFoundError
from models import Chat, ChatMessage

DEFAULT_TITLE = "New chat"
DEFAULT_MAX_MESSAGES = 50
TITLE_PREVIEW_LENGTH = 30


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _random_suffix(length: int = 9) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def title_from_text(text: str, limit: int = TITLE_PREVIEW_LENGTH) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class ChatStore:
    """Chat id -> thread. Insertion order is the order clients see in snapshots."""

    def __init__(
        self,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        default_title: str = DEFAULT_TITLE,
        clock: Callable[[], float] = time.time,
    ):
        self.max_messages = max_messages
        self.default_title = default_title
        self._clock = clock
        self._chats: Dict[str, Chat] = {}

    def __len__(self) -> int:
        return len(self._chats)

    def __contains__(self, chat_id: str) -> bool:
        return chat_id in self._chats

    def list_chats(self) -> List[Chat]:
        return list(self._chats.values())

    def get(self, chat_id: str) -> Chat:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise ChatNotFoundError(chat_id)
        return chat

    def create_chat(self, title: Optional[str] = None) -> Chat:
        chat_id = f"chat-{int(self._clock() * 1000)}-{_random_suffix()}"
        chat = Chat(id=chat_id, title=title or self.default_title, created_at=_now_iso())
        self._chats[chat_id] = chat
        return chat

    def add_message(self, chat_id: str, message: Dict[str, Any]) -> ChatMessage:
        """Append a client message, stamping id and timestamp.

        The first message of a chat that still has the default title renames
        the chat after the message text.
        """
        chat = self.get(chat_id)

        payload = {
            **message,
            "id": f"{int(self._clock() * 1000)}-{_random_suffix(6)}",
            "timestamp": _now_iso(),
        }
        stored = ChatMessage.model_validate(payload)
        chat.messages.append(stored)

        if len(chat.messages) > self.max_messages:
            chat.messages = chat.messages[-self.max_messages:]

        if len(chat.messages) == 1 and chat.title == self.default_title:
            text = message.get("content") or message.get("result") or ""
            chat.title = title_from_text(str(text))

        return stored

    def update_title(self, chat_id: str, title: str) -> Chat:
        chat = self.get(chat_id)
        chat.title = title
        return chat

    def delete_chat(self, chat_id: str) -> None:
        if chat_id not in self._chats:
            raise ChatNotFoundError(chat_id)
        del self._chats[chat_id]
