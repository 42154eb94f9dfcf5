"""
Realtime chat hub: fans chat mutations out to every connected WebSocket peer.
Peer disconnects are detected by send failures and handled without
interrupting the broadcast to the remaining peers.
"""

import json
import uuid
from typing import Any, Dict, List

from fastapi import WebSocket
from pydantic import ValidationError

from errors import ChatNotFoundError
from utils.logging import debug, info, warning, LogRecord, LogEvent
from .store import ChatStore


class PeerConnection:
    """One connected client socket."""

    def __init__(self, websocket: WebSocket, peer_id: str):
        self.websocket = websocket
        self.peer_id = peer_id
        self.is_active = True
        self.frames_sent = 0
        self.last_error = None

    async def send(self, event: str, data: Any) -> bool:
        """Send one event frame. Returns False if the peer is gone."""
        if not self.is_active:
            return False

        try:
            await self.websocket.send_json({"event": event, "data": data})
        except Exception as e:
            self.is_active = False
            self.last_error = e
            debug(
                LogRecord(
                    LogEvent.CLIENT_DISCONNECTED_DURING_SEND.value,
                    f"Peer disconnected during '{event}' send: {type(e).__name__}: {e}",
                    self.peer_id,
                    {"event": event, "frames_sent": self.frames_sent}
                )
            )
            return False

        self.frames_sent += 1
        return True


class ChatHub:
    """Connected peers plus the chat store they all share."""

    def __init__(self, store: ChatStore):
        self.store = store
        self.peers: Dict[str, PeerConnection] = {}
        self._handlers = {
            "create-chat": self._on_create_chat,
            "switch-chat": self._on_switch_chat,
            "new-message": self._on_new_message,
            "update-chat-title": self._on_update_chat_title,
            "delete-chat": self._on_delete_chat,
        }

    @property
    def peer_count(self) -> int:
        return len(self.peers)

    def chats_snapshot(self) -> List[dict]:
        return [chat.to_payload() for chat in self.store.list_chats()]

    async def connect(self, websocket: WebSocket) -> PeerConnection:
        await websocket.accept()
        peer = PeerConnection(websocket, str(uuid.uuid4()))
        self.peers[peer.peer_id] = peer
        info(
            LogRecord(
                LogEvent.CLIENT_CONNECTED.value,
                f"Peer connected. Total peers: {self.peer_count}",
                peer.peer_id,
            )
        )

        await self.broadcast("user-count", self.peer_count)
        await peer.send("chats", self.chats_snapshot())
        return peer

    async def disconnect(self, peer: PeerConnection) -> None:
        peer.is_active = False
        if self.peers.pop(peer.peer_id, None) is None:
            return
        info(
            LogRecord(
                LogEvent.CLIENT_DISCONNECTED.value,
                f"Peer disconnected. Total peers: {self.peer_count}",
                peer.peer_id,
            )
        )
        await self.broadcast("user-count", self.peer_count)

    async def broadcast(self, event: str, data: Any) -> None:
        """Send an event to every peer in connection order, dropping dead ones."""
        dropped = []
        for peer in list(self.peers.values()):
            if not await peer.send(event, data):
                dropped.append(peer)

        for peer in dropped:
            self.peers.pop(peer.peer_id, None)
        if dropped:
            info(
                LogRecord(
                    LogEvent.CLIENT_DISCONNECTED.value,
                    f"Dropped {len(dropped)} unreachable peers. Total peers: {self.peer_count}",
                    data={"dropped": [peer.peer_id for peer in dropped]},
                )
            )
            await self.broadcast("user-count", self.peer_count)

    def ignore_frame(self, peer: PeerConnection, reason: str) -> None:
        warning(LogRecord(LogEvent.CLIENT_FRAME_INVALID.value, reason, peer.peer_id))

    async def handle_message(self, peer: PeerConnection, raw: str) -> None:
        """Decode one inbound text frame and dispatch it."""
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError as e:
            self.ignore_frame(peer, f"Ignoring non-JSON frame: {e}")
            return

        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            self.ignore_frame(peer, "Ignoring frame without an event name")
            return

        await self.handle_event(peer, frame["event"], frame.get("data"))

    async def handle_event(self, peer: PeerConnection, event: str, data: Any) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            warning(
                LogRecord(
                    LogEvent.CLIENT_EVENT_UNKNOWN.value,
                    f"Ignoring unknown event '{event}'",
                    peer.peer_id,
                )
            )
            return

        try:
            await handler(peer, data)
        except ChatNotFoundError as e:
            # Nothing is broadcast for a chat that no longer exists
            warning(
                LogRecord(
                    LogEvent.CHAT_NOT_FOUND.value,
                    f"Chat not found: {e.chat_id}",
                    peer.peer_id,
                    {"event": event, "chat_id": e.chat_id},
                )
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            warning(
                LogRecord(
                    LogEvent.CLIENT_FRAME_INVALID.value,
                    f"Ignoring malformed '{event}' payload: {type(e).__name__}",
                    peer.peer_id,
                    {"event": event},
                )
            )

    async def _on_create_chat(self, peer: PeerConnection, data: Any) -> None:
        chat = self.store.create_chat()
        await self.broadcast("chat-created", chat.to_payload())
        info(LogRecord(LogEvent.CHAT_CREATED.value, f"New chat created: {chat.id}", peer.peer_id))

    async def _on_switch_chat(self, peer: PeerConnection, data: Any) -> None:
        debug(LogRecord(LogEvent.CHAT_SWITCHED.value, f"Peer switched to chat: {data}", peer.peer_id))

    async def _on_new_message(self, peer: PeerConnection, data: Any) -> None:
        chat_id = data["chatId"]
        message = data["message"]
        if not isinstance(message, dict):
            raise TypeError("message must be an object")

        stored = self.store.add_message(chat_id, message)
        chat = self.store.get(chat_id)
        await self.broadcast("message-added", {
            "chatId": chat_id,
            "message": stored.model_dump(exclude_none=True),
            "chatTitle": chat.title,
        })
        info(
            LogRecord(
                LogEvent.CHAT_MESSAGE_ADDED.value,
                f"Message added to chat {chat_id}: {stored.type}",
                peer.peer_id,
                {"chat_id": chat_id, "messages": len(chat.messages)},
            )
        )

    async def _on_update_chat_title(self, peer: PeerConnection, data: Any) -> None:
        chat_id = data["chatId"]
        title = data["title"]
        if not isinstance(title, str) or not title.strip():
            raise ValueError("title must be a non-empty string")

        chat = self.store.update_title(chat_id, title.strip())
        await self.broadcast("chat-title-updated", {"chatId": chat_id, "title": chat.title})
        info(LogRecord(LogEvent.CHAT_TITLE_UPDATED.value, f"Chat title updated: {chat_id} -> {chat.title}", peer.peer_id))

    async def _on_delete_chat(self, peer: PeerConnection, data: Any) -> None:
        if not isinstance(data, str):
            raise TypeError("chat id must be a string")

        self.store.delete_chat(data)
        await self.broadcast("chat-deleted", data)
        info(LogRecord(LogEvent.CHAT_DELETED.value, f"Chat deleted: {data}", peer.peer_id))
