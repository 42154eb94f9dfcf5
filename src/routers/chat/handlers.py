"""
Chat request handling: turns a POST /api/chat body into a completion request
and renders queue output as server-sent events.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Optional

from fastapi import Request

from core.completion import CompletionService, FragmentChannel
from errors import ConfigurationError, InvalidRequestError, build_error_payload, get_error_details_from_exc
from models import ChatRequest, CompletionRequest
from utils import LogRecord, LogEvent, info, debug, error
from ..handlers import RequestHandler

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}
DONE_EVENT = "data: [DONE]\n\n"


def sse_event(payload: Any) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class ChatHandler(RequestHandler):

    def __init__(self, service: CompletionService, settings: Any):
        super().__init__(settings)
        self.service = service

    def create_request_summary(self, chat_request: ChatRequest) -> str:
        preview = chat_request.message.strip().replace("\n", " ")
        if len(preview) > 60:
            preview = preview[:60] + "..."
        return f"Chat message ({len(chat_request.chat_history)} history turns): {preview}"

    async def parse_chat_request(self, request: Request, request_id: str) -> ChatRequest:
        chat_request = await self.parse_body(request, ChatRequest)
        if not chat_request.message.strip():
            raise InvalidRequestError("Message is required")

        info(LogRecord(
            event=LogEvent.REQUEST_RECEIVED.value,
            message=self.create_request_summary(chat_request),
            request_id=request_id,
            data={"history": len(chat_request.chat_history)},
        ))
        return chat_request

    def build_completion_request(self, chat_request: ChatRequest) -> CompletionRequest:
        """System prompt, then the most recent history turns, then the new message."""
        limit = self.settings.completion_history_limit
        history = chat_request.chat_history[-limit:] if limit > 0 else []
        return CompletionRequest.build(
            self.settings.completion_system_prompt,
            history,
            chat_request.message,
        )

    def ensure_configured(self, request_id: str) -> None:
        if not self.service.is_configured:
            error(LogRecord(
                event=LogEvent.COMPLETION_API_KEY_MISSING.value,
                message="Completion provider API key is not configured",
                request_id=request_id,
            ))
            raise ConfigurationError()

    async def stream_cached(self, response: str, request_id: str) -> AsyncIterator[str]:
        yield sse_event({"content": response})
        yield DONE_EVENT
        debug(LogRecord(
            event=LogEvent.STREAMING_COMPLETED.value,
            message="Served cached response",
            request_id=request_id,
        ))

    async def open_queued_stream(
        self, completion_request: CompletionRequest, request_id: str
    ) -> "QueuedStream":
        """Queue the request and wait for its first fragment.

        Raises the entry's terminal error if it fails before producing any
        output, so the caller can still answer with a proper status code.
        """
        channel = FragmentChannel()
        signal = self.service.submit(completion_request, channel, request_id=request_id)
        signal.add_done_callback(lambda _: channel.close())

        first = await channel.receive()
        if first is None and signal.exception() is not None:
            raise signal.exception()
        return QueuedStream(first, channel, signal, request_id)


class QueuedStream:
    """SSE rendering of one queue entry whose first fragment already arrived."""

    def __init__(self, first: Optional[str], channel: FragmentChannel, signal: asyncio.Future, request_id: str):
        self.first = first
        self.channel = channel
        self.signal = signal
        self.request_id = request_id
        self.fragments_sent = 0

    async def events(self) -> AsyncIterator[str]:
        if self.first is not None:
            self.fragments_sent += 1
            yield sse_event({"content": self.first})
            async for fragment in self.channel:
                self.fragments_sent += 1
                yield sse_event({"content": fragment})

        # The channel only closes once the entry has finished
        exc = self.signal.exception()
        if exc is not None:
            error_type, message, status_code, details = get_error_details_from_exc(exc)
            error(LogRecord(
                event=LogEvent.ERROR_SENT_TO_CLIENT.value,
                message=f"Stream failed after {self.fragments_sent} fragments: {message}",
                request_id=self.request_id,
                data={"status_code": status_code, "error_type": error_type.value},
            ))
            yield sse_event(build_error_payload(error_type, message, details))
            return

        yield DONE_EVENT
        info(LogRecord(
            event=LogEvent.STREAMING_COMPLETED.value,
            message=f"Streaming completed ({self.fragments_sent} fragments)",
            request_id=self.request_id,
            data={"fragments": self.fragments_sent},
        ))
