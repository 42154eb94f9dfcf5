"""
Chat API routes: POST /api/chat streams the AI reply as server-sent events.
"""

import uuid
from typing import Any, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from core.completion import CompletionService
from .handlers import ChatHandler, SSE_HEADERS


def create_chat_router(service: CompletionService, settings: Any) -> APIRouter:
    """Create chat router with the completion service dependency."""
    router = APIRouter(prefix="/api", tags=["Chat"])
    chat_handler = ChatHandler(service, settings)

    @router.post("/chat", response_model=None)
    async def chat(request: Request) -> Union[StreamingResponse, JSONResponse]:
        request_id = str(uuid.uuid4())
        service.count_request()

        try:
            chat_request = await chat_handler.parse_chat_request(request, request_id)
            chat_handler.ensure_configured(request_id)
            completion_request = chat_handler.build_completion_request(chat_request)

            cached = service.lookup(completion_request, request_id)
            if cached is not None:
                return StreamingResponse(
                    chat_handler.stream_cached(cached, request_id),
                    media_type="text/event-stream",
                    headers=SSE_HEADERS,
                )

            stream = await chat_handler.open_queued_stream(completion_request, request_id)
            return StreamingResponse(
                stream.events(),
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )
        except Exception as e:
            return await chat_handler.log_and_return_error_response(request, e, request_id)

    return router
