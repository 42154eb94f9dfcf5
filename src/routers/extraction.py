"""
Text tool API routes: page text extraction and text shortening.
"""

import uuid
from typing import Any, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from core.extraction import PageFetcher
from core.shortener import shorten_text
from errors import InvalidRequestError
from models import ExtractedPage, FetchUrlRequest, ShortenRequest, ShortenResponse
from utils import LogRecord, LogEvent, info
from .handlers import RequestHandler


def create_extraction_router(page_fetcher: PageFetcher, settings: Any) -> APIRouter:
    """Create extraction router with the page fetcher dependency."""
    router = APIRouter(prefix="/api", tags=["Text"])
    handler = RequestHandler(settings)

    @router.post("/fetch-url", response_model=None)
    async def fetch_url(request: Request) -> Union[ExtractedPage, JSONResponse]:
        """Fetch a web page and return the readable text of its main content."""
        request_id = str(uuid.uuid4())
        try:
            body = await handler.parse_body(request, FetchUrlRequest)
            return await page_fetcher.fetch_page_text(body.url, request_id=request_id)
        except Exception as e:
            return await handler.log_and_return_error_response(request, e, request_id)

    @router.post("/shorten", response_model=None)
    async def shorten(request: Request) -> Union[ShortenResponse, JSONResponse]:
        request_id = str(uuid.uuid4())
        try:
            body = await handler.parse_body(request, ShortenRequest)
            text = body.text.strip()
            if len(text) < settings.shortener_min_length:
                raise InvalidRequestError(
                    f"Text is too short. Minimum length: {settings.shortener_min_length} characters"
                )

            result = shorten_text(text, settings.shortener_min_length, settings.shortener_max_length)
            info(LogRecord(
                event=LogEvent.REQUEST_COMPLETED.value,
                message=f"Shortened text from {len(text)} to {len(result)} characters",
                request_id=request_id,
            ))
            return ShortenResponse(original=text, result=result)
        except Exception as e:
            return await handler.log_and_return_error_response(request, e, request_id)

    return router
