"""
Streaming completion client for OpenAI-compatible chat completion providers.

The relay talks to Groq through its OpenAI-compatible endpoint, so the
official ``openai`` SDK is used for the wire protocol. SDK-level retries are
disabled; rate-limit retries belong to ``core.completion.retry``.
"""

from typing import AsyncIterator, Optional

import httpx
import openai

from models import CompletionRequest
from utils import LogRecord, LogEvent, debug, info
from .types import CompletionFailure, FailureKind

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


def classify_failure(exc: BaseException) -> CompletionFailure:
    """Translate a provider exception into a failure kind the retry loop can inspect."""
    status_code = getattr(exc, "status_code", None)

    if isinstance(exc, openai.RateLimitError) or status_code == 429:
        return CompletionFailure(FailureKind.RATE_LIMITED, str(exc), 429, exc)
    if isinstance(exc, openai.AuthenticationError) or status_code == 401:
        return CompletionFailure(FailureKind.AUTH_FAILURE, str(exc), 401, exc)
    if isinstance(exc, (openai.APIConnectionError, httpx.TransportError)):
        return CompletionFailure(FailureKind.NETWORK_FAILURE, str(exc), None, exc)
    return CompletionFailure(FailureKind.UPSTREAM_ERROR, str(exc), status_code, exc)


class CompletionClient:
    """Opens one streaming chat completion per call."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        timeout: float = 60.0,
        app_name: str = "Chat Relay",
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.app_name = app_name
        self._client: Optional[openai.AsyncOpenAI] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key or "",
                base_url=self.base_url,
                max_retries=0,
                default_headers={"X-Title": self.app_name},
                http_client=httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)),
            )
        return self._client

    async def open_stream(self, request: CompletionRequest, request_id: Optional[str] = None) -> AsyncIterator[str]:
        """Establish the provider stream and return its text fragments.

        Raises on failure to establish the stream. Errors raised while the
        returned iterator is consumed end the sequence early.
        """
        debug(LogRecord(
            event=LogEvent.COMPLETION_REQUEST.value,
            message=f"Opening completion stream ({len(request.turns)} turns) [{self.model}]",
            request_id=request_id,
            data={"model": self.model, "turns": len(request.turns)},
        ))

        stream = await self._get_client().chat.completions.create(
            model=self.model,
            messages=request.to_provider_messages(),
            stream=True,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        info(LogRecord(
            event=LogEvent.COMPLETION_STREAM_OPENED.value,
            message=f"Completion stream opened [{self.model}]",
            request_id=request_id,
        ))
        return self._iter_fragments(stream)

    @staticmethod
    async def _iter_fragments(stream) -> AsyncIterator[str]:
        async for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
