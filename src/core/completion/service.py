"""Completion service: response cache in front of the single-flight queue."""

import asyncio
import dataclasses
from typing import Any, Dict, Optional

from caching import ResponseCache, generate_cache_key
from models import CompletionRequest
from utils import LogRecord, LogEvent, info
from .queue import SingleFlightQueue


@dataclasses.dataclass
class RelayStats:
    total_requests: int = 0
    cache_hits: int = 0
    queued_requests: int = 0

    @property
    def hit_rate(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.cache_hits / self.total_requests


class CompletionService:
    """Owns one cache and one queue; injected into the routes that need AI replies."""

    def __init__(self, queue: SingleFlightQueue, cache: ResponseCache, client=None):
        self.queue = queue
        self.cache = cache
        self.client = client if client is not None else queue.retry_policy.client
        self.stats = RelayStats()

    @property
    def is_configured(self) -> bool:
        return getattr(self.client, "is_configured", True)

    def count_request(self) -> None:
        """Every /api/chat hit counts, including rejected ones."""
        self.stats.total_requests += 1

    def lookup(self, request: CompletionRequest, request_id: Optional[str] = None) -> Optional[str]:
        """Cached response for this exact turn sequence, if still fresh."""
        cached = self.cache.lookup(generate_cache_key(request))
        if cached is not None:
            self.stats.cache_hits += 1
            info(LogRecord(
                event=LogEvent.CACHE_HIT.value,
                message=f"Cache hit ({self.stats.cache_hits}/{self.stats.total_requests} = "
                        f"{self.stats.hit_rate * 100:.1f}%)",
                request_id=request_id,
            ))
        return cached

    def submit(self, request: CompletionRequest, sink, request_id: Optional[str] = None) -> asyncio.Future:
        """Queue a request; its response is cached when the entry succeeds."""
        self.stats.queued_requests += 1
        key = generate_cache_key(request)
        signal = self.queue.submit(request, sink, request_id=request_id)

        def store_on_success(future: asyncio.Future) -> None:
            if future.cancelled() or future.exception() is not None:
                return
            self.cache.store(key, future.result())

        signal.add_done_callback(store_on_success)
        return signal

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_requests": self.stats.total_requests,
            "cache_hits": self.stats.cache_hits,
            "queued_requests": self.stats.queued_requests,
            "retries": self.queue.retry_policy.total_retries,
            "cache_entries": len(self.cache),
            "pending": self.queue.pending_count,
            "draining": self.queue.is_draining,
        }

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()
