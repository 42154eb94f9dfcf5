"""Time-limited cache of completed AI responses keyed by request fingerprint."""

import dataclasses
import hashlib
import json
import time
from typing import Callable, Dict, Optional

from models import CompletionRequest
from utils.logging import debug, LogRecord, LogEvent

DEFAULT_TTL_SECONDS = 5 * 60


def generate_cache_key(request: CompletionRequest) -> str:
    """Fingerprint of the ordered turn sequence.

    Identical turns in identical order always produce the same key; that
    collision is what makes repeated questions cacheable.
    """
    canonical = json.dumps(
        request.to_provider_messages(),
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclasses.dataclass
class CacheEntry:
    response: str
    inserted_at: float


class ResponseCache:
    """Map of cache key -> full response text with a fixed TTL.

    Expired entries are masked on lookup rather than deleted; nothing sweeps
    the map and there is no size bound.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def lookup(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            debug(LogRecord(
                event=LogEvent.CACHE_MISS.value,
                message=f"Cache miss for {key[:16]}",
            ))
            return None

        age = self._clock() - entry.inserted_at
        if age >= self.ttl_seconds:
            debug(LogRecord(
                event=LogEvent.CACHE_EXPIRED.value,
                message=f"Cache entry {key[:16]} expired",
                data={"age_seconds": round(age, 3), "ttl_seconds": self.ttl_seconds},
            ))
            return None

        return entry.response

    def store(self, key: str, response: str) -> None:
        self._entries[key] = CacheEntry(response=response, inserted_at=self._clock())
        debug(LogRecord(
            event=LogEvent.CACHE_STORED.value,
            message=f"Cached response for {key[:16]}",
            data={"response_length": len(response)},
        ))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
