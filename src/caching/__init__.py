"""
Response caching.

This module provides:
- Request fingerprints used as cache keys
- A TTL cache of completed responses
"""

from .response_cache import (
    DEFAULT_TTL_SECONDS,
    CacheEntry,
    ResponseCache,
    generate_cache_key
)

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "ResponseCache",
    "generate_cache_key"
]
