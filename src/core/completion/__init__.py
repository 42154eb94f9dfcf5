"""AI completion pipeline: client, retry policy, single-flight queue and service."""

from .types import FailureKind, CompletionFailure, AttemptResult, CompletionError
from .client import CompletionClient, classify_failure, DEFAULT_BASE_URL, DEFAULT_MODEL
from .retry import RetryPolicy, RetryState, DEFAULT_MAX_ATTEMPTS, DEFAULT_BASE_DELAY
from .channel import FragmentChannel
from .queue import SingleFlightQueue, QueueEntry, DEFAULT_PACING_DELAY
from .service import CompletionService, RelayStats

__all__ = [
    "FailureKind",
    "CompletionFailure",
    "AttemptResult",
    "CompletionError",
    "CompletionClient",
    "classify_failure",
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL",
    "RetryPolicy",
    "RetryState",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BASE_DELAY",
    "FragmentChannel",
    "SingleFlightQueue",
    "QueueEntry",
    "DEFAULT_PACING_DELAY",
    "CompletionService",
    "RelayStats",
]
