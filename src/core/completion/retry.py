"""Exponential backoff around completion stream establishment."""

import asyncio
import dataclasses
from typing import AsyncIterator, Awaitable, Callable, Optional

from models import CompletionRequest
from utils import LogRecord, LogEvent, error, warning
from .client import classify_failure
from .types import AttemptResult, CompletionError, FailureKind

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_BASE_DELAY = 0.5


@dataclasses.dataclass
class RetryState:
    attempt_count: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @property
    def can_retry(self) -> bool:
        return self.attempt_count + 1 < self.max_attempts


class RetryPolicy:
    """Retry only rate-limited attempts, waiting base_delay * 2**attempt between them.

    Once a stream is open it is handed back as-is: failures while consuming it
    are never retried.
    """

    def __init__(
        self,
        client,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self.total_retries = 0

    def backoff_delay(self, attempt: int) -> float:
        return self.base_delay * (2 ** attempt)

    async def _attempt(self, request: CompletionRequest, request_id: Optional[str]) -> AttemptResult:
        try:
            stream = await self.client.open_stream(request, request_id=request_id)
        except Exception as exc:
            return AttemptResult.failed(classify_failure(exc))
        return AttemptResult.success(stream)

    async def execute(self, request: CompletionRequest, request_id: Optional[str] = None) -> AsyncIterator[str]:
        state = RetryState(max_attempts=self.max_attempts)

        while True:
            result = await self._attempt(request, request_id)
            if result.ok:
                return result.stream

            failure = result.failure
            attempts = state.attempt_count + 1

            if failure.kind is not FailureKind.RATE_LIMITED:
                error(LogRecord(
                    event=LogEvent.COMPLETION_FAILED.value,
                    message=f"Completion failed ({failure.kind.value}): {failure.message}",
                    request_id=request_id,
                    data={"error_type": failure.kind.value, "status_code": failure.status_code, "attempt": attempts},
                ))
                raise CompletionError(failure, attempts=attempts)

            if not state.can_retry:
                error(LogRecord(
                    event=LogEvent.COMPLETION_RETRIES_EXHAUSTED.value,
                    message=f"Still rate limited after {attempts} attempts, giving up",
                    request_id=request_id,
                    data={"error_type": failure.kind.value, "status_code": 429, "attempt": attempts},
                ))
                raise CompletionError(failure, attempts=attempts)

            delay = self.backoff_delay(state.attempt_count)
            self.total_retries += 1
            warning(LogRecord(
                event=LogEvent.COMPLETION_RETRY_SCHEDULED.value,
                message=f"Rate limited, retry {attempts}/{self.max_attempts - 1} in {int(delay * 1000)}ms "
                        f"(total retries: {self.total_retries})",
                request_id=request_id,
                data={"attempt": attempts, "delay_ms": int(delay * 1000), "status_code": 429},
            ))
            await self._sleep(delay)
            state.attempt_count += 1
