"""
Single-flight request queue.

Completion requests are executed one at a time in submission order. Each
submitter gets a future that resolves to the full response text (or raises
the terminal ``CompletionError``) once its entry has finished streaming.
"""

import asyncio
import dataclasses
import uuid
from collections import deque
from typing import Awaitable, Callable, Deque, Optional

from models import CompletionRequest
from utils import LogRecord, LogEvent, debug, info, error
from .client import classify_failure
from .types import CompletionError

DEFAULT_PACING_DELAY = 0.1


@dataclasses.dataclass
class QueueEntry:
    request: CompletionRequest
    sink: object  # anything with ``async send(fragment)``
    signal: asyncio.Future
    request_id: str


class SingleFlightQueue:

    def __init__(
        self,
        retry_policy,
        pacing_delay: float = DEFAULT_PACING_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.retry_policy = retry_policy
        self.pacing_delay = pacing_delay
        self._sleep = sleep
        self._pending: Deque[QueueEntry] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_draining(self) -> bool:
        return self._draining

    def submit(self, request: CompletionRequest, sink, request_id: Optional[str] = None) -> asyncio.Future:
        """Append a request to the tail of the queue and start draining if idle."""
        loop = asyncio.get_running_loop()
        entry = QueueEntry(
            request=request,
            sink=sink,
            signal=loop.create_future(),
            request_id=request_id or str(uuid.uuid4()),
        )
        self._pending.append(entry)

        info(LogRecord(
            event=LogEvent.QUEUE_ENTRY_SUBMITTED.value,
            message=f"Request queued ({len(self._pending)} in queue)",
            request_id=entry.request_id,
            data={"pending": len(self._pending), "draining": self._draining},
        ))

        # Flag is set before the task runs so back-to-back submits share one drain loop
        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())

        return entry.signal

    async def _drain(self) -> None:
        try:
            while self._pending:
                entry = self._pending.popleft()
                await self._execute(entry)
                await self._sleep(self.pacing_delay)
        finally:
            self._draining = False
            self._drain_task = None
            debug(LogRecord(
                event=LogEvent.QUEUE_DRAINED.value,
                message="Request queue drained",
            ))

    async def _execute(self, entry: QueueEntry) -> None:
        info(LogRecord(
            event=LogEvent.QUEUE_ENTRY_STARTED.value,
            message=f"Processing queued request ({len(self._pending)} still waiting)",
            request_id=entry.request_id,
        ))

        fragments = []
        try:
            stream = await self.retry_policy.execute(entry.request, request_id=entry.request_id)
            async for fragment in stream:
                fragments.append(fragment)
                await entry.sink.send(fragment)
        except CompletionError as exc:
            self._fail(entry, exc, len(fragments))
            return
        except Exception as exc:
            # Mid-stream provider or sink failure; fragments already sent stay sent
            self._fail(entry, CompletionError(classify_failure(exc)), len(fragments))
            return

        if not entry.signal.done():
            entry.signal.set_result("".join(fragments))
        info(LogRecord(
            event=LogEvent.QUEUE_ENTRY_COMPLETED.value,
            message=f"Queued request completed ({len(fragments)} fragments)",
            request_id=entry.request_id,
            data={"fragments": len(fragments)},
        ))

    @staticmethod
    def _fail(entry: QueueEntry, exc: CompletionError, fragments_sent: int) -> None:
        error(LogRecord(
            event=LogEvent.QUEUE_ENTRY_FAILED.value,
            message=f"Queued request failed after {fragments_sent} fragments: {exc.message}",
            request_id=entry.request_id,
            data={"error_type": exc.kind.value, "status_code": exc.status_code},
        ), exc=exc)
        if not entry.signal.done():
            entry.signal.set_exception(exc)
