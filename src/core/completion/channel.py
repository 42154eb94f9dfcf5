"""Fragment channel: the output sink a caller hands to the queue."""

import asyncio
from typing import AsyncIterator, Optional

_CLOSED = object()


class FragmentChannel:
    """Unbounded fragment buffer between the queue's drain loop and one HTTP response.

    The queue only calls ``send``; the owning caller reads with ``receive`` and
    closes the channel once the entry's completion signal has fired.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    async def send(self, fragment: str) -> None:
        await self._queue.put(fragment)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def receive(self) -> Optional[str]:
        """Next fragment, or None once the channel is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later receives also see the end
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            fragment = await self.receive()
            if fragment is None:
                return
            yield fragment
