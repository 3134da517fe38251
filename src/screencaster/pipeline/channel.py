"""Bounded event channel between worker threads and the event loop."""

import asyncio
import logging
from collections.abc import AsyncIterator

from screencaster.models.events import ProgressEvent

logger = logging.getLogger(__name__)

_CLOSED = object()


class EventChannel:
    """Bounded FIFO of ProgressEvents with a single consumer on the event loop.

    Worker threads use the ``*_threadsafe`` methods, which block until the
    loop has accepted the event, so a full queue throttles the producer.
    Closing the channel delivers an end-of-stream marker after every event
    already queued.
    """

    def __init__(self, maxsize: int = 100, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, event: ProgressEvent) -> None:
        if self._closed:
            logger.debug(
                "Dropping %s event for step %d: channel closed", event.kind, event.step_index
            )
            return
        await self._queue.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    def put_threadsafe(self, event: ProgressEvent) -> None:
        asyncio.run_coroutine_threadsafe(self.put(event), self._loop).result()

    def close_threadsafe(self) -> None:
        asyncio.run_coroutine_threadsafe(self.close(), self._loop).result()

    async def get(self) -> ProgressEvent | None:
        """Next event, or None once the channel has been closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while (event := await self.get()) is not None:
            yield event
