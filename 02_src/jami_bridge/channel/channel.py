"""Bounded, ordered channel carrying events to a single consumer."""

import asyncio
from typing import Any, Awaitable, Protocol

from ..logging_config import get_logger
from ..models import Event

logger = get_logger(__name__)


class IEventSender(Protocol):
    """Producer side, shared by every subscription worker."""

    async def send(self, event: Event) -> bool:
        """Enqueue an event, waiting for capacity. False if the channel closed."""
        ...

    def try_send(self, event: Event) -> bool:
        """Enqueue without waiting. False if the channel is full or closed."""
        ...

    def close(self) -> None:
        """Close the channel; the receiver drains what is buffered."""
        ...


class IEventReceiver(Protocol):
    """Consumer side, held by exactly one consumer."""

    async def recv(self) -> Event | None:
        """Next event in arrival order, or None once closed and drained."""
        ...


class EventChannel:
    """asyncio channel with bounded capacity and explicit close."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("Channel capacity must be at least 1")
        self._capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        """Number of buffered events."""
        return self._queue.qsize()

    async def send(self, event: Event) -> bool:
        """Enqueue an event, waiting for capacity. False if the channel closed."""
        if self._closed.is_set():
            logger.debug("Channel closed, dropping %s", event.kind)
            return False

        try:
            self._queue.put_nowait(event)
            return True
        except asyncio.QueueFull:
            pass

        done, _ = await self._until_closed(self._queue.put(event))
        if not done:
            logger.debug("Channel closed while waiting, dropping %s", event.kind)
        return done

    def try_send(self, event: Event) -> bool:
        """Enqueue without waiting. False if the channel is full or closed."""
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def recv(self) -> Event | None:
        """Next event in arrival order, or None once closed and drained."""
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed.is_set():
                return None

            done, event = await self._until_closed(self._queue.get())
            if done:
                return event

    def close(self) -> None:
        """Close the channel. Pending senders are released with False."""
        if not self._closed.is_set():
            logger.debug("Closing event channel with %d pending", self.pending)
        self._closed.set()

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> Event:
        event = await self.recv()
        if event is None:
            raise StopAsyncIteration
        return event

    async def _until_closed(self, aw: Awaitable[Any]) -> tuple[bool, Any]:
        """Await aw unless the channel closes first.

        Returns (True, result) when aw finished, (False, None) otherwise.
        """
        task = asyncio.ensure_future(aw)
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({task, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closer.cancel()
            if not task.done():
                task.cancel()

        if task.done() and not task.cancelled():
            return True, task.result()
        return False, None
