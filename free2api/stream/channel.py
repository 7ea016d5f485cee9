"""Bounded hand-off between an upstream pump and the response writer."""

import asyncio
from typing import AsyncIterator

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    """Raised when sending on a channel that has already been closed."""


class OutputChannel:
    """Single-producer, single-consumer byte channel with a fixed capacity.

    send() suspends while the channel is full, so the producer never runs
    more than `capacity` events ahead of the consumer. close() never blocks
    and only counts the first call.
    """

    def __init__(self, capacity: int = 1) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self.closed = False
        self.close_count = 0
        self.sent = 0

    async def send(self, data: bytes) -> None:
        if self.closed:
            raise ChannelClosedError("send on closed channel")
        await self._queue.put(data)
        self.sent += 1

    def close(self) -> bool:
        """Close the channel; returns False if it was already closed."""
        if self.closed:
            return False
        self.closed = True
        self.close_count += 1
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The consumer sees `closed` once it has drained the queue
            pass
        return True

    async def drain(self) -> AsyncIterator[bytes]:
        """Yield queued events in order until the channel is closed and empty."""
        while True:
            if self.closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
