"""Fake upstream generate endpoint for deterministic in-process tests."""

from __future__ import annotations

import asyncio
import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Deque, Iterable, Optional

import httpx


class StreamError(httpx.ReadError):
    """Raised by a fake body to simulate a mid-stream connection failure."""


@dataclass
class UpstreamReply:
    """A queued reply from the fake upstream.

    Standard fields:
        status_code: HTTP status code (default 200)
        chunks: Body fragments, delivered as separate reads in order
        body: Whole body, used when chunks is None
        headers: Response headers
        chunk_delay_s: Delay before each fragment

    Error simulation fields:
        error_after_chunks: Raise StreamError after N fragments
        error_message: Message carried by the StreamError
        connect_error: Fail before any response (connection refused)
        hang_after_chunks: Block forever after N fragments (for cancellation)
    """

    status_code: int = 200
    chunks: Optional[list[bytes | str]] = None
    body: bytes | str = b""
    headers: dict[str, str] = field(default_factory=dict)
    chunk_delay_s: Optional[float] = None
    error_after_chunks: Optional[int] = None
    error_message: str = "connection reset by peer"
    connect_error: bool = False
    hang_after_chunks: Optional[int] = None


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


class FakeBodyStream(httpx.AsyncByteStream):
    """Scripted response body; remembers whether it was closed."""

    def __init__(self, reply: UpstreamReply) -> None:
        self.reply = reply
        self.closed = False
        self.delivered = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        reply = self.reply
        fragments = reply.chunks if reply.chunks is not None else [reply.body]
        for index, fragment in enumerate(fragments):
            if reply.error_after_chunks is not None and index >= reply.error_after_chunks:
                raise StreamError(reply.error_message)
            if reply.hang_after_chunks is not None and index >= reply.hang_after_chunks:
                await asyncio.Event().wait()
            if reply.chunk_delay_s:
                await asyncio.sleep(reply.chunk_delay_s)
            data = _as_bytes(fragment)
            if data:
                self.delivered += 1
                yield data
        if reply.error_after_chunks is not None and reply.error_after_chunks >= len(fragments):
            raise StreamError(reply.error_message)
        if reply.hang_after_chunks is not None and reply.hang_after_chunks >= len(fragments):
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


class FakeUpstream:
    """Replies to upstream POSTs with queued UpstreamReply objects.

    Supports:
    - Deterministic reply queueing
    - Request tracking/inspection (payload and headers)
    - Fragmented bodies, including split multi-byte characters
    - Error simulation (non-2xx, connect failure, mid-stream failure, hang)

    Usage:
        upstream = FakeUpstream()
        upstream.enqueue_text("hi ", "there")
        app = create_app(config, transport=upstream.transport)
    """

    def __init__(self, replies: Optional[Iterable[UpstreamReply]] = None) -> None:
        self._queue: Deque[UpstreamReply] = deque(replies or [])
        self.received: list[dict[str, Any]] = []
        self.streams: list[FakeBodyStream] = []
        self.transport = httpx.MockTransport(self._handle)

    def enqueue(self, reply: UpstreamReply) -> None:
        """Add a reply to the queue."""
        self._queue.append(reply)

    def enqueue_text(self, *chunks: bytes | str, chunk_delay_s: Optional[float] = None) -> None:
        """Enqueue a successful reply delivering each argument as one read."""
        self.enqueue(UpstreamReply(chunks=list(chunks), chunk_delay_s=chunk_delay_s))

    def enqueue_error(self, status_code: int, body: str = "") -> None:
        """Enqueue a non-success reply with a text body."""
        self.enqueue(UpstreamReply(status_code=status_code, body=body))

    def clear(self) -> None:
        self._queue.clear()
        self.received.clear()
        self.streams.clear()

    @property
    def last_payload(self) -> Optional[dict[str, Any]]:
        if not self.received:
            return None
        return self.received[-1]["json"]

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        try:
            payload = json.loads(request.content)
        except ValueError:
            payload = None

        self.received.append(
            {
                "method": request.method,
                "url": str(request.url),
                "headers": dict(request.headers),
                "json": payload,
            }
        )

        if not self._queue:
            return httpx.Response(500, text="No upstream replies queued")

        reply = self._queue.popleft()
        if reply.connect_error:
            raise httpx.ConnectError("Simulated connection refused", request=request)

        stream = FakeBodyStream(reply)
        self.streams.append(stream)
        headers = {"content-type": "text/plain; charset=utf-8", **reply.headers}
        return httpx.Response(reply.status_code, headers=headers, stream=stream)
