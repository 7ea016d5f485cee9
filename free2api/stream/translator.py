"""Translate the upstream text byte stream into OpenAI chat completions.

The upstream answers with a bare chunked text body. In streaming mode every
upstream read becomes one chat.completion.chunk event:

    data: {"id":"chatcmpl-..","object":"chat.completion.chunk",..,
           "choices":[{"index":0,"delta":{"content":"hi "},"finish_reason":null}]}
    data: {..."choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}
    data: [DONE]

A read failure after streaming began ends the stream in-band with a single
`finish_reason: "error"` chunk instead, because status and headers are
already committed by then. In buffered mode the whole body is drained into a
single chat.completion object.
"""

import asyncio
import codecs
import logging
import time
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

import httpx

from ..config import StreamSettings
from ..core.exceptions import StreamInterruptedError, classify_upstream_status
from ..core.sse import SSE_DONE, encode_sse_data
from ..logging import preview
from ..types import ChatCompletionChunk, ChatCompletionResponse
from .channel import OutputChannel

logger = logging.getLogger("free2api")

DisconnectChecker = Callable[[], Awaitable[bool]]


class UpstreamBody(Protocol):
    """The part of an upstream response the translator consumes."""

    status_code: int

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aread(self) -> bytes: ...

    async def aclose(self) -> None: ...


class StreamState(str, Enum):
    OPEN = "open"
    EMITTING = "emitting"
    CLOSED_OK = "closed_ok"
    CLOSED_ERROR = "closed_error"


def new_decoder() -> codecs.IncrementalDecoder:
    """UTF-8 decoder that holds back incomplete multi-byte sequences."""
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


class StreamSession:
    """One streaming response: a producer task feeding a bounded channel.

    The producer reads the upstream, decodes, frames and sends; the consumer
    is `events()`, which the HTTP response iterates. The channel is closed
    exactly once: by the producer whichever way it exits, or by `aclose()`
    when the producer never ran.
    """

    def __init__(
        self,
        translator: "StreamTranslator",
        upstream: UpstreamBody,
        request_id: str,
        model: str,
    ) -> None:
        self.translator = translator
        self.upstream = upstream
        self.request_id = request_id
        self.model = model
        self.channel = OutputChannel(translator.settings.channel_capacity)
        self.state = StreamState.OPEN
        self.fragments_read = 0
        self.error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def start(self) -> Optional[asyncio.Task]:
        # A session released before its body was iterated never starts
        if self._task is None and not self.channel.closed:
            self._task = asyncio.create_task(self._pump())
        return self._task

    async def wait_closed(self) -> StreamState:
        """Wait for the producer to finish and return the final state."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        return self.state

    async def events(
        self, disconnect_checker: Optional[DisconnectChecker] = None
    ) -> AsyncIterator[bytes]:
        """Yield framed SSE events until the producer closes the channel."""
        self.start()
        try:
            async for event in self.channel.drain():
                yield event
                if disconnect_checker and await disconnect_checker():
                    logger.info(
                        "[%s] Client disconnected; stopping upstream read",
                        self.request_id,
                    )
                    break
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Stop the producer and release the upstream. Safe to call repeatedly.

        Also covers a response whose body was never iterated, e.g. when the
        client disconnects before the first event is written.
        """
        try:
            if self._task is not None:
                if not self._task.done():
                    self._task.cancel()
                await asyncio.gather(self._task, return_exceptions=True)
        finally:
            # Reached without _pump's finally when the task never ran a step
            if self.channel.close():
                self.state = StreamState.CLOSED_ERROR
                logger.info("[%s] Stream released before completion", self.request_id)
                await self.upstream.aclose()

    async def _send_chunk(self, content: Optional[str], finish_reason: Optional[str]) -> None:
        chunk = self.translator.build_chunk(
            self.request_id, self.model, content=content, finish_reason=finish_reason
        )
        await self.channel.send(encode_sse_data(chunk))

    async def _pump(self) -> None:
        decoder = new_decoder()
        log_chunks = self.translator.settings.log_stream_chunks
        self.state = StreamState.EMITTING
        logger.info("[%s] Starting stream translation", self.request_id)
        try:
            async for fragment in self.upstream.aiter_bytes():
                self.fragments_read += 1
                text = decoder.decode(fragment)
                if log_chunks:
                    logger.debug(
                        "[%s] Chunk #%d (%db): %s",
                        self.request_id,
                        self.fragments_read,
                        len(fragment),
                        preview(text),
                    )
                if text:
                    await self._send_chunk(text, None)

            tail = decoder.decode(b"", final=True)
            if tail:
                await self._send_chunk(tail, None)
            await self._send_chunk(None, "stop")
            await self.channel.send(SSE_DONE)
            self.state = StreamState.CLOSED_OK
            logger.info(
                "[%s] Stream finished. Total upstream chunks: %d",
                self.request_id,
                self.fragments_read,
            )
        except asyncio.CancelledError:
            self.state = StreamState.CLOSED_ERROR
            logger.info("[%s] Stream cancelled by client", self.request_id)
            raise
        except Exception as exc:
            self.state = StreamState.CLOSED_ERROR
            self.error = exc
            logger.error("[%s] Stream broken: %s", self.request_id, exc)
            await self._send_chunk(f"\n[Proxy Error: {exc}]", "error")
        finally:
            self.channel.close()
            await self.upstream.aclose()


class StreamTranslator:
    """Turns upstream responses into client-facing chat completion output."""

    def __init__(
        self,
        settings: Optional[StreamSettings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or StreamSettings()
        self._clock = clock

    def build_chunk(
        self,
        request_id: str,
        model: str,
        content: Optional[str] = None,
        finish_reason: Optional[str] = None,
    ) -> ChatCompletionChunk:
        delta: dict[str, Any] = {}
        if content is not None:
            delta["content"] = content
        return {
            "id": request_id,
            "object": "chat.completion.chunk",
            "created": int(self._clock()),
            "model": model,
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }

    def build_completion(
        self, request_id: str, model: str, content: str, prompt_length: int
    ) -> ChatCompletionResponse:
        completion_length = len(content)
        return {
            "id": request_id,
            "object": "chat.completion",
            "created": int(self._clock()),
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
            # Character counts, not tokenizer output
            "usage": {
                "prompt_tokens": prompt_length,
                "completion_tokens": completion_length,
                "total_tokens": prompt_length + completion_length,
            },
        }

    async def ensure_success(self, upstream: UpstreamBody, request_id: str) -> None:
        """Reject non-2xx upstream responses before anything is emitted.

        Raises:
            UpstreamRejectedError: Classified by upstream status.
        """
        if 200 <= upstream.status_code < 300:
            return
        try:
            body = (await upstream.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError as exc:
            body = f"<unreadable body: {exc}>"
        finally:
            await upstream.aclose()
        logger.error(
            "[%s] Upstream failed with status %d: %s",
            request_id,
            upstream.status_code,
            preview(body, 500),
        )
        raise classify_upstream_status(upstream.status_code, body)

    def open_stream(
        self, upstream: UpstreamBody, request_id: str, model: str
    ) -> StreamSession:
        return StreamSession(self, upstream, request_id, model)

    async def collect(
        self,
        upstream: UpstreamBody,
        request_id: str,
        model: str,
        prompt_length: int,
    ) -> ChatCompletionResponse:
        """Drain the whole upstream body into one chat.completion.

        Raises:
            StreamInterruptedError: If the body fails part-way; nothing
                partial is returned.
        """
        decoder = new_decoder()
        pieces: list[str] = []
        fragments = 0
        try:
            async for fragment in upstream.aiter_bytes():
                fragments += 1
                pieces.append(decoder.decode(fragment))
            pieces.append(decoder.decode(b"", final=True))
        except Exception as exc:
            # Same failures the streaming pump reports in-band
            logger.error("[%s] Upstream body interrupted: %s", request_id, exc)
            raise StreamInterruptedError(f"Upstream stream interrupted: {exc}") from exc
        finally:
            await upstream.aclose()

        content = "".join(pieces)
        logger.info(
            "[%s] Buffered %d upstream chunks (%d chars)",
            request_id,
            fragments,
            len(content),
        )
        return self.build_completion(request_id, model, content, prompt_length)
