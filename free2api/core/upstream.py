"""HTTP client for the single upstream generate endpoint."""

import json
import logging
from typing import AsyncIterator, Optional

import httpx

from ..config import UpstreamSettings
from ..types import UpstreamPayload
from .exceptions import UpstreamUnavailableError
from .fingerprint import Fingerprint, FingerprintGenerator

logger = logging.getLogger("free2api")


def format_httpx_error(exc: Exception, url: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = getattr(exc, "request", None)
    except RuntimeError:
        # httpx raises when .request was never attached
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException) and timeout is not None:
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)


def build_upstream_headers(origin: str, fingerprint: Fingerprint) -> dict[str, str]:
    """Browser-like header set for the upstream, carrying the call's identity."""
    return {
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9",
        "Content-Type": "text/plain;charset=UTF-8",
        "Origin": origin,
        "Referer": f"{origin}/",
        "User-Agent": fingerprint.user_agent,
        "X-Forwarded-For": fingerprint.source_ip,
        "X-Real-IP": fingerprint.source_ip,
        "Client-IP": fingerprint.source_ip,
        "Sec-Ch-Ua": '"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-origin",
        "Priority": "u=1, i",
    }


def encode_payload(payload: UpstreamPayload) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


class UpstreamStream:
    """An open upstream response whose body has not been read yet."""

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self._response = response
        self._client = client
        self.closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        # Decoded bytes so content-encoding never leaks into the text stream
        return self._response.aiter_bytes()

    async def aread(self) -> bytes:
        return await self._response.aread()

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._response.aclose()
        await self._client.aclose()


class UpstreamClient:
    """Issues signed payloads to the upstream and hands back the open stream."""

    def __init__(
        self,
        settings: UpstreamSettings,
        fingerprints: FingerprintGenerator,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.fingerprints = fingerprints
        self._transport = transport

    async def open(self, payload: UpstreamPayload, request_id: str) -> UpstreamStream:
        """POST the payload and return as soon as response headers arrive.

        Raises:
            UpstreamUnavailableError: If the upstream cannot be reached.
        """
        url = self.settings.url
        timeout = self.settings.timeout
        fingerprint = self.fingerprints.generate()
        headers = build_upstream_headers(self.settings.origin, fingerprint)
        body = encode_payload(payload)

        logger.debug(
            "[%s] Upstream identity: ip=%s ua=%s",
            request_id,
            fingerprint.source_ip,
            fingerprint.user_agent,
        )
        logger.info("[%s] Sending %d bytes to upstream %s", request_id, len(body), url)

        stream_timeout = httpx.Timeout(
            connect=timeout, read=None, write=timeout, pool=timeout
        )
        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=self._transport, follow_redirects=True
        )
        try:
            request = client.build_request("POST", url, headers=headers, content=body)
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, url=url, timeout=timeout)
            logger.error("[%s] Failed to reach upstream: %s", request_id, detail)
            raise UpstreamUnavailableError(f"Upstream unreachable: {detail}") from exc
        except BaseException:
            await client.aclose()
            raise

        logger.info(
            "[%s] Upstream response: %s %s",
            request_id,
            response.status_code,
            response.reason_phrase,
        )
        return UpstreamStream(response, client)
