"""OpenAI-compatible chat completions endpoint."""

import json
import logging
import uuid
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ...core.exceptions import GatewayError, InternalFailureError, InvalidRequestError
from ...core.upstream import UpstreamStream
from ...gateway import get_gateway

logger = logging.getLogger("free2api")


def new_request_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def error_response(exc: GatewayError, request_id: Optional[str] = None) -> JSONResponse:
    headers = {"X-Request-ID": request_id} if request_id else None
    return JSONResponse(
        exc.to_body(request_id), status_code=exc.status_code, headers=headers
    )


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Errors found before any output is sent come back as a JSON error body
    with a matching status. Once a stream has started, failures can only be
    reported inside the stream.
    """
    gateway = get_gateway(request)
    request_id = new_request_id()
    logger.info("[%s] New chat completion request", request_id)

    stage = "authenticate"
    upstream: Optional[UpstreamStream] = None
    try:
        gateway.authenticator.authenticate(request.headers)

        stage = "parse"
        body = await request.body()
        try:
            payload = json.loads(body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidRequestError(
                "Invalid JSON payload", code="invalid_json"
            ) from exc

        stage = "adapt"
        adapted = gateway.adapter.adapt(payload)
        logger.debug(
            "[%s] Model: %s | Msg count: %d | stream=%s",
            request_id,
            adapted.model,
            len(adapted.payload["messages"]),
            adapted.stream,
        )

        stage = "upstream"
        upstream = await gateway.upstream.open(adapted.payload, request_id)

        stage = "translate"
        await gateway.translator.ensure_success(upstream, request_id)

        if adapted.stream:
            session = gateway.translator.open_stream(upstream, request_id, adapted.model)
            return StreamingResponse(
                session.events(disconnect_checker=request.is_disconnected),
                media_type="text/event-stream",
                headers={
                    "Cache-Control": "no-cache",
                    "X-Request-ID": request_id,
                },
                # Runs even when a disconnect cancels the body before it starts
                background=BackgroundTask(session.aclose),
            )

        result = await gateway.translator.collect(
            upstream, request_id, adapted.model, adapted.prompt_length
        )
        return JSONResponse(result, headers={"X-Request-ID": request_id})

    except GatewayError as exc:
        logger.warning(
            "[%s] Request failed during %s: %s (%s)",
            request_id,
            stage,
            exc.message,
            exc.code,
        )
        if upstream is not None:
            await upstream.aclose()
        return error_response(exc, request_id)
    except Exception as exc:
        logger.exception("[%s] Unexpected failure during %s", request_id, stage)
        if upstream is not None:
            await upstream.aclose()
        failure = InternalFailureError(f"Internal error during {stage}: {exc.__class__.__name__}")
        return error_response(failure, request_id)
