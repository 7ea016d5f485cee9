"""Models listing endpoint - OpenAI compatible."""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from ...core.exceptions import GatewayError
from ...gateway import get_gateway
from .chat import error_response

logger = logging.getLogger("free2api")


async def list_models(request: Request) -> Response:
    """List available models in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")
    gateway = get_gateway(request)
    try:
        gateway.authenticator.authenticate(request.headers)
    except GatewayError as exc:
        return error_response(exc)

    models = [
        {
            "id": model_name,
            "object": "model",
            "created": gateway.started_at,
            "owned_by": "free2api",
        }
        for model_name in gateway.config.models.available
    ]
    return JSONResponse({"object": "list", "data": models})


async def root() -> Response:
    """GET / - readiness banner."""
    return PlainTextResponse("Free2GPT Proxy Ready")
