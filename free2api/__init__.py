"""free2api - OpenAI-compatible gateway for the free2gpt chat upstream

Accepts OpenAI-style chat completion requests, signs them for the upstream
generate endpoint and translates its raw text stream back into OpenAI
chunks (SSE) or a single buffered completion.

This module provides:
- RequestAdapter: Normalizes messages and signs the upstream payload
- StreamTranslator: Streams or buffers the upstream body as OpenAI output
- create_app: FastAPI application factory

Example:
    >>> from free2api import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="0.0.0.0", port=3000)
"""

from .adapter import RequestAdapter, generate_signature
from .config import GatewayConfig, build_gateway_config
from .config_loader import load_config, load_gateway_config
from .gateway import Gateway, build_gateway
from .logging import logger, setup_logging
from .main import create_app, run
from .stream import StreamState, StreamTranslator

__all__ = [
    "Gateway",
    "GatewayConfig",
    "RequestAdapter",
    "StreamState",
    "StreamTranslator",
    "build_gateway",
    "build_gateway_config",
    "create_app",
    "generate_signature",
    "load_config",
    "load_gateway_config",
    "logger",
    "run",
    "setup_logging",
]
