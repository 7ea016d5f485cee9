"""Main FastAPI application for the free2api gateway."""

import logging
import random
import socket
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import chat_completions, list_models, root
from .config import GatewayConfig
from .config_loader import load_gateway_config
from .gateway import build_gateway
from .logging import setup_logging

logger = logging.getLogger("free2api")

BANNER = """
╔═════════════════════════════════════════╗
║                                         ║
║      free2api  -  OpenAI-style gateway  ║
║                                         ║
╚═════════════════════════════════════════╝
"""


def create_app(
    config: Optional[GatewayConfig] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Build the FastAPI application around one immutable config.

    Args:
        config: Gateway configuration. Loaded from the default YAML file
            when omitted.
        transport: Optional httpx transport used for upstream calls.
        rng: Optional random source for fingerprint selection.

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_gateway_config()

    app = FastAPI(title="free2api Gateway")
    app.state.gateway = build_gateway(config, transport=transport, rng=rng)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Handle application startup."""
        server = config.server
        logger.info("free2api gateway starting up...")
        logger.info("Configured bind address %s:%s", server.host, server.port)
        if server.host == "0.0.0.0":
            hostname = socket.gethostname()
            logger.info("Reachable on local network at http://%s:%s", hostname, server.port)
        logger.info("Upstream: %s", config.upstream.url)
        logger.info(
            "Models: %s (default %s)",
            ", ".join(config.models.available),
            config.models.default,
        )
        logger.info(
            "API key check %s",
            "enabled" if config.auth.api_master_key else "disabled",
        )

    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)
    app.get("/")(root)

    logger.info("FastAPI application created")
    return app


def run(config_path: Optional[str] = None) -> None:
    """Load configuration and serve the gateway with uvicorn."""
    import uvicorn

    config = load_gateway_config(config_path)
    setup_logging(config.logging.level)
    print(BANNER)
    app = create_app(config)
    uvicorn.run(app, host=config.server.host, port=config.server.port)


__all__ = ["BANNER", "create_app", "run"]
