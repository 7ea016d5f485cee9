"""Wiring of the per-process collaborators shared by all requests."""

import random
import time
from dataclasses import dataclass
from typing import Optional

import httpx
from starlette.requests import Request

from .adapter import RequestAdapter
from .auth import ApiKeyAuthenticator
from .config import GatewayConfig
from .core.fingerprint import FingerprintGenerator
from .core.upstream import UpstreamClient
from .stream import StreamTranslator


@dataclass(frozen=True)
class Gateway:
    """Immutable bundle handed to route handlers through app.state."""

    config: GatewayConfig
    authenticator: ApiKeyAuthenticator
    adapter: RequestAdapter
    upstream: UpstreamClient
    translator: StreamTranslator
    started_at: int


def build_gateway(
    config: GatewayConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> Gateway:
    """Construct every collaborator from one config value.

    Args:
        config: The frozen gateway configuration.
        transport: Optional httpx transport for the upstream (tests install
            an in-process fake here).
        rng: Optional random source for fingerprint selection.
    """
    fingerprints = FingerprintGenerator(config.fingerprint.user_agents, rng=rng)
    return Gateway(
        config=config,
        authenticator=ApiKeyAuthenticator(config.auth.api_master_key),
        adapter=RequestAdapter(config.models),
        upstream=UpstreamClient(config.upstream, fingerprints, transport=transport),
        translator=StreamTranslator(config.stream),
        started_at=int(time.time()),
    )


def get_gateway(request: Request) -> Gateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Gateway not initialized. Was the app built with create_app()?")
    return gateway
