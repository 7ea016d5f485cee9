"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import random
import sys
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from free2api.config import GatewayConfig, build_gateway_config
from free2api.main import create_app
from free2api.testing import FakeUpstream

UPSTREAM_URL = "http://upstream.local/api/generate"


def build_test_config(**sections: Any) -> GatewayConfig:
    """Build a GatewayConfig pointing at the fake upstream host.

    Keyword arguments are raw config sections merged over the defaults,
    e.g. build_test_config(auth={"api_master_key": "sk-test"}).
    """
    data: dict[str, Any] = {
        "upstream": {"url": UPSTREAM_URL, "origin": "http://upstream.local"},
    }
    data.update(sections)
    return build_gateway_config(data, environ={})


def chat_request(content: Any = "hello", *, stream: bool = False, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "messages": [{"role": "user", "content": content}],
        "stream": stream,
    }
    body.update(extra)
    return body


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_app(upstream: FakeUpstream) -> Callable[..., Any]:
    """Factory for apps wired to the fake upstream."""

    def factory(config: GatewayConfig | None = None):
        return create_app(
            config or build_test_config(),
            transport=upstream.transport,
            rng=random.Random(1234),
        )

    return factory


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def make_client() -> Generator[Callable[[Any], httpx.AsyncClient], None, None]:
    """Create async HTTP clients that talk to an app in-process."""

    def factory(app: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://gateway.local",
        )

    yield factory
