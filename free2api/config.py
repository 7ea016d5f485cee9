"""Immutable gateway configuration built once at startup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .core.exceptions import ConfigurationError

logger = logging.getLogger("free2api")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_UPSTREAM_URL = "https://chat3.free2gpt.com/api/generate"
DEFAULT_UPSTREAM_ORIGIN = "https://chat3.free2gpt.com"
DEFAULT_UPSTREAM_TIMEOUT = 60.0
DEFAULT_MODELS = ("free2gpt-general", "gpt-3.5-turbo", "gpt-4o-mini")
DEFAULT_MODEL = "free2gpt-general"
DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)
DEFAULT_CHANNEL_CAPACITY = 1


@dataclass(frozen=True)
class ServerSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass(frozen=True)
class AuthSettings:
    # Empty disables the check
    api_master_key: str = ""


@dataclass(frozen=True)
class UpstreamSettings:
    url: str = DEFAULT_UPSTREAM_URL
    origin: str = DEFAULT_UPSTREAM_ORIGIN
    timeout: float = DEFAULT_UPSTREAM_TIMEOUT


@dataclass(frozen=True)
class ModelSettings:
    available: tuple[str, ...] = DEFAULT_MODELS
    default: str = DEFAULT_MODEL


@dataclass(frozen=True)
class FingerprintSettings:
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS


@dataclass(frozen=True)
class StreamSettings:
    channel_capacity: int = DEFAULT_CHANNEL_CAPACITY
    log_stream_chunks: bool = False


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class GatewayConfig:
    """Read-only view of every setting the gateway needs."""

    server: ServerSettings = field(default_factory=ServerSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    upstream: UpstreamSettings = field(default_factory=UpstreamSettings)
    models: ModelSettings = field(default_factory=ModelSettings)
    fingerprint: FingerprintSettings = field(default_factory=FingerprintSettings)
    stream: StreamSettings = field(default_factory=StreamSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return section


def _str_tuple(value: Any, name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"'{name}' must be a list of strings")
    items = tuple(str(item).strip() for item in value if str(item).strip())
    if not items:
        raise ConfigurationError(f"'{name}' must not be empty")
    return items


def _port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid server port: {value!r}") from exc
    if not 0 < port < 65536:
        raise ConfigurationError(f"Server port out of range: {port}")
    return port


def build_gateway_config(
    data: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """Validate a raw config mapping and freeze it into a GatewayConfig.

    Environment variables take priority over the config file:
    FREE2API_HOST, FREE2API_PORT and FREE2API_API_KEY.

    Raises:
        ConfigurationError: If a value has the wrong shape.
    """
    data = data or {}
    environ = os.environ if environ is None else environ

    server_cfg = _section(data, "server")
    host = environ.get("FREE2API_HOST") or str(server_cfg.get("host", DEFAULT_HOST))
    port = _port(environ.get("FREE2API_PORT") or server_cfg.get("port", DEFAULT_PORT))

    auth_cfg = _section(data, "auth")
    master_key = environ.get("FREE2API_API_KEY")
    if master_key is None:
        master_key = str(auth_cfg.get("api_master_key") or "")

    upstream_cfg = _section(data, "upstream")
    url = str(upstream_cfg.get("url") or DEFAULT_UPSTREAM_URL).strip()
    if not url.startswith(("http://", "https://")):
        raise ConfigurationError(f"Upstream url must be http(s): {url!r}")
    try:
        timeout = float(upstream_cfg.get("timeout", DEFAULT_UPSTREAM_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("Upstream timeout must be a number") from exc
    if timeout <= 0:
        raise ConfigurationError("Upstream timeout must be positive")
    origin = str(upstream_cfg.get("origin") or DEFAULT_UPSTREAM_ORIGIN).rstrip("/")

    models_cfg = _section(data, "models")
    available = _str_tuple(models_cfg.get("available"), "models.available", DEFAULT_MODELS)
    default_model = str(models_cfg.get("default") or available[0]).strip()
    if default_model not in available:
        logger.warning(
            "Default model '%s' is not listed in models.available", default_model
        )

    fingerprint_cfg = _section(data, "fingerprint")
    user_agents = _str_tuple(
        fingerprint_cfg.get("user_agents"),
        "fingerprint.user_agents",
        DEFAULT_USER_AGENTS,
    )

    stream_cfg = _section(data, "stream")
    try:
        capacity = int(stream_cfg.get("channel_capacity", DEFAULT_CHANNEL_CAPACITY))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("stream.channel_capacity must be an integer") from exc
    if capacity < 1:
        raise ConfigurationError("stream.channel_capacity must be at least 1")

    logging_cfg = _section(data, "logging")
    level = str(logging_cfg.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Unknown logging level: {level}")
    log_stream_chunks = _parse_bool(logging_cfg.get("log_stream_chunks", False))

    return GatewayConfig(
        server=ServerSettings(host=host, port=port),
        auth=AuthSettings(api_master_key=master_key),
        upstream=UpstreamSettings(url=url, origin=origin, timeout=timeout),
        models=ModelSettings(available=available, default=default_model),
        fingerprint=FingerprintSettings(user_agents=user_agents),
        stream=StreamSettings(
            channel_capacity=capacity, log_stream_chunks=log_stream_chunks
        ),
        logging=LoggingSettings(level=level),
    )
