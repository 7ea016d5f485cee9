"""Core module initialization.

The upstream client lives in core.upstream and is imported from there
directly, since it depends on the config module.
"""

from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    GatewayError,
    InternalFailureError,
    InvalidRequestError,
    StreamInterruptedError,
    UpstreamAccessDeniedError,
    UpstreamRateLimitedError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
    classify_upstream_status,
)
from .fingerprint import Fingerprint, FingerprintGenerator
from .sse import SSE_DONE, encode_sse_data, parse_sse_payloads

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "Fingerprint",
    "FingerprintGenerator",
    "GatewayError",
    "InternalFailureError",
    "InvalidRequestError",
    "SSE_DONE",
    "StreamInterruptedError",
    "UpstreamAccessDeniedError",
    "UpstreamRateLimitedError",
    "UpstreamRejectedError",
    "UpstreamUnavailableError",
    "classify_upstream_status",
    "encode_sse_data",
    "parse_sse_payloads",
]
