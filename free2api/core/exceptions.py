"""Core exceptions for the gateway."""

from typing import Any, Optional

# Longest upstream error body quoted back to the client
UPSTREAM_BODY_EXCERPT_LIMIT = 500


class GatewayError(Exception):
    """Base exception for errors surfaced to the client as a JSON error body."""

    status_code = 500
    error_type = "api_error"
    code = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_body(self, request_id: Optional[str] = None) -> dict[str, Any]:
        """Render the OpenAI-style error envelope."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
                "param": request_id,
            }
        }


class ConfigurationError(GatewayError):
    """Raised when there's an issue with the configuration."""


class InvalidRequestError(GatewayError):
    """Raised when an incoming request is malformed or empty."""

    status_code = 400
    error_type = "invalid_request_error"
    code = "invalid_request"


class AuthenticationError(GatewayError):
    """Raised when the gateway API key is missing or wrong."""

    status_code = 401
    error_type = "authentication_error"
    code = "invalid_api_key"


class UpstreamRejectedError(GatewayError):
    """The upstream answered with a non-success status."""

    status_code = 502
    error_type = "upstream_error"
    code = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        body_excerpt: str = "",
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code)
        self.upstream_status = upstream_status
        self.body_excerpt = body_excerpt


class UpstreamAccessDeniedError(UpstreamRejectedError):
    status_code = 403
    code = "upstream_access_denied"


class UpstreamRateLimitedError(UpstreamRejectedError):
    status_code = 429
    error_type = "rate_limit_error"
    code = "upstream_rate_limited"


class UpstreamUnavailableError(UpstreamRejectedError):
    """The upstream could not be reached at all."""

    code = "upstream_unavailable"


class StreamInterruptedError(GatewayError):
    """The upstream body failed after reading had begun."""

    status_code = 502
    error_type = "upstream_error"
    code = "stream_interrupted"


class InternalFailureError(GatewayError):
    """Any other unexpected failure inside the pipeline."""


def classify_upstream_status(status_code: int, body: str) -> UpstreamRejectedError:
    """Map a non-success upstream status onto the matching gateway error."""
    excerpt = body[:UPSTREAM_BODY_EXCERPT_LIMIT]
    if status_code == 403:
        return UpstreamAccessDeniedError(
            "Upstream access denied (403)",
            upstream_status=status_code,
            body_excerpt=excerpt,
        )
    if status_code == 429:
        return UpstreamRateLimitedError(
            "Upstream rate limit (429)",
            upstream_status=status_code,
            body_excerpt=excerpt,
        )
    detail = excerpt.strip() or "no response body"
    return UpstreamRejectedError(
        f"Upstream error ({status_code}): {detail}",
        upstream_status=status_code,
        body_excerpt=excerpt,
    )
