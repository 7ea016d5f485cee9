"""Master API key check for gateway endpoints."""

from __future__ import annotations

import hmac
import logging
from typing import Mapping

from ..core.exceptions import AuthenticationError

logger = logging.getLogger("free2api")

DEFAULT_HEADER_NAME = "x-api-key"


class ApiKeyAuthenticator:
    """Rejects requests that do not present the configured master key.

    The key is accepted either as `Authorization: Bearer <key>` or in the
    `x-api-key` header. An empty master key disables the check.
    """

    def __init__(self, master_key: str = "", header_name: str = DEFAULT_HEADER_NAME) -> None:
        self._master_key = master_key or ""
        self.header_name = header_name

    @property
    def enabled(self) -> bool:
        return bool(self._master_key)

    def extract_key(self, headers: Mapping[str, str]) -> str | None:
        provided_key = headers.get(self.header_name)
        if not provided_key:
            auth_header = headers.get("authorization", "")
            if auth_header.lower().startswith("bearer "):
                provided_key = auth_header[7:].strip()
        return provided_key or None

    def authenticate(self, headers: Mapping[str, str]) -> None:
        """Raise AuthenticationError unless the headers carry the master key."""
        if not self.enabled:
            return

        provided_key = self.extract_key(headers)
        if not provided_key:
            logger.warning("Request rejected: missing API key")
            raise AuthenticationError("API key required", code="missing_api_key")

        if not hmac.compare_digest(
            provided_key.encode("utf-8"), self._master_key.encode("utf-8")
        ):
            logger.warning("Request rejected: invalid API key")
            raise AuthenticationError("Invalid API key", code="invalid_api_key")
