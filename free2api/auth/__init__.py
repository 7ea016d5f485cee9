"""Authentication module for the gateway."""

from .api_key import ApiKeyAuthenticator

__all__ = ["ApiKeyAuthenticator"]
