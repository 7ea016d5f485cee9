"""Request adaptation: inbound OpenAI bodies to signed upstream payloads."""

from .content import ContentPart, MessageContent, Parts, PlainText, normalize_content, parse_content
from .request_adapter import SIGN_SECRET, AdaptedRequest, RequestAdapter, generate_signature

__all__ = [
    "AdaptedRequest",
    "ContentPart",
    "MessageContent",
    "Parts",
    "PlainText",
    "RequestAdapter",
    "SIGN_SECRET",
    "generate_signature",
    "normalize_content",
    "parse_content",
]
