"""API routes for the gateway."""

from .chat import chat_completions, error_response, new_request_id
from .models import list_models, root

__all__ = [
    "chat_completions",
    "error_response",
    "list_models",
    "new_request_id",
    "root",
]
