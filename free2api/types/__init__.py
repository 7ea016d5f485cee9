"""Type definitions for the gateway."""

from .chat import (
    AssistantMessage,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    ChunkChoice,
    ContentPartParam,
    Delta,
    UpstreamMessage,
    UpstreamPayload,
    Usage,
)

__all__ = [
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "ChunkChoice",
    "ContentPartParam",
    "Delta",
    "UpstreamMessage",
    "UpstreamPayload",
    "Usage",
]
