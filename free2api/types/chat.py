"""Wire types for the chat gateway.

Types are separated into:
- Inbound types: the OpenAI-style request body the gateway accepts
- Upstream types: the signed payload the upstream generate endpoint expects
- Outbound types: OpenAI chat completion chunks and buffered completions
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# Inbound (OpenAI-compatible) Types
# =============================================================================


class ContentPartParam(TypedDict, total=False):
    """A typed part of a multi-part message.

    Attributes:
        type: Part type. Only "text" parts carry meaning for the gateway;
            "image_url" and other types are dropped during normalization.
        text: Text content (for "text" type).
        image_url: Image reference (ignored).
    """
    type: str
    text: str | None
    image_url: dict[str, Any] | None


class ChatMessage(TypedDict, total=False):
    """An inbound chat message.

    Attributes:
        role: Role of the sender ("system", "user", "assistant", ...).
        content: Either a plain string or an ordered list of ContentPartParam.
    """
    role: str
    content: str | list[ContentPartParam] | None


class ChatCompletionRequest(TypedDict, total=False):
    """Inbound chat completion request body."""
    model: str
    messages: list[ChatMessage]
    stream: bool


# =============================================================================
# Upstream Types
# =============================================================================


class UpstreamMessage(TypedDict):
    """A normalized message as sent upstream; content is always a string."""
    role: str
    content: str


# "pass" is a Python keyword, so the functional syntax is required here.
UpstreamPayload = TypedDict(
    "UpstreamPayload",
    {
        "messages": list[UpstreamMessage],
        "time": int,
        "pass": None,
        "sign": str,
    },
)


# =============================================================================
# Outbound (OpenAI-compatible) Types
# =============================================================================


class Delta(TypedDict, total=False):
    """Incremental assistant output carried by one stream chunk."""
    content: str


class ChunkChoice(TypedDict):
    index: int
    delta: Delta
    finish_reason: str | None


class ChatCompletionChunk(TypedDict):
    """One SSE event of a streaming chat completion.

    finish_reason is None for content chunks, "stop" on the terminal chunk
    of a clean stream and "error" on the terminal chunk of a broken one.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[ChunkChoice]


class AssistantMessage(TypedDict):
    role: str
    content: str


class Choice(TypedDict):
    index: int
    message: AssistantMessage
    finish_reason: str


class Usage(TypedDict):
    """Usage figures for a buffered completion.

    These are character-length proxies, not tokenizer output: prompt_tokens
    is the length of the last request message and completion_tokens the
    length of the generated text. total_tokens is always their sum.
    """
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(TypedDict):
    """A buffered (non-streaming) chat completion."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage
