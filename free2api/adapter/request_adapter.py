"""Translate inbound chat completion bodies into signed upstream payloads."""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..config import ModelSettings
from ..core.exceptions import InternalFailureError, InvalidRequestError
from ..types import ChatCompletionRequest, ChatMessage, UpstreamMessage, UpstreamPayload
from .content import normalize_content, parse_content

logger = logging.getLogger("free2api")

# The upstream signs with an empty secret; it is part of its protocol.
SIGN_SECRET = ""


def generate_signature(timestamp: int, message: str, secret: str = SIGN_SECRET) -> str:
    """SHA-256 over "{timestamp}:{message}:{secret}" as lowercase hex.

    Raises:
        InternalFailureError: If the message cannot be encoded as UTF-8.
    """
    data = f"{timestamp}:{message}:{secret}"
    try:
        encoded = data.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InternalFailureError(f"Signature generation failed: {exc}") from exc
    return hashlib.sha256(encoded).hexdigest()


@dataclass(frozen=True)
class AdaptedRequest:
    """Everything the rest of the pipeline needs from one inbound request."""

    payload: UpstreamPayload
    model: str
    # Character length of the last message; stands in for prompt tokens
    prompt_length: int
    stream: bool


class RequestAdapter:
    """Normalizes inbound messages and signs the upstream payload."""

    def __init__(
        self,
        models: ModelSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.models = models
        self._clock = clock

    def resolve_model(self, body: Mapping[str, Any]) -> str:
        model = body.get("model")
        if isinstance(model, str) and model.strip():
            return model.strip()
        return self.models.default

    def normalize_messages(
        self, raw_messages: Optional[list[ChatMessage]]
    ) -> list[UpstreamMessage]:
        if not isinstance(raw_messages, list) or not raw_messages:
            raise InvalidRequestError(
                "You must provide a non-empty messages array",
                code="missing_parameter",
            )

        messages: list[UpstreamMessage] = []
        for index, raw in enumerate(raw_messages):
            if not isinstance(raw, Mapping):
                raise InvalidRequestError(
                    f"messages[{index}] must be an object",
                    code="invalid_message",
                )
            role = raw.get("role")
            if not isinstance(role, str) or not role:
                role = "user"
            content = normalize_content(parse_content(raw.get("content")))
            messages.append({"role": role, "content": content})

        if not messages[-1]["content"]:
            raise InvalidRequestError(
                "Invalid message format: last message content missing",
                code="empty_content",
            )
        return messages

    def adapt(self, body: ChatCompletionRequest) -> AdaptedRequest:
        """Build the upstream payload for one request.

        `body` is the decoded JSON as received; its shape is checked here
        rather than trusted.

        Raises:
            InvalidRequestError: If the body or its messages are unusable.
            InternalFailureError: If signing fails.
        """
        if not isinstance(body, Mapping):
            raise InvalidRequestError(
                "Request body must be a JSON object", code="invalid_json_shape"
            )

        messages = self.normalize_messages(body.get("messages"))
        last_content = messages[-1]["content"]
        timestamp = int(self._clock() * 1000)
        signature = generate_signature(timestamp, last_content)
        logger.debug(
            "Generated signature %s... for timestamp %d", signature[:10], timestamp
        )

        payload: UpstreamPayload = {
            "messages": messages,
            "time": timestamp,
            "pass": None,
            "sign": signature,
        }
        return AdaptedRequest(
            payload=payload,
            model=self.resolve_model(body),
            prompt_length=len(last_content),
            stream=bool(body.get("stream")),
        )
