"""SSE (Server-Sent Events) framing for client-facing streams."""

import json
from typing import Any, Mapping

# Terminal event of a cleanly finished OpenAI stream
SSE_DONE = b"data: [DONE]\n\n"
DONE_MARKER = "[DONE]"


def encode_sse_data(payload: Mapping[str, Any]) -> bytes:
    """Frame one JSON payload as a `data:` event."""
    data = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"data: {data}\n\n".encode("utf-8")


def iter_sse_data(text: str) -> list[str]:
    """Split an SSE body into the raw `data:` values, in order.

    Multi-line events are joined with newlines; comment lines and fields
    other than `data` are ignored.
    """
    events: list[str] = []
    for block in text.replace("\r\n", "\n").split("\n\n"):
        data_lines = []
        for line in block.split("\n"):
            if not line.startswith("data:"):
                continue
            value = line[5:]
            if value.startswith(" "):
                value = value[1:]
            data_lines.append(value)
        if data_lines:
            events.append("\n".join(data_lines))
    return events


def parse_sse_payloads(text: str) -> list[Any]:
    """Decode every JSON `data:` event, keeping the [DONE] marker as a string."""
    payloads: list[Any] = []
    for data in iter_sse_data(text):
        if data == DONE_MARKER:
            payloads.append(DONE_MARKER)
            continue
        payloads.append(json.loads(data))
    return payloads
