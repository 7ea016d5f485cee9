"""Message content as a tagged union of plain text or typed parts."""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class ContentPart:
    type: str
    text: Optional[str] = None


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Parts:
    parts: tuple[ContentPart, ...]


MessageContent = Union[PlainText, Parts]


def _parse_part(raw: Any) -> Optional[ContentPart]:
    if not isinstance(raw, Mapping):
        return None
    part_type = raw.get("type")
    if not isinstance(part_type, str):
        return None
    text = raw.get("text")
    return ContentPart(type=part_type, text=text if isinstance(text, str) else None)


def parse_content(raw: Any) -> MessageContent:
    """Lift raw JSON content into the union.

    Strings become PlainText, lists become Parts (entries that are not
    typed objects are dropped). Anything else is stringified as a last
    resort; null is treated as empty text.
    """
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, list):
        parts = tuple(part for part in map(_parse_part, raw) if part is not None)
        return Parts(parts)
    if raw is None:
        return PlainText("")
    if isinstance(raw, (Mapping, bool)):
        return PlainText(json.dumps(raw, ensure_ascii=False))
    return PlainText(str(raw))


def normalize_content(content: MessageContent) -> str:
    """Collapse content to the plain string the upstream accepts."""
    if isinstance(content, PlainText):
        return content.text
    if isinstance(content, Parts):
        return "\n".join(
            part.text
            for part in content.parts
            if part.type == "text" and part.text is not None
        )
    raise TypeError(f"Unsupported message content: {type(content).__name__}")
