"""Scalar coercion for metadata values.

Values in a metadata block are untyped text. These helpers guess a type the same
way for every field: exact ``true``/``false`` become booleans, full decimal
literals become numbers, everything else stays a string. Nothing here raises;
malformed input falls back to the string reading.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union

Scalar = Union[bool, int, float, str]
FieldValue = Union[Scalar, List[Scalar]]

NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
INTEGER_PATTERN = re.compile(r"[+-]?\d+")

# Characters that force a string value to be quoted when written back.
QUOTE_TRIGGERS = (":", "#", "{", "[", "\n", '"', "'")

INLINE_LIST_MAX_ITEMS = 5
INLINE_ITEM_MAX_CHARS = 20


def strip_quotes(raw: str) -> str:
    """Remove one layer of matching surrounding quotes."""
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ('"', "'"):
        inner = raw[1:-1]
        if raw[0] == '"':
            inner = inner.replace('\\"', '"')
        return inner
    return raw


def parse_scalar(raw: str) -> Scalar:
    """Convert a raw token into a bool, int, float or str."""
    if not isinstance(raw, str):
        return raw
    text = strip_quotes(raw)
    if text == "true":
        return True
    if text == "false":
        return False
    if text and NUMBER_PATTERN.fullmatch(text):
        if INTEGER_PATTERN.fullmatch(text):
            return int(text)
        return float(text)
    return text


def _split_items(inner: str) -> Iterable[str]:
    """Split the inside of an inline list on commas outside of quotes."""
    current: List[str] = []
    quote: Optional[str] = None
    previous = ""
    for char in inner:
        if quote:
            current.append(char)
            if char == quote and previous != "\\":
                quote = None
        elif char in ('"', "'"):
            quote = char
            current.append(char)
        elif char == ",":
            yield "".join(current).strip()
            current = []
        else:
            current.append(char)
        previous = char
    tail = "".join(current).strip()
    if tail:
        yield tail


def parse_inline_list(raw: str) -> Optional[List[Scalar]]:
    """Parse ``[a, b, c]`` into a list, or return None if ``raw`` is not bracketed."""
    text = raw.strip()
    if len(text) < 2 or not (text.startswith("[") and text.endswith("]")):
        return None
    return [parse_scalar(item) for item in _split_items(text[1:-1]) if item]


def serialize_scalar(value: object) -> str:
    """Render a scalar as a token that reads back to the same value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value)
    if any(trigger in text for trigger in QUOTE_TRIGGERS):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _is_plain_short(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return (
        0 < len(value) < INLINE_ITEM_MAX_CHARS
        and "," not in value
        and serialize_scalar(value) == value
    )


def serialize_list(values: Iterable[object], linebreak: bool = False) -> str:
    """Render a list either inline (``[a, b]``) or as indented ``- item`` lines.

    The multi-line form starts with a newline so it can follow ``key:`` directly.
    """
    items = list(values)
    if not items:
        return "[]"
    if (
        not linebreak
        and len(items) < INLINE_LIST_MAX_ITEMS
        and all(_is_plain_short(item) for item in items)
    ):
        return "[" + ", ".join(serialize_scalar(item) for item in items) + "]"
    return "".join(f"\n  - {serialize_scalar(item)}" for item in items)
