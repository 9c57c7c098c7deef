"""Line-oriented codec for the metadata block at the top of a note.

A note opens with a ``---`` line, carries ``key: value`` lines, and closes with a
second ``---`` line. The block is read with a small finite-state scan rather than a
YAML parser: notes in the wild contain bare unquoted strings and loose quoting
that a strict parser would reject.

Updates are surgical. :func:`encode_field_update` rewrites only the lines owned by
one field and copies every other character of the document verbatim.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from librarynotes.metadata.coercion import (
    FieldValue,
    parse_inline_list,
    parse_scalar,
    serialize_list,
    serialize_scalar,
)

LOGGER = logging.getLogger(__name__)

DELIMITER = "---"
BOM = "\ufeff"

# A field starts at column 0 with ``key:``; the value may follow the colon directly.
KEY_LINE_PATTERN = re.compile(r"^(?P<key>[^\s:#\-][^:]*?)\s*:[ \t]*(?P<value>.*?)\s*$")

MetadataBlock = Dict[str, FieldValue]


class ParseState(Enum):
    EXPECT_KEY = "expect_key"
    IN_SCALAR_CONTINUATION = "in_scalar_continuation"
    IN_LIST = "in_list"


@dataclass(slots=True)
class FieldSpan:
    """One field of a block: its key, value and the block lines it owns."""

    key: str
    start: int
    end: int
    value: FieldValue = ""
    parts: List[str] = field(default_factory=list)


@dataclass(slots=True)
class _Document:
    bom: str
    lines: List[str]
    close: int
    newline: str

    @property
    def block_lines(self) -> List[str]:
        return [_content(line) for line in self.lines[1 : self.close]]


def _split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, keeping line endings attached."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _content(line: str) -> str:
    return line.rstrip("\r\n")


def is_list_marker(line: str) -> bool:
    stripped = line.strip()
    return stripped == "-" or stripped.startswith("- ")


def _marker_value(line: str) -> str:
    return line.strip()[1:].strip()


def _locate(text: str) -> Optional[_Document]:
    bom = BOM if text.startswith(BOM) else ""
    lines = _split_lines(text[len(bom) :])
    if not lines or lines[0].rstrip() != DELIMITER:
        return None
    for index in range(1, len(lines)):
        if lines[index].rstrip() == DELIMITER:
            newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
            return _Document(bom=bom, lines=lines, close=index, newline=newline)
    return None


def _next_is_marker(lines: Sequence[str], start: int) -> bool:
    for line in lines[start:]:
        if not line.strip():
            continue
        return is_list_marker(line)
    return False


def _finish(span: FieldSpan, state: ParseState, lines: Sequence[str]) -> None:
    if state is ParseState.IN_SCALAR_CONTINUATION:
        span.value = parse_scalar("\n".join(span.parts).strip())
    # Trailing blank lines are not owned by the field.
    while span.end - 1 > span.start and not lines[span.end - 1].strip():
        span.end -= 1


def scan_fields(lines: Sequence[str]) -> List[FieldSpan]:
    """Run the block state machine over ``lines`` and return every field span.

    ``lines`` are the block's lines without the delimiters or line endings.
    """
    spans: List[FieldSpan] = []
    state = ParseState.EXPECT_KEY
    current: Optional[FieldSpan] = None

    for index, line in enumerate(lines):
        match = KEY_LINE_PATTERN.match(line)
        if match:
            if current is not None:
                _finish(current, state, lines)
            key = match.group("key").strip()
            raw = (match.group("value") or "").strip()
            current = FieldSpan(key=key, start=index, end=index + 1)
            spans.append(current)

            if raw in ("", "[]") and _next_is_marker(lines, index + 1):
                current.value = []
                state = ParseState.IN_LIST
                continue
            inline = parse_inline_list(raw)
            if inline is not None:
                current.value = inline
                state = ParseState.EXPECT_KEY
            else:
                current.parts = [raw]
                state = ParseState.IN_SCALAR_CONTINUATION
            continue

        if current is None:
            # Stray line before the first key.
            continue
        current.end = index + 1

        if state is ParseState.IN_LIST:
            if is_list_marker(line):
                current.value.append(parse_scalar(_marker_value(line)))
        elif state is ParseState.IN_SCALAR_CONTINUATION:
            if not is_list_marker(line):
                current.parts.append(line)

    if current is not None:
        _finish(current, state, lines)
    return spans


def decode(text: str) -> Optional[Tuple[MetadataBlock, str]]:
    """Parse the metadata block of ``text``.

    Returns ``(block, body)`` or ``None`` when the document does not open with a
    delimiter on its first line or the block is never closed.
    """
    document = _locate(text)
    if document is None:
        return None
    block: MetadataBlock = {}
    for span in scan_fields(document.block_lines):
        block[span.key] = span.value
    body = "".join(document.lines[document.close + 1 :])
    return block, body


def split_document(text: str) -> Tuple[MetadataBlock, str]:
    """Like :func:`decode`, but an absent block yields ``({}, text)``."""
    decoded = decode(text)
    if decoded is None:
        return {}, text
    return decoded


def render_field(key: str, value: object, list_keys: Iterable[str] = ()) -> List[str]:
    """Serialize one field into block lines (without line endings)."""
    if isinstance(value, (list, tuple)):
        if key in set(list_keys):
            if not value:
                return [f"{key}: []"]
            return [f"{key}:"] + [f"  - {serialize_scalar(item)}" for item in value]
        token = serialize_list(value)
        if token.startswith("\n"):
            return [f"{key}:"] + token[1:].split("\n")
        return [f"{key}: {token}"]
    token = serialize_scalar(value)
    if not token:
        return [f"{key}:"]
    return f"{key}: {token}".split("\n")


def encode_field_update(
    text: str, key: str, value: object, list_keys: Iterable[str] = ()
) -> str:
    """Return ``text`` with the field ``key`` set to ``value``.

    Only the lines owned by ``key`` change. A missing field is appended at the end
    of the block; a document without a block gets one prepended.
    """
    rendered = render_field(key, value, list_keys)
    document = _locate(text)
    if document is None:
        bom = BOM if text.startswith(BOM) else ""
        block = "\n".join([DELIMITER, *rendered, DELIMITER])
        return f"{bom}{block}\n\n{text[len(bom):]}"

    newline = document.newline
    fresh = [line + newline for line in rendered]
    matches = [span for span in scan_fields(document.block_lines) if span.key == key]

    # Block line ``i`` lives at document line ``i + 1``.
    lines = list(document.lines)
    if not matches:
        lines[document.close : document.close] = fresh
    else:
        first = matches[0]
        for duplicate in reversed(matches[1:]):
            LOGGER.debug("Dropping duplicate metadata field %r", key)
            del lines[duplicate.start + 1 : duplicate.end + 1]
        lines[first.start + 1 : first.end + 1] = fresh
    return document.bom + "".join(lines)


def encode_fields(
    text: str, fields: Mapping[str, object], list_keys: Iterable[str] = ()
) -> str:
    """Apply :func:`encode_field_update` for each item of ``fields`` in order."""
    keys = tuple(list_keys)
    for key, value in fields.items():
        text = encode_field_update(text, key, value, keys)
    return text
