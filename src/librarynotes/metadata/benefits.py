"""Codec for the benefits section of a note body.

The section opens with a ``# الفوائد`` heading and runs to the next top-level
heading. Each benefit is a ``## title`` block carrying HTML comments for its id and
dates, optional ``label: value`` location lines, and the benefit text::

    ## Title
    <!-- benefit-id: 1715000000000-abc123def -->
    <!-- date-created: 2024-05-06 10:00:00 -->
    الصفحة: 12
    التصنيفات: فقه، حديث
    الفائدة: the text, possibly over several lines

Edits touch only the lines of one block; the metadata block and the rest of the
body are copied verbatim.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from librarynotes.config import KIND_BOOK
from librarynotes.metadata.codec import decode
from librarynotes.models import Benefit
from librarynotes.utils.durations import hms_to_seconds, seconds_to_clock
from librarynotes.utils.text import as_int

LOGGER = logging.getLogger(__name__)

BENEFITS_HEADING = "# الفوائد"
LIST_SEPARATOR = "،"

PAGE_LABEL = "الصفحة"
VOLUME_LABEL = "المجلد"
TIME_LABEL = "الوقت"
CATEGORIES_LABEL = "التصنيفات"
TAGS_LABEL = "الوسوم"
TEXT_LABEL = "الفائدة"

SECTION_PATTERN = re.compile(rf"^{re.escape(BENEFITS_HEADING)}\s*$")
TOP_HEADING_PATTERN = re.compile(r"^#\s")
HEADER_PATTERN = re.compile(r"^##\s+(?P<title>.+?)\s*$")
COMMENT_PATTERN = re.compile(r"^<!--\s*(?P<name>[\w-]+):\s*(?P<value>.*?)\s*-->\s*$")
LABEL_PATTERN = re.compile(
    rf"^(?P<label>{PAGE_LABEL}|{VOLUME_LABEL}|{TIME_LABEL}|{CATEGORIES_LABEL}|{TAGS_LABEL}|{TEXT_LABEL})"
    r"\s*:\s*(?P<value>.*?)\s*$"
)

Span = Tuple[int, int]


def _split_head(text: str) -> Tuple[str, str]:
    decoded = decode(text)
    body = decoded[1] if decoded is not None else text
    return text[: len(text) - len(body)], body


def _strip(line: str) -> str:
    return line.rstrip("\r\n")


def _section_span(lines: Sequence[str]) -> Optional[Span]:
    """Line range of the benefits section, heading included."""
    for start, line in enumerate(lines):
        if SECTION_PATTERN.match(_strip(line)):
            for end in range(start + 1, len(lines)):
                if TOP_HEADING_PATTERN.match(lines[end]):
                    return start, end
            return start, len(lines)
    return None


def _block_spans(lines: Sequence[str], section: Span) -> List[Span]:
    """Line ranges of the ``## `` blocks inside ``section``, trailing blanks included."""
    starts = [index for index in range(*section) if lines[index].startswith("## ")]
    ends = starts[1:] + [section[1]]
    return list(zip(starts, ends))


def _split_items(value: str) -> List[str]:
    return [item.strip() for item in re.split(rf"[{LIST_SEPARATOR},]", value) if item.strip()]


def parse_benefit(lines: Sequence[str]) -> Optional[Benefit]:
    """Read one ``## `` block; None when it lacks a title or a text."""
    if not lines:
        return None
    header = HEADER_PATTERN.match(_strip(lines[0]))
    if not header:
        return None

    benefit = Benefit(id="", title=header.group("title"), text="")
    text_lines: List[str] = []
    in_text = False
    for raw in lines[1:]:
        line = _strip(raw)
        comment = COMMENT_PATTERN.match(line.strip())
        labelled = LABEL_PATTERN.match(line)
        if comment:
            in_text = False
            name, value = comment.group("name"), comment.group("value")
            if name == "benefit-id":
                benefit.id = value
            elif name == "date-created":
                benefit.date_created = value
            elif name == "date-modified":
                benefit.date_modified = value
        elif labelled:
            label, value = labelled.group("label"), labelled.group("value")
            in_text = label == TEXT_LABEL
            if label == TEXT_LABEL:
                text_lines = [value]
            elif label == PAGE_LABEL:
                benefit.page = as_int(value) or None
            elif label == VOLUME_LABEL:
                benefit.volume = as_int(value) or None
            elif label == TIME_LABEL:
                benefit.timestamp = hms_to_seconds(value)
            elif label == CATEGORIES_LABEL:
                benefit.categories = _split_items(value)
            else:
                benefit.tags = _split_items(value)
        elif in_text:
            text_lines.append(line)

    benefit.text = "\n".join(text_lines).strip()
    if not benefit.text:
        return None
    return benefit


def read_benefits(text: str) -> List[Benefit]:
    """Every well-formed benefit of a note, in document order."""
    _, body = _split_head(text)
    lines = body.splitlines(keepends=True)
    section = _section_span(lines)
    if section is None:
        return []
    benefits: List[Benefit] = []
    for start, end in _block_spans(lines, section):
        benefit = parse_benefit(lines[start:end])
        if benefit is None:
            LOGGER.debug("Skipping malformed benefit block at body line %d", start + 1)
            continue
        benefits.append(benefit)
    return benefits


def format_benefit(benefit: Benefit, kind: str) -> str:
    """Render a benefit block without a trailing newline.

    Books carry page and volume lines, videos a timestamp line.
    """
    lines = [
        f"## {benefit.title}",
        f"<!-- benefit-id: {benefit.id} -->",
        f"<!-- date-created: {benefit.date_created} -->",
    ]
    if benefit.date_modified:
        lines.append(f"<!-- date-modified: {benefit.date_modified} -->")
    if kind == KIND_BOOK:
        if benefit.page:
            lines.append(f"{PAGE_LABEL}: {benefit.page}")
        if benefit.volume:
            lines.append(f"{VOLUME_LABEL}: {benefit.volume}")
    elif benefit.timestamp:
        lines.append(f"{TIME_LABEL}: {seconds_to_clock(benefit.timestamp)}")
    if benefit.categories:
        lines.append(f"{CATEGORIES_LABEL}: {(LIST_SEPARATOR + ' ').join(benefit.categories)}")
    if benefit.tags:
        lines.append(f"{TAGS_LABEL}: {(LIST_SEPARATOR + ' ').join(benefit.tags)}")
    lines.append(f"{TEXT_LABEL}: {benefit.text}")
    return "\n".join(lines)


def add_benefit(text: str, benefit: Benefit, kind: str) -> str:
    """Append ``benefit`` to the benefits section, creating the section if needed."""
    head, body = _split_head(text)
    lines = body.splitlines(keepends=True)
    block = format_benefit(benefit, kind)
    section = _section_span(lines)

    if section is None:
        existing = body.rstrip("\n")
        prefix = existing + "\n\n" if existing else ""
        return f"{head}{prefix}{BENEFITS_HEADING}\n\n{block}\n"

    start, end = section
    content = "".join(lines[start:end]).rstrip("\n")
    rest = "".join(lines[end:])
    updated = f"{content}\n\n{block}\n"
    if rest:
        updated += "\n"
    return head + "".join(lines[:start]) + updated + rest


def _find_block(lines: Sequence[str], benefit_id: str) -> Optional[Span]:
    section = _section_span(lines)
    if section is None:
        return None
    for start, end in _block_spans(lines, section):
        for line in lines[start:end]:
            comment = COMMENT_PATTERN.match(_strip(line).strip())
            if comment and comment.group("name") == "benefit-id" and comment.group("value") == benefit_id:
                return start, end
    return None


def replace_benefit(text: str, benefit_id: str, benefit: Benefit, kind: str) -> Optional[str]:
    """Rewrite the block of ``benefit_id``; None when no such benefit exists."""
    head, body = _split_head(text)
    lines = body.splitlines(keepends=True)
    span = _find_block(lines, benefit_id)
    if span is None:
        return None
    start, end = span
    old = lines[start:end]
    keep = len(old)
    while keep > 0 and not old[keep - 1].strip():
        keep -= 1
    fresh = format_benefit(benefit, kind) + "\n"
    return head + "".join(lines[:start]) + fresh + "".join(old[keep:]) + "".join(lines[end:])


def remove_benefit(text: str, benefit_id: str) -> Optional[str]:
    """Drop the block of ``benefit_id``; None when no such benefit exists."""
    head, body = _split_head(text)
    lines = body.splitlines(keepends=True)
    span = _find_block(lines, benefit_id)
    if span is None:
        return None
    start, end = span
    before, after = "".join(lines[:start]), "".join(lines[end:])
    if not after:
        before = before.rstrip("\n") + "\n"
    return head + before + after
