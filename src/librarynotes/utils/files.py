"""Utility helpers for working with note files and library paths."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

NOTE_SUFFIX = ".md"
INVALID_NAME_CHARS = re.compile(r'[*"\\/<>:|?#]')
WHITESPACE_RUN = re.compile(r"\s+")


def sanitize_file_name(name: object, max_length: int = 100, now: Optional[datetime] = None) -> str:
    """Make ``name`` safe to use as a single file or folder name.

    Illegal characters are dropped, whitespace runs collapse to one space and the
    result is capped at ``max_length``. An empty result becomes ``file-<epoch ms>``.
    """
    stamp = now or datetime.now()
    fallback = f"file-{int(stamp.timestamp() * 1000)}"
    if not isinstance(name, str) or not name:
        return fallback[:max_length] if max_length > 0 else fallback

    sanitized = INVALID_NAME_CHARS.sub("", name)
    sanitized = WHITESPACE_RUN.sub(" ", sanitized).strip()
    if max_length > 0 and len(sanitized) > max_length:
        sanitized = sanitized[:max_length].strip()
    if not sanitized:
        return fallback[:max_length] if max_length > 0 else fallback
    return sanitized


def parent_of(path: str) -> str:
    """Return the folder part of a ``/``-separated library path."""
    trimmed = path.rstrip("/")
    if "/" not in trimmed:
        return ""
    return trimmed.rsplit("/", 1)[0]


def name_of(path: str) -> str:
    """Return the last component of a ``/``-separated library path."""
    return path.rstrip("/").rsplit("/", 1)[-1]


def join_path(*segments: str) -> str:
    """Join non-empty segments with ``/``."""
    return "/".join(segment.strip("/") for segment in segments if segment and segment.strip("/"))


def is_sub_path(parent: str, child: str) -> bool:
    if not parent or not child:
        return False
    prefix = parent if parent.endswith("/") else parent + "/"
    return child.startswith(prefix)
