"""Text helpers for list-like metadata values."""

from __future__ import annotations

from typing import Iterable, List, Optional


def split_csv(text: str) -> List[str]:
    """Split a comma-separated string, trimming items and dropping empties."""
    return [part.strip() for part in text.split(",") if part.strip()]


def normalize_list(value: object) -> List[str]:
    """Coerce a tags/categories value into an ordered list of unique strings.

    Accepts a list, a comma-separated string (older notes), a single scalar or
    nothing at all.
    """
    if value is None or value == "" or value is False:
        return []
    if isinstance(value, (list, tuple)):
        items: Iterable[str] = (str(item).strip() for item in value if item is not None)
    elif isinstance(value, str):
        items = split_csv(value)
    else:
        items = [str(value).strip()]

    seen = set()
    result: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


def first_item(value: object) -> Optional[str]:
    items = normalize_list(value)
    return items[0] if items else None


def as_text(value: object, default: str = "") -> str:
    """Render a metadata value as display text, ``default`` when empty."""
    if value is None or value == "" or isinstance(value, list):
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def as_int(value: object, default: int = 0) -> int:
    """Best-effort integer conversion, mirroring a lenient ``parseInt``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        digits = value.strip()
        sign = ""
        if digits[:1] in ("+", "-"):
            sign, digits = digits[0], digits[1:]
        leading = ""
        for char in digits:
            if not char.isdigit():
                break
            leading += char
        if leading:
            return int(sign + leading)
    return default
