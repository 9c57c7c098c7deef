"""Date formatting helpers using ``YYYY-MM-DD`` style tokens."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Union

DEFAULT_DATE_FORMAT = "YYYY-MM-DD"
ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

_TOKENS = ("YYYY", "MM", "DD", "HH", "mm", "ss")
_TOKEN_PATTERN = re.compile("|".join(_TOKENS))


def format_date(value: Union[date, datetime], fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format ``value`` with the tokens YYYY, MM, DD, HH, mm and ss."""
    moment = value if isinstance(value, datetime) else datetime(value.year, value.month, value.day)
    replacements = {
        "YYYY": f"{moment.year:04d}",
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "HH": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
    }
    return _TOKEN_PATTERN.sub(lambda match: replacements[match.group(0)], fmt)


def parse_date(text: object) -> Optional[date]:
    """Parse a leading ``YYYY-MM-DD``; returns None for anything invalid."""
    if isinstance(text, datetime):
        return text.date()
    if isinstance(text, date):
        return text
    if not isinstance(text, str):
        return None
    match = ISO_DATE_PATTERN.match(text.strip())
    if not match:
        return None
    year, month, day = (int(group) for group in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def today(fmt: str = DEFAULT_DATE_FORMAT, now: Optional[datetime] = None) -> str:
    return format_date(now or datetime.now(), fmt)
