"""Helpers for ``HH:MM:SS`` durations."""

from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)

ZERO_DURATION = "00:00:00"


def hms_to_seconds(hms: object) -> int:
    """Convert ``HH:MM:SS``, ``MM:SS`` or ``SS`` into seconds (0 when unparseable)."""
    if isinstance(hms, bool):
        return 0
    if isinstance(hms, (int, float)):
        return max(int(hms), 0)
    if not isinstance(hms, str) or not hms.strip():
        return 0

    parts = []
    for part in hms.strip().split(":"):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)

    if len(parts) == 3:
        hours, minutes, seconds = parts
    elif len(parts) == 2:
        hours, (minutes, seconds) = 0, parts
    elif len(parts) == 1:
        hours, minutes, seconds = 0, 0, parts[0]
    else:
        return 0
    return hours * 3600 + minutes * 60 + seconds


def seconds_to_hms(total_seconds: float) -> str:
    if total_seconds < 0:
        LOGGER.warning("Invalid seconds value %s", total_seconds)
        return ZERO_DURATION
    total = int(total_seconds)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def seconds_to_clock(total_seconds: int) -> str:
    """Short clock form used for timestamps: ``H:MM:SS``, or ``M:SS`` under an hour."""
    hours, remainder = divmod(max(int(total_seconds), 0), 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
