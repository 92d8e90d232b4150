"""Day/time extraction for booking requests.

Only the first day token and the first time token are used.  When either is
missing a fixed placeholder is substituted, so the result is never empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_DAY = "Tuesday"
DEFAULT_TIME = "2:00 PM"

_TIME_RE = re.compile(r"(\d{1,2})\s*(pm|am|o'clock)", re.IGNORECASE)
_DAY_RE = re.compile(
    r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday|tomorrow|next week)",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ExtractedEntities:
    day: str = DEFAULT_DAY
    time: str = DEFAULT_TIME


def extract_entities(message: str) -> ExtractedEntities:
    """Pull a day and a time out of *message*, defaulting when absent.

    >>> extract_entities("next Tuesday at 2 PM")
    ExtractedEntities(day='tuesday', time='2 PM')
    """
    time_match = _TIME_RE.search(message)
    day_match = _DAY_RE.search(message)
    return ExtractedEntities(
        day=day_match.group(1).lower() if day_match else DEFAULT_DAY,
        time=f"{time_match.group(1)} {time_match.group(2)}" if time_match else DEFAULT_TIME,
    )
