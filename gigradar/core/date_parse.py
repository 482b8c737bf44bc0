from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re
from typing import Callable, Optional, Tuple

# Approximate: a month is 30 days.
UNIT_SECONDS = {
    'second': 1,
    'minute': 60,
    'hour': 60 * 60,
    'day': 24 * 60 * 60,
    'week': 7 * 24 * 60 * 60,
    'month': 30 * 24 * 60 * 60,
}

_UNITS = "|".join(UNIT_SECONDS)

JUST_NOW = re.compile(r"just", re.I)
COUNT_AGO = re.compile(rf"(\d+)\s*({_UNITS})s?\s*ago", re.I)
YESTERDAY = re.compile(r"^yesterday$", re.I)
SINGLE_AGO = re.compile(rf"^an?\s+({_UNITS})\s+ago$", re.I)

Resolver = Callable[[re.Match, datetime], datetime]

RELATIVE_RULES: Tuple[Tuple[re.Pattern, Resolver], ...] = (
    (JUST_NOW, lambda m, now: now),
    (COUNT_AGO, lambda m, now: now - timedelta(seconds=int(m.group(1)) * UNIT_SECONDS[m.group(2).lower()])),
    (YESTERDAY, lambda m, now: now - timedelta(days=1)),
    (SINGLE_AGO, lambda m, now: now - timedelta(seconds=UNIT_SECONDS[m.group(1).lower()])),
)


def resolve_relative_time(text: Optional[str], *, now: datetime | None = None) -> Optional[str]:
    """Turn "3 hours ago" / "yesterday" into an ISO-8601 UTC timestamp.

    Unrecognised text, whitespace included, comes back unchanged; None or
    the empty string gives None.
    """
    if not isinstance(text, str) or not text:
        return None
    raw = text.strip()

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    for pattern, resolve in RELATIVE_RULES:
        m = pattern.search(raw)
        if m:
            return resolve(m, now).isoformat()
    return text


def parse_timestamp(value: Optional[str]) -> datetime | None:
    """Parse an ISO timestamp produced by resolve_relative_time, else None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
