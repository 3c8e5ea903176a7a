"""Display formatting for aggregated event records.

Pure functions shared by the aggregator and recommendation services:
provider date strings in, ``date`` out; a 0-5 rating in, a percentage
string out; an ordered genre list in, a comma-joined string out.  Each
returns ``None`` for missing input instead of placeholder text.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

# setlist.fm always sends event dates as day-month-year.
EVENT_DATE_FORMAT = "%d-%m-%Y"

MAX_DISPLAY_GENRES = 3


def parse_event_date(raw: str | None) -> date | None:
    """Parse a ``dd-MM-yyyy`` date string, returning ``None`` if it fails."""
    if not raw:
        return None
    try:
        return datetime.strptime(raw.strip(), EVENT_DATE_FORMAT).date()
    except ValueError:
        return None


def format_popularity(rating: float | None) -> str | None:
    """Rescale a 0-5 rating to a whole-number percentage string (4.0 -> ``"80%"``)."""
    if rating is None:
        return None
    return f"{rating / 5.0 * 100:.0f}%"


def format_genres(genres: Iterable[str] | None, limit: int = MAX_DISPLAY_GENRES) -> str | None:
    """Join the first *limit* non-empty genre names with ``", "``."""
    if not genres:
        return None
    names = [g for g in genres if g][:limit]
    return ", ".join(names) if names else None
