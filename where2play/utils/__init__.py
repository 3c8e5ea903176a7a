"""Utility modules for Where2Play.

- **errors** -- exception hierarchy rooted at Where2PlayError.
- **concurrency** -- bounded fan-out helpers for per-artist fetches.
- **logging** -- structlog setup with console / JSON renderers.
- **formatting** -- event-date parsing and popularity / genre display strings.
"""

from where2play.utils.concurrency import bounded_gather, gather_successes
from where2play.utils.errors import (
    ConfigurationError,
    ProviderError,
    RateLimitError,
    Where2PlayError,
)
from where2play.utils.formatting import format_genres, format_popularity, parse_event_date
from where2play.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ProviderError",
    "RateLimitError",
    "Where2PlayError",
    "bounded_gather",
    "configure_logging",
    "format_genres",
    "format_popularity",
    "gather_successes",
    "get_logger",
    "parse_event_date",
]
