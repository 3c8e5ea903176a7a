"""Static U.S. touring regions and band-popularity tiers.

Regions are a read-only filter predicate for the recommendation engine:
a show counts toward a region only when its venue's two-letter state code
is in the region's set.  Nothing mutates these tables at runtime.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

REGIONS: Mapping[str, frozenset[str]] = MappingProxyType({
    "NE": frozenset({"ME", "NH", "VT", "MA", "RI", "CT", "NY", "PA", "NJ"}),
    "SE": frozenset({"DE", "MD", "VA", "WV", "NC", "SC", "GA", "FL", "AL", "TN", "MS", "KY"}),
    "MW": frozenset({"OH", "IN", "MI", "IL", "WI", "MO", "IA", "MN", "ND", "SD", "NE", "KS"}),
    "SW": frozenset({"TX", "OK", "NM", "AZ"}),
    "W": frozenset({"CO", "WY", "MT", "ID", "WA", "OR", "UT", "NV", "CA", "AK", "HI"}),
})

REGION_NAMES: Mapping[str, str] = MappingProxyType({
    "NE": "Northeast",
    "SE": "Southeast",
    "MW": "Midwest",
    "SW": "Southwest",
    "W": "West",
})


def get_region_states(code: str | None) -> frozenset[str] | None:
    """Return the state set for *code* (case-insensitive), or ``None`` if unknown."""
    if not code:
        return None
    return REGIONS.get(code.strip().upper())


class BandPopularity(str, Enum):  # noqa: UP042
    """How big a draw the band is; decides how many genre artists to sample."""

    SMALL = "small"    # clubs / bars
    MEDIUM = "medium"  # theaters / halls
    LARGE = "large"    # arenas / festivals

    @property
    def artist_limit(self) -> int:
        return _ARTIST_LIMITS[self]

    @classmethod
    def parse(cls, raw: str | None) -> BandPopularity:
        """Parse a tier name case-insensitively, defaulting to MEDIUM."""
        if raw:
            try:
                return cls(raw.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


_ARTIST_LIMITS = {
    BandPopularity.SMALL: 25,
    BandPopularity.MEDIUM: 50,
    BandPopularity.LARGE: 100,
}
