"""Pydantic v2 models for setlist.fm REST 1.0 payloads.

Only the fields the aggregator reads are declared; everything else in the
upstream JSON is ignored.  Field aliases follow the camelCase wire names so
``model_validate`` can be fed the decoded response directly.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_WIRE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SetlistCountry(BaseModel):
    model_config = _WIRE_CONFIG

    code: str | None = None
    name: str | None = None


class SetlistCity(BaseModel):
    """City block nested in a venue.  ``state_code`` drives region filtering."""

    model_config = _WIRE_CONFIG

    id: str | None = None
    name: str | None = None
    state: str | None = None
    state_code: str | None = Field(default=None, alias="stateCode")
    country: SetlistCountry | None = None


class SetlistVenue(BaseModel):
    model_config = _WIRE_CONFIG

    id: str | None = None
    name: str | None = None
    city: SetlistCity | None = None


class SetlistArtistCandidate(BaseModel):
    """An artist as returned by ``search/artists`` and embedded in setlists.

    ``url`` is the canonical setlist.fm page, whose trailing hyphenated hex
    token is the provider's own artist identifier.
    """

    model_config = _WIRE_CONFIG

    mbid: str | None = None
    name: str | None = None
    sort_name: str | None = Field(default=None, alias="sortName")
    disambiguation: str | None = None
    url: str | None = None


class SetlistShow(BaseModel):
    """One show (setlist) listing.  ``event_date`` stays the raw ``dd-MM-yyyy`` string."""

    model_config = _WIRE_CONFIG

    id: str | None = None
    event_date: str | None = Field(default=None, alias="eventDate")
    artist: SetlistArtistCandidate | None = None
    venue: SetlistVenue | None = None
    url: str | None = None

    @property
    def artist_name(self) -> str | None:
        return self.artist.name if self.artist else None

    @property
    def artist_mbid(self) -> str | None:
        return self.artist.mbid if self.artist and self.artist.mbid else None

    @property
    def city(self) -> SetlistCity | None:
        return self.venue.city if self.venue else None


class SetlistPage(BaseModel):
    """Envelope for ``search/setlists`` and ``artist/{mbid}/setlists``."""

    model_config = _WIRE_CONFIG

    setlist: list[SetlistShow] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    items_per_page: int = Field(default=20, alias="itemsPerPage")


class SetlistArtistSearch(BaseModel):
    """Envelope for ``search/artists``."""

    model_config = _WIRE_CONFIG

    artist: list[SetlistArtistCandidate] = Field(default_factory=list)
