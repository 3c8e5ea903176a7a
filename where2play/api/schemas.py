"""Pydantic response schemas for the Where2Play API.

Defines the public contract of every REST endpoint: event searches, city
recommendations, similar-artist lookups, regions, parking and health.

Domain records (:class:`EventRecord`, :class:`CityFit`, the parking
models) are returned as-is inside these envelopes; MusicBrainz artists are
flattened into :class:`ArtistSummary` so clients get the same
popularity/genre strings the event records carry.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from where2play.models.events import CityFit, EventRecord
from where2play.models.musicbrainz import ArtistCandidate
from where2play.models.parking import ParkingEvent, ParkingSpot
from where2play.utils.formatting import format_genres, format_popularity


class EventSearchResponse(BaseModel):
    """Events found by a city or artist search."""

    query: str
    count: int
    events: list[EventRecord] = Field(default_factory=list)


class CityRecommendationsResponse(BaseModel):
    """Ranked touring cities for a genre / region / popularity cohort."""

    genre: str
    region: str
    popularity: str
    count: int
    cities: list[CityFit] = Field(default_factory=list)


class ArtistSummary(BaseModel):
    """A MusicBrainz artist as shown in similar-artist listings."""

    id: str
    name: str
    country: str | None = None
    disambiguation: str | None = None
    genres: list[str] = Field(default_factory=list)
    genre: str | None = Field(default=None, description="Top genres, comma-joined.")
    popularity: str | None = Field(default=None, description='Rating as a percentage, e.g. "80%".')

    @classmethod
    def from_candidate(cls, artist: ArtistCandidate) -> ArtistSummary:
        return cls(
            id=artist.id,
            name=artist.name,
            country=artist.country,
            disambiguation=artist.disambiguation,
            genres=list(artist.genres),
            genre=format_genres(artist.genres),
            popularity=format_popularity(artist.rating),
        )


class SimilarArtistsResponse(BaseModel):
    """Artists tagged with a genre."""

    genre: str
    count: int
    artists: list[ArtistSummary] = Field(default_factory=list)


class ArtistSimilarityResponse(BaseModel):
    """An artist's dominant genres and artists sharing the top one."""

    artist: str
    genres: list[str] = Field(default_factory=list)
    artists: list[ArtistSummary] = Field(default_factory=list)


class RegionInfo(BaseModel):
    code: str
    name: str
    states: list[str]


class RegionsResponse(BaseModel):
    regions: list[RegionInfo]


class ParkingEventsResponse(BaseModel):
    count: int
    events: list[ParkingEvent] = Field(default_factory=list)


class ParkingSpotsResponse(BaseModel):
    count: int
    spots: list[ParkingSpot] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, bool]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
