"""Aggregated domain records produced by the Where2Play services.

All models are frozen.  Enrichment does not mutate an :class:`EventRecord`;
:meth:`EventRecord.with_metadata` returns a copy with the artist fields
filled in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from where2play.models.musicbrainz import ArtistCandidate
from where2play.utils.formatting import format_genres, format_popularity

_T = TypeVar("_T")


class EventRecord(BaseModel):
    """One concert, merged from a setlist.fm show and MusicBrainz metadata.

    ``genre``, ``country`` and ``popularity`` stay ``None`` when enrichment
    found nothing.  ``event_date`` is ``None`` when the provider date could
    not be parsed.
    """

    model_config = ConfigDict(frozen=True)

    artist_name: str
    genre: str | None = None
    country: str | None = None
    popularity: str | None = None
    venue_name: str
    city_name: str
    event_date: date | None = None
    source_url: str | None = None

    def with_metadata(self, artist: ArtistCandidate) -> EventRecord:
        """Return a copy carrying *artist*'s country, popularity and top genres."""
        return self.model_copy(
            update={
                "country": artist.country,
                "popularity": format_popularity(artist.rating),
                "genre": format_genres(artist.genres),
            }
        )

    def dedupe_key(self) -> tuple[str, str, str | None, str]:
        """Identity used to collapse duplicate listings across artist candidates."""
        return (
            self.artist_name,
            self.venue_name,
            self.event_date.isoformat() if self.event_date else None,
            self.city_name,
        )


class ResolvedArtistLink(BaseModel):
    """Cross-reference between the two providers' identifiers for one artist."""

    model_config = ConfigDict(frozen=True)

    metadata_provider_id: str | None = Field(
        default=None, description="MusicBrainz MBID reported by setlist.fm."
    )
    shows_provider_id: str | None = Field(
        default=None, description="setlist.fm hex id parsed from the artist URL."
    )


class CityFit(BaseModel):
    """A touring city and how well it fits a genre/region/popularity request."""

    model_config = ConfigDict(frozen=True)

    city: str = Field(description='"City, ST" label.')
    fit_score: int = Field(ge=0, le=100)
    reason: str = ""


@dataclass(frozen=True)
class QueryResult(Generic[_T]):
    """Items plus an error string; ``error == ""`` means the query succeeded.

    An empty ``items`` list with no error is a valid query that found
    nothing.  An empty list *with* an error is a failed query.
    """

    items: list[_T] = field(default_factory=list)
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @classmethod
    def failure(cls, error: str) -> QueryResult[_T]:
        return cls(items=[], error=error or "Unknown error")
