"""Pydantic v2 models for MusicBrainz ws/2 JSON payloads.

:class:`ArtistCandidate` is the normalised artist shape the services work
with; :meth:`ArtistCandidate.from_api` flattens the raw ``genres`` and
``rating`` blocks that the detail and search endpoints return.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArtistCandidate(BaseModel):
    """An artist from the metadata provider.

    Several candidates may share a name; ``id`` (the MBID) is the only
    stable identity.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="MusicBrainz identifier (UUID).")
    name: str = ""
    sort_name: str | None = None
    country: str | None = None
    disambiguation: str | None = None
    genres: list[str] = Field(default_factory=list, description="Genre names, upstream order.")
    rating: float | None = Field(default=None, ge=0.0, le=5.0, description="0-5 community rating.")
    score: int | None = Field(default=None, description="Search relevance (search endpoints only).")

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ArtistCandidate:
        """Build a candidate from a raw MusicBrainz artist object."""
        rating_block = data.get("rating") or {}
        rating = rating_block.get("value") if isinstance(rating_block, dict) else None
        # Search results carry free-form ``tags`` instead of curated genres.
        genre_block = data.get("genres") or data.get("tags") or []
        genres = [g["name"] for g in genre_block if isinstance(g, dict) and g.get("name")]
        score = data.get("score")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            sort_name=data.get("sort-name"),
            country=data.get("country") or None,
            disambiguation=data.get("disambiguation") or None,
            genres=genres,
            rating=float(rating) if rating is not None else None,
            score=int(score) if score is not None else None,
        )


class ArtistSearchPage(BaseModel):
    """Envelope for ``artist?query=...`` search results."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    offset: int = 0
    artists: list[ArtistCandidate] = Field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ArtistSearchPage:
        return cls(
            count=int(data.get("count") or 0),
            offset=int(data.get("offset") or 0),
            artists=[ArtistCandidate.from_api(a) for a in data.get("artists") or []],
        )
