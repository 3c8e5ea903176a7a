"""Abstract base class for artist-metadata providers.

Defines the contract for querying a music encyclopedia (MusicBrainz) for
artist country, community rating and genre tags.  The adapter pattern keeps
the aggregation services independent of the concrete API.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from where2play.models.musicbrainz import ArtistCandidate


class IArtistMetadataProvider(ABC):
    """Contract for artist-metadata services."""

    @abstractmethod
    async def get_artist_details(self, mbid: str) -> ArtistCandidate | None:
        """Fetch one artist with rating and genres.

        Returns
        -------
        ArtistCandidate or None
            ``None`` when the provider has no artist with that id.

        Raises
        ------
        where2play.utils.errors.ProviderError
            If the call fails for any other reason.
        """

    @abstractmethod
    async def search_artists_by_genre(self, genre: str, limit: int = 25) -> list[ArtistCandidate]:
        """Return up to *limit* artists tagged with (or named like) *genre*."""

    @abstractmethod
    async def search_artists_by_name(self, name: str, limit: int = 25) -> list[ArtistCandidate]:
        """Return up to *limit* artists whose name matches *name*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"musicbrainz"``."""
