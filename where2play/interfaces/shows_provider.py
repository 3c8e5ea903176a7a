"""Abstract base class for concert / setlist providers.

The shows provider answers "what played where": show listings by city,
artist candidates by name or MBID, and an artist's recent shows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from where2play.models.setlist import SetlistArtistCandidate, SetlistShow


class IShowsProvider(ABC):
    """Contract for setlist-style show databases.

    Implementations raise :class:`~where2play.utils.errors.ProviderError`
    for failing or malformed responses and
    :class:`~where2play.utils.errors.ConfigurationError` when a required
    credential is missing.  They do no caching of their own.
    """

    @abstractmethod
    async def search_setlists_by_city(self, city: str) -> list[SetlistShow]:
        """Return the first page of shows played in *city*."""

    @abstractmethod
    async def search_artists(self, name_or_mbid: str) -> list[SetlistArtistCandidate]:
        """Search artists by free-text name or by MBID (UUID syntax).

        Returns
        -------
        list[SetlistArtistCandidate]
            Candidates in provider order; may be empty.
        """

    @abstractmethod
    async def get_artist_setlists(self, mbid: str, page: int = 1) -> list[SetlistShow]:
        """Return one page of shows for the artist identified by *mbid*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"setlistfm"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured for use."""
