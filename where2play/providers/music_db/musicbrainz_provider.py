"""MusicBrainz provider implementing IArtistMetadataProvider.

Queries the MusicBrainz ws/2 JSON API for artist country, community rating
and genre tags.  Requests go through the shared :class:`RateLimitedFetcher`
under the ``"musicbrainz"`` policy, which enforces the documented limit of
one request per second and sends the identifying ``User-Agent``.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from where2play.interfaces.music_db_provider import IArtistMetadataProvider
from where2play.models.musicbrainz import ArtistCandidate, ArtistSearchPage
from where2play.providers.http.rate_limited_fetcher import RateLimitedFetcher, is_retryable_status
from where2play.utils.errors import ProviderError, RateLimitError
from where2play.utils.logging import get_logger

_PROVIDER = "musicbrainz"
_MAX_SEARCH_LIMIT = 100  # ws/2 search ceiling

logger = get_logger(__name__)


def _lucene_term(value: str) -> str:
    """Quote *value* for a Lucene field query when it is more than one word."""
    value = value.strip().replace('"', '\\"')
    return f'"{value}"' if any(ch.isspace() for ch in value) else value


class MusicBrainzProvider(IArtistMetadataProvider):
    """MusicBrainz artist-metadata provider.

    MusicBrainz is a free, open music encyclopedia.  No API key is
    required, but clients must identify themselves and respect the
    1 request/second rate limit; both are handled by the fetcher policy.
    """

    def __init__(self, fetcher: RateLimitedFetcher) -> None:
        self._fetcher = fetcher

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        none_on_404: bool = False,
    ) -> dict[str, Any] | None:
        result = await self._fetcher.fetch(_PROVIDER, path, params)
        if result.status_code == 404 and none_on_404:
            return None
        if not result.ok:
            if result.status_code == 429:
                raise RateLimitError(
                    message=f"MusicBrainz rate limit still exceeded after retries for '{path}'",
                    provider_name=_PROVIDER,
                )
            raise ProviderError(
                message=f"MusicBrainz request '{path}' failed with HTTP {result.status_code}",
                provider_name=_PROVIDER,
                status_code=result.status_code,
                retryable=is_retryable_status(result.status_code),
            )
        try:
            data = result.json()
        except ValueError as exc:
            raise ProviderError(
                message=f"MusicBrainz returned malformed JSON for '{path}'",
                provider_name=_PROVIDER,
            ) from exc
        if not isinstance(data, dict):
            raise ProviderError(
                message=f"MusicBrainz returned an unexpected payload for '{path}'",
                provider_name=_PROVIDER,
            )
        return data

    async def _search(self, query: str, limit: int) -> list[ArtistCandidate]:
        limit = max(1, min(limit, _MAX_SEARCH_LIMIT))
        data = await self._get_json("artist", {"query": query, "fmt": "json", "limit": limit})
        try:
            page = ArtistSearchPage.from_api(data or {})
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                message=f"MusicBrainz search '{query}' returned unusable artists",
                provider_name=_PROVIDER,
            ) from exc
        logger.debug(
            "musicbrainz_artist_search",
            query=query,
            result_count=len(page.artists),
        )
        return list(page.artists)

    # ------------------------------------------------------------------
    # IArtistMetadataProvider implementation
    # ------------------------------------------------------------------

    async def get_artist_details(self, mbid: str) -> ArtistCandidate | None:
        """Fetch one artist with ``inc=ratings+genres``; ``None`` on 404."""
        # The literal "+" separator must reach MusicBrainz unencoded.
        data = await self._get_json(
            f"artist/{mbid}?inc=ratings+genres&fmt=json",
            none_on_404=True,
        )
        if data is None:
            return None
        try:
            return ArtistCandidate.from_api(data)
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            raise ProviderError(
                message=f"MusicBrainz artist '{mbid}' returned an unusable payload",
                provider_name=_PROVIDER,
            ) from exc

    async def search_artists_by_genre(self, genre: str, limit: int = 25) -> list[ArtistCandidate]:
        """Artists tagged with *genre*, or whose name matches it."""
        term = _lucene_term(genre)
        return await self._search(f"tag:{term} OR artist:{term}", limit)

    async def search_artists_by_name(self, name: str, limit: int = 25) -> list[ArtistCandidate]:
        """Artists whose name matches *name* as a phrase."""
        escaped = name.strip().replace('"', '\\"')
        return await self._search(f'artist:"{escaped}"', limit)

    def get_provider_name(self) -> str:
        """Return the provider identifier."""
        return _PROVIDER
