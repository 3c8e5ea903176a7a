"""setlist.fm REST 1.0 provider implementing IShowsProvider.

All requests go through the shared :class:`RateLimitedFetcher` under the
``"setlistfm"`` policy, which carries the ``x-api-key`` and ``User-Agent``
headers and the ~700 ms request spacing setlist.fm tolerates.

setlist.fm answers a search with no matches with ``404``; the two search
endpoints map that to an empty list.  A ``404`` from the per-artist setlist
endpoint is raised as a :class:`ProviderError` so callers can cache it.
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import ValidationError

from where2play.interfaces.shows_provider import IShowsProvider
from where2play.models.setlist import SetlistArtistCandidate, SetlistArtistSearch, SetlistPage, SetlistShow
from where2play.providers.http.rate_limited_fetcher import RateLimitedFetcher, is_retryable_status
from where2play.utils.errors import ConfigurationError, ProviderError, RateLimitError
from where2play.utils.logging import get_logger

_PROVIDER = "setlistfm"
_ERROR_BODY_PREVIEW = 200

logger = get_logger(__name__)


def looks_like_mbid(value: str) -> bool:
    """Return ``True`` if *value* parses as a UUID (i.e. a MusicBrainz id)."""
    try:
        uuid.UUID(value.strip())
    except (ValueError, AttributeError):
        return False
    return True


class SetlistFmProvider(IShowsProvider):
    """setlist.fm adapter: city listings, artist search, artist setlists.

    Parameters
    ----------
    fetcher:
        Shared throttled fetcher with a ``"setlistfm"`` policy registered.
    api_key:
        setlist.fm API key.  An empty key makes every call raise
        :class:`ConfigurationError`.
    """

    def __init__(self, fetcher: RateLimitedFetcher, api_key: str = "") -> None:
        self._fetcher = fetcher
        self._api_key = api_key

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                message="SETLISTFM_API_KEY is not configured; setlist.fm lookups are unavailable",
                provider_name=_PROVIDER,
            )

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        empty_on_404: bool = False,
    ) -> dict[str, Any] | None:
        self._require_key()
        result = await self._fetcher.fetch(_PROVIDER, path, params)

        if result.status_code == 404 and empty_on_404:
            return None
        if not result.ok:
            logger.warning(
                "setlistfm_request_failed",
                path=path,
                status=result.status_code,
                body=result.body[:_ERROR_BODY_PREVIEW],
            )
            if result.status_code == 429:
                raise RateLimitError(
                    message=f"setlist.fm rate limit still exceeded after retries for '{path}'",
                    provider_name=_PROVIDER,
                )
            raise ProviderError(
                message=f"setlist.fm request '{path}' failed with HTTP {result.status_code}",
                provider_name=_PROVIDER,
                status_code=result.status_code,
                retryable=is_retryable_status(result.status_code),
            )

        try:
            data = result.json()
        except ValueError as exc:
            raise ProviderError(
                message=f"setlist.fm returned malformed JSON for '{path}'",
                provider_name=_PROVIDER,
            ) from exc
        if not isinstance(data, dict):
            raise ProviderError(
                message=f"setlist.fm returned an unexpected payload for '{path}'",
                provider_name=_PROVIDER,
            )
        return data

    @staticmethod
    def _parse_page(data: dict[str, Any] | None, path: str) -> list[SetlistShow]:
        if data is None:
            return []
        try:
            return list(SetlistPage.model_validate(data).setlist)
        except ValidationError as exc:
            raise ProviderError(
                message=f"setlist.fm setlist page for '{path}' did not validate: {exc.error_count()} errors",
                provider_name=_PROVIDER,
            ) from exc

    # ------------------------------------------------------------------
    # IShowsProvider implementation
    # ------------------------------------------------------------------

    async def search_setlists_by_city(self, city: str) -> list[SetlistShow]:
        """Return page 1 of ``search/setlists?cityName=...``."""
        path = "search/setlists"
        data = await self._get_json(path, {"cityName": city, "p": 1}, empty_on_404=True)
        shows = self._parse_page(data, path)
        logger.debug("setlistfm_city_search", city=city, show_count=len(shows))
        return shows

    async def search_artists(self, name_or_mbid: str) -> list[SetlistArtistCandidate]:
        """Search by ``artistMbid`` for UUID-shaped input, else by ``artistName``."""
        query = name_or_mbid.strip()
        params = {"artistMbid": query} if looks_like_mbid(query) else {"artistName": query}
        data = await self._get_json("search/artists", params, empty_on_404=True)
        if data is None:
            return []
        try:
            candidates = list(SetlistArtistSearch.model_validate(data).artist)
        except ValidationError as exc:
            raise ProviderError(
                message=f"setlist.fm artist search for '{query}' did not validate",
                provider_name=_PROVIDER,
            ) from exc
        logger.debug("setlistfm_artist_search", query=query, candidate_count=len(candidates))
        return candidates

    async def get_artist_setlists(self, mbid: str, page: int = 1) -> list[SetlistShow]:
        """Return one page of ``artist/{mbid}/setlists``; 404 raises ProviderError."""
        path = f"artist/{mbid}/setlists"
        data = await self._get_json(path, {"p": page})
        return self._parse_page(data, path)

    def get_provider_name(self) -> str:
        """Return the provider identifier."""
        return _PROVIDER

    def is_available(self) -> bool:
        """setlist.fm requires an API key."""
        return bool(self._api_key)
