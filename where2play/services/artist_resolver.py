"""Cross-provider artist resolution.

setlist.fm and MusicBrainz share no identifier space for lookups by name,
so an artist is resolved by searching setlist.fm's artist index and picking
the best candidate with a fixed, ordered tie-break:

1. exact (case-sensitive) name match
2. case-insensitive name match
3. case-insensitive sort-name match
4. the first candidate, in provider order

setlist.fm returns duplicate, near-identical names with inconsistent
casing; existing lookups depend on this exact order.

Successful resolutions are cached for a long TTL.  "Not found" outcomes
(zero candidates, or a non-retryable failure) go to a separate, shorter
negative cache.  A failure that was still transient after retries caches
nothing, and neither does a cancelled lookup.
"""

from __future__ import annotations

import re
from typing import Sequence

from where2play.interfaces.cache_provider import ICacheProvider
from where2play.interfaces.shows_provider import IShowsProvider
from where2play.models.events import ResolvedArtistLink
from where2play.models.setlist import SetlistArtistCandidate
from where2play.utils.errors import ProviderError
from where2play.utils.logging import get_logger

# setlist.fm artist pages end in "-<hex id>.html", e.g. ".../radiohead-bd6bd12.html".
_SHOWS_ID_PATTERN = re.compile(r"-([a-f0-9]+)\.html$", re.IGNORECASE)

_LINK_CACHE_PREFIX = "setlist_artist_lookup::"
_NOT_FOUND_CACHE_PREFIX = "setlist_artist_lookup_404::"

_DEFAULT_LINK_TTL = 24 * 60 * 60
_DEFAULT_NOT_FOUND_TTL = 12 * 60 * 60


def best_match(candidates: Sequence[SetlistArtistCandidate], query: str) -> SetlistArtistCandidate:
    """Pick the candidate for *query* using the ordered tie-break above.

    Raises
    ------
    ValueError
        If *candidates* is empty.
    """
    if not candidates:
        raise ValueError("best_match() requires at least one candidate")
    folded = query.casefold()
    for candidate in candidates:
        if candidate.name == query:
            return candidate
    for candidate in candidates:
        if candidate.name is not None and candidate.name.casefold() == folded:
            return candidate
    for candidate in candidates:
        if candidate.sort_name is not None and candidate.sort_name.casefold() == folded:
            return candidate
    return candidates[0]


def extract_shows_provider_id(url: str | None) -> str | None:
    """Return the trailing hex id of a setlist.fm artist URL, or ``None``."""
    if not url:
        return None
    match = _SHOWS_ID_PATTERN.search(url)
    return match.group(1) if match else None


class ArtistResolver:
    """Maps an artist name or MBID to setlist.fm's identifiers for that artist.

    Parameters
    ----------
    shows_provider:
        Provider whose artist search is queried.
    cache:
        Shared response cache for the positive and negative entries.
    link_ttl:
        Seconds a successful resolution stays cached.
    not_found_ttl:
        Seconds an "artist not found" marker stays cached.
    """

    def __init__(
        self,
        shows_provider: IShowsProvider,
        cache: ICacheProvider,
        link_ttl: float = _DEFAULT_LINK_TTL,
        not_found_ttl: float = _DEFAULT_NOT_FOUND_TTL,
    ) -> None:
        self._shows = shows_provider
        self._cache = cache
        self._link_ttl = link_ttl
        self._not_found_ttl = not_found_ttl
        self._logger = get_logger(__name__)

    async def resolve(self, name_or_mbid: str, raise_transient: bool = False) -> ResolvedArtistLink | None:
        """Resolve *name_or_mbid* to a :class:`ResolvedArtistLink`.

        Returns ``None`` when the artist cannot be found or the lookup
        failed.  With *raise_transient*, a retryable failure is re-raised
        instead so the caller can tell an outage from a miss; it is never
        cached either way.  :class:`~where2play.utils.errors.ConfigurationError`
        (missing API key) propagates.
        """
        query = (name_or_mbid or "").strip()
        if not query:
            return None
        normalized = query.lower()
        link_key = f"{_LINK_CACHE_PREFIX}{normalized}"
        not_found_key = f"{_NOT_FOUND_CACHE_PREFIX}{normalized}"

        cached = await self._cache.get(link_key)
        if cached is not None:
            return cached
        if await self._cache.get(not_found_key):
            self._logger.debug("artist_lookup_negative_cache_hit", query=query)
            return None

        try:
            candidates = await self._shows.search_artists(query)
        except ProviderError as exc:
            self._logger.warning(
                "artist_lookup_failed",
                query=query,
                status=exc.status_code,
                retryable=exc.retryable,
                error=str(exc),
            )
            if not exc.retryable:
                await self._cache.set(not_found_key, True, self._not_found_ttl)
            elif raise_transient:
                raise
            return None

        if not candidates:
            self._logger.info("artist_lookup_no_candidates", query=query)
            await self._cache.set(not_found_key, True, self._not_found_ttl)
            return None

        chosen = best_match(candidates, query)
        link = ResolvedArtistLink(
            metadata_provider_id=chosen.mbid or None,
            shows_provider_id=extract_shows_provider_id(chosen.url),
        )
        self._logger.info(
            "artist_lookup_resolved",
            query=query,
            chosen=chosen.name,
            shows_provider_id=link.shows_provider_id,
            mbid=link.metadata_provider_id,
        )
        await self._cache.set(link_key, link, self._link_ttl)
        return link

    async def resolve_shows_provider_id(self, name_or_mbid: str) -> str | None:
        """Shortcut for ``resolve(...).shows_provider_id``."""
        link = await self.resolve(name_or_mbid)
        return link.shows_provider_id if link else None
