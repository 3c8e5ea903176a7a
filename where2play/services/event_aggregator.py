"""Event search by city or artist, enriched with MusicBrainz metadata.

Produces :class:`~where2play.models.events.EventRecord` lists for the two
search pages and the API.

City search
    setlist.fm city listings (cached 15 min) -> distinct artist MBIDs ->
    batch metadata fetch (each artist cached 24 h, at most two in flight)
    -> metadata merged into every record whose artist name matches.

Artist search
    MusicBrainz name search (``limit * 2`` candidates) -> exact name first,
    then rating descending -> top ``limit`` -> setlist.fm shows per artist
    (cached 1 h, at most two in flight) -> metadata merge -> dedupe on
    (artist, venue, date, city), first occurrence wins.

A failing setlist.fm city search or MusicBrainz name search comes back as
an empty :class:`QueryResult` carrying the error message.  Failed
enrichment of one artist is logged and that artist's records simply keep
``None`` for genre, country and popularity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from where2play.interfaces.cache_provider import ICacheProvider
from where2play.interfaces.music_db_provider import IArtistMetadataProvider
from where2play.interfaces.shows_provider import IShowsProvider
from where2play.models.events import EventRecord, QueryResult
from where2play.models.musicbrainz import ArtistCandidate
from where2play.models.setlist import SetlistShow
from where2play.services.artist_resolver import ArtistResolver
from where2play.utils.concurrency import DEFAULT_FANOUT, gather_successes
from where2play.utils.errors import ConfigurationError, ProviderError
from where2play.utils.formatting import parse_event_date
from where2play.utils.logging import get_logger

_UNKNOWN = "Unknown"

_CITY_CACHE_PREFIX = "setlist_city::"
_SHOWS_CACHE_PREFIX = "setlist_artist::"
_SHOWS_NOT_FOUND_PREFIX = "setlist_setlists_404::"
_ARTIST_CACHE_PREFIX = "mb_artist::"


@dataclass(frozen=True)
class ShowsBatch:
    """Shows per artist key from one fan-out, plus the keys that failed."""

    shows: dict[str, list[SetlistShow]] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)


def show_to_record(show: SetlistShow, fallback_city: str = _UNKNOWN) -> EventRecord:
    """Build an un-enriched record from one setlist.fm show."""
    city = show.city
    return EventRecord(
        artist_name=show.artist_name or _UNKNOWN,
        venue_name=(show.venue.name if show.venue and show.venue.name else _UNKNOWN),
        city_name=(city.name if city and city.name else fallback_city),
        event_date=parse_event_date(show.event_date),
        source_url=show.url,
    )


def dedupe_records(records: Iterable[EventRecord]) -> list[EventRecord]:
    """Drop records whose (artist, venue, date, city) was already seen."""
    seen: set[tuple[str, str, str | None, str]] = set()
    unique: list[EventRecord] = []
    for record in records:
        key = record.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


class EventAggregator:
    """Merges setlist.fm shows with MusicBrainz artist metadata.

    Parameters
    ----------
    shows_provider:
        setlist.fm adapter.
    metadata_provider:
        MusicBrainz adapter.
    resolver:
        Artist name / MBID to setlist.fm identifier resolver.
    cache:
        Shared response cache.
    city_ttl, metadata_ttl, shows_ttl, not_found_ttl:
        Cache lifetimes in seconds for city listings, artist metadata,
        artist show pages and "no setlists for this artist" markers.
    fanout:
        Concurrency ceiling for per-artist fetches within one call.
    """

    def __init__(
        self,
        shows_provider: IShowsProvider,
        metadata_provider: IArtistMetadataProvider,
        resolver: ArtistResolver,
        cache: ICacheProvider,
        city_ttl: float = 15 * 60,
        metadata_ttl: float = 24 * 60 * 60,
        shows_ttl: float = 60 * 60,
        not_found_ttl: float = 12 * 60 * 60,
        fanout: int = DEFAULT_FANOUT,
    ) -> None:
        self._shows = shows_provider
        self._metadata = metadata_provider
        self._resolver = resolver
        self._cache = cache
        self._city_ttl = city_ttl
        self._metadata_ttl = metadata_ttl
        self._shows_ttl = shows_ttl
        self._not_found_ttl = not_found_ttl
        self._fanout = fanout
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search_by_city(self, city: str) -> QueryResult[EventRecord]:
        """Events recently played in *city*, enriched with artist metadata."""
        city = (city or "").strip()
        if not city:
            return QueryResult()

        cache_key = f"{_CITY_CACHE_PREFIX}{city.lower()}"
        shows: list[SetlistShow] | None = await self._cache.get(cache_key)
        if shows is None:
            try:
                shows = await self._shows.search_setlists_by_city(city)
            except ProviderError as exc:
                self._logger.error(
                    "setlist_city_search_failed",
                    city=city,
                    status=exc.status_code,
                    error=str(exc),
                )
                return QueryResult.failure(exc.message)
            await self._cache.set(cache_key, shows, self._city_ttl)

        shows = [s for s in shows if s.artist is not None]
        records = [show_to_record(s, fallback_city=city) for s in shows]

        mbids = [s.artist_mbid for s in shows if s.artist_mbid]
        details = await self.get_artist_details_batch(mbids)

        # Metadata is keyed by name via the first show carrying that name.
        first_mbid: dict[str, str | None] = {}
        for show in shows:
            first_mbid.setdefault(show.artist_name or _UNKNOWN, show.artist_mbid)
        by_name: dict[str, ArtistCandidate] = {
            name: details[mbid]
            for name, mbid in first_mbid.items()
            if mbid and mbid in details
        }

        enriched = [
            r.with_metadata(by_name[r.artist_name]) if r.artist_name in by_name else r
            for r in records
        ]
        self._logger.info(
            "city_search_complete",
            city=city,
            event_count=len(enriched),
            enriched_artists=len(by_name),
        )
        return QueryResult(items=enriched)

    async def search_by_artist(self, artist_name: str, limit: int = 5) -> QueryResult[EventRecord]:
        """Recent shows of the artists best matching *artist_name*."""
        artist_name = (artist_name or "").strip()
        if not artist_name:
            return QueryResult()
        self.require_shows_provider()
        limit = max(1, limit)

        try:
            candidates = await self._metadata.search_artists_by_name(artist_name, limit * 2)
        except ProviderError as exc:
            self._logger.error("artist_name_search_failed", artist=artist_name, error=str(exc))
            return QueryResult.failure(exc.message)
        if not candidates:
            return QueryResult()

        folded = artist_name.casefold()
        ranked = sorted(
            candidates,
            key=lambda a: (a.name.casefold() != folded, -(a.rating or 0.0)),
        )[:limit]

        details = await self.get_artist_details_batch([a.id for a in ranked])
        shows_by_artist = await self.get_shows_for_artists([a.id for a in ranked])

        records: list[EventRecord] = []
        for artist in ranked:
            shows = shows_by_artist.get(artist.id)
            if not shows:
                continue
            meta = details.get(artist.id)
            for show in shows:
                record = show_to_record(show)
                if show.artist_name is None:
                    record = record.model_copy(update={"artist_name": artist.name})
                records.append(record.with_metadata(meta) if meta is not None else record)

        unique = dedupe_records(records)
        self._logger.info(
            "artist_search_complete",
            artist=artist_name,
            candidates=len(ranked),
            event_count=len(unique),
        )
        return QueryResult(items=unique)

    async def get_shows_for_artist(self, name_or_mbid: str) -> list[SetlistShow]:
        """Page 1 of an artist's setlists, cached.

        A 404 from setlist.fm is remembered for the not-found TTL; any other
        failure yields an empty list and is not cached.
        """
        try:
            return await self._load_artist_shows(name_or_mbid)
        except ProviderError:
            return []

    async def get_shows_for_artists(self, names_or_mbids: Iterable[str]) -> dict[str, list[SetlistShow]]:
        """Shows for several artists; artists with no shows are left out."""
        batch = await self.fetch_shows_batch(names_or_mbids)
        return batch.shows

    async def fetch_shows_batch(self, names_or_mbids: Iterable[str]) -> ShowsBatch:
        """Shows for several artists, keeping the ones whose lookup failed.

        An artist lands in ``failed`` when setlist.fm kept failing with a
        retryable status (or a transport error) on the resolve or the
        setlists call.  Artists with no shows are left out of ``shows``.
        """
        distinct = list(dict.fromkeys(n for n in names_or_mbids if n))
        fetched = await gather_successes(
            {key: self._load_artist_shows(key) for key in distinct},
            limit=self._fanout,
            logger=self._logger,
            error_msg="artist_shows_fetch_failed",
        )
        return ShowsBatch(
            shows={key: shows for key, shows in fetched.items() if shows},
            failed=[key for key in distinct if key not in fetched],
        )

    async def get_artist_details_batch(self, mbids: Iterable[str]) -> dict[str, ArtistCandidate]:
        """Metadata for each MBID, from cache where possible.

        Artists that fail or are unknown to MusicBrainz are omitted.
        """
        result: dict[str, ArtistCandidate] = {}
        to_fetch: list[str] = []
        for mbid in dict.fromkeys(m for m in mbids if m):
            cached = await self._cache.get(f"{_ARTIST_CACHE_PREFIX}{mbid}")
            if cached is not None:
                result[mbid] = cached
            else:
                to_fetch.append(mbid)

        if to_fetch:
            fetched = await gather_successes(
                {mbid: self._fetch_artist_details(mbid) for mbid in to_fetch},
                limit=self._fanout,
                logger=self._logger,
                error_msg="artist_metadata_fetch_failed",
            )
            result.update({mbid: a for mbid, a in fetched.items() if a is not None})
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _load_artist_shows(self, name_or_mbid: str) -> list[SetlistShow]:
        # Retryable failures are raised and never cached.
        query = (name_or_mbid or "").strip()
        if not query:
            return []
        normalized = query.lower()
        cache_key = f"{_SHOWS_CACHE_PREFIX}{normalized}"
        not_found_key = f"{_SHOWS_NOT_FOUND_PREFIX}{normalized}"

        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached
        if await self._cache.get(not_found_key):
            return []

        link = await self._resolver.resolve(query, raise_transient=True)
        if link is None or not link.metadata_provider_id:
            self._logger.info("artist_shows_unresolved", query=query)
            return []

        try:
            shows = await self._shows.get_artist_setlists(link.metadata_provider_id)
        except ProviderError as exc:
            self._logger.warning(
                "artist_setlists_failed",
                query=query,
                mbid=link.metadata_provider_id,
                status=exc.status_code,
                retryable=exc.retryable,
            )
            if exc.status_code == 404:
                await self._cache.set(not_found_key, True, self._not_found_ttl)
            elif exc.retryable:
                raise
            return []

        await self._cache.set(cache_key, shows, self._shows_ttl)
        return shows

    async def _fetch_artist_details(self, mbid: str) -> ArtistCandidate | None:
        artist = await self._metadata.get_artist_details(mbid)
        if artist is not None:
            await self._cache.set(f"{_ARTIST_CACHE_PREFIX}{mbid}", artist, self._metadata_ttl)
        return artist

    def require_shows_provider(self) -> None:
        """Raise ConfigurationError when setlist.fm has no API key."""
        if not self._shows.is_available():
            raise ConfigurationError(
                message="SETLISTFM_API_KEY is not configured; show listings are unavailable",
                provider_name=self._shows.get_provider_name(),
            )
