"""Touring-city recommendations and genre-based artist discovery.

Answers "where does my kind of band play?": given a genre, a U.S. region
and a popularity tier, it samples genre-matching artists from MusicBrainz,
pulls each artist's recent setlist.fm shows, and counts the shows per city
inside the region.

Architecture overview
---------------------
  1. Region code -> state set.  Unknown codes fail with
     ``"Invalid region code"`` (distinct from a valid query with no hits).
  2. Popularity tier -> how many artists to sample (25 / 50 / 100).
  3. Artists tagged with the genre, highest rated first.
  4. Shows per artist, fetched through the aggregator (cached, two in
     flight at a time).
  5. Every show whose venue state is in the region increments its city's
     counter and contributes one "artist @ venue" reason.
  6. ``fit_score = round(count / max_count * 100)``; the busiest city is
     always 100.  Highest scores first, top 20.

Results are cached per (genre, region, tier) for a short TTL; the
background refresher recomputes them with ``refresh=True``.  A result that
missed some artists because setlist.fm kept failing is returned but not
cached, and when no city matched at all it becomes an error instead of an
empty success.

The same engine serves the similar-artist lookups: an artist's dominant
genres (counted across its top name matches) and artists sharing a genre.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from where2play.config.regions import BandPopularity, get_region_states
from where2play.interfaces.cache_provider import ICacheProvider
from where2play.interfaces.music_db_provider import IArtistMetadataProvider
from where2play.models.events import CityFit, QueryResult
from where2play.models.musicbrainz import ArtistCandidate
from where2play.services.event_aggregator import EventAggregator
from where2play.utils.errors import ProviderError
from where2play.utils.logging import get_logger

INVALID_REGION_ERROR = "Invalid region code"

_MAX_RESULTS = 20
_MAX_REASONS = 3
_GENRE_CANDIDATES = 5
_TOP_GENRES = 5
_SIMILAR_ARTIST_LIMIT = 12

_RECOMMEND_CACHE_PREFIX = "recommend_cities::"
_GENRES_CACHE_PREFIX = "artist_genres::"


@dataclass(frozen=True)
class SimilarArtists:
    """An artist's dominant genres and other artists sharing the top one."""

    artist: str
    genres: list[str] = field(default_factory=list)
    artists: list[ArtistCandidate] = field(default_factory=list)
    error: str = ""


def score_cities(
    counts: dict[str, int],
    reasons: dict[str, list[str]],
    max_results: int = _MAX_RESULTS,
    max_reasons: int = _MAX_REASONS,
) -> list[CityFit]:
    """Turn per-city show counts into ranked :class:`CityFit` entries."""
    if not counts:
        return []
    max_count = max(counts.values())
    fits = []
    for city, count in counts.items():
        city_reasons = reasons.get(city, [])
        shown = ", ".join(city_reasons[:max_reasons])
        suffix = "..." if len(city_reasons) > max_reasons else ""
        fits.append(
            CityFit(
                city=city,
                fit_score=round(count / max_count * 100),
                reason=f"Hosted {count} shows: {shown}{suffix}",
            )
        )
    fits.sort(key=lambda f: f.fit_score, reverse=True)
    return fits[:max_results]


class RecommendationEngine:
    """Ranks touring cities and finds artists by genre.

    Parameters
    ----------
    metadata_provider:
        MusicBrainz adapter used for the genre and name searches.
    aggregator:
        Supplies cached, bounded per-artist show and metadata fetches.
    cache:
        Shared response cache.
    recommendation_ttl:
        Seconds a (genre, region, tier) result stays cached.
    genre_ttl:
        Seconds an artist's genre aggregation stays cached.
    max_results, max_reasons:
        Output caps for :meth:`recommend_cities`.
    """

    def __init__(
        self,
        metadata_provider: IArtistMetadataProvider,
        aggregator: EventAggregator,
        cache: ICacheProvider,
        recommendation_ttl: float = 30 * 60,
        genre_ttl: float = 6 * 60 * 60,
        max_results: int = _MAX_RESULTS,
        max_reasons: int = _MAX_REASONS,
    ) -> None:
        self._metadata = metadata_provider
        self._aggregator = aggregator
        self._cache = cache
        self._recommendation_ttl = recommendation_ttl
        self._genre_ttl = genre_ttl
        self._max_results = max_results
        self._max_reasons = max_reasons
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # City recommendations
    # ------------------------------------------------------------------

    async def recommend_cities(
        self,
        genre: str,
        region: str,
        popularity: BandPopularity | str | None = BandPopularity.MEDIUM,
        refresh: bool = False,
    ) -> QueryResult[CityFit]:
        """Rank the cities in *region* that host the most *genre* shows.

        Parameters
        ----------
        genre:
            Genre tag to sample artists by.
        region:
            One of the region codes in :data:`~where2play.config.regions.REGIONS`.
        popularity:
            Tier deciding how many artists are sampled; strings are parsed
            leniently and default to medium.
        refresh:
            Skip the cached result and recompute.
        """
        states = get_region_states(region)
        if states is None:
            self._logger.warning("invalid_region_code", region=region)
            return QueryResult.failure(INVALID_REGION_ERROR)

        genre = (genre or "").strip()
        if not genre:
            return QueryResult()
        tier = popularity if isinstance(popularity, BandPopularity) else BandPopularity.parse(popularity)
        region_code = region.strip().upper()

        cache_key = f"{_RECOMMEND_CACHE_PREFIX}{genre.lower()}::{region_code}::{tier.value}"
        if not refresh:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return QueryResult(items=cached)

        try:
            artists = await self._metadata.search_artists_by_genre(genre, tier.artist_limit)
        except ProviderError as exc:
            self._logger.error("genre_artist_search_failed", genre=genre, error=str(exc))
            return QueryResult.failure(exc.message)

        top_artists = sorted(artists, key=lambda a: -(a.rating or 0.0))[: tier.artist_limit]
        if top_artists:
            self._aggregator.require_shows_provider()
        batch = await self._aggregator.fetch_shows_batch([a.id for a in top_artists])

        counts: dict[str, int] = {}
        reasons: dict[str, list[str]] = {}
        for artist in top_artists:
            for show in batch.shows.get(artist.id, []):
                city = show.city
                if city is None or not city.state_code or city.state_code not in states:
                    continue
                city_key = f"{city.name}, {city.state_code}"
                counts[city_key] = counts.get(city_key, 0) + 1
                venue = show.venue.name if show.venue and show.venue.name else "Unknown"
                reason = f"{artist.name} @ {venue}"
                city_reasons = reasons.setdefault(city_key, [])
                if reason not in city_reasons:
                    city_reasons.append(reason)

        fits = score_cities(counts, reasons, self._max_results, self._max_reasons)
        if batch.failed and not fits:
            self._logger.error(
                "recommend_cities_show_lookups_failed",
                genre=genre,
                region=region_code,
                failed_artists=len(batch.failed),
            )
            return QueryResult.failure(
                f"setlist.fm show lookups failed for {len(batch.failed)} of {len(top_artists)} artists"
            )

        self._logger.info(
            "recommend_cities_complete",
            genre=genre,
            region=region_code,
            tier=tier.value,
            artists_sampled=len(top_artists),
            failed_artists=len(batch.failed),
            city_count=len(fits),
        )
        # Partial results are served but not cached.
        if not batch.failed:
            await self._cache.set(cache_key, fits, self._recommendation_ttl)
        return QueryResult(items=fits)

    # ------------------------------------------------------------------
    # Similar artists
    # ------------------------------------------------------------------

    async def find_similar_artists(self, genre: str, limit: int = 10) -> QueryResult[ArtistCandidate]:
        """Artists tagged with (or named like) *genre*, in MusicBrainz order."""
        genre = (genre or "").strip()
        if not genre:
            return QueryResult()
        try:
            artists = await self._metadata.search_artists_by_genre(genre, max(1, limit))
        except ProviderError as exc:
            self._logger.error("genre_artist_search_failed", genre=genre, error=str(exc))
            return QueryResult.failure(exc.message)
        return QueryResult(items=artists[: max(1, limit)])

    async def get_artist_genres(self, artist_name: str) -> QueryResult[str]:
        """The five most frequent genres across the top name matches for *artist_name*.

        Candidates from the search that carry no genres are looked up in
        full; a failed lookup just contributes nothing.
        """
        artist_name = (artist_name or "").strip()
        if not artist_name:
            return QueryResult()

        cache_key = f"{_GENRES_CACHE_PREFIX}{artist_name.lower()}"
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return QueryResult(items=cached)

        try:
            candidates = await self._metadata.search_artists_by_name(artist_name, _GENRE_CANDIDATES)
        except ProviderError as exc:
            self._logger.error("artist_genre_search_failed", artist=artist_name, error=str(exc))
            return QueryResult.failure(exc.message)

        missing = [c.id for c in candidates if not c.genres]
        details = await self._aggregator.get_artist_details_batch(missing) if missing else {}

        # Counted case-insensitively; the first spelling seen is reported.
        counter: Counter[str] = Counter()
        spelling: dict[str, str] = {}
        for candidate in candidates:
            genres = candidate.genres or (details[candidate.id].genres if candidate.id in details else [])
            for genre in genres:
                folded = genre.casefold()
                spelling.setdefault(folded, genre)
                counter[folded] += 1

        top = [spelling[g] for g, _ in counter.most_common(_TOP_GENRES)]
        await self._cache.set(cache_key, top, self._genre_ttl)
        return QueryResult(items=top)

    async def similar_to_artist(self, artist_name: str, limit: int = _SIMILAR_ARTIST_LIMIT) -> SimilarArtists:
        """Genres of *artist_name*, then artists sharing its top genre."""
        genres = await self.get_artist_genres(artist_name)
        if not genres.ok:
            self._logger.warning("similar_artists_genres_failed", artist=artist_name, error=genres.error)
            return SimilarArtists(artist=artist_name, error=genres.error)
        if not genres.items:
            return SimilarArtists(artist=artist_name)

        artists = await self.find_similar_artists(genres.items[0], limit)
        if not artists.ok:
            self._logger.warning("similar_artists_search_failed", artist=artist_name, error=artists.error)
        return SimilarArtists(
            artist=artist_name,
            genres=list(genres.items),
            artists=list(artists.items),
            error=artists.error,
        )

