"""Unit tests for EventAggregator city and artist searches."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from tests.conftest import make_artist, make_setlist_artist, make_show
from where2play.models.events import EventRecord
from where2play.services.artist_resolver import ArtistResolver
from where2play.services.event_aggregator import EventAggregator, dedupe_records, show_to_record
from where2play.utils.errors import ConfigurationError, ProviderError


@pytest.fixture()
def aggregator(shows_provider, metadata_provider, cache) -> EventAggregator:
    resolver = ArtistResolver(shows_provider, cache)
    return EventAggregator(shows_provider, metadata_provider, resolver, cache, fanout=2)


# ======================================================================
# Helpers
# ======================================================================


class TestShowToRecord:
    def test_maps_fields_and_parses_date(self) -> None:
        record = show_to_record(make_show(url="https://www.setlist.fm/setlist/x.html"))
        assert record.artist_name == "Jason Isbell"
        assert record.venue_name == "Ryman Auditorium"
        assert record.city_name == "Nashville"
        assert record.event_date == date(2024, 5, 12)
        assert record.source_url == "https://www.setlist.fm/setlist/x.html"
        assert record.genre is None

    def test_unparseable_date_is_none(self) -> None:
        assert show_to_record(make_show(event_date="2024-05-12")).event_date is None

    def test_missing_venue_and_city_fall_back(self) -> None:
        record = show_to_record(make_show(venue=None, city=None), fallback_city="Austin")
        assert record.venue_name == "Unknown"
        assert record.city_name == "Austin"


class TestDedupe:
    def test_first_occurrence_wins(self) -> None:
        first = EventRecord(artist_name="A", venue_name="V", city_name="C", event_date=date(2024, 1, 1))
        dup = first.model_copy(update={"source_url": "other"})
        other = first.model_copy(update={"event_date": date(2024, 1, 2)})

        assert dedupe_records([first, dup, other]) == [first, other]


# ======================================================================
# City search
# ======================================================================


class TestSearchByCity:
    @pytest.mark.asyncio
    async def test_enriches_known_artists_only(self, aggregator, shows_provider, metadata_provider) -> None:
        shows_provider.search_setlists_by_city.return_value = [
            make_show(),
            make_show(artist="Local Openers", mbid=None, venue="The Basement"),
            make_show(artist=None, mbid=None),
        ]
        metadata_provider.get_artist_details.return_value = make_artist(
            rating=4.0, genres=["country", "americana", "folk", "rock"]
        )

        result = await aggregator.search_by_city("Nashville")

        assert result.ok
        assert len(result.items) == 2
        isbell, openers = result.items
        assert isbell.popularity == "80%"
        assert isbell.country == "US"
        assert isbell.genre == "country, americana, folk"
        assert openers.popularity is None
        assert openers.genre is None
        metadata_provider.get_artist_details.assert_awaited_once_with("mbid-isbell")

    @pytest.mark.asyncio
    async def test_city_listing_is_cached(self, aggregator, shows_provider) -> None:
        shows_provider.search_setlists_by_city.return_value = [make_show(mbid=None)]

        await aggregator.search_by_city("Nashville")
        await aggregator.search_by_city("nashville")

        assert shows_provider.search_setlists_by_city.await_count == 1

    @pytest.mark.asyncio
    async def test_artist_metadata_is_cached_across_searches(
        self, aggregator, shows_provider, metadata_provider
    ) -> None:
        shows_provider.search_setlists_by_city.side_effect = [[make_show()], [make_show(city="Memphis")]]
        metadata_provider.get_artist_details.return_value = make_artist()

        await aggregator.search_by_city("Nashville")
        await aggregator.search_by_city("Memphis")

        assert metadata_provider.get_artist_details.await_count == 1

    @pytest.mark.asyncio
    async def test_provider_failure_returns_error(self, aggregator, shows_provider) -> None:
        shows_provider.search_setlists_by_city.side_effect = ProviderError(
            "setlist.fm request failed with HTTP 500", provider_name="setlistfm", status_code=500, retryable=True
        )

        result = await aggregator.search_by_city("Nashville")

        assert not result.ok
        assert result.items == []
        assert "HTTP 500" in result.error

    @pytest.mark.asyncio
    async def test_failed_enrichment_keeps_records(self, aggregator, shows_provider, metadata_provider) -> None:
        shows_provider.search_setlists_by_city.return_value = [make_show()]
        metadata_provider.get_artist_details.side_effect = ProviderError("down", status_code=503, retryable=True)

        result = await aggregator.search_by_city("Nashville")

        assert result.ok
        assert result.items[0].artist_name == "Jason Isbell"
        assert result.items[0].popularity is None

    @pytest.mark.asyncio
    async def test_blank_city_is_empty_success(self, aggregator, shows_provider) -> None:
        result = await aggregator.search_by_city("  ")
        assert result.ok and result.items == []
        shows_provider.search_setlists_by_city.assert_not_awaited()


# ======================================================================
# Artist search
# ======================================================================


class TestSearchByArtist:
    @pytest.mark.asyncio
    async def test_exact_name_ranked_first_and_deduped(
        self, aggregator, shows_provider, metadata_provider
    ) -> None:
        tribute = make_artist(mbid="tribute", name="Isbell Tribute", rating=5.0)
        isbell = make_artist(mbid="isbell", name="Jason Isbell", rating=3.0)
        metadata_provider.search_artists_by_name.return_value = [tribute, isbell]
        metadata_provider.get_artist_details.side_effect = lambda mbid: {
            "tribute": tribute,
            "isbell": isbell,
        }[mbid]
        shows_provider.search_artists.return_value = [make_setlist_artist("Jason Isbell", mbid="isbell")]
        shows_provider.get_artist_setlists.return_value = [
            make_show(mbid="isbell"),
            make_show(mbid="isbell"),
            make_show(mbid="isbell", venue="Mercy Lounge", event_date="01-06-2024"),
        ]

        result = await aggregator.search_by_artist("Jason Isbell", limit=1)

        metadata_provider.search_artists_by_name.assert_awaited_once_with("Jason Isbell", 2)
        shows_provider.get_artist_setlists.assert_awaited_once_with("isbell")
        assert result.ok
        assert [r.venue_name for r in result.items] == ["Ryman Auditorium", "Mercy Lounge"]
        assert all(r.popularity == "60%" for r in result.items)

    @pytest.mark.asyncio
    async def test_show_without_artist_uses_candidate_name(
        self, aggregator, shows_provider, metadata_provider
    ) -> None:
        metadata_provider.search_artists_by_name.return_value = [make_artist(mbid="x", name="Slowdive")]
        shows_provider.search_artists.return_value = [make_setlist_artist("Slowdive", mbid="x")]
        shows_provider.get_artist_setlists.return_value = [make_show(artist=None, mbid=None)]

        result = await aggregator.search_by_artist("Slowdive")

        assert result.items[0].artist_name == "Slowdive"

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self, aggregator, shows_provider, metadata_provider) -> None:
        shows_provider.is_available.return_value = False
        with pytest.raises(ConfigurationError):
            await aggregator.search_by_artist("Jason Isbell")
        metadata_provider.search_artists_by_name.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_name_search_failure_returns_error(self, aggregator, metadata_provider) -> None:
        metadata_provider.search_artists_by_name.side_effect = ProviderError("MusicBrainz down", status_code=503)
        result = await aggregator.search_by_artist("Jason Isbell")
        assert result.error == "MusicBrainz down"

    @pytest.mark.asyncio
    async def test_no_candidates_is_empty_success(self, aggregator) -> None:
        result = await aggregator.search_by_artist("Nobody At All")
        assert result.ok and result.items == []


# ======================================================================
# Per-artist shows
# ======================================================================


class TestGetShowsForArtist:
    @pytest.mark.asyncio
    async def test_shows_are_cached(self, aggregator, shows_provider) -> None:
        shows_provider.search_artists.return_value = [make_setlist_artist("Jason Isbell", mbid="isbell")]
        shows_provider.get_artist_setlists.return_value = [make_show()]

        await aggregator.get_shows_for_artist("Jason Isbell")
        shows = await aggregator.get_shows_for_artist("Jason Isbell")

        assert len(shows) == 1
        assert shows_provider.get_artist_setlists.await_count == 1

    @pytest.mark.asyncio
    async def test_404_is_negatively_cached(self, aggregator, shows_provider) -> None:
        shows_provider.search_artists.return_value = [make_setlist_artist("Quiet Band", mbid="quiet")]
        shows_provider.get_artist_setlists.side_effect = ProviderError("no setlists", status_code=404)

        assert await aggregator.get_shows_for_artist("Quiet Band") == []
        assert await aggregator.get_shows_for_artist("Quiet Band") == []
        assert shows_provider.get_artist_setlists.await_count == 1

    @pytest.mark.asyncio
    async def test_transient_failure_is_not_cached(self, aggregator, shows_provider) -> None:
        shows_provider.search_artists.return_value = [make_setlist_artist("Busy Band", mbid="busy")]
        shows_provider.get_artist_setlists.side_effect = ProviderError("busy", status_code=503, retryable=True)

        await aggregator.get_shows_for_artist("Busy Band")
        await aggregator.get_shows_for_artist("Busy Band")

        assert shows_provider.get_artist_setlists.await_count == 2

    @pytest.mark.asyncio
    async def test_unresolved_artist_has_no_shows(self, aggregator, shows_provider) -> None:
        assert await aggregator.get_shows_for_artist("Nobody") == []
        shows_provider.get_artist_setlists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batch_drops_artists_without_shows(self, aggregator, shows_provider) -> None:
        shows_provider.search_artists.side_effect = lambda q: [make_setlist_artist(q, mbid=q)]
        shows_provider.get_artist_setlists.side_effect = lambda mbid: [make_show()] if mbid == "a" else []

        result = await aggregator.get_shows_for_artists(["a", "b", "a"])

        assert list(result) == ["a"]

    @pytest.mark.asyncio
    async def test_batch_reports_transient_failures(self, aggregator, shows_provider) -> None:
        def search(query):
            if query == "down":
                raise ProviderError("unavailable", status_code=503, retryable=True)
            return [make_setlist_artist(query, mbid=query)]

        def setlists(mbid):
            if mbid == "flaky":
                raise ProviderError("bad gateway", status_code=502, retryable=True)
            return [make_show()] if mbid == "up" else []

        shows_provider.search_artists.side_effect = search
        shows_provider.get_artist_setlists.side_effect = setlists

        batch = await aggregator.fetch_shows_batch(["up", "quiet", "down", "flaky"])

        assert list(batch.shows) == ["up"]
        assert sorted(batch.failed) == ["down", "flaky"]


# ======================================================================
# Fan-out and cancellation
# ======================================================================


class TestFanoutAndCancellation:
    @pytest.mark.asyncio
    async def test_show_fetches_stay_within_fanout(self, aggregator, shows_provider) -> None:
        in_flight = {"now": 0, "peak": 0}

        async def setlists(mbid):
            in_flight["now"] += 1
            in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
            for _ in range(3):
                await asyncio.sleep(0)
            in_flight["now"] -= 1
            return [make_show(artist=mbid, mbid=mbid)]

        shows_provider.search_artists.side_effect = lambda q: [make_setlist_artist(q, mbid=q)]
        shows_provider.get_artist_setlists.side_effect = setlists

        result = await aggregator.get_shows_for_artists([f"artist-{i}" for i in range(6)])

        assert len(result) == 6
        assert in_flight["peak"] == 2

    @pytest.mark.asyncio
    async def test_metadata_fetches_stay_within_fanout(self, aggregator, metadata_provider) -> None:
        in_flight = {"now": 0, "peak": 0}

        async def details(mbid):
            in_flight["now"] += 1
            in_flight["peak"] = max(in_flight["peak"], in_flight["now"])
            for _ in range(3):
                await asyncio.sleep(0)
            in_flight["now"] -= 1
            return make_artist(mbid=mbid)

        metadata_provider.get_artist_details.side_effect = details

        result = await aggregator.get_artist_details_batch([f"mbid-{i}" for i in range(5)])

        assert len(result) == 5
        assert in_flight["peak"] == 2

    @pytest.mark.asyncio
    async def test_cancelled_city_search_propagates_and_caches_nothing(
        self, aggregator, shows_provider, cache
    ) -> None:
        shows_provider.search_setlists_by_city.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await aggregator.search_by_city("Nashville")

        assert await cache.exists("setlist_city::nashville") is False

    @pytest.mark.asyncio
    async def test_cancelled_enrichment_propagates(self, aggregator, shows_provider, metadata_provider, cache) -> None:
        shows_provider.search_setlists_by_city.return_value = [make_show()]
        metadata_provider.get_artist_details.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await aggregator.search_by_city("Nashville")

        assert await cache.exists("mb_artist::mbid-isbell") is False

    @pytest.mark.asyncio
    async def test_cancelled_show_fetch_propagates_and_caches_nothing(
        self, aggregator, shows_provider, cache
    ) -> None:
        shows_provider.search_artists.return_value = [make_setlist_artist("Jason Isbell", mbid="isbell")]
        shows_provider.get_artist_setlists.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await aggregator.get_shows_for_artists(["Jason Isbell"])

        assert await cache.exists("setlist_artist::jason isbell") is False
        assert await cache.exists("setlist_setlists_404::jason isbell") is False

    @pytest.mark.asyncio
    async def test_cancelled_artist_lookup_caches_nothing(self, aggregator, shows_provider, cache) -> None:
        shows_provider.search_artists.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await aggregator.get_shows_for_artists(["Jason Isbell"])

        assert await cache.exists("setlist_artist::jason isbell") is False
        assert await cache.exists("setlist_setlists_404::jason isbell") is False
        assert await cache.exists("setlist_artist_lookup_404::jason isbell") is False
