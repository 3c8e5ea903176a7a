"""Shared pytest fixtures for the Where2Play test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from where2play.interfaces.music_db_provider import IArtistMetadataProvider
from where2play.interfaces.shows_provider import IShowsProvider
from where2play.models.musicbrainz import ArtistCandidate
from where2play.models.setlist import SetlistArtistCandidate, SetlistShow
from where2play.providers.cache.memory_cache import MemoryCacheProvider

# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------


def make_show(
    artist: str | None = "Jason Isbell",
    mbid: str | None = "mbid-isbell",
    venue: str | None = "Ryman Auditorium",
    city: str | None = "Nashville",
    state_code: str | None = "TN",
    event_date: str | None = "12-05-2024",
    url: str | None = None,
) -> SetlistShow:
    """Build a setlist.fm show from wire-shaped data."""
    data: dict[str, Any] = {"eventDate": event_date, "url": url}
    if artist is not None or mbid is not None:
        data["artist"] = {"name": artist, "mbid": mbid}
    if venue is not None or city is not None:
        data["venue"] = {
            "name": venue,
            "city": {"name": city, "stateCode": state_code} if city is not None else None,
        }
    return SetlistShow.model_validate(data)


def make_artist(
    mbid: str = "mbid-isbell",
    name: str = "Jason Isbell",
    rating: float | None = 4.0,
    genres: list[str] | None = None,
    country: str | None = "US",
    sort_name: str | None = None,
) -> ArtistCandidate:
    return ArtistCandidate(
        id=mbid,
        name=name,
        sort_name=sort_name,
        country=country,
        genres=genres if genres is not None else ["country", "americana"],
        rating=rating,
    )


def make_setlist_artist(
    name: str | None,
    mbid: str | None = None,
    sort_name: str | None = None,
    url: str | None = None,
) -> SetlistArtistCandidate:
    return SetlistArtistCandidate.model_validate(
        {"name": name, "mbid": mbid, "sortName": sort_name, "url": url}
    )


# ---------------------------------------------------------------------------
# Fake time
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock with a matching async sleep."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Providers and cache
# ---------------------------------------------------------------------------


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCacheProvider:
    """A cache driven by the fake clock, so TTL expiry can be stepped."""
    return MemoryCacheProvider(max_size=1000, timer=clock)


@pytest.fixture
def shows_provider() -> MagicMock:
    """setlist.fm stand-in with an API key configured."""
    provider = MagicMock(spec=IShowsProvider)
    provider.search_setlists_by_city = AsyncMock(return_value=[])
    provider.search_artists = AsyncMock(return_value=[])
    provider.get_artist_setlists = AsyncMock(return_value=[])
    provider.get_provider_name.return_value = "setlistfm"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def metadata_provider() -> MagicMock:
    """MusicBrainz stand-in."""
    provider = MagicMock(spec=IArtistMetadataProvider)
    provider.get_artist_details = AsyncMock(return_value=None)
    provider.search_artists_by_genre = AsyncMock(return_value=[])
    provider.search_artists_by_name = AsyncMock(return_value=[])
    provider.get_provider_name.return_value = "musicbrainz"
    return provider
