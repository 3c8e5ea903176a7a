"""Integration tests for the FastAPI endpoints using TestClient.

The app is built by ``create_app`` (real middleware and routers); the
services on ``app.state`` are mocks so no request leaves the process.
The client is not entered as a context manager, so the lifespan (which
would build live providers) does not run.
"""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tests.conftest import make_artist
from where2play.main import create_app
from where2play.models.events import CityFit, EventRecord, QueryResult
from where2play.models.parking import ParkingEvent, ParkingSpot
from where2play.services.event_aggregator import EventAggregator
from where2play.services.parking_service import ParkingService
from where2play.services.recommendation_service import (
    INVALID_REGION_ERROR,
    RecommendationEngine,
    SimilarArtists,
)
from where2play.utils.errors import ConfigurationError


def _record(**overrides) -> EventRecord:
    data = {
        "artist_name": "Jason Isbell",
        "genre": "country, americana",
        "country": "US",
        "popularity": "80%",
        "venue_name": "Ryman Auditorium",
        "city_name": "Nashville",
        "event_date": date(2024, 5, 12),
    }
    data.update(overrides)
    return EventRecord(**data)


@pytest.fixture
def services() -> dict[str, MagicMock]:
    aggregator = MagicMock(spec=EventAggregator)
    aggregator.search_by_city = AsyncMock(return_value=QueryResult(items=[_record()]))
    aggregator.search_by_artist = AsyncMock(return_value=QueryResult(items=[_record()]))

    engine = MagicMock(spec=RecommendationEngine)
    engine.recommend_cities = AsyncMock(
        return_value=QueryResult(items=[CityFit(city="Austin, TX", fit_score=100, reason="Hosted 3 shows")])
    )
    engine.find_similar_artists = AsyncMock(return_value=QueryResult(items=[make_artist()]))
    engine.similar_to_artist = AsyncMock(
        return_value=SimilarArtists(artist="Slowdive", genres=["shoegaze"], artists=[make_artist()])
    )

    parking = MagicMock(spec=ParkingService)
    parking.search_events = AsyncMock(return_value=[ParkingEvent(id=1, title="Isbell")])
    parking.get_all_parking = AsyncMock(return_value=[])
    parking.get_parking_for_event = AsyncMock(return_value=[ParkingSpot(id="lot-7", name="Garage")])
    parking.get_parking_by_location = AsyncMock(return_value=[])

    return {"aggregator": aggregator, "engine": engine, "parking": parking}


@pytest.fixture
def client(services) -> TestClient:
    app = create_app()
    app.state.aggregator = services["aggregator"]
    app.state.recommendation_engine = services["engine"]
    app.state.parking_service = services["parking"]
    app.state.max_artist_limit = 25
    app.state.provider_registry = {"setlistfm": True, "musicbrainz": True, "eventparking": True}
    return TestClient(app)


# ---------------------------------------------------------------------------
# Event searches
# ---------------------------------------------------------------------------


class TestSearchByCity:
    def test_returns_events(self, client: TestClient) -> None:
        response = client.get("/api/v1/search/by-city", params={"q": "Nashville"})

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == "Nashville"
        assert body["count"] == 1
        assert body["events"][0]["popularity"] == "80%"
        assert body["events"][0]["event_date"] == "2024-05-12"

    def test_legacy_path(self, client: TestClient) -> None:
        response = client.get("/api/music/searchbycity", params={"q": "Nashville"})
        assert response.status_code == 200

    @pytest.mark.parametrize("params", [{}, {"q": "   "}])
    def test_missing_query_is_400(self, client: TestClient, params) -> None:
        assert client.get("/api/v1/search/by-city", params=params).status_code == 400

    def test_no_events_is_404(self, client: TestClient, services) -> None:
        services["aggregator"].search_by_city.return_value = QueryResult()
        assert client.get("/api/v1/search/by-city", params={"q": "Nowhere"}).status_code == 404

    def test_upstream_failure_is_502(self, client: TestClient, services) -> None:
        services["aggregator"].search_by_city.return_value = QueryResult.failure("HTTP 500")
        response = client.get("/api/v1/search/by-city", params={"q": "Nashville"})
        assert response.status_code == 502
        assert response.json()["detail"] == "HTTP 500"


class TestEventsByArtist:
    def test_artist_limit_is_clamped(self, client: TestClient, services) -> None:
        response = client.get(
            "/api/v1/recommendations/events-by-artist",
            params={"artist": "Jason Isbell", "artistLimit": 100},
        )
        assert response.status_code == 200
        services["aggregator"].search_by_artist.assert_awaited_once_with("Jason Isbell", 25)

    def test_non_numeric_artist_limit_is_400(self, client: TestClient, services) -> None:
        response = client.get(
            "/api/v1/recommendations/events-by-artist",
            params={"artist": "Jason Isbell", "artistLimit": "lots"},
        )

        assert response.status_code == 400
        assert "artistLimit" in response.json()["detail"]
        services["aggregator"].search_by_artist.assert_not_awaited()

    def test_missing_api_key_is_503(self, client: TestClient, services) -> None:
        services["aggregator"].search_by_artist.side_effect = ConfigurationError(
            "SETLISTFM_API_KEY is not configured", provider_name="setlistfm"
        )
        response = client.get("/api/music/searchbyartist", params={"artist": "Jason Isbell"})

        assert response.status_code == 503
        assert response.json() == {
            "error": "ConfigurationError",
            "detail": "SETLISTFM_API_KEY is not configured",
        }


# ---------------------------------------------------------------------------
# Recommendations and similar artists
# ---------------------------------------------------------------------------


class TestRecommendCities:
    def test_returns_ranked_cities(self, client: TestClient, services) -> None:
        response = client.get(
            "/api/v1/recommendations/cities",
            params={"genre": "rock", "region": "sw", "popularity": "SMALL"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["region"] == "SW"
        assert body["popularity"] == "small"
        assert body["cities"][0] == {"city": "Austin, TX", "fit_score": 100, "reason": "Hosted 3 shows"}

    def test_invalid_region_is_400(self, client: TestClient, services) -> None:
        services["engine"].recommend_cities.return_value = QueryResult.failure(INVALID_REGION_ERROR)
        response = client.get("/api/v1/recommendations/cities", params={"genre": "rock", "region": "XX"})
        assert response.status_code == 400

    def test_missing_genre_is_400(self, client: TestClient) -> None:
        response = client.get("/api/v1/recommendations/cities", params={"region": "SW"})
        assert response.status_code == 400

    def test_no_cities_is_404(self, client: TestClient, services) -> None:
        services["engine"].recommend_cities.return_value = QueryResult()
        response = client.get("/api/music/recommendcities", params={"genre": "polka", "region": "W"})
        assert response.status_code == 404


class TestSimilarArtists:
    def test_find_by_genre(self, client: TestClient) -> None:
        response = client.get("/api/v1/music/findsimilarartists", params={"genre": "country"})

        assert response.status_code == 200
        artist = response.json()["artists"][0]
        assert artist["name"] == "Jason Isbell"
        assert artist["popularity"] == "80%"

    def test_limit_out_of_range_is_400(self, client: TestClient) -> None:
        response = client.get("/api/v1/music/findsimilarartists", params={"genre": "country", "limit": 0})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "InvalidParameter"
        assert body["detail"].startswith("Invalid value for 'limit'")

    def test_similar_to_artist(self, client: TestClient) -> None:
        response = client.get("/api/v1/music/similar-artists", params={"artist": "Slowdive"})
        assert response.status_code == 200
        assert response.json()["genres"] == ["shoegaze"]

    def test_similar_to_unknown_artist_is_404(self, client: TestClient, services) -> None:
        services["engine"].similar_to_artist.return_value = SimilarArtists(artist="Nobody")
        response = client.get("/api/v1/music/similar-artists", params={"artist": "Nobody"})
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Regions, parking, health
# ---------------------------------------------------------------------------


class TestRegions:
    def test_lists_all_regions(self, client: TestClient) -> None:
        regions = {r["code"]: r for r in client.get("/api/v1/regions").json()["regions"]}
        assert set(regions) == {"NE", "SE", "MW", "SW", "W"}
        assert regions["SW"]["states"] == ["AZ", "NM", "OK", "TX"]


class TestParking:
    def test_search(self, client: TestClient) -> None:
        response = client.get("/api/v1/parking/search", params={"q": "Isbell"})
        assert response.status_code == 200
        assert response.json()["events"][0]["title"] == "Isbell"

    def test_search_requires_query(self, client: TestClient) -> None:
        assert client.get("/api/v1/parking/search").status_code == 400

    def test_event_parking(self, client: TestClient, services) -> None:
        response = client.get("/api/v1/parking/events/5521")
        assert response.json()["count"] == 1
        services["parking"].get_parking_for_event.assert_awaited_once_with("5521")

    def test_empty_listing_is_200(self, client: TestClient) -> None:
        response = client.get("/api/v1/parking")
        assert response.status_code == 200
        assert response.json() == {"count": 0, "events": []}

    def test_nearby_requires_coordinates(self, client: TestClient, services) -> None:
        response = client.get("/api/v1/parking/nearby", params={"lat": 36.1})

        assert response.status_code == 400
        assert response.json() == {
            "error": "InvalidParameter",
            "detail": "Query parameter 'lng' is required",
        }
        services["parking"].get_parking_by_location.assert_not_awaited()

    def test_nearby_rejects_out_of_range_latitude(self, client: TestClient) -> None:
        response = client.get("/api/v1/parking/nearby", params={"lat": 123, "lng": -86.78})
        assert response.status_code == 400

    def test_nearby(self, client: TestClient, services) -> None:
        response = client.get("/api/v1/parking/nearby", params={"lat": 36.16, "lng": -86.78})
        assert response.status_code == 200
        services["parking"].get_parking_by_location.assert_awaited_once_with(36.16, -86.78, 1.0)


class TestHealth:
    def test_healthy_with_setlist_key(self, client: TestClient) -> None:
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["providers"]["setlistfm"] is True

    def test_degraded_without_setlist_key(self, client: TestClient) -> None:
        client.app.state.provider_registry = {"setlistfm": False, "musicbrainz": True}
        assert client.get("/api/v1/health").json()["status"] == "degraded"
