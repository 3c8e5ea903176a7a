"""FastAPI routes for Where2Play.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``main._build_all`` puts them
there at startup.

# Endpoint (prefix /api/v1)               Legacy alias                       Description
# --------------------------------------------------------------------------------------------
# GET /search/by-city?q=                  /api/music/searchbycity            Events in a city
# GET /recommendations/events-by-artist   /api/music/searchbyartist          Events by artist
# GET /recommendations/cities             /api/music/recommendcities         Touring-city fit
# GET /music/findsimilarartists           /api/music/findsimilarartists      Artists by genre
# GET /music/similar-artists?artist=                                         Genres + similar
# GET /regions                                                               Region table
# GET /parking/search?q=                                                     Parking events
# GET /parking                                                               All parking
# GET /parking/events/{event_id}                                             Event parking
# GET /parking/nearby?lat=&lng=&radius=                                      Nearby parking
# GET /health                                                                Health check
#
# Status codes: a missing or blank required parameter is 400, as is an
# unknown region code.  A valid query that found nothing is 404.  An
# upstream failure reported by a service is 502, and a missing API key
# is 503 (see middleware).
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from where2play import __version__
from where2play.api.schemas import (
    ArtistSimilarityResponse,
    ArtistSummary,
    CityRecommendationsResponse,
    ErrorResponse,
    EventSearchResponse,
    HealthResponse,
    ParkingEventsResponse,
    ParkingSpotsResponse,
    RegionInfo,
    RegionsResponse,
    SimilarArtistsResponse,
)
from where2play.config.regions import REGION_NAMES, REGIONS, BandPopularity
from where2play.services.event_aggregator import EventAggregator
from where2play.services.parking_service import ParkingService
from where2play.services.recommendation_service import INVALID_REGION_ERROR, RecommendationEngine
from where2play.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")
legacy_router = APIRouter(prefix="/api/music", include_in_schema=False)

_DEFAULT_MAX_ARTIST_LIMIT = 25

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_aggregator(request: Request) -> EventAggregator:
    """Return the event aggregator from application state."""
    return request.app.state.aggregator


def _get_recommendation_engine(request: Request) -> RecommendationEngine:
    """Return the recommendation engine from application state."""
    return request.app.state.recommendation_engine


def _get_parking_service(request: Request) -> ParkingService:
    """Return the parking service from application state."""
    return request.app.state.parking_service


AggregatorDep = Annotated[EventAggregator, Depends(_get_aggregator)]
EngineDep = Annotated[RecommendationEngine, Depends(_get_recommendation_engine)]
ParkingDep = Annotated[ParkingService, Depends(_get_parking_service)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise HTTPException(status_code=400, detail=f"Query parameter '{name}' is required")
    return value.strip()


def _raise_upstream(error: str, **context: Any) -> None:
    _logger.warning("upstream_query_failed", error=error, **context)
    raise HTTPException(status_code=502, detail=error)


# ---------------------------------------------------------------------------
# Event searches
# ---------------------------------------------------------------------------


@router.get(
    "/search/by-city",
    response_model=EventSearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Events recently played in a city",
)
@legacy_router.get("/searchbycity", response_model=EventSearchResponse)
async def search_by_city(
    aggregator: AggregatorDep,
    q: Annotated[str | None, Query(description="City name, e.g. Nashville")] = None,
) -> EventSearchResponse:
    city = _require(q, "q")
    result = await aggregator.search_by_city(city)
    if not result.ok:
        _raise_upstream(result.error, city=city)
    if not result.items:
        raise HTTPException(status_code=404, detail=f"No events found for '{city}'")
    return EventSearchResponse(query=city, count=len(result.items), events=result.items)


@router.get(
    "/recommendations/events-by-artist",
    response_model=EventSearchResponse,
    responses=_ERROR_RESPONSES,
    summary="Recent shows of the artists best matching a name",
)
@legacy_router.get("/searchbyartist", response_model=EventSearchResponse)
async def events_by_artist(
    request: Request,
    aggregator: AggregatorDep,
    artist: Annotated[str | None, Query(description="Artist name")] = None,
    artist_limit: Annotated[int, Query(alias="artistLimit")] = 5,
) -> EventSearchResponse:
    name = _require(artist, "artist")
    max_limit = getattr(request.app.state, "max_artist_limit", _DEFAULT_MAX_ARTIST_LIMIT)
    limit = max(1, min(artist_limit, max_limit))
    result = await aggregator.search_by_artist(name, limit)
    if not result.ok:
        _raise_upstream(result.error, artist=name)
    if not result.items:
        raise HTTPException(status_code=404, detail=f"No events found for artist '{name}'")
    return EventSearchResponse(query=name, count=len(result.items), events=result.items)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@router.get(
    "/recommendations/cities",
    response_model=CityRecommendationsResponse,
    responses=_ERROR_RESPONSES,
    summary="Rank touring cities for a genre, region and popularity tier",
)
@legacy_router.get("/recommendcities", response_model=CityRecommendationsResponse)
async def recommend_cities(
    engine: EngineDep,
    genre: str | None = None,
    region: str | None = None,
    popularity: str | None = "medium",
) -> CityRecommendationsResponse:
    genre_value = _require(genre, "genre")
    region_value = _require(region, "region")
    tier = BandPopularity.parse(popularity)

    result = await engine.recommend_cities(genre_value, region_value, tier)
    if result.error == INVALID_REGION_ERROR:
        raise HTTPException(
            status_code=400,
            detail=f"{INVALID_REGION_ERROR} '{region_value}'; expected one of {', '.join(REGIONS)}",
        )
    if not result.ok:
        _raise_upstream(result.error, genre=genre_value, region=region_value)
    if not result.items:
        raise HTTPException(
            status_code=404,
            detail=f"No {genre_value} shows found in region {region_value.upper()}",
        )
    return CityRecommendationsResponse(
        genre=genre_value,
        region=region_value.upper(),
        popularity=tier.value,
        count=len(result.items),
        cities=result.items,
    )


# ---------------------------------------------------------------------------
# Similar artists
# ---------------------------------------------------------------------------


@router.get(
    "/music/findsimilarartists",
    response_model=SimilarArtistsResponse,
    responses=_ERROR_RESPONSES,
    summary="Artists tagged with a genre",
)
@legacy_router.get("/findsimilarartists", response_model=SimilarArtistsResponse)
async def find_similar_artists(
    engine: EngineDep,
    genre: str | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> SimilarArtistsResponse:
    genre_value = _require(genre, "genre")
    result = await engine.find_similar_artists(genre_value, limit)
    if not result.ok:
        _raise_upstream(result.error, genre=genre_value)
    if not result.items:
        raise HTTPException(status_code=404, detail=f"No artists found for genre '{genre_value}'")
    artists = [ArtistSummary.from_candidate(a) for a in result.items]
    return SimilarArtistsResponse(genre=genre_value, count=len(artists), artists=artists)


@router.get(
    "/music/similar-artists",
    response_model=ArtistSimilarityResponse,
    responses=_ERROR_RESPONSES,
    summary="An artist's genres and artists sharing its top genre",
)
async def similar_artists(
    engine: EngineDep,
    artist: str | None = None,
) -> ArtistSimilarityResponse:
    name = _require(artist, "artist")
    similar = await engine.similar_to_artist(name)
    if similar.error and not similar.genres:
        _raise_upstream(similar.error, artist=name)
    if not similar.genres:
        raise HTTPException(status_code=404, detail=f"No genres found for artist '{name}'")
    return ArtistSimilarityResponse(
        artist=name,
        genres=similar.genres,
        artists=[ArtistSummary.from_candidate(a) for a in similar.artists],
    )


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------


@router.get("/regions", response_model=RegionsResponse, summary="Region codes and their states")
async def list_regions() -> RegionsResponse:
    return RegionsResponse(
        regions=[
            RegionInfo(code=code, name=REGION_NAMES[code], states=sorted(states))
            for code, states in REGIONS.items()
        ]
    )


# ---------------------------------------------------------------------------
# Parking
# ---------------------------------------------------------------------------


@router.get(
    "/parking/search",
    response_model=ParkingEventsResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Search the parking service's events",
)
async def search_parking_events(parking: ParkingDep, q: str | None = None) -> ParkingEventsResponse:
    query = _require(q, "q")
    events = await parking.search_events(query)
    return ParkingEventsResponse(count=len(events), events=events)


@router.get("/parking", response_model=ParkingEventsResponse, summary="All parking listings")
async def all_parking(parking: ParkingDep) -> ParkingEventsResponse:
    events = await parking.get_all_parking()
    return ParkingEventsResponse(count=len(events), events=events)


@router.get(
    "/parking/events/{event_id}",
    response_model=ParkingSpotsResponse,
    summary="Parking options for one event",
)
async def parking_for_event(event_id: str, parking: ParkingDep) -> ParkingSpotsResponse:
    spots = await parking.get_parking_for_event(event_id)
    return ParkingSpotsResponse(count=len(spots), spots=spots)


@router.get(
    "/parking/nearby",
    response_model=ParkingSpotsResponse,
    summary="Parking near a coordinate",
)
async def parking_nearby(
    parking: ParkingDep,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lng: Annotated[float, Query(ge=-180, le=180)],
    radius: Annotated[float, Query(gt=0, le=50)] = 1.0,
) -> ParkingSpotsResponse:
    spots = await parking.get_parking_by_location(lat, lng, radius)
    return ParkingSpotsResponse(count=len(spots), spots=spots)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider configuration."""
    providers: dict[str, bool] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)
    status = "healthy" if providers.get("setlistfm", False) else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)
