"""Where2Play FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and owns the shared ``httpx.AsyncClient`` plus the
optional background recommendation refresher.
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from where2play import __version__
from where2play.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    configure_error_handlers,
)
from where2play.api.routes import legacy_router
from where2play.api.routes import router as api_router
from where2play.config.loader import load_config
from where2play.config.settings import Settings
from where2play.providers.cache.memory_cache import MemoryCacheProvider
from where2play.providers.http.rate_limited_fetcher import RateLimitedFetcher, default_policies
from where2play.providers.music_db.musicbrainz_provider import MusicBrainzProvider
from where2play.providers.setlist.setlistfm_provider import SetlistFmProvider
from where2play.services.artist_resolver import ArtistResolver
from where2play.services.event_aggregator import EventAggregator
from where2play.services.parking_service import ParkingService
from where2play.services.recommendation_refresher import RecommendationRefresher
from where2play.services.recommendation_service import RecommendationEngine
from where2play.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(
    app_settings: Settings,
    app_config: dict[str, Any] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``
    (the CLI uses the same dict).
    """
    app_config = app_config or {}
    search_cfg = app_config.get("search", {})
    reco_cfg = app_config.get("recommendations", {})

    # -- Shared resources --
    http_client = http_client or httpx.AsyncClient(timeout=app_settings.http_timeout)
    fetcher = RateLimitedFetcher(http_client, default_policies(app_settings))
    cache = MemoryCacheProvider(max_size=app_settings.cache_max_size)

    # -- Providers --
    shows_provider = SetlistFmProvider(fetcher, api_key=app_settings.setlistfm_api_key)
    metadata_provider = MusicBrainzProvider(fetcher)

    # -- Services --
    resolver = ArtistResolver(
        shows_provider,
        cache,
        link_ttl=app_settings.artist_link_cache_ttl,
        not_found_ttl=app_settings.not_found_cache_ttl,
    )
    aggregator = EventAggregator(
        shows_provider,
        metadata_provider,
        resolver,
        cache,
        city_ttl=app_settings.city_cache_ttl,
        metadata_ttl=app_settings.artist_metadata_cache_ttl,
        shows_ttl=app_settings.shows_cache_ttl,
        not_found_ttl=app_settings.not_found_cache_ttl,
        fanout=app_settings.fanout_concurrency,
    )
    recommendation_engine = RecommendationEngine(
        metadata_provider,
        aggregator,
        cache,
        recommendation_ttl=app_settings.recommendation_cache_ttl,
        genre_ttl=app_settings.genre_cache_ttl,
        max_results=reco_cfg.get("max_results", 20),
        max_reasons=reco_cfg.get("max_reasons", 3),
    )
    parking_service = ParkingService(
        http_client,
        base_url=app_settings.eventparking_base_url,
        user_agent=app_settings.api_user_agent,
        timeout=app_settings.http_timeout,
    )

    refresher = None
    if app_settings.recommendation_refresh_enabled:
        refresher = RecommendationRefresher(
            recommendation_engine,
            genres=Settings.split_csv(app_settings.recommendation_refresh_genres),
            regions=Settings.split_csv(app_settings.recommendation_refresh_regions),
            interval_minutes=app_settings.recommendation_refresh_interval_minutes,
        )

    # -- Provider registry for /health --
    provider_registry: dict[str, bool] = {
        "setlistfm": shows_provider.is_available(),
        "musicbrainz": True,
        "eventparking": True,
        "cache": True,
    }

    return {
        "http_client": http_client,
        "fetcher": fetcher,
        "cache": cache,
        "aggregator": aggregator,
        "recommendation_engine": recommendation_engine,
        "parking_service": parking_service,
        "refresher": refresher,
        "provider_registry": provider_registry,
        "max_artist_limit": search_cfg.get("max_artist_limit", 25),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    refresher_task: asyncio.Task[None] | None = None
    if components["refresher"] is not None:
        refresher_task = asyncio.create_task(components["refresher"].run())

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        providers=settings.get_configured_providers(),
        refresher=refresher_task is not None,
    )

    yield

    # -- Shutdown: stop the refresher, close shared httpx client --
    if refresher_task is not None:
        refresher_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await refresher_task
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Where2Play API",
        version=__version__,
        description=(
            "Search concerts by city or artist from setlist.fm, enriched with "
            "MusicBrainz artist metadata, rank touring cities for a genre and "
            "region, and look up event parking."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    configure_error_handlers(application)

    # -- API routes --
    application.include_router(api_router)
    application.include_router(legacy_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "where2play.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
