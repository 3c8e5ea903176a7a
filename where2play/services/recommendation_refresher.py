"""Background task that keeps the recommendation cache warm.

Started from the FastAPI lifespan when ``RECOMMENDATION_REFRESH_ENABLED``
is set.  Every ``interval_minutes`` it recomputes
:meth:`RecommendationEngine.recommend_cities` for each configured
(genre, region) pair at the medium tier.  Errors are logged and the loop
carries on; cancelling the task at shutdown stops it immediately.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Sequence

from where2play.config.regions import BandPopularity
from where2play.services.recommendation_service import RecommendationEngine
from where2play.utils.errors import Where2PlayError
from where2play.utils.logging import get_logger


class RecommendationRefresher:
    """Periodically recomputes recommendations for configured genre/region pairs.

    Parameters
    ----------
    engine:
        The recommendation engine whose cache is refreshed.
    genres, regions:
        Every genre is refreshed for every region.
    interval_minutes:
        Pause between refresh rounds.
    sleep:
        Coroutine used for the pause; tests inject a fake.
    """

    def __init__(
        self,
        engine: RecommendationEngine,
        genres: Sequence[str],
        regions: Sequence[str],
        interval_minutes: float = 30,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._engine = engine
        self._genres = [g for g in genres if g]
        self._regions = [r for r in regions if r]
        self._interval = max(1.0, interval_minutes * 60)
        self._sleep = sleep
        self._logger = get_logger(__name__)

    async def refresh_once(self) -> int:
        """Run one refresh round.  Returns the number of pairs that succeeded."""
        if not self._genres or not self._regions:
            self._logger.info("recommendation_refresh_not_configured")
            return 0

        refreshed = 0
        for genre in self._genres:
            for region in self._regions:
                self._logger.info("recommendation_refresh", genre=genre, region=region)
                try:
                    result = await self._engine.recommend_cities(
                        genre, region, BandPopularity.MEDIUM, refresh=True
                    )
                except Where2PlayError as exc:
                    self._logger.error(
                        "recommendation_refresh_failed", genre=genre, region=region, error=str(exc)
                    )
                    continue
                if not result.ok:
                    self._logger.warning(
                        "recommendation_refresh_error", genre=genre, region=region, error=result.error
                    )
                    continue
                refreshed += 1
        return refreshed

    async def run(self) -> None:
        """Refresh forever, one round every interval, until cancelled."""
        self._logger.info(
            "recommendation_refresher_started",
            genres=self._genres,
            regions=self._regions,
            interval_s=self._interval,
        )
        try:
            while True:
                try:
                    await self.refresh_once()
                except Exception as exc:
                    self._logger.error("recommendation_refresh_round_failed", error=str(exc))
                await self._sleep(self._interval)
        finally:
            self._logger.info("recommendation_refresher_stopped")
