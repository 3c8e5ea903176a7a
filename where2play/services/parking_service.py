"""EventParking lookups for the venues Where2Play lists.

A thin, typed client over the EventParking API.  Unlike the music
providers it is not throttled: it shares the application's
``httpx.AsyncClient`` and issues one request per call.  Every failure
(transport error, non-2xx status, payload that does not validate) is
logged and turned into an empty list so a parking outage never breaks a
page.  Cancellation is not caught.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from where2play.models.parking import ParkingEvent, ParkingSpot
from where2play.utils.logging import get_logger

_M = TypeVar("_M", bound=BaseModel)

# Keys under which the parking endpoints have been seen to wrap their lists.
_LIST_ENVELOPE_KEYS = ("parking", "spots", "results", "data")


def _unwrap_list(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    return []


class ParkingService:
    """Typed access to the EventParking API.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.
    base_url:
        EventParking API root, e.g. ``https://.../api/``.
    user_agent:
        Identifying ``User-Agent`` sent with every request.
    timeout:
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        user_agent: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if user_agent:
            self._headers["User-Agent"] = user_agent
        self._timeout = timeout
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = await self._http.get(
                url, params=params, headers=self._headers, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            self._logger.warning("parking_request_failed", url=url, error=str(exc))
            return None

        if response.status_code != 200:
            self._logger.warning("parking_unexpected_status", url=url, status=response.status_code)
            return None
        try:
            return response.json()
        except ValueError:
            self._logger.warning("parking_malformed_json", url=url)
            return None

    def _parse_list(self, payload: Any, model: type[_M], source: str) -> list[_M]:
        if payload is None:
            return []
        try:
            return TypeAdapter(list[model]).validate_python(_unwrap_list(payload))
        except ValidationError as exc:
            self._logger.warning(
                "parking_payload_invalid",
                source=source,
                error_count=exc.error_count(),
            )
            return []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search_events(self, query: str) -> list[ParkingEvent]:
        """Events matching *query* (``/geteventsearch?q=``)."""
        if not query or not query.strip():
            return []
        payload = await self._get("geteventsearch", {"q": query.strip()})
        events = self._parse_list(payload, ParkingEvent, "geteventsearch")
        self._logger.info("parking_event_search", query=query, result_count=len(events))
        return events

    async def get_all_parking(self) -> list[ParkingEvent]:
        """Every event the parking service knows about (``/parking``)."""
        payload = await self._get("parking")
        return self._parse_list(payload, ParkingEvent, "parking")

    async def get_parking_for_event(self, event_id: str | int) -> list[ParkingSpot]:
        """Parking options for one event (``/events/{id}/parking``)."""
        payload = await self._get(f"events/{event_id}/parking")
        spots = self._parse_list(payload, ParkingSpot, "event_parking")
        self._logger.info("parking_for_event", event_id=str(event_id), spot_count=len(spots))
        return spots

    async def get_parking_by_location(
        self,
        latitude: float,
        longitude: float,
        radius: float = 1.0,
    ) -> list[ParkingSpot]:
        """Parking within *radius* miles of a coordinate (``/parking/nearby``)."""
        payload = await self._get(
            "parking/nearby", {"lat": latitude, "lng": longitude, "radius": radius}
        )
        return self._parse_list(payload, ParkingSpot, "parking_nearby")
