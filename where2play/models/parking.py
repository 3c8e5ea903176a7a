"""Pydantic v2 models for the EventParking API.

Every endpoint gets an explicit response type, including the event-parking
and nearby-parking lookups that were previously passed through untyped.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

_WIRE_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class GeoLocation(BaseModel):
    model_config = _WIRE_CONFIG

    lat: float
    lon: float


class ParkingVenue(BaseModel):
    model_config = _WIRE_CONFIG

    id: int | None = None
    name_v2: str | None = None
    display_location: str | None = None
    location: GeoLocation | None = None


class Performer(BaseModel):
    model_config = _WIRE_CONFIG

    name: str | None = None
    image: str | None = None
    display_image_url: str | None = Field(default=None, alias="displayImageUrl")


class ParkingEvent(BaseModel):
    """An event listing from ``/geteventsearch`` or ``/parking``."""

    model_config = _WIRE_CONFIG

    id: int
    title: str | None = None
    datetime_local: datetime | None = None
    datetime_utc: datetime | None = None
    enddatetime_utc: datetime | None = None
    venue: ParkingVenue | None = None
    performers: list[Performer] = Field(default_factory=list)


class ParkingSpot(BaseModel):
    """A parking option near an event or coordinate."""

    model_config = _WIRE_CONFIG

    id: int | str | None = None
    name: str | None = None
    address: str | None = None
    price: float | None = None
    distance_miles: float | None = Field(default=None, alias="distance")
    available_spaces: int | None = Field(default=None, alias="availableSpaces")
    location: GeoLocation | None = None
