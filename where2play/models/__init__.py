"""Where2Play domain models - re-exports all public model classes.

    - events.py      - EventRecord, CityFit, ResolvedArtistLink, QueryResult
    - musicbrainz.py - ArtistCandidate and the artist search envelope
    - setlist.py     - setlist.fm shows, venues, cities and artist candidates
    - parking.py     - EventParking listings and parking spots
"""

from __future__ import annotations

from where2play.models.events import CityFit, EventRecord, QueryResult, ResolvedArtistLink
from where2play.models.musicbrainz import ArtistCandidate, ArtistSearchPage
from where2play.models.parking import GeoLocation, ParkingEvent, ParkingSpot, ParkingVenue, Performer
from where2play.models.setlist import (
    SetlistArtistCandidate,
    SetlistArtistSearch,
    SetlistCity,
    SetlistCountry,
    SetlistPage,
    SetlistShow,
    SetlistVenue,
)

__all__ = [
    "ArtistCandidate",
    "ArtistSearchPage",
    "CityFit",
    "EventRecord",
    "GeoLocation",
    "ParkingEvent",
    "ParkingSpot",
    "ParkingVenue",
    "Performer",
    "QueryResult",
    "ResolvedArtistLink",
    "SetlistArtistCandidate",
    "SetlistArtistSearch",
    "SetlistCity",
    "SetlistCountry",
    "SetlistPage",
    "SetlistShow",
    "SetlistVenue",
]
