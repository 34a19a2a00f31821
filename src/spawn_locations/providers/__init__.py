"""Playable-locations provider backends."""

from .demo import DemoLocationProvider, StubLocationProvider
from .location_provider import (
    LocationCriteria,
    LocationProvider,
    build_request,
    default_criteria,
    parse_response,
)
from .playable_locations_cli import PlayableLocationsCliProvider

__all__ = [
    "DemoLocationProvider",
    "LocationCriteria",
    "LocationProvider",
    "PlayableLocationsCliProvider",
    "StubLocationProvider",
    "build_request",
    "default_criteria",
    "parse_response",
]
