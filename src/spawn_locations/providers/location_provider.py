"""Boundary for the external playable-locations service.

The wire format mirrors the provider's sampling API: criteria are sent per
game-object type key and the response groups locations under the same keys.
A key absent from the response means zero matches for that type.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from spawn_locations.errors import ProviderUnavailable
from spawn_locations.models import GameObjectType, RawLocation
from spawn_locations.spatial import Cell, LatLng

REQUIRED_FIELDS: tuple[str, ...] = ("snapped_point", "place_id", "types")


@dataclass(frozen=True, slots=True)
class LocationCriteria:
    """Declarative filter for one game-object type."""

    game_object_type: GameObjectType
    max_location_count: int = 2
    fields_to_return: tuple[str, ...] = REQUIRED_FIELDS
    included_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.max_location_count < 1:
            raise ValueError(f"max_location_count must be >= 1, got {self.max_location_count}")
        missing = [name for name in REQUIRED_FIELDS if name not in self.fields_to_return]
        if missing:
            raise ValueError(f"fields_to_return is missing required fields: {', '.join(missing)}")

    def to_wire(self) -> dict[str, Any]:
        wire_filter: dict[str, Any] = {"maxLocationCount": self.max_location_count}
        if self.included_types:
            wire_filter["includedTypes"] = list(self.included_types)
        return {
            "gameObjectType": self.game_object_type.provider_key,
            "filter": wire_filter,
            "fieldsToReturn": {"paths": list(self.fields_to_return)},
        }


def default_criteria(max_location_count: int = 2) -> tuple[LocationCriteria, ...]:
    return tuple(
        LocationCriteria(game_object_type=game_object_type, max_location_count=max_location_count)
        for game_object_type in GameObjectType
    )


class LocationProvider(Protocol):
    def query(self, cell: Cell, criteria: Sequence[LocationCriteria]) -> list[RawLocation]:
        """Return raw candidates for ``cell``; raise ProviderUnavailable on failure."""


def _wire_point(point: LatLng) -> dict[str, float]:
    return {"latitude": point.lat, "longitude": point.lng}


def build_request(cell: Cell, criteria: Sequence[LocationCriteria]) -> dict[str, Any]:
    low, high = cell.bounds()
    return {
        "cell": {
            "token": cell.token,
            "level": cell.level,
            "low": _wire_point(low),
            "high": _wire_point(high),
        },
        "criteria": [criterion.to_wire() for criterion in criteria],
    }


def _parse_point(value: Any) -> LatLng | None:
    if not isinstance(value, dict):
        return None
    try:
        point = LatLng(float(value["latitude"]), float(value["longitude"]))
    except (KeyError, TypeError, ValueError):
        return None
    return point if point.is_valid() else None


def _parse_location(entry: Any, requested_type: GameObjectType) -> RawLocation | None:
    if not isinstance(entry, dict):
        return None
    place_id = entry.get("placeId")
    types = entry.get("types") or []
    return RawLocation(
        place_id=str(place_id) if place_id else None,
        snapped_point=_parse_point(entry.get("snappedPoint")),
        types=tuple(str(tag) for tag in types) if isinstance(types, list) else (),
        name=entry.get("name"),
        plus_code=entry.get("plusCode"),
        requested_type=requested_type,
    )


def parse_response(payload: Any, criteria: Sequence[LocationCriteria]) -> list[RawLocation]:
    """Decode a provider response, keeping at most ``max_location_count`` per criterion."""
    if not isinstance(payload, dict):
        raise ProviderUnavailable("Playable locations response is not a JSON object")

    groups = payload.get("locationsPerGameObjectType") or {}
    if not isinstance(groups, dict):
        raise ProviderUnavailable("Playable locations response has a malformed locationsPerGameObjectType")

    results: list[RawLocation] = []
    for criterion in criteria:
        group = groups.get(str(criterion.game_object_type.provider_key))
        if not isinstance(group, dict):
            continue
        entries = group.get("locations") or []
        if not isinstance(entries, list):
            continue
        for entry in entries[: criterion.max_location_count]:
            raw = _parse_location(entry, criterion.game_object_type)
            if raw is not None:
                results.append(raw)
    return results
