from __future__ import annotations

import hashlib
from collections.abc import Sequence
from typing import Any

from spawn_locations.models import GameObjectType, RawLocation
from spawn_locations.spatial import Cell

from .location_provider import LocationCriteria, build_request, parse_response

_DEMO_TAGS: dict[GameObjectType, tuple[str, ...]] = {
    GameObjectType.MINION: ("food_and_drink", "restaurant"),
    GameObjectType.CHEST: ("park", "tourist_attraction"),
    GameObjectType.ENERGY_STATION: ("transit_station",),
}


class StubLocationProvider:
    """Provider that never finds anything."""

    def query(self, cell: Cell, criteria: Sequence[LocationCriteria]) -> list[RawLocation]:
        return []


class DemoLocationProvider:
    """Deterministic demo provider (not real places).

    Produces ``max_location_count`` locations per criterion, placed inside
    the cell from a hash of its token so repeated runs see the same world.
    """

    def query(self, cell: Cell, criteria: Sequence[LocationCriteria]) -> list[RawLocation]:
        return parse_response(self.sample(build_request(cell, criteria)), criteria)

    def sample(self, request: dict[str, Any]) -> dict[str, Any]:
        cell = request["cell"]
        low, high = cell["low"], cell["high"]
        groups: dict[str, Any] = {}
        for criterion in request["criteria"]:
            key = criterion["gameObjectType"]
            game_object_type = GameObjectType.from_provider_key(key)
            if game_object_type is None:
                continue
            locations = []
            for index in range(criterion["filter"]["maxLocationCount"]):
                fx, fy = _fractions(f"{cell['token']}:{key}:{index}")
                locations.append(
                    {
                        "placeId": f"demo-{cell['token']}-{key}-{index}",
                        "name": f"curatedLocations/demo-{cell['token']}-{key}-{index}",
                        "snappedPoint": {
                            "latitude": low["latitude"] + fy * (high["latitude"] - low["latitude"]),
                            "longitude": low["longitude"] + fx * (high["longitude"] - low["longitude"]),
                        },
                        "types": list(_DEMO_TAGS[game_object_type]),
                    }
                )
            groups[str(key)] = {"locations": locations}
        return {"locationsPerGameObjectType": groups}


def _fractions(seed: str) -> tuple[float, float]:
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Keep points away from the cell edges.
    fx = 0.1 + 0.8 * int.from_bytes(digest[:4], "big") / 0xFFFFFFFF
    fy = 0.1 + 0.8 * int.from_bytes(digest[4:8], "big") / 0xFFFFFFFF
    return fx, fy
