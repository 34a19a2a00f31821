"""Policies for choosing one spawn location among same-type candidates."""

from __future__ import annotations

import random
from collections.abc import Iterable
from enum import Enum

from .models import GameObjectType, LocationState, SpawnLocation
from .spatial import LatLng, distance_meters


class SelectionPolicy(str, Enum):
    FIRST = "first"
    NEAREST = "nearest"
    RANDOM = "random"


def select_location(
    locations: Iterable[SpawnLocation],
    *,
    game_object_type: GameObjectType,
    policy: SelectionPolicy = SelectionPolicy.FIRST,
    origin: LatLng | None = None,
    rng: random.Random | None = None,
) -> SpawnLocation | None:
    """Return one available location of ``game_object_type``, or ``None``."""
    candidates = sorted(
        (
            location
            for location in locations
            if location.game_object_type is game_object_type and location.state is LocationState.AVAILABLE
        ),
        key=lambda location: location.id,
    )
    if not candidates:
        return None

    if policy is SelectionPolicy.NEAREST:
        if origin is None:
            raise ValueError("The nearest selection policy requires an origin")
        return min(candidates, key=lambda location: (distance_meters(origin, location.coordinates), location.id))
    if policy is SelectionPolicy.RANDOM:
        return (rng or random.Random()).choice(candidates)
    return candidates[0]
