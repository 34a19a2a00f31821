"""Deterministic mapping from raw provider locations to in-game spawn types."""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta

from .models import GameObjectType, RawLocation, RewardParams
from .spatial import LatLng, distance_meters

ENERGY_STATION_TAGS = frozenset(
    {"transit_station", "train_station", "bus_station", "subway_station", "gas_station", "parking"}
)
CHEST_TAGS = frozenset(
    {"park", "museum", "library", "monument", "tourist_attraction", "place_of_worship", "church"}
)

# (upper bound in meters, eligible tiers); the last bucket is unbounded.
DISTANCE_BUCKETS: tuple[tuple[float, tuple[int, ...]], ...] = (
    (500.0, (1, 2)),
    (2_000.0, (2, 3)),
    (math.inf, (3, 4)),
)

TIERS: dict[GameObjectType, tuple[int, ...]] = {
    GameObjectType.MINION: (1, 2, 3, 4),
    GameObjectType.CHEST: (1, 2, 3),
    GameObjectType.ENERGY_STATION: (1,),
}

DEFAULT_COOLDOWNS: dict[GameObjectType, timedelta] = {
    GameObjectType.MINION: timedelta(minutes=5),
    GameObjectType.CHEST: timedelta(minutes=30),
    GameObjectType.ENERGY_STATION: timedelta(hours=1),
}


@dataclass(frozen=True, slots=True)
class Classification:
    game_object_type: GameObjectType
    tier: int
    reward: RewardParams


def infer_type(types: tuple[str, ...]) -> GameObjectType:
    tags = {tag.lower() for tag in types}
    if tags & ENERGY_STATION_TAGS:
        return GameObjectType.ENERGY_STATION
    if tags & CHEST_TAGS:
        return GameObjectType.CHEST
    return GameObjectType.MINION


def distance_bucket(distance: float | None) -> int:
    if distance is None:
        return 0
    for index, (upper, _) in enumerate(DISTANCE_BUCKETS):
        if distance < upper:
            return index
    return len(DISTANCE_BUCKETS) - 1


class SpawnCatalog:
    """Assigns a spawn type, tier and reward to each raw location.

    Assignments are memoized per place id, so a place keeps its type and
    tier until :meth:`reset` even if the provider returns it again.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        cooldowns: Mapping[GameObjectType, timedelta] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._cooldowns = {**DEFAULT_COOLDOWNS, **(cooldowns or {})}
        self._logger = logger or logging.getLogger("spawn_locations.catalog")
        self._assigned: dict[str, Classification] = {}

    def classify(self, raw: RawLocation, *, origin: LatLng | None = None) -> Classification | None:
        if not raw.place_id or raw.snapped_point is None:
            self._logger.debug("raw_location_dropped", extra={"place_id": raw.place_id})
            return None

        existing = self._assigned.get(raw.place_id)
        if existing is not None:
            return existing

        game_object_type = raw.requested_type or infer_type(raw.types)
        distance = distance_meters(origin, raw.snapped_point) if origin is not None else None
        tier = self._pick_tier(game_object_type, distance_bucket(distance))
        classification = Classification(
            game_object_type=game_object_type,
            tier=tier,
            reward=self.reward_for(game_object_type, tier),
        )
        self._assigned[raw.place_id] = classification
        return classification

    def reward_for(self, game_object_type: GameObjectType, tier: int) -> RewardParams:
        cooldown = self._cooldowns[game_object_type]
        if game_object_type is GameObjectType.MINION:
            return RewardParams(experience=10 * tier, items=(("freexp", tier),), respawn_cooldown=cooldown)
        if game_object_type is GameObjectType.CHEST:
            items = (("gold", 25 * tier),) + ((("key", 1),) if tier >= 3 else ())
            return RewardParams(experience=5 * tier, items=items, respawn_cooldown=cooldown)
        return RewardParams(energy=100, respawn_cooldown=cooldown)

    def reset(self) -> None:
        self._assigned.clear()

    def _pick_tier(self, game_object_type: GameObjectType, bucket: int) -> int:
        available = TIERS[game_object_type]
        eligible = [tier for tier in DISTANCE_BUCKETS[bucket][1] if tier in available]
        if not eligible:
            return available[-1]
        if len(eligible) == 1:
            return eligible[0]
        return self._rng.choice(eligible)
