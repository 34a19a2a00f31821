from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .spatial import Cell, LatLng


class GameObjectType(str, Enum):
    MINION = "minion"
    CHEST = "chest"
    ENERGY_STATION = "energy_station"

    @property
    def provider_key(self) -> int:
        return _PROVIDER_KEYS[self]

    @classmethod
    def from_provider_key(cls, key: int | str) -> GameObjectType | None:
        try:
            key = int(key)
        except (TypeError, ValueError):
            return None
        for member, member_key in _PROVIDER_KEYS.items():
            if member_key == key:
                return member
        return None


_PROVIDER_KEYS = {
    GameObjectType.MINION: 0,
    GameObjectType.CHEST: 1,
    GameObjectType.ENERGY_STATION: 2,
}


class LocationState(str, Enum):
    """Lifecycle states of a spawn location."""

    AVAILABLE = "available"
    CLAIMED = "claimed"
    RESPAWNING = "respawning"


@dataclass(frozen=True, slots=True)
class RewardParams:
    experience: int = 0
    energy: int = 0
    items: tuple[tuple[str, int], ...] = ()
    respawn_cooldown: timedelta = timedelta(0)


@dataclass(frozen=True, slots=True)
class RawLocation:
    """Unclassified candidate returned by the playable-locations provider."""

    place_id: str | None
    snapped_point: LatLng | None
    types: tuple[str, ...] = ()
    name: str | None = None
    plus_code: str | None = None
    requested_type: GameObjectType | None = None


@dataclass(frozen=True, slots=True)
class SpawnLocation:
    """Immutable snapshot of a classified spawn location."""

    id: str
    cell: Cell
    coordinates: LatLng
    game_object_type: GameObjectType
    tier: int
    reward: RewardParams
    state: LocationState = LocationState.AVAILABLE
    respawn_time: datetime | None = None
    place_types: tuple[str, ...] = field(default=(), compare=False)


@dataclass(frozen=True, slots=True)
class RespawnStatus:
    location_id: str
    respawning: bool
    respawn_time: datetime | None
    remaining: timedelta
