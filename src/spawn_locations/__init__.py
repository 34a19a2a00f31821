"""Spawn-location lifecycle service for a location-based game."""

from .errors import (
    AlreadyClaimed,
    InvalidCooldown,
    InvalidRegion,
    InvalidTransition,
    LocationStateError,
    NotFound,
    ProviderUnavailable,
    SpawnServiceError,
)
from .models import GameObjectType, LocationState, RawLocation, RespawnStatus, RewardParams, SpawnLocation
from .service import SpawnService, ViewportResult
from .world_state import WorldState

__all__ = [
    "AlreadyClaimed",
    "GameObjectType",
    "InvalidCooldown",
    "InvalidRegion",
    "InvalidTransition",
    "LocationState",
    "LocationStateError",
    "NotFound",
    "ProviderUnavailable",
    "RawLocation",
    "RespawnStatus",
    "RewardParams",
    "SpawnLocation",
    "SpawnService",
    "SpawnServiceError",
    "ViewportResult",
    "WorldState",
]
