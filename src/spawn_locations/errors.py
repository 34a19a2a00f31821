"""Error taxonomy for the spawn location lifecycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spawn_locations.models import LocationState
    from spawn_locations.spatial import Cell


class SpawnServiceError(Exception):
    """Base class for every error raised by the service."""


class InvalidRegion(SpawnServiceError, ValueError):
    """Raised when a query rectangle is malformed or too large."""


class ProviderUnavailable(SpawnServiceError, RuntimeError):
    """Raised when the playable-locations provider fails or times out."""

    def __init__(self, message: str, *, cell: Cell | None = None) -> None:
        super().__init__(message)
        self.cell = cell


class InvalidCooldown(SpawnServiceError, ValueError):
    """Raised when a respawn cooldown is negative."""


class LocationStateError(SpawnServiceError):
    """A requested transition is not allowed for the location."""

    def __init__(self, location_id: str, state: LocationState | None = None, message: str | None = None) -> None:
        self.location_id = location_id
        self.state = state
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        return f"{type(self).__name__}: {self.location_id}"


class NotFound(LocationStateError):
    def _default_message(self) -> str:
        return f"Unknown spawn location id: {self.location_id}"


class AlreadyClaimed(LocationStateError):
    def _default_message(self) -> str:
        state = self.state.value if self.state is not None else "unknown"
        return f"Spawn location {self.location_id} is not available (state={state})"


class InvalidTransition(LocationStateError):
    def _default_message(self) -> str:
        state = self.state.value if self.state is not None else "unknown"
        return f"Spawn location {self.location_id} cannot start respawning from state={state}"
