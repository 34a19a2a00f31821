"""Respawn deadline arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta

from spawn_locations.errors import InvalidCooldown

_ZERO = timedelta(0)


class RespawnScheduler:
    """Decides when a depleted location becomes available again."""

    def compute_deadline(self, now: datetime, cooldown: timedelta) -> datetime:
        if cooldown < _ZERO:
            raise InvalidCooldown(f"Respawn cooldown must be >= 0, got {cooldown}")
        return now + cooldown

    def remaining(self, deadline: datetime, now: datetime) -> timedelta:
        """Time left before ``deadline``; zero once it has elapsed."""
        return max(deadline - now, _ZERO)

    def is_elapsed(self, deadline: datetime, now: datetime) -> bool:
        return now >= deadline
