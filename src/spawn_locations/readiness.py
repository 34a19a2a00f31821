"""Startup milestones and the barrier that fires once all of them are met."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from enum import Enum


class Milestone(str, Enum):
    REFERENCE_DATA = "reference_data"
    PLAYER_DATA = "player_data"
    MAP = "map"


class StartupReadiness:
    """Tracks pending milestones; order of completion does not matter."""

    def __init__(self, milestones: Iterable[Milestone] = tuple(Milestone), *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("spawn_locations.readiness")
        self._pending: set[Milestone] = set()
        self._ready = asyncio.Event()
        self.reset(milestones)

    @property
    def pending(self) -> frozenset[Milestone]:
        return frozenset(self._pending)

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark(self, milestone: Milestone) -> None:
        if milestone not in self._pending:
            return
        self._pending.discard(milestone)
        self._logger.info("milestone_reached", extra={"milestone": milestone.value, "pending": len(self._pending)})
        if not self._pending and not self._ready.is_set():
            self._ready.set()
            self._logger.info("game_ready")

    async def wait_ready(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def reset(self, milestones: Iterable[Milestone]) -> None:
        self._pending = set(milestones)
        if self._pending:
            self._ready.clear()
        else:
            self._ready.set()
