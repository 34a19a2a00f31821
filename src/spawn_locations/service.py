from __future__ import annotations

import asyncio
import logging
import random
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import timedelta

from .errors import ProviderUnavailable
from .models import GameObjectType, LocationState, RespawnStatus, RewardParams, SpawnLocation
from .providers import LocationCriteria
from .readiness import Milestone, StartupReadiness
from .selection import SelectionPolicy, select_location
from .spatial import Cell, LatLng, covering_cells
from .world_state import WorldState

DEFAULT_MAX_CELLS = 64


@dataclass(frozen=True, slots=True)
class ViewportResult:
    locations: frozenset[SpawnLocation]
    failures: dict[Cell, ProviderUnavailable] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failures


def _filter_by_criteria(
    locations: Iterable[SpawnLocation],
    criteria: Sequence[LocationCriteria] | None,
) -> list[SpawnLocation]:
    if criteria is None:
        return list(locations)

    limits = {criterion.game_object_type: criterion.max_location_count for criterion in criteria}
    by_type: dict[GameObjectType, list[SpawnLocation]] = defaultdict(list)
    for location in sorted(locations, key=lambda item: item.id):
        if location.game_object_type in limits:
            by_type[location.game_object_type].append(location)
    return [
        location
        for game_object_type, items in by_type.items()
        for location in items[: limits[game_object_type]]
    ]


class SpawnService:
    """Consumer-facing entry point, built once per process and passed around explicitly."""

    def __init__(
        self,
        world: WorldState,
        *,
        cell_level: int = 14,
        max_cells: int | None = DEFAULT_MAX_CELLS,
        selection_policy: SelectionPolicy = SelectionPolicy.FIRST,
        rng: random.Random | None = None,
        readiness: StartupReadiness | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.world = world
        self.cell_level = cell_level
        self.max_cells = max_cells
        self.selection_policy = selection_policy
        self._rng = rng or random.Random()
        self.readiness = readiness or StartupReadiness()
        self._logger = logger or logging.getLogger("spawn_locations.service")
        # Catalog tables are static and loaded with the module.
        self.readiness.mark(Milestone.REFERENCE_DATA)

    def covering_cells(self, low: LatLng, high: LatLng) -> frozenset[Cell]:
        return covering_cells(low, high, self.cell_level, max_cells=self.max_cells)

    async def get_locations_in_viewport(
        self,
        low: LatLng,
        high: LatLng,
        criteria: Sequence[LocationCriteria] | None = None,
    ) -> ViewportResult:
        """Union of the locations of every covering cell.

        A cell whose fetch fails is reported in ``failures`` while
        the other cells still contribute their locations.
        """
        cells = sorted(self.covering_cells(low, high))
        results = await asyncio.gather(*(self.world.get_or_fetch(cell) for cell in cells), return_exceptions=True)

        locations: set[SpawnLocation] = set()
        failures: dict[Cell, ProviderUnavailable] = {}
        for cell, result in zip(cells, results):
            if isinstance(result, ProviderUnavailable):
                failures[cell] = result
                continue
            if isinstance(result, Exception):
                self._logger.exception("viewport_cell_failed", extra={"cell": cell.token}, exc_info=result)
                wrapped = ProviderUnavailable(f"{type(result).__name__}: {result}", cell=cell)
                wrapped.__cause__ = result
                failures[cell] = wrapped
                continue
            if isinstance(result, BaseException):
                raise result
            locations.update(_filter_by_criteria(result, criteria))

        self._logger.info(
            "viewport_loaded",
            extra={"cell_count": len(cells), "location_count": len(locations), "failed_cells": len(failures)},
        )
        if not failures:
            self.readiness.mark(Milestone.MAP)
        return ViewportResult(locations=frozenset(locations), failures=failures)

    async def claim_and_consume(self, location_id: str) -> RewardParams:
        """Claim the location and hand back its reward; the caller starts the respawn later."""
        claimed = await self.world.claim(location_id)
        return claimed.reward

    async def start_respawn(self, location_id: str, cooldown: timedelta | None = None) -> SpawnLocation:
        return await self.world.start_respawn(location_id, cooldown)

    async def respawn_status(self, location_id: str) -> RespawnStatus:
        location = await self.world.get_location(location_id)
        if location.state is not LocationState.RESPAWNING:
            return RespawnStatus(location_id=location_id, respawning=False, respawn_time=None, remaining=timedelta(0))
        return RespawnStatus(
            location_id=location_id,
            respawning=True,
            respawn_time=location.respawn_time,
            remaining=self.world.scheduler.remaining(location.respawn_time, self.world.now()),
        )

    async def pick_location(
        self,
        low: LatLng,
        high: LatLng,
        game_object_type: GameObjectType,
        origin: LatLng | None = None,
    ) -> SpawnLocation | None:
        viewport = await self.get_locations_in_viewport(low, high)
        return select_location(
            viewport.locations,
            game_object_type=game_object_type,
            policy=self.selection_policy,
            origin=origin,
            rng=self._rng,
        )

    async def new_game(self) -> None:
        await self.world.reset()
        self.readiness.reset({Milestone.PLAYER_DATA, Milestone.MAP})

    @staticmethod
    def format_location(location: SpawnLocation) -> dict:
        payload = asdict(location)
        payload["cell"] = location.cell.token
        payload["game_object_type"] = location.game_object_type.value
        payload["state"] = location.state.value
        payload["respawn_time"] = location.respawn_time.isoformat() if location.respawn_time else None
        payload["reward"]["respawn_cooldown"] = location.reward.respawn_cooldown.total_seconds()
        return payload
