"""Sync-friendly facade over the async spawn service for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import timedelta

from spawn_locations.models import RespawnStatus, RewardParams, SpawnLocation
from spawn_locations.providers import LocationCriteria
from spawn_locations.service import SpawnService, ViewportResult
from spawn_locations.spatial import Cell, LatLng


class CliSpawnHandler:
    """Runs every call on one event loop so per-location locks stay valid between calls."""

    def __init__(self, service: SpawnService) -> None:
        self._service = service
        self._runner = asyncio.Runner()

    def __enter__(self) -> CliSpawnHandler:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._runner.close()

    def viewport(
        self,
        low: LatLng,
        high: LatLng,
        criteria: Sequence[LocationCriteria] | None = None,
    ) -> ViewportResult:
        return self._runner.run(self._service.get_locations_in_viewport(low, high, criteria))

    def claim(self, location_id: str, *, cell: Cell | None = None) -> RewardParams:
        async def _run() -> RewardParams:
            await self._load(cell)
            return await self._service.claim_and_consume(location_id)

        return self._runner.run(_run())

    def start_respawn(
        self,
        location_id: str,
        *,
        cooldown: timedelta | None = None,
        cell: Cell | None = None,
    ) -> SpawnLocation:
        async def _run() -> SpawnLocation:
            await self._load(cell)
            return await self._service.start_respawn(location_id, cooldown)

        return self._runner.run(_run())

    def respawn_status(self, location_id: str, *, cell: Cell | None = None) -> RespawnStatus:
        async def _run() -> RespawnStatus:
            await self._load(cell)
            return await self._service.respawn_status(location_id)

        return self._runner.run(_run())

    async def _load(self, cell: Cell | None) -> None:
        if cell is not None:
            await self._service.world.get_or_fetch(cell)
