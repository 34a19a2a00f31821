"""Authoritative, process-resident store of spawn locations and their lifecycle.

State machine::

    available --claim--> claimed --start_respawn--> respawning
    respawning --(deadline elapsed, observed on the next read)--> available

Expiry is resolved lazily: every read of a location checks its respawn
deadline first, so no background timer is needed.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from spawn_locations.catalog import SpawnCatalog
from spawn_locations.errors import AlreadyClaimed, InvalidTransition, NotFound, ProviderUnavailable
from spawn_locations.models import LocationState, RawLocation, SpawnLocation
from spawn_locations.providers import LocationCriteria, LocationProvider, default_criteria
from spawn_locations.respawn import RespawnScheduler
from spawn_locations.spatial import Cell, LatLng
from spawn_locations.state_store import LocationStateStore, StoredLocationState

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorldState:
    """Owns the cell cache, the location index and per-location state."""

    def __init__(
        self,
        provider: LocationProvider,
        catalog: SpawnCatalog,
        *,
        criteria: Sequence[LocationCriteria] | None = None,
        scheduler: RespawnScheduler | None = None,
        store: LocationStateStore | None = None,
        clock: Clock | None = None,
        origin: LatLng | None = None,
        provider_timeout_seconds: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._provider = provider
        self._catalog = catalog
        self._criteria = tuple(criteria) if criteria is not None else default_criteria()
        self._scheduler = scheduler or RespawnScheduler()
        self._store = store
        self._clock = clock or utc_now
        self._origin = origin
        self._provider_timeout_seconds = provider_timeout_seconds
        self._logger = logger or logging.getLogger("spawn_locations.world_state")

        self._cells: dict[Cell, frozenset[str]] = {}
        self._locations: dict[str, SpawnLocation] = {}
        self._inflight: dict[Cell, asyncio.Task[frozenset[str]]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Orders store writes against the clear issued by reset().
        self._store_lock = asyncio.Lock()
        self._generation = 0

    @property
    def criteria(self) -> tuple[LocationCriteria, ...]:
        return self._criteria

    @property
    def scheduler(self) -> RespawnScheduler:
        return self._scheduler

    def now(self) -> datetime:
        return self._clock()

    def cached_cells(self) -> frozenset[Cell]:
        return frozenset(self._cells)

    async def get_or_fetch(self, cell: Cell) -> frozenset[SpawnLocation]:
        """Return the cell's locations, querying the provider once if the cell is not cached."""
        ids = self._cells.get(cell)
        if ids is None:
            task = self._inflight.get(cell)
            if task is None:
                task = asyncio.create_task(
                    self._fetch_cell(cell, self._generation),
                    name=f"fetch-cell-{cell.token}",
                )
                self._inflight[cell] = task
                task.add_done_callback(functools.partial(self._forget_fetch, cell))
            else:
                self._logger.debug("cell_fetch_joined", extra={"cell": cell.token})
            ids = await asyncio.shield(task)

        snapshots = []
        for location_id in sorted(ids):
            if location_id not in self._locations:
                continue
            try:
                snapshots.append(await self.get_location(location_id))
            except NotFound:
                # Dropped by a concurrent reset.
                continue
        return frozenset(snapshots)

    async def get_location(self, location_id: str) -> SpawnLocation:
        async with self._lock_for(location_id):
            return await self._current(location_id)

    async def claim(self, location_id: str) -> SpawnLocation:
        """Move an available location to claimed; exactly one concurrent caller wins."""
        async with self._lock_for(location_id):
            generation = self._generation
            location = await self._current(location_id)
            if location.state is not LocationState.AVAILABLE:
                raise AlreadyClaimed(location_id, location.state)

            claimed = replace(location, state=LocationState.CLAIMED)
            await self._commit(claimed, generation)
            self._logger.info("location_claimed", extra={"location_id": location_id})
            return claimed

    async def start_respawn(self, location_id: str, cooldown: timedelta | None = None) -> SpawnLocation:
        """Move a claimed location to respawning.

        ``cooldown`` defaults to the reward cooldown assigned by the catalog.
        """
        async with self._lock_for(location_id):
            generation = self._generation
            location = await self._current(location_id)
            if location.state is not LocationState.CLAIMED:
                raise InvalidTransition(location_id, location.state)

            effective = location.reward.respawn_cooldown if cooldown is None else cooldown
            deadline = self._scheduler.compute_deadline(self._clock(), effective)
            respawning = replace(location, state=LocationState.RESPAWNING, respawn_time=deadline)
            await self._commit(respawning, generation)
            self._logger.info(
                "location_respawn_started",
                extra={"location_id": location_id, "respawn_time": deadline.isoformat()},
            )
            return respawning

    async def is_respawning(self, location_id: str) -> bool:
        location = await self.get_location(location_id)
        return location.state is LocationState.RESPAWNING

    async def reset(self) -> None:
        """Drop every cell and location ("new game")."""
        self._generation += 1
        self._cells.clear()
        self._locations.clear()
        self._locks.clear()
        self._inflight.clear()
        self._catalog.reset()
        if self._store is not None:
            async with self._store_lock:
                await asyncio.to_thread(self._store.clear)
        self._logger.info("world_state_reset", extra={"generation": self._generation})

    def _lock_for(self, location_id: str) -> asyncio.Lock:
        lock = self._locks.get(location_id)
        if lock is None:
            lock = self._locks[location_id] = asyncio.Lock()
        return lock

    def _forget_fetch(self, cell: Cell, task: asyncio.Task[frozenset[str]]) -> None:
        if self._inflight.get(cell) is task:
            del self._inflight[cell]
        if not task.cancelled():
            # Marks the failure as retrieved when every waiter was cancelled.
            task.exception()

    async def _current(self, location_id: str) -> SpawnLocation:
        """Return the location with an elapsed respawn deadline resolved. Caller holds the lock."""
        generation = self._generation
        location = self._locations.get(location_id)
        if location is None:
            raise NotFound(location_id)

        if location.state is LocationState.RESPAWNING and self._scheduler.is_elapsed(
            location.respawn_time, self._clock()
        ):
            location = replace(location, state=LocationState.AVAILABLE, respawn_time=None)
            await self._commit(location, generation)
            self._logger.info("location_respawned", extra={"location_id": location_id})
        return location

    async def _commit(self, location: SpawnLocation, generation: int) -> None:
        """Persist and publish ``location`` unless a reset happened since ``generation`` was read.

        Raises NotFound when the write lost the race with a reset; nothing of it survives.
        """
        async with self._store_lock:
            if generation != self._generation:
                raise NotFound(location.id)
            if self._store is not None:
                record = StoredLocationState(
                    location_id=location.id,
                    state=location.state,
                    respawn_time=location.respawn_time,
                )
                await asyncio.to_thread(self._store.save, record)
        if generation != self._generation:
            # reset() is waiting on the store lock and clears this record next.
            raise NotFound(location.id)
        self._locations[location.id] = location

    async def _fetch_cell(self, cell: Cell, generation: int) -> frozenset[str]:
        self._logger.info("cell_fetch_started", extra={"cell": cell.token})
        try:
            raws = await asyncio.wait_for(
                asyncio.to_thread(self._provider.query, cell, self._criteria),
                timeout=self._provider_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._logger.warning("cell_fetch_timeout", extra={"cell": cell.token})
            raise ProviderUnavailable(
                f"Provider query for cell {cell.token} timed out after {self._provider_timeout_seconds}s",
                cell=cell,
            ) from exc
        except ProviderUnavailable as exc:
            if exc.cell is None:
                exc.cell = cell
            self._logger.warning("cell_fetch_failed", extra={"cell": cell.token, "error": str(exc)})
            raise
        except Exception as exc:  # noqa: BLE001 - any provider-side failure is an upstream outage.
            self._logger.exception("cell_fetch_failed", extra={"cell": cell.token})
            raise ProviderUnavailable(f"{type(exc).__name__}: {exc}", cell=cell) from exc

        candidates = self._classify(cell, raws)
        restored = [await self._restore(location) for location in candidates]

        if generation != self._generation:
            self._logger.info("cell_fetch_discarded", extra={"cell": cell.token})
            return frozenset()

        ids: set[str] = set()
        for location in restored:
            owner = self._locations.get(location.id)
            if owner is not None:
                self._logger.debug(
                    "duplicate_location_skipped",
                    extra={"location_id": location.id, "cell": cell.token, "owner_cell": owner.cell.token},
                )
                continue
            self._locations[location.id] = location
            ids.add(location.id)

        cached = self._cells[cell] = frozenset(ids)
        self._logger.info(
            "cell_fetch_completed",
            extra={"cell": cell.token, "raw_count": len(raws), "location_count": len(cached)},
        )
        return cached

    def _classify(self, cell: Cell, raws: Sequence[RawLocation]) -> list[SpawnLocation]:
        limits = {criterion.game_object_type: criterion.max_location_count for criterion in self._criteria}
        counts: Counter = Counter()
        seen: set[str] = set()
        locations: list[SpawnLocation] = []
        for raw in raws:
            limit = limits.get(raw.requested_type) if raw.requested_type is not None else None
            if (limit is not None and counts[raw.requested_type] >= limit) or raw.place_id in seen:
                continue
            classification = self._catalog.classify(raw, origin=self._origin)
            if classification is None:
                continue
            counts[raw.requested_type] += 1
            seen.add(raw.place_id)
            locations.append(
                SpawnLocation(
                    id=raw.place_id,
                    cell=cell,
                    coordinates=raw.snapped_point,
                    game_object_type=classification.game_object_type,
                    tier=classification.tier,
                    reward=classification.reward,
                    place_types=raw.types,
                )
            )
        return locations

    async def _restore(self, location: SpawnLocation) -> SpawnLocation:
        if self._store is None:
            return location
        record = await asyncio.to_thread(self._store.load, location.id)
        if record is None:
            return location
        if (record.state is LocationState.RESPAWNING) != (record.respawn_time is not None):
            self._logger.warning(
                "stored_state_ignored",
                extra={"location_id": location.id, "state": record.state.value},
            )
            return location
        return replace(location, state=record.state, respawn_time=record.respawn_time)
