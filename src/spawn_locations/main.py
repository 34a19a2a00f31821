"""CLI startup entrypoint for the spawn locations service."""

from __future__ import annotations

import random
from datetime import timedelta

import typer
from rich import print

from spawn_locations.catalog import SpawnCatalog
from spawn_locations.cli import CliSpawnHandler
from spawn_locations.config import settings
from spawn_locations.errors import InvalidRegion, LocationStateError, ProviderUnavailable
from spawn_locations.models import GameObjectType
from spawn_locations.providers import (
    DemoLocationProvider,
    LocationCriteria,
    PlayableLocationsCliProvider,
    StubLocationProvider,
    default_criteria,
)
from spawn_locations.selection import SelectionPolicy
from spawn_locations.service import SpawnService
from spawn_locations.spatial import Cell, LatLng
from spawn_locations.state_store import JsonlLocationStore
from spawn_locations.telemetry import configure_logging
from spawn_locations.world_state import WorldState

app = typer.Typer(help="Spawn locations service entrypoint")


def _build_provider():
    backend = settings.provider_backend.lower()
    if backend == "demo":
        return DemoLocationProvider()
    if backend == "cli" and settings.provider_cli_bin:
        return PlayableLocationsCliProvider(
            binary_path=settings.provider_cli_bin,
            timeout_seconds=settings.provider_timeout_seconds,
        )
    return StubLocationProvider()


def _build_catalog() -> SpawnCatalog:
    seed = settings.catalog_seed
    return SpawnCatalog(
        rng=random.Random(seed) if seed is not None else None,
        cooldowns={
            GameObjectType.MINION: timedelta(seconds=settings.minion_cooldown_seconds),
            GameObjectType.CHEST: timedelta(seconds=settings.chest_cooldown_seconds),
            GameObjectType.ENERGY_STATION: timedelta(seconds=settings.energy_station_cooldown_seconds),
        },
    )


def _build_service() -> SpawnService:
    world = WorldState(
        provider=_build_provider(),
        catalog=_build_catalog(),
        criteria=default_criteria(settings.criteria_max_locations),
        store=JsonlLocationStore(settings.state_store_path) if settings.state_store_path else None,
        provider_timeout_seconds=settings.provider_timeout_seconds,
    )
    return SpawnService(
        world,
        cell_level=settings.cell_level,
        max_cells=settings.max_cells_per_query,
        selection_policy=SelectionPolicy(settings.selection_policy.lower()),
    )


def _parse_cell(token: str | None) -> Cell | None:
    if token is None:
        return None
    try:
        return Cell.from_token(token)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def main() -> None:
    configure_logging(settings.log_level)


@app.command()
def start() -> None:
    """Show runtime backend configuration."""
    print(
        {
            "app_name": settings.app_name,
            "provider_backend": settings.provider_backend,
            "cell_level": settings.cell_level,
            "selection_policy": settings.selection_policy,
            "state_store_path": settings.state_store_path,
        }
    )


@app.command()
def cells(
    south: float = typer.Option(..., help="Southwest latitude"),
    west: float = typer.Option(..., help="Southwest longitude"),
    north: float = typer.Option(..., help="Northeast latitude"),
    east: float = typer.Option(..., help="Northeast longitude"),
) -> None:
    """List the cells covering a rectangle."""
    service = _build_service()
    try:
        covering = service.covering_cells(LatLng(south, west), LatLng(north, east))
    except InvalidRegion as exc:
        raise typer.BadParameter(str(exc)) from exc
    print({"cells": [cell.token for cell in sorted(covering)]})


@app.command()
def viewport(
    south: float = typer.Option(..., help="Southwest latitude"),
    west: float = typer.Option(..., help="Southwest longitude"),
    north: float = typer.Option(..., help="Northeast latitude"),
    east: float = typer.Option(..., help="Northeast longitude"),
    game_object_type: GameObjectType = typer.Option(None, "--type", help="Only this game object type"),
    max_per_cell: int = typer.Option(None, help="Cap on locations per cell and type"),
) -> None:
    """Show the spawn locations inside a rectangle."""
    service = _build_service()
    criteria = None
    if game_object_type is not None or max_per_cell is not None:
        types = [game_object_type] if game_object_type is not None else list(GameObjectType)
        criteria = [
            LocationCriteria(game_object_type=item, max_location_count=max_per_cell or settings.criteria_max_locations)
            for item in types
        ]

    with CliSpawnHandler(service) as handler:
        try:
            result = handler.viewport(LatLng(south, west), LatLng(north, east), criteria)
        except InvalidRegion as exc:
            raise typer.BadParameter(str(exc)) from exc

    locations = sorted(result.locations, key=lambda location: location.id)
    print(
        {
            "locations": [service.format_location(location) for location in locations],
            "failed_cells": {cell.token: str(error) for cell, error in result.failures.items()},
        }
    )
    if result.failures:
        print({"hint": "Some cells could not be loaded; retry the query."})
        raise typer.Exit(code=1)


@app.command()
def claim(
    location_id: str,
    cell: str = typer.Option(None, help="Token of the cell that owns the location"),
    start_respawn: bool = typer.Option(True, help="Start the respawn cooldown after consuming"),
    cooldown_seconds: float = typer.Option(None, help="Override the catalog cooldown"),
) -> None:
    """Claim a location, consume its reward and start its respawn."""
    service = _build_service()
    owner = _parse_cell(cell)
    cooldown = timedelta(seconds=cooldown_seconds) if cooldown_seconds is not None else None

    with CliSpawnHandler(service) as handler:
        try:
            reward = handler.claim(location_id, cell=owner)
            respawn_time = None
            if start_respawn:
                respawn_time = handler.start_respawn(location_id, cooldown=cooldown).respawn_time
        except ProviderUnavailable as exc:
            print({"error": str(exc), "hint": "The location provider is unavailable; retry later."})
            raise typer.Exit(code=1)
        except LocationStateError as exc:
            print({"error": "not available", "detail": str(exc)})
            raise typer.Exit(code=1)

    print(
        {
            "location_id": location_id,
            "reward": {
                "experience": reward.experience,
                "energy": reward.energy,
                "items": dict(reward.items),
            },
            "respawn_time": respawn_time.isoformat() if respawn_time else None,
        }
    )


@app.command()
def status(
    location_id: str,
    cell: str = typer.Option(None, help="Token of the cell that owns the location"),
) -> None:
    """Show whether a location is respawning and how long is left."""
    service = _build_service()
    owner = _parse_cell(cell)

    with CliSpawnHandler(service) as handler:
        try:
            info = handler.respawn_status(location_id, cell=owner)
        except ProviderUnavailable as exc:
            print({"error": str(exc), "hint": "The location provider is unavailable; retry later."})
            raise typer.Exit(code=1)
        except LocationStateError as exc:
            print({"error": "not available", "detail": str(exc)})
            raise typer.Exit(code=1)

    print(
        {
            "location_id": info.location_id,
            "respawning": info.respawning,
            "respawn_time": info.respawn_time.isoformat() if info.respawn_time else None,
            "time_left_seconds": info.remaining.total_seconds(),
        }
    )


if __name__ == "__main__":
    app()
