from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from spawn_locations.spatial import LatLng, cell_for


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("spawn_locations.main")

    assert hasattr(module, "app")
    assert module.app is not None


@pytest.fixture()
def cli(monkeypatch):
    typer_testing = pytest.importorskip("typer.testing")
    module = importlib.import_module("spawn_locations.main")
    monkeypatch.setattr(module.settings, "provider_backend", "demo")
    monkeypatch.setattr(module.settings, "state_store_path", None)
    runner = typer_testing.CliRunner()
    return module, lambda *args: runner.invoke(module.app, list(args), catch_exceptions=False)


def test_cells_lists_tokens(cli) -> None:
    module, invoke = cli
    cell = cell_for(LatLng(37.27, -122.03), module.settings.cell_level)
    low, high = cell.bounds()

    result = invoke(
        "cells",
        "--south", str(low.lat + 1e-6),
        "--west", str(low.lng + 1e-6),
        "--north", str(high.lat - 1e-6),
        "--east", str(high.lng - 1e-6),
    )

    assert result.exit_code == 0
    assert cell.token in result.stdout


def test_cells_rejects_inverted_region(cli) -> None:
    _, invoke = cli

    result = invoke("cells", "--south", "10", "--west", "10", "--north", "9", "--east", "11")

    assert result.exit_code != 0


def test_viewport_prints_demo_locations(cli) -> None:
    module, invoke = cli
    cell = cell_for(LatLng(37.27, -122.03), module.settings.cell_level)
    center = cell.center()

    result = invoke(
        "viewport",
        "--south", str(center.lat - 1e-4),
        "--west", str(center.lng - 1e-4),
        "--north", str(center.lat + 1e-4),
        "--east", str(center.lng + 1e-4),
        "--type", "chest",
    )

    assert result.exit_code == 0
    assert f"demo-{cell.token}-1-0" in result.stdout
    assert f"demo-{cell.token}-0-0" not in result.stdout


def test_claim_then_status_with_persistent_store(cli, monkeypatch, tmp_path: Path) -> None:
    module, invoke = cli
    monkeypatch.setattr(module.settings, "state_store_path", str(tmp_path / "locations.jsonl"))
    cell = cell_for(LatLng(37.27, -122.03), module.settings.cell_level)
    location_id = f"demo-{cell.token}-2-0"

    claimed = invoke("claim", location_id, "--cell", cell.token, "--cooldown-seconds", "600")
    status = invoke("status", location_id, "--cell", cell.token)
    again = invoke("claim", location_id, "--cell", cell.token)

    assert claimed.exit_code == 0
    assert "'energy': 100" in claimed.stdout
    assert status.exit_code == 0
    assert "'respawning': True" in status.stdout
    assert again.exit_code == 1
    assert "not available" in again.stdout


def test_claim_unknown_location_reports_not_available(cli) -> None:
    _, invoke = cli

    result = invoke("claim", "does-not-exist")

    assert result.exit_code == 1
    assert "not available" in result.stdout
