from __future__ import annotations

import sys
from pathlib import Path

import pytest

from spawn_locations.errors import ProviderUnavailable
from spawn_locations.models import GameObjectType
from spawn_locations.providers import (
    DemoLocationProvider,
    LocationCriteria,
    PlayableLocationsCliProvider,
    StubLocationProvider,
    build_request,
    default_criteria,
    parse_response,
)
from spawn_locations.spatial import LatLng, cell_for

MINION_CRITERIA = (LocationCriteria(game_object_type=GameObjectType.MINION, max_location_count=2),)


def _entry(place_id: str, lat: float = 37.27, lng: float = -122.03, types: list[str] | None = None) -> dict:
    return {
        "placeId": place_id,
        "snappedPoint": {"latitude": lat, "longitude": lng},
        "types": types or ["restaurant"],
    }


def test_criteria_wire_format() -> None:
    criterion = LocationCriteria(
        game_object_type=GameObjectType.CHEST,
        max_location_count=3,
        included_types=("park",),
    )

    assert criterion.to_wire() == {
        "gameObjectType": 1,
        "filter": {"maxLocationCount": 3, "includedTypes": ["park"]},
        "fieldsToReturn": {"paths": ["snapped_point", "place_id", "types"]},
    }


def test_criteria_validation() -> None:
    with pytest.raises(ValueError):
        LocationCriteria(game_object_type=GameObjectType.MINION, max_location_count=0)
    with pytest.raises(ValueError, match="place_id"):
        LocationCriteria(game_object_type=GameObjectType.MINION, fields_to_return=("snapped_point", "types"))


def test_request_carries_cell_bounds() -> None:
    cell = cell_for(LatLng(37.27, -122.03), 14)
    request = build_request(cell, default_criteria(4))

    low, high = cell.bounds()
    assert request["cell"]["token"] == cell.token
    assert request["cell"]["low"] == {"latitude": low.lat, "longitude": low.lng}
    assert request["cell"]["high"] == {"latitude": high.lat, "longitude": high.lng}
    assert [item["gameObjectType"] for item in request["criteria"]] == [0, 1, 2]


def test_parse_response_absent_key_means_no_matches() -> None:
    payload = {"locationsPerGameObjectType": {"1": {"locations": [_entry("chest-1")]}}}

    assert parse_response(payload, MINION_CRITERIA) == []
    assert parse_response({}, MINION_CRITERIA) == []


def test_parse_response_caps_and_tags_locations() -> None:
    payload = {
        "locationsPerGameObjectType": {
            "0": {"locations": [_entry("a"), _entry("b"), _entry("c")]},
        }
    }

    raws = parse_response(payload, MINION_CRITERIA)

    assert [raw.place_id for raw in raws] == ["a", "b"]
    assert all(raw.requested_type is GameObjectType.MINION for raw in raws)
    assert raws[0].snapped_point == LatLng(37.27, -122.03)
    assert raws[0].types == ("restaurant",)


def test_parse_response_keeps_incomplete_entries_for_the_catalog_to_drop() -> None:
    payload = {
        "locationsPerGameObjectType": {
            "0": {"locations": ["garbage", {"placeId": "no-point"}]},
        }
    }

    raws = parse_response(payload, MINION_CRITERIA)

    assert len(raws) == 1
    assert raws[0].place_id == "no-point"
    assert raws[0].snapped_point is None


def test_parse_response_rejects_malformed_envelope() -> None:
    with pytest.raises(ProviderUnavailable):
        parse_response(["not", "an", "object"], MINION_CRITERIA)
    with pytest.raises(ProviderUnavailable):
        parse_response({"locationsPerGameObjectType": []}, MINION_CRITERIA)


def test_demo_provider_is_deterministic_and_inside_cell() -> None:
    cell = cell_for(LatLng(51.5, -0.12), 14)
    provider = DemoLocationProvider()

    first = provider.query(cell, default_criteria(2))
    second = provider.query(cell, default_criteria(2))

    assert first == second
    assert len(first) == 6
    assert all(cell.contains(raw.snapped_point) for raw in first)
    assert {raw.requested_type for raw in first} == set(GameObjectType)


def test_stub_provider_returns_nothing() -> None:
    assert StubLocationProvider().query(cell_for(LatLng(0.0, 0.0), 10), MINION_CRITERIA) == []


def _write_script(tmp_path: Path, body: str) -> Path:
    script = tmp_path / "fake_bridge.py"
    script.write_text(body.strip(), encoding="utf-8")
    return script


def test_cli_provider_roundtrip(tmp_path: Path) -> None:
    script = _write_script(
        tmp_path,
        """
import json, sys
request = json.load(sys.stdin)
token = request["cell"]["token"]
count = request["criteria"][0]["filter"]["maxLocationCount"]
print(json.dumps({"locationsPerGameObjectType": {"0": {"locations": [
    {"placeId": f"{token}-{i}", "snappedPoint": {"latitude": 1.0, "longitude": 2.0}, "types": ["park"]}
    for i in range(count)
]}}}))
""",
    )
    cell = cell_for(LatLng(1.0, 2.0), 12)
    provider = PlayableLocationsCliProvider(binary_path=sys.executable, extra_args=(str(script),))

    raws = provider.query(cell, MINION_CRITERIA)

    assert [raw.place_id for raw in raws] == [f"{cell.token}-0", f"{cell.token}-1"]
    assert raws[0].types == ("park",)


def test_cli_provider_failures_surface_as_unavailable(tmp_path: Path) -> None:
    cell = cell_for(LatLng(1.0, 2.0), 12)
    crashing = _write_script(tmp_path, "import sys\nsys.exit(3)")

    with pytest.raises(ProviderUnavailable) as excinfo:
        PlayableLocationsCliProvider(binary_path=sys.executable, extra_args=(str(crashing),)).query(cell, MINION_CRITERIA)
    assert excinfo.value.cell == cell

    with pytest.raises(ProviderUnavailable):
        PlayableLocationsCliProvider(binary_path=str(tmp_path / "missing-binary")).query(cell, MINION_CRITERIA)


def test_cli_provider_invalid_json(tmp_path: Path) -> None:
    script = _write_script(tmp_path, "print('not json')")
    cell = cell_for(LatLng(1.0, 2.0), 12)

    with pytest.raises(ProviderUnavailable, match="invalid JSON"):
        PlayableLocationsCliProvider(binary_path=sys.executable, extra_args=(str(script),)).query(cell, MINION_CRITERIA)
