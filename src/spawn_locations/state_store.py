"""Write-through persistence for the mutable part of spawn locations."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol

from spawn_locations.models import LocationState


@dataclass(frozen=True, slots=True)
class StoredLocationState:
    location_id: str
    state: LocationState
    respawn_time: datetime | None = None


class LocationStateStore(Protocol):
    """Persistence contract keyed by location id."""

    def load(self, location_id: str) -> StoredLocationState | None:
        """Return the last saved state for ``location_id``."""

    def save(self, record: StoredLocationState) -> None:
        """Persist the current state of one location."""

    def clear(self) -> None:
        """Forget every saved location."""


class InMemoryLocationStore:
    def __init__(self) -> None:
        self._records: dict[str, StoredLocationState] = {}

    def load(self, location_id: str) -> StoredLocationState | None:
        return self._records.get(location_id)

    def save(self, record: StoredLocationState) -> None:
        self._records[record.location_id] = record

    def clear(self) -> None:
        self._records.clear()


class JsonlLocationStore:
    """Append-only JSONL persistence; the last line for an id wins."""

    def __init__(self, file_path: str | Path, *, logger: logging.Logger | None = None) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._logger = logger or logging.getLogger("spawn_locations.state_store")

    def load(self, location_id: str) -> StoredLocationState | None:
        if not self._path.exists():
            return None

        found: StoredLocationState | None = None
        with self._path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    payload = json.loads(line)
                    if payload["id"] != location_id:
                        continue
                    respawn_time = payload.get("respawn_time")
                    found = StoredLocationState(
                        location_id=payload["id"],
                        state=LocationState(payload["state"]),
                        respawn_time=datetime.fromisoformat(respawn_time) if respawn_time else None,
                    )
                except (KeyError, TypeError, ValueError) as exc:
                    # A write interrupted mid-line leaves a truncated record.
                    self._logger.warning(
                        "stored_line_skipped",
                        extra={"path": str(self._path), "line": line_number, "error": str(exc)},
                    )
        return found

    def save(self, record: StoredLocationState) -> None:
        payload = {
            "id": record.location_id,
            "state": record.state.value,
            "respawn_time": record.respawn_time.isoformat() if record.respawn_time else None,
        }
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def clear(self) -> None:
        self._path.write_text("", encoding="utf-8")
