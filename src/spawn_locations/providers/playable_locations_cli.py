"""Playable-locations provider backed by an external bridge binary.

The HTTP transport to the provider lives in the bridge. The binary must
support::

    sample-playable-locations --json

reading the request JSON (see :func:`build_request`) on stdin and printing
the provider response JSON on stdout.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from spawn_locations.errors import ProviderUnavailable
from spawn_locations.models import RawLocation
from spawn_locations.spatial import Cell

from .location_provider import LocationCriteria, build_request, parse_response


class PlayableLocationsCliProvider:
    def __init__(
        self,
        binary_path: str,
        *,
        extra_args: Sequence[str] = (),
        timeout_seconds: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.binary_path = str(Path(binary_path))
        self.extra_args = tuple(extra_args)
        self.timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger("spawn_locations.providers.cli")

    def query(self, cell: Cell, criteria: Sequence[LocationCriteria]) -> list[RawLocation]:
        request = build_request(cell, criteria)
        cmd = [self.binary_path, *self.extra_args, "sample-playable-locations", "--json"]

        try:
            result = subprocess.run(
                cmd,
                input=json.dumps(request),
                check=True,
                text=True,
                capture_output=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProviderUnavailable(
                f"Playable locations bridge timed out after {self.timeout_seconds}s", cell=cell
            ) from exc
        except (FileNotFoundError, subprocess.CalledProcessError) as exc:
            raise ProviderUnavailable(f"Playable locations bridge failed: {exc}", cell=cell) from exc

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise ProviderUnavailable("Playable locations bridge printed invalid JSON", cell=cell) from exc

        locations = parse_response(payload, criteria)
        self._logger.debug("provider_query_parsed", extra={"cell": cell.token, "count": len(locations)})
        return locations
