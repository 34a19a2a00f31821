"""Quadtree partition of the lat/lng plane into fixed-level cells.

At level ``L`` the equirectangular world is split into ``2**L`` columns over
longitude ``[-180, 180)`` and ``2**L`` rows over latitude ``[-90, 90)``.
Cells are half-open; the north and east world edges fall into the last
row/column.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from spawn_locations.errors import InvalidRegion

MAX_LEVEL = 30
EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True, slots=True, order=True)
class LatLng:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        return -90.0 <= self.lat <= 90.0 and -180.0 <= self.lng <= 180.0


@dataclass(frozen=True, slots=True, order=True)
class Cell:
    """One quadtree cell, immutable once computed."""

    level: int
    x: int
    y: int

    def __post_init__(self) -> None:
        if not 0 <= self.level <= MAX_LEVEL:
            raise ValueError(f"Cell level must be within 0..{MAX_LEVEL}, got {self.level}")
        size = 1 << self.level
        if not (0 <= self.x < size and 0 <= self.y < size):
            raise ValueError(f"Cell index ({self.x}, {self.y}) out of range for level {self.level}")

    @property
    def token(self) -> str:
        """Quadkey: one digit per level, most significant level first."""
        digits = []
        for i in range(self.level, 0, -1):
            bit = 1 << (i - 1)
            digit = (1 if self.x & bit else 0) + (2 if self.y & bit else 0)
            digits.append(str(digit))
        return "".join(digits)

    @classmethod
    def from_token(cls, token: str) -> Cell:
        x = y = 0
        for char in token:
            if char not in "0123":
                raise ValueError(f"Invalid cell token: {token!r}")
            digit = int(char)
            x = (x << 1) | (digit & 1)
            y = (y << 1) | (digit >> 1)
        return cls(level=len(token), x=x, y=y)

    def parent(self) -> Cell:
        if self.level == 0:
            raise ValueError("The root cell has no parent")
        return Cell(level=self.level - 1, x=self.x >> 1, y=self.y >> 1)

    def bounds(self) -> tuple[LatLng, LatLng]:
        """Return the (southwest, northeast) corners."""
        size = 1 << self.level
        lng_step = 360.0 / size
        lat_step = 180.0 / size
        west = -180.0 + self.x * lng_step
        south = -90.0 + self.y * lat_step
        return LatLng(south, west), LatLng(south + lat_step, west + lng_step)

    def center(self) -> LatLng:
        low, high = self.bounds()
        return LatLng((low.lat + high.lat) / 2.0, (low.lng + high.lng) / 2.0)

    def contains(self, point: LatLng) -> bool:
        return point.is_valid() and cell_for(point, self.level) == self


def cell_for(point: LatLng, level: int) -> Cell:
    if not point.is_valid():
        raise InvalidRegion(f"Coordinate out of range: {point}")
    size = 1 << level
    x = min(int(math.floor((point.lng + 180.0) / 360.0 * size)), size - 1)
    y = min(int(math.floor((point.lat + 90.0) / 180.0 * size)), size - 1)
    return Cell(level=level, x=x, y=y)


def covering_cells(low: LatLng, high: LatLng, level: int, *, max_cells: int | None = None) -> frozenset[Cell]:
    """Return the minimal set of ``level`` cells covering the closed rectangle ``low``..``high``."""
    if not low.is_valid() or not high.is_valid():
        raise InvalidRegion(f"Region corners out of range: low={low}, high={high}")
    if not (low.lat < high.lat and low.lng < high.lng):
        raise InvalidRegion(f"Region low corner must be strictly southwest of high corner: low={low}, high={high}")

    southwest = cell_for(low, level)
    northeast = cell_for(high, level)
    count = (northeast.x - southwest.x + 1) * (northeast.y - southwest.y + 1)
    if max_cells is not None and count > max_cells:
        raise InvalidRegion(f"Region spans {count} cells at level {level}; the limit is {max_cells}")

    return frozenset(
        Cell(level=level, x=x, y=y)
        for x in range(southwest.x, northeast.x + 1)
        for y in range(southwest.y, northeast.y + 1)
    )


def distance_meters(a: LatLng, b: LatLng) -> float:
    """Great-circle (haversine) distance."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))
