"""Spatial partitioning of the map surface."""

from .index import Cell, LatLng, cell_for, covering_cells, distance_meters

__all__ = ["Cell", "LatLng", "cell_for", "covering_cells", "distance_meters"]
