# src/globevec/primitives.py

"""
This module defines the geometry primitives shared by every vector shape:
points, rings (ordered point arrays) and the geographic bounding box (GeoMbr).
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple, Union

import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "GeoCoord",
    "Ring",
    "make_ring",
    "empty_ring",
    "GeoMbr"
]

GeoCoord = Tuple[float, float]

# (N, 2) or (N, 3) float64 array
Ring = np.ndarray

def empty_ring(dim: int = 2) -> Ring:
    return np.empty((0, dim), dtype=np.float64)

def make_ring(points: Union[Sequence, np.ndarray], dim: int = 2) -> Ring:
    """
    Normalize a point sequence into a ring array.

    Args:
        points: List of tuples or an array-like of shape (N, dim).
        dim: Expected number of columns (2 for lon/lat, 3 for lon/lat/z).

    Returns:
        Ring: Contiguous float64 array of shape (N, dim).

    Raises:
        ValueError: If the points do not have `dim` components each.
    """
    if dim not in (2, 3):
        raise ValueError(f"Ring dimension must be 2 or 3, got {dim}")

    arr = np.array(points, dtype=np.float64)
    if arr.size == 0:
        return empty_ring(dim)
    if arr.ndim != 2 or arr.shape[1] != dim:
        raise ValueError(f"Expected points of shape (N, {dim}), got {arr.shape}")
    return np.ascontiguousarray(arr)

@dataclass
class GeoMbr:
    """
    Minimum bounding rectangle in geographic degrees.

    A freshly constructed box is in the invalid sentinel state
    (ll = +inf, ur = -inf) until at least one point is added.

    Args:
        ll: Lower-left corner as (lon, lat).
        ur: Upper-right corner as (lon, lat).
    """
    ll: GeoCoord = field(default=(math.inf, math.inf))
    ur: GeoCoord = field(default=(-math.inf, -math.inf))

    @property
    def valid(self) -> bool:
        return self.ll[0] <= self.ur[0] and self.ll[1] <= self.ur[1]

    @property
    def width(self) -> float:
        return self.ur[0] - self.ll[0] if self.valid else 0.0

    @property
    def height(self) -> float:
        return self.ur[1] - self.ll[1] if self.valid else 0.0

    @property
    def center(self) -> GeoCoord:
        if not self.valid:
            return (math.nan, math.nan)
        return ((self.ll[0] + self.ur[0]) / 2.0, (self.ll[1] + self.ur[1]) / 2.0)

    def reset(self):
        self.ll = (math.inf, math.inf)
        self.ur = (-math.inf, -math.inf)

    def add_point(self, coord: GeoCoord):
        x, y = float(coord[0]), float(coord[1])
        self.ll = (min(self.ll[0], x), min(self.ll[1], y))
        self.ur = (max(self.ur[0], x), max(self.ur[1], y))

    def add_points(self, points: Union[Iterable[GeoCoord], np.ndarray]):
        """Grow the box to include every (x, y) in `points`; extra columns are ignored."""
        arr = np.asarray(points, dtype=np.float64)
        if arr.size == 0:
            return
        arr = arr.reshape(-1, arr.shape[-1])
        mins = arr[:, :2].min(axis=0)
        maxs = arr[:, :2].max(axis=0)
        self.add_point((mins[0], mins[1]))
        self.add_point((maxs[0], maxs[1]))

    def expand(self, other: "GeoMbr"):
        """Union with another box. Invalid boxes contribute nothing."""
        if not other.valid:
            return
        self.add_point(other.ll)
        self.add_point(other.ur)

    def inside(self, coord: GeoCoord) -> bool:
        if not self.valid:
            return False
        return (self.ll[0] <= coord[0] <= self.ur[0]) and (self.ll[1] <= coord[1] <= self.ur[1])

    def overlaps(self, other: "GeoMbr") -> bool:
        if not (self.valid and other.valid):
            return False
        return not (
            other.ur[0] < self.ll[0] or other.ll[0] > self.ur[0] or
            other.ur[1] < self.ll[1] or other.ll[1] > self.ur[1]
        )

    def copy(self) -> "GeoMbr":
        return GeoMbr(self.ll, self.ur)

    def __repr__(self):
        if not self.valid:
            return "<GeoMbr invalid>"
        return f"<GeoMbr ll={self.ll} ur={self.ur}>"
