# src/globevec/geometry/measure.py

"""
This module provides measurement functions over rings: bounding boxes,
signed loop area, area-weighted centroid and plain center of mass.
"""

import logging
from typing import Iterable, Tuple

import numpy as np

from globevec.primitives import GeoMbr, Ring

log = logging.getLogger(__name__)

__all__ = [
    "calc_ring_mbr",
    "calc_rings_mbr",
    "calc_loop_area",
    "calc_loop_centroid",
    "calc_center_of_mass"
]

def calc_ring_mbr(ring: Ring) -> GeoMbr:
    """Bounding box of the x/y columns of a single ring; invalid if the ring is empty."""
    mbr = GeoMbr()
    mbr.add_points(ring)
    return mbr

def calc_rings_mbr(rings: Iterable[Ring]) -> GeoMbr:
    mbr = GeoMbr()
    for ring in rings:
        mbr.add_points(ring)
    return mbr

def _shifted_xy(ring: Ring, dtype) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    # Translate to the first vertex so large magnitudes don't cancel in the cross terms
    xy = np.asarray(ring, dtype=np.float64)[:, :2]
    origin = xy[0].copy()
    local = (xy - origin).astype(dtype)
    return local[:, 0], local[:, 1], origin

def calc_loop_area(ring: Ring, dtype=np.float64) -> float:
    """
    Signed planar area of a loop using the shoelace formula.

    The loop is implicitly closed (last point connects to the first).
    Positive area means counter-clockwise winding.

    Args:
        ring (Ring): (N, 2) or (N, 3) array; only x/y are used.
        dtype: Accumulation precision, np.float32 or np.float64.

    Returns:
        float: Signed area in squared ring units. 0.0 for fewer than 3 points.
    """
    if len(ring) < 3:
        return 0.0

    x, y, _ = _shifted_xy(ring, dtype)
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    return float(np.sum(cross, dtype=dtype) / dtype(2.0))

def calc_loop_centroid(ring: Ring, dtype=np.float64) -> Tuple[float, float]:
    """
    Area-weighted centroid of a closed loop.

    Args:
        ring (Ring): (N, 2) or (N, 3) array; only x/y are used.
        dtype: Accumulation precision, np.float32 or np.float64.

    Returns:
        Tuple[float, float]: Centroid (x, y), or (nan, nan) for a degenerate loop
        with zero area. Callers should fall back to calc_center_of_mass then.
    """
    if len(ring) < 3:
        return (float("nan"), float("nan"))

    x, y, origin = _shifted_xy(ring, dtype)
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y

    area = np.sum(cross, dtype=dtype) / dtype(2.0)
    if area == 0.0:
        log.debug("Zero-area loop, centroid undefined")
        return (float("nan"), float("nan"))

    cx = np.sum((x + x1) * cross, dtype=dtype) / (dtype(6.0) * area)
    cy = np.sum((y + y1) * cross, dtype=dtype) / (dtype(6.0) * area)
    return (float(cx) + float(origin[0]), float(cy) + float(origin[1]))

def calc_center_of_mass(ring: Ring) -> Tuple[float, float]:
    """Unweighted mean of the point positions, always in double precision."""
    if len(ring) == 0:
        return (float("nan"), float("nan"))
    mean = np.asarray(ring, dtype=np.float64)[:, :2].mean(axis=0)
    return (float(mean[0]), float(mean[1]))
