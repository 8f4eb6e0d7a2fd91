# src/globevec/geometry/subdivide.py

"""
This module implements edge subdivision for rings.

Three strategies are provided:
    - Tolerance: split edges longer than a maximum chord length.
    - Surface deviation: split edges whose straight chord strays too far from the
      curved display surface described by a DisplayAdapter.
    - Great circle: like surface deviation, but emits display-space points on the
      great-circle arc between projected endpoints.

Every function takes a `closed` flag. When True, the wrap-around edge from the
last point back to the first is subdivided as well.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from globevec.primitives import Ring, empty_ring
from globevec.geometry.adapter import DisplayAdapter

log = logging.getLogger(__name__)

__all__ = [
    "SubdivisionParams",
    "subdivide_edges",
    "subdivide_edges_to_surface",
    "subdivide_edges_to_surface_gc"
]

@dataclass(frozen=True)
class SubdivisionParams:
    """
    Limits shared by the recursive subdivision strategies.

    Args:
        max_depth (int): Maximum recursion depth per edge. Each level halves the edge,
            so 24 levels resolve an edge into at most 2**24 pieces.
        dateline_span (float): Edges spanning more than this many degrees of longitude
            are assumed to cross the date line and are left untouched.
    """
    max_depth: int = 24
    dateline_span: float = 180.0

DEFAULT_PARAMS = SubdivisionParams()

def _edge_count(n: int, closed: bool) -> int:
    return n if closed else n - 1

def subdivide_edges(ring: Ring, closed: bool, max_len: float) -> Tuple[Ring, bool]:
    """
    Break every edge longer than `max_len` into equal sub-segments.

    Works for both 2D and 3D rings; the length is measured over all columns.

    Args:
        ring (Ring): Input (N, 2) or (N, 3) points.
        closed (bool): Whether the last point connects back to the first.
        max_len (float): Maximum chord length, in ring units.

    Returns:
        Tuple[Ring, bool]: The densified ring and whether any edge was split.

    Raises:
        ValueError: If max_len is not positive.
    """
    if max_len <= 0:
        raise ValueError(f"max_len must be positive, got {max_len}")

    ring = np.asarray(ring, dtype=np.float64)
    n = len(ring)
    if n < 2:
        return ring.copy(), False

    out: List[np.ndarray] = []
    split = False
    for ii in range(_edge_count(n, closed)):
        p0 = ring[ii]
        p1 = ring[(ii + 1) % n]
        out.append(p0[np.newaxis, :])

        delta = p1 - p0
        dist = float(np.sqrt(np.dot(delta, delta)))
        if dist > max_len:
            pieces = int(math.ceil(dist / max_len))
            t = np.arange(1, pieces, dtype=np.float64) / pieces
            out.append(p0 + t[:, np.newaxis] * delta)
            split = True

    if not closed:
        out.append(ring[-1:])

    return np.vstack(out), split

def _recurse_surface(
    p0: np.ndarray,
    p1: np.ndarray,
    d0: np.ndarray,
    d1: np.ndarray,
    out: List[np.ndarray],
    adapter: DisplayAdapter,
    eps2: float,
    depth: int,
    params: SubdivisionParams
):
    """
    Helper that appends the interior points of edge p0->p1, in order.

    Args:
        p0, p1: Geographic endpoints (x/y used for projection, all columns interpolated).
        d0, d1: Their projected display positions.
        out: Accumulator for the interior points.
        eps2: Squared deviation tolerance.
    """
    if depth >= params.max_depth:
        return

    mid = (p0 + p1) / 2.0
    d_mid = np.asarray(adapter.geo_to_display(mid[0], mid[1]), dtype=np.float64)
    chord_mid = (d0 + d1) / 2.0
    diff = chord_mid - d_mid
    if np.dot(diff, diff) > eps2:
        _recurse_surface(p0, mid, d0, d_mid, out, adapter, eps2, depth + 1, params)
        out.append(mid)
        _recurse_surface(mid, p1, d_mid, d1, out, adapter, eps2, depth + 1, params)

def subdivide_edges_to_surface(
    ring: Ring,
    closed: bool,
    adapter: DisplayAdapter,
    eps: float,
    params: Optional[SubdivisionParams] = None
) -> Ring:
    """
    Break any edge whose straight chord deviates from the display surface by more than `eps`.

    For each edge the projected chord midpoint is compared against the projection
    of the geographic midpoint. While they differ by more than `eps` (display units)
    the geographic midpoint is inserted and both halves are examined again.

    Args:
        ring (Ring): Geographic (N, 2) or (N, 3) points in degrees. z is interpolated linearly.
        closed (bool): Whether the last point connects back to the first.
        adapter (DisplayAdapter): Projection to display space.
        eps (float): Maximum allowed deviation in display units.
        params (SubdivisionParams): Recursion limits.

    Returns:
        Ring: Densified ring in the same geographic space and dimension as the input.
    """
    params = params or DEFAULT_PARAMS
    ring = np.asarray(ring, dtype=np.float64)
    n = len(ring)
    if n < 2:
        return ring.copy()

    eps2 = float(eps) * float(eps)
    projected = [np.asarray(adapter.geo_to_display(p[0], p[1]), dtype=np.float64) for p in ring]

    out: List[np.ndarray] = []
    for ii in range(_edge_count(n, closed)):
        jj = (ii + 1) % n
        p0, p1 = ring[ii], ring[jj]
        out.append(p0)
        if abs(p0[0] - p1[0]) > params.dateline_span:
            log.debug(f"Skipping edge {ii}: spans {abs(p0[0] - p1[0]):.1f} degrees of longitude")
            continue
        _recurse_surface(p0, p1, projected[ii], projected[jj], out, adapter, eps2, 0, params)

    if not closed:
        out.append(ring[-1])

    return np.vstack(out)

def _recurse_gc(
    d0: np.ndarray,
    d1: np.ndarray,
    out: List[np.ndarray],
    eps2: float,
    radius: float,
    min_pts: int,
    depth: int,
    params: SubdivisionParams
):
    if depth >= params.max_depth:
        return

    mid = (d0 + d1) / 2.0
    norm = float(np.linalg.norm(mid))
    if norm == 0.0:
        # antipodal endpoints, the arc is ambiguous
        return

    mid_on_sphere = mid / norm * radius
    diff = mid_on_sphere - mid
    if np.dot(diff, diff) > eps2 or min_pts > 0:
        _recurse_gc(d0, mid_on_sphere, out, eps2, radius, min_pts // 2, depth + 1, params)
        out.append(mid_on_sphere)
        _recurse_gc(mid_on_sphere, d1, out, eps2, radius, min_pts // 2, depth + 1, params)

def subdivide_edges_to_surface_gc(
    ring: Ring,
    closed: bool,
    adapter: DisplayAdapter,
    eps: float,
    sphere_offset: float = 0.0,
    min_pts: int = 0,
    params: Optional[SubdivisionParams] = None
) -> Ring:
    """
    Subdivide edges along great circles, emitting points in display space.

    Endpoints are projected through the adapter and scaled outward by
    1 + sphere_offset, so a globe of radius R yields points on the sphere of
    radius R * (1 + sphere_offset). Each edge is then split by pushing its chord
    midpoint onto the sphere through its endpoints, recursively, until the chord
    deviates by no more than `eps`.

    Args:
        ring (Ring): Geographic (N, 2) points in degrees.
        closed (bool): Whether the last point connects back to the first.
        adapter (DisplayAdapter): Projection to display space.
        eps (float): Maximum allowed deviation in display units.
        sphere_offset (float): Outward offset as a fraction of the globe radius.
        min_pts (int): Minimum number of interpolated points per edge, regardless of deviation.
        params (SubdivisionParams): Recursion limits.

    Returns:
        Ring: (M, 3) display-space points.
    """
    params = params or DEFAULT_PARAMS
    ring = np.asarray(ring, dtype=np.float64)
    n = len(ring)
    if n == 0:
        return empty_ring(3)

    scale = 1.0 + sphere_offset
    projected = [
        np.asarray(adapter.geo_to_display(p[0], p[1]), dtype=np.float64) * scale for p in ring
    ]
    if n == 1:
        return np.vstack(projected)

    eps2 = float(eps) * float(eps)
    out: List[np.ndarray] = []
    for ii in range(_edge_count(n, closed)):
        jj = (ii + 1) % n
        out.append(projected[ii])
        radius = (float(np.linalg.norm(projected[ii])) + float(np.linalg.norm(projected[jj]))) / 2.0
        _recurse_gc(projected[ii], projected[jj], out, eps2, radius, max(0, int(min_pts)), 0, params)

    if not closed:
        out.append(projected[-1])

    return np.vstack(out)
