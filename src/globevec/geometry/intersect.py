# src/globevec/geometry/intersect.py

"""
This module implements geometric predicates over shapes:
point-in-polygon for loops, polygons with holes and triangle meshes,
and nearest ray/triangle-mesh intersection.

The inner loops are compiled with numba, as with the other per-element kernels in the package.
"""

import logging
from typing import TYPE_CHECKING, NamedTuple, Optional, Sequence, Union

import numpy as np
from numba import jit

from globevec.primitives import GeoCoord, Ring

if TYPE_CHECKING:
    from globevec.vector.shapes import TrianglesData, VectorShape

log = logging.getLogger(__name__)

__all__ = [
    "RAY_EPSILON",
    "RayHit",
    "point_in_polygon",
    "areal_point_inside",
    "triangles_point_inside",
    "ray_intersect_triangles"
]

RAY_EPSILON = 1e-9

class RayHit(NamedTuple):
    """
    Nearest ray/mesh intersection.

    Args:
        t (float): Distance along the ray direction (in units of |direction|).
        point (np.ndarray): Intersection point, origin + t * direction.
        triangle (int): Index of the triangle hit.
    """
    t: float
    point: np.ndarray
    triangle: int

@jit(nopython=True, cache=True)
def _crossing_test(xs: np.ndarray, ys: np.ndarray, px: float, py: float) -> bool:
    """
    Even-odd crossing test of a horizontal ray from (px, py) against an implicitly closed loop.
    """
    inside = False
    n = xs.shape[0]
    j = n - 1
    for i in range(n):
        yi = ys[i]
        yj = ys[j]
        if (yi > py) != (yj > py):
            x_cross = (xs[j] - xs[i]) * (py - yi) / (yj - yi) + xs[i]
            if px < x_cross:
                inside = not inside
        j = i
    return inside

@jit(nopython=True, cache=True)
def _point_in_triangles(pts: np.ndarray, tris: np.ndarray, px: float, py: float) -> bool:
    """
    Edge-sign test on x/y of each triangle. Returns at the first containing triangle.
    """
    for k in range(tris.shape[0]):
        ax = pts[tris[k, 0], 0]
        ay = pts[tris[k, 0], 1]
        bx = pts[tris[k, 1], 0]
        by = pts[tris[k, 1], 1]
        cx = pts[tris[k, 2], 0]
        cy = pts[tris[k, 2], 1]

        d1 = (px - bx) * (ay - by) - (ax - bx) * (py - by)
        d2 = (px - cx) * (by - cy) - (bx - cx) * (py - cy)
        d3 = (px - ax) * (cy - ay) - (cx - ax) * (py - ay)

        has_neg = (d1 < 0.0) or (d2 < 0.0) or (d3 < 0.0)
        has_pos = (d1 > 0.0) or (d2 > 0.0) or (d3 > 0.0)
        if not (has_neg and has_pos):
            return True
    return False

@jit(nopython=True, cache=True)
def _ray_triangles(
    pts: np.ndarray,
    tris: np.ndarray,
    ox: float, oy: float, oz: float,
    dx: float, dy: float, dz: float,
    eps: float
):
    """
    Moller-Trumbore test against every triangle, keeping the smallest t > eps.

    The direction must be unit length. Both tolerances are scaled by the
    triangle edge lengths so small triangles are tested as reliably as large ones.

    Returns:
        (best_t, best_index); best_index is -1 when nothing was hit.
    """
    best_t = np.inf
    best_k = -1
    for k in range(tris.shape[0]):
        i0 = tris[k, 0]
        i1 = tris[k, 1]
        i2 = tris[k, 2]

        e1x = pts[i1, 0] - pts[i0, 0]
        e1y = pts[i1, 1] - pts[i0, 1]
        e1z = pts[i1, 2] - pts[i0, 2]
        e2x = pts[i2, 0] - pts[i0, 0]
        e2y = pts[i2, 1] - pts[i0, 1]
        e2z = pts[i2, 2] - pts[i0, 2]

        # h = dir x e2
        hx = dy * e2z - dz * e2y
        hy = dz * e2x - dx * e2z
        hz = dx * e2y - dy * e2x
        a = e1x * hx + e1y * hy + e1z * hz
        n1 = np.sqrt(e1x * e1x + e1y * e1y + e1z * e1z)
        n2 = np.sqrt(e2x * e2x + e2y * e2y + e2z * e2z)
        if abs(a) <= eps * n1 * n2:
            continue  # parallel to the triangle plane, or degenerate
        f = 1.0 / a

        sx = ox - pts[i0, 0]
        sy = oy - pts[i0, 1]
        sz = oz - pts[i0, 2]
        u = f * (sx * hx + sy * hy + sz * hz)
        if u < 0.0 or u > 1.0:
            continue

        # q = s x e1
        qx = sy * e1z - sz * e1y
        qy = sz * e1x - sx * e1z
        qz = sx * e1y - sy * e1x
        v = f * (dx * qx + dy * qy + dz * qz)
        if v < 0.0 or u + v > 1.0:
            continue

        t = f * (e2x * qx + e2y * qy + e2z * qz)
        if t > eps * max(n1, n2) and t < best_t:
            best_t = t
            best_k = k
    return best_t, best_k

def point_in_polygon(coord: GeoCoord, ring: Ring) -> bool:
    """
    Even-odd point-in-polygon test against a single implicitly closed loop.

    Args:
        coord (GeoCoord): Query (x, y).
        ring (Ring): Loop with at least 3 points; only x/y are used.

    Returns:
        bool: True if the crossing count is odd.
    """
    ring = np.asarray(ring, dtype=np.float64)
    if len(ring) < 3:
        return False
    xs = np.ascontiguousarray(ring[:, 0])
    ys = np.ascontiguousarray(ring[:, 1])
    return bool(_crossing_test(xs, ys, float(coord[0]), float(coord[1])))

def areal_point_inside(loops: Sequence[Ring], coord: GeoCoord) -> bool:
    """
    Polygon-with-holes containment.

    Loop 0 is the outer boundary, any further loops are holes. The point must be
    inside the outer loop and outside every hole.
    """
    if not loops:
        return False
    if not point_in_polygon(coord, loops[0]):
        return False
    for hole in loops[1:]:
        if point_in_polygon(coord, hole):
            return False
    return True

def triangles_point_inside(pts: Ring, tris: np.ndarray, coord: GeoCoord) -> bool:
    """
    True if (x, y) falls in any triangle of the mesh, edges included.
    """
    tris = np.asarray(tris, dtype=np.int64)
    if tris.size == 0:
        return False
    pts = np.ascontiguousarray(pts, dtype=np.float64)
    tris = np.ascontiguousarray(tris.reshape(-1, 3))
    return bool(_point_in_triangles(pts, tris, float(coord[0]), float(coord[1])))

def ray_intersect_triangles(
    org: Sequence[float],
    direction: Sequence[float],
    mesh: Union["TrianglesData", "VectorShape"]
) -> Optional[RayHit]:
    """
    Find the nearest intersection of a ray with a triangle mesh.

    Intersections behind the origin are ignored. When two triangles share the
    minimum distance, the first one in index order wins.

    Args:
        org: Ray origin (x, y, z) in the mesh's vertex space.
        direction: Ray direction; need not be normalized.
        mesh: A TRIANGLES shape or its TrianglesData payload.

    Returns:
        Optional[RayHit]: The nearest hit, or None if no triangle is hit.
    """
    if hasattr(mesh, "as_triangles"):
        mesh = mesh.as_triangles()

    tris = np.asarray(mesh.tris, dtype=np.int64)
    if tris.size == 0:
        return None

    org = np.asarray(org, dtype=np.float64)
    direction = np.asarray(direction, dtype=np.float64)
    if not np.any(direction):
        log.debug("Zero-length ray direction, no intersection possible")
        return None

    length = float(np.linalg.norm(direction))
    unit = direction / length

    pts = np.ascontiguousarray(mesh.pts, dtype=np.float64)
    tris = np.ascontiguousarray(tris.reshape(-1, 3))
    dist, best_k = _ray_triangles(
        pts, tris,
        org[0], org[1], org[2],
        unit[0], unit[1], unit[2],
        RAY_EPSILON
    )
    if best_k < 0:
        return None

    # kernel distance is along the unit direction; report t in units of |direction|
    return RayHit(t=float(dist) / length, point=org + dist * unit, triangle=int(best_k))
