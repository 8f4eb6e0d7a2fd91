# src/globevec/vector/shapes.py

"""
This module defines the vector shape data model.

A VectorShape is a tagged variant: common state (identity, attribute map,
bounding box) plus exactly one payload from a closed set of five kinds.
Kind-specific behaviour is dispatched through the tables at the bottom of
this module rather than through subclassing.
"""

import itertools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NewType, Union

import numpy as np

from globevec.primitives import GeoCoord, GeoMbr, Ring, empty_ring, make_ring
from globevec.geometry.measure import calc_rings_mbr
from globevec.geometry.subdivide import subdivide_edges
from globevec.geometry.intersect import areal_point_inside, triangles_point_inside

log = logging.getLogger(__name__)

__all__ = [
    "ShapeId",
    "ShapeKind",
    "AttrValue",
    "ArealData",
    "LinearData",
    "Linear3dData",
    "PointsData",
    "TrianglesData",
    "VectorShape",
    "create_areal",
    "create_linear",
    "create_linear3d",
    "create_points",
    "create_triangles",
    "create_shape"
]

ShapeId = NewType("ShapeId", int)
AttrValue = Union[str, int, float, bool, None]

_ATTR_TYPES = (str, int, float, bool, type(None))

_id_counter = itertools.count(1)
_id_lock = threading.Lock()

def _next_ident() -> ShapeId:
    with _id_lock:
        return ShapeId(next(_id_counter))

class ShapeKind(Enum):
    """
    The closed set of vector shape variants.

    Kinds:
        AREAL: Outer loop plus zero or more hole loops.
        LINEAR: Open 2D polyline.
        LINEAR3D: Open polyline carrying z.
        POINTS: Unrelated points sharing one attribute set.
        TRIANGLES: Indexed triangle mesh over a shared vertex buffer.
    """
    AREAL = 1
    LINEAR = 2
    LINEAR3D = 3
    POINTS = 4
    TRIANGLES = 5

@dataclass
class ArealData:
    """Loop 0 is the outer boundary; the rest are holes lying inside it (not checked)."""
    loops: List[Ring] = field(default_factory=list)

    def add_loop(self, points) -> Ring:
        ring = make_ring(points, dim=2)
        self.loops.append(ring)
        return ring

@dataclass
class LinearData:
    pts: Ring = field(default_factory=lambda: empty_ring(2))

@dataclass
class Linear3dData:
    pts: Ring = field(default_factory=lambda: empty_ring(3))

@dataclass
class PointsData:
    pts: Ring = field(default_factory=lambda: empty_ring(2))

@dataclass
class TrianglesData:
    """
    Triangle mesh payload.

    Args:
        pts: (N, 3) vertex buffer as lon, lat, z.
        tris: (M, 3) int64 index triples into `pts`.
    """
    pts: Ring = field(default_factory=lambda: empty_ring(3))
    tris: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))

    def add_triangle(self, i0: int, i1: int, i2: int):
        tri = np.array([[i0, i1, i2]], dtype=np.int64)
        self.tris = np.vstack([self.tris, tri])

    def get_triangle(self, which: int) -> Ring:
        """Return triangle `which` as a (3, 3) ring of its vertices."""
        return self.pts[self.tris[which]].copy()

    def validate(self):
        """
        Check that every index triple points into the vertex buffer.

        Raises:
            ValueError: On malformed triples or out-of-range indices.
        """
        if self.tris.ndim != 2 or (self.tris.size and self.tris.shape[1] != 3):
            raise ValueError(f"Triangle indices must have shape (M, 3), got {self.tris.shape}")
        if self.tris.size == 0:
            return
        lo, hi = int(self.tris.min()), int(self.tris.max())
        if lo < 0 or hi >= len(self.pts):
            raise ValueError(
                f"Triangle index out of range [{lo}, {hi}] for {len(self.pts)} vertices"
            )

Payload = Union[ArealData, LinearData, Linear3dData, PointsData, TrianglesData]

class VectorShape:
    """
    A single vector feature: identity, attributes, cached bounding box and a kind-specific payload.

    Shapes hash and compare by identity only. Two shapes with identical geometry
    are still distinct. Use the create_* factories rather than calling this directly.
    """

    __slots__ = ("_ident", "_attributes", "geo_mbr", "_kind", "_payload")

    def __init__(self, kind: ShapeKind, payload: Payload):
        if not isinstance(payload, _PAYLOAD_TYPES[kind]):
            raise TypeError(f"{kind.name} shape requires {_PAYLOAD_TYPES[kind].__name__}, got {type(payload)}")
        self._ident = _next_ident()
        self._attributes: Dict[str, AttrValue] = {}
        self.geo_mbr = GeoMbr()
        self._kind = kind
        self._payload = payload

    @property
    def ident(self) -> ShapeId:
        return self._ident

    @property
    def kind(self) -> ShapeKind:
        return self._kind

    @property
    def payload(self) -> Payload:
        return self._payload

    # --- Attributes ---

    @property
    def attributes(self) -> Dict[str, AttrValue]:
        return self._attributes

    def get_attribute(self, key: str, default: Any = None) -> AttrValue:
        return self._attributes.get(key, default)

    def set_attribute(self, key: str, value: Any):
        if not isinstance(key, str):
            raise TypeError(f"Attribute keys must be str, got {type(key)}")
        if isinstance(value, np.generic):
            value = value.item()
        if not isinstance(value, _ATTR_TYPES):
            raise TypeError(f"Unsupported attribute type for '{key}': {type(value)}")
        self._attributes[key] = value

    def set_attributes(self, attrs: Mapping[str, Any]):
        """Replace the attribute map with a private copy of `attrs`."""
        self._attributes = {}
        for key, value in attrs.items():
            self.set_attribute(key, value)

    # --- Variant access ---

    def _expect(self, kind: ShapeKind):
        if self._kind is not kind:
            raise TypeError(f"Shape {self._ident} is {self._kind.name}, not {kind.name}")
        return self._payload

    def as_areal(self) -> ArealData:
        return self._expect(ShapeKind.AREAL)

    def as_linear(self) -> LinearData:
        return self._expect(ShapeKind.LINEAR)

    def as_linear3d(self) -> Linear3dData:
        return self._expect(ShapeKind.LINEAR3D)

    def as_points(self) -> PointsData:
        return self._expect(ShapeKind.POINTS)

    def as_triangles(self) -> TrianglesData:
        return self._expect(ShapeKind.TRIANGLES)

    def rings(self) -> List[Ring]:
        """All point arrays making up this shape, in payload order."""
        return _RINGS[self._kind](self._payload)

    def num_points(self) -> int:
        return sum(len(r) for r in self.rings())

    # --- Geometry ---

    def calc_geo_mbr(self) -> GeoMbr:
        return calc_rings_mbr(self.rings())

    def init_geo_mbr(self) -> GeoMbr:
        self.geo_mbr = self.calc_geo_mbr()
        return self.geo_mbr

    def point_inside(self, coord: GeoCoord) -> bool:
        """
        Containment test for AREAL and TRIANGLES shapes.

        Raises:
            TypeError: For kinds without an interior.
        """
        test = _POINT_INSIDE.get(self._kind)
        if test is None:
            raise TypeError(f"point_inside is not defined for {self._kind.name} shapes")
        mbr = self.geo_mbr if self.geo_mbr.valid else self.calc_geo_mbr()
        if not mbr.inside(coord):
            return False
        return test(self._payload, coord)

    def subdivide(self, tolerance: float) -> bool:
        """
        Split long edges in place so no edge exceeds `tolerance` degrees.

        AREAL loops are treated as closed, LINEAR polylines as open. The cached
        bounding box is replaced by an invalid one and must be recomputed.

        Returns:
            bool: True if any edge was split.
        """
        if self._kind is ShapeKind.AREAL:
            split = False
            new_loops = []
            for loop in self._payload.loops:
                out, did = subdivide_edges(loop, True, tolerance)
                new_loops.append(out)
                split = split or did
            self._payload.loops = new_loops
        elif self._kind is ShapeKind.LINEAR:
            self._payload.pts, split = subdivide_edges(self._payload.pts, False, tolerance)
        else:
            raise TypeError(f"subdivide is not defined for {self._kind.name} shapes")

        self.geo_mbr = GeoMbr()
        return split

    def __hash__(self):
        return hash(self._ident)

    def __eq__(self, other):
        if not isinstance(other, VectorShape):
            return NotImplemented
        return self._ident == other._ident

    def __repr__(self):
        return f"<VectorShape id={self._ident} kind={self._kind.name} points={self.num_points()}>"

def create_areal() -> VectorShape:
    return VectorShape(ShapeKind.AREAL, ArealData())

def create_linear() -> VectorShape:
    return VectorShape(ShapeKind.LINEAR, LinearData())

def create_linear3d() -> VectorShape:
    return VectorShape(ShapeKind.LINEAR3D, Linear3dData())

def create_points() -> VectorShape:
    return VectorShape(ShapeKind.POINTS, PointsData())

def create_triangles() -> VectorShape:
    return VectorShape(ShapeKind.TRIANGLES, TrianglesData())

# Kind dispatch tables

_PAYLOAD_TYPES = {
    ShapeKind.AREAL: ArealData,
    ShapeKind.LINEAR: LinearData,
    ShapeKind.LINEAR3D: Linear3dData,
    ShapeKind.POINTS: PointsData,
    ShapeKind.TRIANGLES: TrianglesData,
}

_RINGS: Dict[ShapeKind, Callable[[Any], List[Ring]]] = {
    ShapeKind.AREAL: lambda p: list(p.loops),
    ShapeKind.LINEAR: lambda p: [p.pts],
    ShapeKind.LINEAR3D: lambda p: [p.pts],
    ShapeKind.POINTS: lambda p: [p.pts],
    # unreferenced vertices still count toward the box
    ShapeKind.TRIANGLES: lambda p: [p.pts],
}

_POINT_INSIDE: Dict[ShapeKind, Callable[[Any, GeoCoord], bool]] = {
    ShapeKind.AREAL: lambda p, c: areal_point_inside(p.loops, c),
    ShapeKind.TRIANGLES: lambda p, c: triangles_point_inside(p.pts, p.tris, c),
}

_FACTORIES: Dict[ShapeKind, Callable[[], VectorShape]] = {
    ShapeKind.AREAL: create_areal,
    ShapeKind.LINEAR: create_linear,
    ShapeKind.LINEAR3D: create_linear3d,
    ShapeKind.POINTS: create_points,
    ShapeKind.TRIANGLES: create_triangles,
}

def create_shape(kind: ShapeKind) -> VectorShape:
    """Factory lookup by kind, used by readers that decode a kind tag."""
    return _FACTORIES[kind]()
