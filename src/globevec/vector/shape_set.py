# src/globevec/vector/shape_set.py

"""
This module defines ShapeSet, the collection used to hand mixed-kind shapes between producers and consumers.
"""

import logging
from collections.abc import MutableSet
from typing import Dict, Iterable, Iterator, List, Optional

from globevec.primitives import GeoMbr
from globevec.vector.shapes import ShapeId, ShapeKind, VectorShape

log = logging.getLogger(__name__)

__all__ = [
    "ShapeSet"
]

class ShapeSet(MutableSet):
    """
    A set of shapes unique by identity, not by content.

    Adding the same shape twice is a no-op; two shapes with identical geometry
    are both kept. Iteration order carries no meaning.
    """

    def __init__(self, shapes: Optional[Iterable[VectorShape]] = None):
        self._shapes: Dict[ShapeId, VectorShape] = {}
        if shapes is not None:
            for shape in shapes:
                self.add(shape)

    def add(self, shape: VectorShape):
        if not isinstance(shape, VectorShape):
            raise TypeError(f"Expected VectorShape, got {type(shape)}")
        self._shapes.setdefault(shape.ident, shape)

    def discard(self, shape: VectorShape):
        self._shapes.pop(getattr(shape, "ident", None), None)

    def __contains__(self, shape) -> bool:
        return isinstance(shape, VectorShape) and shape.ident in self._shapes

    def __iter__(self) -> Iterator[VectorShape]:
        return iter(list(self._shapes.values()))

    def __len__(self) -> int:
        return len(self._shapes)

    def get(self, ident: ShapeId) -> Optional[VectorShape]:
        return self._shapes.get(ident)

    def of_kind(self, kind: ShapeKind) -> List[VectorShape]:
        return [s for s in self._shapes.values() if s.kind is kind]

    def sorted(self) -> List[VectorShape]:
        """Shapes in ascending identity order, i.e. creation order."""
        return [self._shapes[k] for k in sorted(self._shapes)]

    def calc_geo_mbr(self) -> GeoMbr:
        """Union of every member's bounding box; invalid when empty or all members are empty."""
        mbr = GeoMbr()
        for shape in self._shapes.values():
            mbr.expand(shape.geo_mbr if shape.geo_mbr.valid else shape.calc_geo_mbr())
        return mbr

    def counts(self) -> Dict[ShapeKind, int]:
        out: Dict[ShapeKind, int] = {}
        for shape in self._shapes.values():
            out[shape.kind] = out.get(shape.kind, 0) + 1
        return out

    def __repr__(self):
        return f"<ShapeSet shapes={len(self._shapes)}>"
