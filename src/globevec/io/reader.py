# src/globevec/io/reader.py

"""
This module defines the abstract streaming contract that every vector source implements.
"""

from abc import ABC, abstractmethod
from typing import AbstractSet, Dict, Iterator, Mapping, Optional
import logging

from globevec.vector.shapes import AttrValue, VectorShape
from globevec.vector.shape_set import ShapeSet

log = logging.getLogger(__name__)

__all__ = [
    "AttrFilter",
    "VectorReader",
    "filter_attributes",
    "read_all"
]

# Attribute names a reader may restrict itself to. None means "all attributes".
AttrFilter = Optional[AbstractSet[str]]

def filter_attributes(attrs: Mapping[str, AttrValue], attr_filter: AttrFilter) -> Dict[str, AttrValue]:
    if attr_filter is None:
        return dict(attrs)
    return {k: v for k, v in attrs.items() if k in attr_filter}

class VectorReader(ABC):
    """
    Sequential, optionally random-access, source of vector shapes.

    Readers are stateful: each get_next_object() call advances the stream, so a
    single instance must not be shared between threads.

    The attribute filter is a hint. A reader may skip attributes not named in it,
    or ignore it entirely.
    """

    @abstractmethod
    def is_valid(self) -> bool:
        """False means the reader failed to open (bad header, missing file) and must not be used."""

    @abstractmethod
    def get_next_object(self, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        """Return the next shape, or None at end of stream."""

    def can_read_by_index(self) -> bool:
        return False

    def get_num_objects(self) -> int:
        return 0

    def get_object_by_index(self, index: int, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        return None

    def close(self):
        pass

    def __iter__(self) -> Iterator[VectorShape]:
        while True:
            shape = self.get_next_object()
            if shape is None:
                return
            yield shape

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

def read_all(reader: VectorReader, attr_filter: AttrFilter = None) -> Optional[ShapeSet]:
    """
    Drain a reader into a ShapeSet.

    Returns:
        Optional[ShapeSet]: All shapes read, or None if the reader is invalid.
    """
    if not reader.is_valid():
        return None

    shapes = ShapeSet()
    while True:
        shape = reader.get_next_object(attr_filter)
        if shape is None:
            break
        shapes.add(shape)

    log.debug(f"Read {len(shapes)} shapes from {reader!r}")
    return shapes
