# src/globevec/io/vecfile.py

"""
This module reads and writes the native globevec vector file (.gvec).

Layout (little-endian):
    header:  4s magic b"GVEC" | u16 version | u32 record count
    record:  u8 shape kind | u32 body length | body
    body:    u32 attribute JSON length | UTF-8 JSON attributes | geometry

Geometry per kind:
    AREAL:      u32 loop count, then per loop u32 n + n*2 float64
    LINEAR:     u32 n + n*2 float64
    LINEAR3D:   u32 n + n*3 float64
    POINTS:     u32 n + n*2 float64
    TRIANGLES:  u32 n + n*3 float64, then u32 m + m*3 int32

Records are length-prefixed, so a reader can index them without decoding bodies
and serve random access.
"""

import json
import logging
import os
import struct
from pathlib import Path
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from globevec.primitives import Ring
from globevec.vector.shapes import ShapeKind, VectorShape, create_shape
from globevec.vector.shape_set import ShapeSet
from globevec.io.reader import AttrFilter, VectorReader, filter_attributes

log = logging.getLogger(__name__)

__all__ = [
    "VECFILE_MAGIC",
    "VECFILE_VERSION",
    "VecFileReader",
    "read_vector_file",
    "write_vector_file"
]

VECFILE_MAGIC = b"GVEC"
VECFILE_VERSION = 1

_HEADER = struct.Struct("<4sHI")
_RECORD = struct.Struct("<BI")
_U32 = struct.Struct("<I")

_KIND_CODES = {kind.value: kind for kind in ShapeKind}

# --- Encoding ---

def _pack_ring(ring: Ring, dim: int) -> bytes:
    arr = np.ascontiguousarray(np.asarray(ring, dtype=np.float64).reshape(-1, dim), dtype="<f8")
    return _U32.pack(len(arr)) + arr.tobytes()

def _pack_triangles(shape: VectorShape) -> bytes:
    mesh = shape.as_triangles()
    mesh.validate()
    tris = np.ascontiguousarray(mesh.tris.reshape(-1, 3), dtype="<i4")
    return _pack_ring(mesh.pts, 3) + _U32.pack(len(tris)) + tris.tobytes()

def _pack_areal(shape: VectorShape) -> bytes:
    loops = shape.as_areal().loops
    return _U32.pack(len(loops)) + b"".join(_pack_ring(loop, 2) for loop in loops)

_ENCODERS: Dict[ShapeKind, Callable[[VectorShape], bytes]] = {
    ShapeKind.AREAL: _pack_areal,
    ShapeKind.LINEAR: lambda s: _pack_ring(s.as_linear().pts, 2),
    ShapeKind.LINEAR3D: lambda s: _pack_ring(s.as_linear3d().pts, 3),
    ShapeKind.POINTS: lambda s: _pack_ring(s.as_points().pts, 2),
    ShapeKind.TRIANGLES: _pack_triangles,
}

def _encode_body(shape: VectorShape) -> bytes:
    attrs = json.dumps(shape.attributes).encode("utf-8")
    return _U32.pack(len(attrs)) + attrs + _ENCODERS[shape.kind](shape)

# --- Decoding ---

class _Cursor:
    """Bounds-checked sequential reads over a record body."""

    def __init__(self, buf: bytes):
        self.buf = buf
        self.pos = 0

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.buf):
            raise ValueError(f"Truncated record: need {n} bytes at offset {self.pos}, have {len(self.buf) - self.pos}")
        out = self.buf[self.pos:self.pos + n]
        self.pos += n
        return out

    def u32(self) -> int:
        return _U32.unpack(self.take(_U32.size))[0]

    def array(self, dtype: str, rows: int, cols: int) -> np.ndarray:
        raw = self.take(rows * cols * np.dtype(dtype).itemsize)
        return np.frombuffer(raw, dtype=dtype).reshape(rows, cols)

    def ring(self, dim: int) -> Ring:
        n = self.u32()
        return self.array("<f8", n, dim).astype(np.float64)

def _decode_geometry(shape: VectorShape, cur: _Cursor):
    kind = shape.kind
    if kind is ShapeKind.AREAL:
        shape.as_areal().loops = [cur.ring(2) for _ in range(cur.u32())]
    elif kind is ShapeKind.LINEAR:
        shape.as_linear().pts = cur.ring(2)
    elif kind is ShapeKind.LINEAR3D:
        shape.as_linear3d().pts = cur.ring(3)
    elif kind is ShapeKind.POINTS:
        shape.as_points().pts = cur.ring(2)
    else:
        mesh = shape.as_triangles()
        mesh.pts = cur.ring(3)
        m = cur.u32()
        mesh.tris = cur.array("<i4", m, 3).astype(np.int64)
        mesh.validate()

def _decode_record(kind: ShapeKind, body: bytes, attr_filter: AttrFilter) -> VectorShape:
    cur = _Cursor(body)
    attrs = json.loads(cur.take(cur.u32()).decode("utf-8"))
    if not isinstance(attrs, dict):
        raise ValueError("Record attributes are not a JSON object")

    shape = create_shape(kind)
    shape.set_attributes(filter_attributes(attrs, attr_filter))
    _decode_geometry(shape, cur)
    if cur.pos != len(body):
        raise ValueError(f"Record has {len(body) - cur.pos} trailing bytes")

    shape.init_geo_mbr()
    return shape

# --- Reader ---

class VecFileReader(VectorReader):
    """
    Reader for .gvec files with both sequential and random access.

    The file header and record index are read on construction; a bad header or
    a truncated record table leaves the reader invalid. Use as a context manager
    or call close() to release the file handle.

    Args:
        path (Union[str, Path]): Target .gvec file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._fh: Optional[BinaryIO] = None
        self._records: List[Tuple[int, ShapeKind, int]] = []
        self._next = 0
        self._valid = False

        try:
            self._fh = open(self.path, "rb")
            self._index_records()
            self._valid = True
        except (OSError, struct.error, ValueError) as e:
            log.error(f"Failed to open vector file {self.path}: {e}")
            self.close()

    def _index_records(self):
        fh = self._fh
        size = os.fstat(fh.fileno()).st_size

        magic, version, count = _HEADER.unpack(fh.read(_HEADER.size))
        if magic != VECFILE_MAGIC:
            raise ValueError(f"Bad magic {magic!r}, not a globevec file")
        if version != VECFILE_VERSION:
            raise ValueError(f"Unsupported version {version} (expected {VECFILE_VERSION})")

        pos = _HEADER.size
        for ii in range(count):
            fh.seek(pos)
            code, length = _RECORD.unpack(fh.read(_RECORD.size))
            if code not in _KIND_CODES:
                raise ValueError(f"Record {ii} has unknown shape kind {code}")
            body_pos = pos + _RECORD.size
            if body_pos + length > size:
                raise ValueError(f"Record {ii} runs past end of file")
            self._records.append((body_pos, _KIND_CODES[code], length))
            pos = body_pos + length

        log.debug(f"Indexed {count} records in {self.path.name}")

    def _read_record(self, index: int, attr_filter: AttrFilter) -> Optional[VectorShape]:
        body_pos, kind, length = self._records[index]
        try:
            self._fh.seek(body_pos)
            return _decode_record(kind, self._fh.read(length), attr_filter)
        except (OSError, ValueError, TypeError) as e:
            log.error(f"Corrupt record {index} in {self.path}: {e}")
            self._valid = False
            return None

    def is_valid(self) -> bool:
        return self._valid

    def get_next_object(self, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        if not self._valid or self._next >= len(self._records):
            return None
        shape = self._read_record(self._next, attr_filter)
        self._next += 1
        return shape

    def can_read_by_index(self) -> bool:
        return True

    def get_num_objects(self) -> int:
        return len(self._records)

    def get_object_by_index(self, index: int, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        if not self._valid or not (0 <= index < len(self._records)):
            return None
        return self._read_record(index, attr_filter)

    def close(self):
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        self._valid = False

    def __repr__(self):
        return f"<VecFileReader path={self.path.name} records={len(self._records)} valid={self._valid}>"

# --- File-level API ---

def read_vector_file(path: Union[str, Path]) -> Optional[ShapeSet]:
    """
    Read every shape from a .gvec file.

    Returns:
        Optional[ShapeSet]: The shapes, or None if the file is missing or corrupt.
    """
    with VecFileReader(path) as reader:
        if not reader.is_valid():
            return None

        shapes = ShapeSet()
        for ii in range(reader.get_num_objects()):
            shape = reader.get_object_by_index(ii)
            if shape is None:
                return None
            shapes.add(shape)

    log.info(f"Read {len(shapes)} shapes from {Path(path).name}")
    return shapes

def write_vector_file(path: Union[str, Path], shapes: ShapeSet) -> bool:
    """
    Write shapes to a .gvec file in creation order.

    Returns:
        bool: False if encoding or writing failed; the file may then be incomplete.
    """
    path = Path(path)
    try:
        records = [(shape.kind.value, _encode_body(shape)) for shape in shapes.sorted()]

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(_HEADER.pack(VECFILE_MAGIC, VECFILE_VERSION, len(records)))
            for code, body in records:
                fh.write(_RECORD.pack(code, len(body)))
                fh.write(body)

    except (OSError, ValueError, TypeError, struct.error) as e:
        log.error(f"Failed to write vector file {path}: {e}")
        return False

    log.info(f"Wrote {len(records)} shapes to {path.name}")
    return True
