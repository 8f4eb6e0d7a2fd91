# tests/unit/test_vecfile.py

import struct

import pytest
import numpy as np

from globevec.vector import ShapeKind, ShapeSet, create_linear3d
from globevec.io import (
    VECFILE_MAGIC,
    VecFileReader,
    read_all,
    read_vector_file,
    write_vector_file
)

@pytest.fixture
def all_kinds(areal_with_hole, polyline, point_cluster, simple_mesh):
    line3d = create_linear3d()
    line3d.as_linear3d().pts = np.array([(0.0, 0.0, 10.0), (1.0, 2.0, 30.0)])
    line3d.set_attributes({"flag": True, "missing": None})
    return ShapeSet([areal_with_hole, polyline, point_cluster, simple_mesh, line3d])

@pytest.fixture
def gvec_path(tmp_path, all_kinds):
    path = tmp_path / "shapes.gvec"
    assert write_vector_file(path, all_kinds)
    return path

def test_round_trip_all_kinds(gvec_path, all_kinds):
    shapes = read_vector_file(gvec_path)
    assert shapes is not None
    assert shapes.counts() == all_kinds.counts()

    # records come back in creation order
    for original, loaded in zip(all_kinds.sorted(), shapes.sorted()):
        assert loaded.kind is original.kind
        assert loaded.attributes == original.attributes
        assert loaded.ident != original.ident
        for a, b in zip(original.rings(), loaded.rings()):
            np.testing.assert_array_equal(a, b)
        assert loaded.geo_mbr.valid

def test_triangle_indices_survive(gvec_path, simple_mesh):
    mesh = read_vector_file(gvec_path).of_kind(ShapeKind.TRIANGLES)[0].as_triangles()
    np.testing.assert_array_equal(mesh.tris, simple_mesh.as_triangles().tris)
    assert mesh.tris.dtype == np.int64

def test_random_access(gvec_path, all_kinds):
    with VecFileReader(gvec_path) as reader:
        assert reader.is_valid()
        assert reader.can_read_by_index()
        assert reader.get_num_objects() == 5

        last = reader.get_object_by_index(4)
        assert last.kind is ShapeKind.LINEAR3D
        first = reader.get_object_by_index(0)
        assert first.kind is ShapeKind.AREAL

        assert reader.get_object_by_index(5) is None
        assert reader.get_object_by_index(-1) is None

def test_sequential_read(gvec_path):
    with VecFileReader(gvec_path) as reader:
        kinds = [shape.kind for shape in reader]
    assert kinds == [
        ShapeKind.AREAL,
        ShapeKind.LINEAR,
        ShapeKind.POINTS,
        ShapeKind.TRIANGLES,
        ShapeKind.LINEAR3D
    ]

def test_attribute_filter(gvec_path):
    with VecFileReader(gvec_path) as reader:
        shapes = read_all(reader, attr_filter={"name"})
    areal = shapes.of_kind(ShapeKind.AREAL)[0]
    assert areal.attributes == {"name": "plot"}

def test_empty_set(tmp_path):
    path = tmp_path / "empty.gvec"
    assert write_vector_file(path, ShapeSet())
    shapes = read_vector_file(path)
    assert shapes is not None
    assert len(shapes) == 0

def test_missing_file(tmp_path):
    reader = VecFileReader(tmp_path / "nope.gvec")
    assert not reader.is_valid()
    assert reader.get_next_object() is None
    assert read_vector_file(tmp_path / "nope.gvec") is None

def test_bad_magic(tmp_path):
    path = tmp_path / "bad.gvec"
    path.write_bytes(b"NOPE" + struct.pack("<HI", 1, 0))
    assert not VecFileReader(path).is_valid()

def test_bad_version(tmp_path):
    path = tmp_path / "future.gvec"
    path.write_bytes(VECFILE_MAGIC + struct.pack("<HI", 99, 0))
    assert not VecFileReader(path).is_valid()

def test_truncated_file(gvec_path):
    data = gvec_path.read_bytes()
    gvec_path.write_bytes(data[:-10])
    assert not VecFileReader(gvec_path).is_valid()
    assert read_vector_file(gvec_path) is None

def test_corrupt_record_body(tmp_path):
    # a LINEAR record claiming 3 points but carrying only one
    attrs = b"{}"
    body = struct.pack("<I", len(attrs)) + attrs + struct.pack("<I", 3) + struct.pack("<2d", 0.0, 0.0)
    path = tmp_path / "corrupt.gvec"
    path.write_bytes(
        VECFILE_MAGIC + struct.pack("<HI", 1, 1) + struct.pack("<BI", ShapeKind.LINEAR.value, len(body)) + body
    )

    reader = VecFileReader(path)
    assert reader.is_valid()
    assert reader.get_next_object() is None
    assert not reader.is_valid()
    reader.close()

    assert read_vector_file(path) is None

def test_invalid_mesh_not_written(tmp_path, simple_mesh):
    simple_mesh.as_triangles().add_triangle(0, 1, 42)
    assert not write_vector_file(tmp_path / "mesh.gvec", ShapeSet([simple_mesh]))
