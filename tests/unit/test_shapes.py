# tests/unit/test_shapes.py

import pytest
import numpy as np

from globevec.vector import (
    ShapeKind,
    VectorShape,
    ArealData,
    LinearData,
    create_areal,
    create_linear,
    create_linear3d,
    create_points,
    create_triangles,
    create_shape
)

# --- Factories & identity ---

@pytest.mark.parametrize("factory, kind", [
    (create_areal, ShapeKind.AREAL),
    (create_linear, ShapeKind.LINEAR),
    (create_linear3d, ShapeKind.LINEAR3D),
    (create_points, ShapeKind.POINTS),
    (create_triangles, ShapeKind.TRIANGLES),
])
def test_factory_creates_empty_shape(factory, kind):
    shape = factory()
    assert shape.kind is kind
    assert shape.attributes == {}
    assert not shape.geo_mbr.valid
    assert shape.num_points() == 0

def test_create_shape_by_kind():
    assert create_shape(ShapeKind.POINTS).kind is ShapeKind.POINTS

def test_identities_are_unique_and_increasing():
    a = create_points()
    b = create_points()
    assert a.ident != b.ident
    assert b.ident > a.ident

def test_equality_is_identity_not_content():
    a = create_linear()
    b = create_linear()
    a.as_linear().pts = np.array([(0.0, 0.0), (1.0, 1.0)])
    b.as_linear().pts = np.array([(0.0, 0.0), (1.0, 1.0)])
    assert a != b
    assert a == a
    assert len({a, b}) == 2

def test_payload_type_checked():
    with pytest.raises(TypeError):
        VectorShape(ShapeKind.AREAL, LinearData())

# --- Attributes ---

def test_set_attributes_copies(polyline):
    source = {"name": "x", "count": 3}
    polyline.set_attributes(source)
    source["name"] = "changed"
    assert polyline.get_attribute("name") == "x"

def test_attributes_never_aliased():
    props = {"name": "shared"}
    a = create_points()
    b = create_points()
    a.set_attributes(props)
    b.set_attributes(props)
    a.set_attribute("name", "mine")
    assert b.get_attribute("name") == "shared"

def test_attribute_value_types():
    shape = create_points()
    shape.set_attribute("s", "x")
    shape.set_attribute("i", 1)
    shape.set_attribute("f", 1.5)
    shape.set_attribute("b", True)
    shape.set_attribute("n", None)
    shape.set_attribute("np", np.float32(2.0))
    assert shape.get_attribute("np") == 2.0
    assert isinstance(shape.get_attribute("np"), float)
    assert shape.get_attribute("missing", "default") == "default"

    with pytest.raises(TypeError):
        shape.set_attribute("bad", [1, 2])
    with pytest.raises(TypeError):
        shape.set_attribute(5, "bad key")

# --- Downcasting ---

def test_downcast_accessors(areal_with_hole):
    assert isinstance(areal_with_hole.as_areal(), ArealData)
    with pytest.raises(TypeError):
        areal_with_hole.as_linear()

# --- Bounding boxes ---

def test_areal_mbr_covers_all_loops(areal_with_hole):
    mbr = areal_with_hole.calc_geo_mbr()
    assert mbr.ll == (0.0, 0.0)
    assert mbr.ur == (10.0, 10.0)
    # calc does not cache
    assert not areal_with_hole.geo_mbr.valid

    areal_with_hole.init_geo_mbr()
    assert areal_with_hole.geo_mbr.valid

def test_points_mbr(point_cluster):
    mbr = point_cluster.init_geo_mbr()
    assert mbr.ll == (-5.0, -3.0)
    assert mbr.ur == (7.0, 2.0)

def test_linear3d_mbr_uses_xy():
    shape = create_linear3d()
    shape.as_linear3d().pts = np.array([(1.0, 2.0, 300.0), (3.0, -4.0, -10.0)])
    mbr = shape.calc_geo_mbr()
    assert mbr.ll == (1.0, -4.0)
    assert mbr.ur == (3.0, 2.0)

def test_triangles_mbr(simple_mesh):
    mbr = simple_mesh.calc_geo_mbr()
    assert mbr.ll == (0.0, 0.0)
    assert mbr.ur == (2.0, 2.0)

def test_empty_shape_mbr_invalid():
    assert not create_areal().calc_geo_mbr().valid
    assert not create_triangles().calc_geo_mbr().valid

# --- Triangles ---

def test_get_triangle(simple_mesh):
    tri = simple_mesh.as_triangles().get_triangle(1)
    assert tri.shape == (3, 3)
    np.testing.assert_allclose(tri[1], (2.0, 2.0, 1.0))

def test_triangles_validate(simple_mesh):
    mesh = simple_mesh.as_triangles()
    mesh.validate()

    mesh.add_triangle(0, 1, 9)
    with pytest.raises(ValueError, match="out of range"):
        mesh.validate()

# --- Point inside ---

def test_point_inside_areal(areal_with_hole):
    assert areal_with_hole.point_inside((1.0, 1.0))
    assert not areal_with_hole.point_inside((5.0, 5.0))
    assert not areal_with_hole.point_inside((50.0, 50.0))

def test_point_inside_triangles(simple_mesh):
    assert simple_mesh.point_inside((0.5, 1.5))
    assert not simple_mesh.point_inside((3.0, 1.0))

def test_point_inside_unsupported(polyline):
    with pytest.raises(TypeError):
        polyline.point_inside((0.0, 0.0))

# --- Subdivision ---

def test_subdivide_linear_resets_mbr(polyline):
    polyline.init_geo_mbr()
    assert polyline.subdivide(1.0)
    assert not polyline.geo_mbr.valid
    # 3 + 4 unit pieces -> 8 points
    assert len(polyline.as_linear().pts) == 8

    mbr = polyline.init_geo_mbr()
    assert mbr.ur == (3.0, 4.0)

def test_subdivide_areal_closes_loops():
    shape = create_areal()
    shape.as_areal().add_loop([(0, 0), (4, 0), (0, 4)])
    assert shape.subdivide(10.0) is False

    assert shape.subdivide(2.0)
    loop = shape.as_areal().loops[0]
    # the closing edge (0,4)->(0,0) was split as well
    assert any(np.allclose(p, (0.0, 2.0)) for p in loop)

def test_subdivide_unsupported(point_cluster):
    with pytest.raises(TypeError):
        point_cluster.subdivide(1.0)

def test_subdivide_leaves_returned_mbr_intact(polyline):
    before = polyline.init_geo_mbr()
    polyline.subdivide(1.0)

    assert before.valid
    assert before.ur == (3.0, 4.0)
    assert polyline.geo_mbr is not before
    assert not polyline.geo_mbr.valid
