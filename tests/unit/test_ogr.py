# tests/unit/test_ogr.py

import pytest
import numpy as np
import geopandas as gpd
from shapely.geometry import MultiLineString, MultiPolygon, Point, Polygon

from globevec.vector import ShapeKind, ShapeSet, create_areal
from globevec.io import (
    OGRVectorReader,
    geometry_to_shapes,
    geodataframe_to_shapes,
    read_all,
    shape_to_geometry,
    shapes_to_geodataframe,
    write_ogr_file
)

# --- Shapely conversion ---

def test_polygon_with_hole_to_shape():
    poly = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)], [[(4, 4), (6, 4), (6, 6), (4, 6)]])
    shapes = geometry_to_shapes(poly, {"a": 1})
    assert len(shapes) == 1
    loops = shapes[0].as_areal().loops
    assert len(loops) == 2
    assert shapes[0].get_attribute("a") == 1

def test_multipart_split_with_attribute_copies():
    geom = MultiLineString([[(0, 0), (1, 1)], [(2, 2), (3, 3)]])
    attrs = {"id": "x"}
    shapes = geometry_to_shapes(geom, attrs)
    assert [s.kind for s in shapes] == [ShapeKind.LINEAR, ShapeKind.LINEAR]
    shapes[0].set_attribute("id", "y")
    assert shapes[1].get_attribute("id") == "x"

def test_null_and_empty_geometry():
    assert geometry_to_shapes(None) == []
    assert geometry_to_shapes(Polygon()) == []

def test_shape_to_geometry(areal_with_hole, polyline, point_cluster, simple_mesh):
    poly = shape_to_geometry(areal_with_hole)
    assert isinstance(poly, Polygon)
    assert poly.area == pytest.approx(96.0)

    assert shape_to_geometry(polyline).length == pytest.approx(7.0)
    assert len(shape_to_geometry(point_cluster).geoms) == 3

    mesh = shape_to_geometry(simple_mesh)
    assert isinstance(mesh, MultiPolygon)
    assert mesh.area == pytest.approx(4.0)

def test_degenerate_shape_to_empty_geometry():
    assert shape_to_geometry(create_areal()).is_empty

# --- GeoDataFrame conversion ---

def test_geodataframe_to_shapes(mixed_gdf):
    shapes = geodataframe_to_shapes(mixed_gdf)
    assert shapes.counts() == {ShapeKind.AREAL: 1, ShapeKind.LINEAR: 1, ShapeKind.POINTS: 1}

    point = shapes.of_kind(ShapeKind.POINTS)[0]
    assert point.attributes == {"fid_name": "pt", "value": 3.5}
    assert point.geo_mbr.ll == (3.0, 3.0)

def test_geodataframe_to_shapes_from_path(gpkg_path):
    shapes = geodataframe_to_shapes(gpkg_path, attr_filter={"value"})
    assert len(shapes) == 3
    assert all(set(s.attributes) == {"value"} for s in shapes)

def test_geodataframe_to_shapes_bad_input(tmp_path):
    with pytest.raises(FileNotFoundError):
        geodataframe_to_shapes(tmp_path / "missing.gpkg")
    with pytest.raises(TypeError):
        geodataframe_to_shapes(42)

def test_shapes_to_geodataframe(areal_with_hole, polyline):
    gdf = shapes_to_geodataframe(ShapeSet([areal_with_hole, polyline]), crs="EPSG:4326")
    assert len(gdf) == 2
    assert gdf.crs.to_epsg() == 4326
    assert list(gdf["name"].fillna("")) == ["plot", ""]
    assert gdf.geometry.iloc[1].geom_type == "LineString"

def test_shapes_to_geodataframe_empty():
    gdf = shapes_to_geodataframe(ShapeSet())
    assert isinstance(gdf, gpd.GeoDataFrame)
    assert len(gdf) == 0

# --- Reader ---

def test_reader_on_geopackage(gpkg_path):
    with OGRVectorReader(gpkg_path) as reader:
        assert reader.is_valid()
        assert reader.can_read_by_index()
        assert reader.get_num_objects() == 3
        assert "4326" in reader.crs

        line = reader.get_object_by_index(1)
        assert line.kind is ShapeKind.LINEAR
        assert line.get_attribute("fid_name") == "line"
        assert reader.get_object_by_index(3) is None

def test_reader_explodes_multipart():
    gdf = gpd.GeoDataFrame(
        {"name": ["pair", "nothing"]},
        geometry=[
            MultiPolygon([
                Polygon([(0, 0), (1, 0), (1, 1)]),
                Polygon([(5, 5), (6, 5), (6, 6)]),
            ]),
            None
        ]
    )
    reader = OGRVectorReader(gdf)
    assert reader.get_num_objects() == 2

    shapes = read_all(reader)
    assert len(shapes) == 2
    assert all(s.get_attribute("name") == "pair" for s in shapes)
    assert reader.crs is None

def test_reader_missing_file(tmp_path):
    reader = OGRVectorReader(tmp_path / "missing.shp")
    assert not reader.is_valid()
    assert reader.get_num_objects() == 0
    assert read_all(reader) is None

# --- Writing ---

def test_write_ogr_file(tmp_path, areal_with_hole, polyline, point_cluster):
    path = tmp_path / "out" / "shapes.gpkg"
    shapes = ShapeSet([areal_with_hole, polyline, point_cluster])
    assert write_ogr_file(path, shapes, crs="EPSG:4326")
    assert path.exists()

    with OGRVectorReader(path) as reader:
        loaded = read_all(reader)
    # the MultiPoint comes back exploded into single points
    assert loaded.counts() == {ShapeKind.AREAL: 1, ShapeKind.LINEAR: 1, ShapeKind.POINTS: 3}

    areal = loaded.of_kind(ShapeKind.AREAL)[0]
    assert areal.get_attribute("name") == "plot"
    assert areal.point_inside((1.0, 1.0))
    assert not areal.point_inside((5.0, 5.0))
    np.testing.assert_allclose(areal.calc_geo_mbr().ur, (10.0, 10.0))

def test_write_ogr_file_failure(tmp_path, polyline):
    assert not write_ogr_file(tmp_path / "shapes.gpkg", ShapeSet([polyline]), driver="NoSuchDriver")

def test_geometry_to_shapes_point():
    shape = geometry_to_shapes(Point(1, 2))[0]
    np.testing.assert_array_equal(shape.as_points().pts, [[1.0, 2.0]])
