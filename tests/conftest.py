# tests/conftest.py

import json

import pytest
import numpy as np
import geopandas as gpd
from shapely.geometry import Point, Polygon, LineString

from globevec.vector import create_areal, create_linear, create_points, create_triangles

@pytest.fixture
def unit_square():
    """Counter-clockwise unit square, implicitly closed."""
    return np.array([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])

@pytest.fixture
def areal_with_hole():
    """A 10x10 square with a 2x2 hole centered at (5, 5)."""
    shape = create_areal()
    areal = shape.as_areal()
    areal.add_loop([(0, 0), (10, 0), (10, 10), (0, 10)])
    areal.add_loop([(4, 4), (6, 4), (6, 6), (4, 6)])
    shape.set_attributes({"name": "plot", "height": 12.5})
    return shape

@pytest.fixture
def simple_mesh():
    """
    Two triangles forming the square [0, 2] x [0, 2] on the z=1 plane.
    """
    shape = create_triangles()
    mesh = shape.as_triangles()
    mesh.pts = np.array([
        (0.0, 0.0, 1.0),
        (2.0, 0.0, 1.0),
        (2.0, 2.0, 1.0),
        (0.0, 2.0, 1.0),
    ])
    mesh.add_triangle(0, 1, 2)
    mesh.add_triangle(0, 2, 3)
    return shape

@pytest.fixture
def polyline():
    shape = create_linear()
    shape.as_linear().pts = np.array([(0.0, 0.0), (3.0, 0.0), (3.0, 4.0)])
    shape.set_attribute("road", "A1")
    return shape

@pytest.fixture
def point_cluster():
    shape = create_points()
    shape.as_points().pts = np.array([(-5.0, 2.0), (7.0, -3.0), (1.0, 1.0)])
    return shape

@pytest.fixture
def polygon_feature_collection():
    """A FeatureCollection holding one Polygon feature and a CRS member."""
    return {
        "type": "FeatureCollection",
        "crs": {"type": "name", "properties": {"name": "urn:ogc:def:crs:OGC:1.3:CRS84"}},
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "field", "area_ha": 4.2, "tags": ["a", "b"]},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [
                        [[-73.6, 45.5], [-73.5, 45.5], [-73.5, 45.6], [-73.6, 45.6], [-73.6, 45.5]]
                    ]
                }
            }
        ]
    }

@pytest.fixture
def geojson_path(tmp_path, polygon_feature_collection):
    path = tmp_path / "field.geojson"
    path.write_text(json.dumps(polygon_feature_collection))
    return path

@pytest.fixture
def mixed_gdf():
    """GeoDataFrame with a polygon, a line and a point, for OGR round trips."""
    return gpd.GeoDataFrame(
        {
            'fid_name': ['poly', 'line', 'pt'],
            'value': [1.5, 2.5, 3.5],
            'geometry': [
                Polygon([(0, 0), (4, 0), (4, 4), (0, 4)]),
                LineString([(0, 0), (1, 1), (2, 0)]),
                Point(3, 3),
            ]
        },
        crs="EPSG:4326"
    )

@pytest.fixture
def gpkg_path(tmp_path, mixed_gdf):
    """Saves the mixed GDF to a GeoPackage (one layer) and returns the path."""
    path = tmp_path / "mixed.gpkg"
    mixed_gdf.to_file(path, driver="GPKG")
    return path
