# src/globevec/io/ogr.py

"""
This module bridges shapes to the GeoPandas/Shapely stack so any OGR-readable
format (shapefile, GeoPackage, GeoJSON, ...) can feed or receive a ShapeSet.
"""

import logging
import math
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon
)
from shapely.geometry.base import BaseGeometry

from globevec.vector.shapes import (
    AttrValue,
    ShapeKind,
    VectorShape,
    create_areal,
    create_linear,
    create_linear3d,
    create_points
)
from globevec.vector.shape_set import ShapeSet
from globevec.io.reader import AttrFilter, VectorReader, filter_attributes

log = logging.getLogger(__name__)

__all__ = [
    "shape_to_geometry",
    "geometry_to_shapes",
    "shapes_to_geodataframe",
    "geodataframe_to_shapes",
    "load_geodataframe",
    "resolve_geodataframe",
    "write_ogr_file",
    "OGRVectorReader"
]

# --- Shapely conversion ---

def shape_to_geometry(shape: VectorShape) -> BaseGeometry:
    """
    Convert a shape to the matching Shapely geometry.

    TRIANGLES become a MultiPolygon with one polygon per triangle.
    Degenerate geometry (too few points) converts to an empty geometry.
    """
    kind = shape.kind
    if kind is ShapeKind.AREAL:
        loops = shape.as_areal().loops
        if not loops or len(loops[0]) < 3:
            return Polygon()
        return Polygon(loops[0], [loop for loop in loops[1:] if len(loop) >= 3])

    if kind in (ShapeKind.LINEAR, ShapeKind.LINEAR3D):
        pts = shape.payload.pts
        return LineString(pts) if len(pts) >= 2 else LineString()

    if kind is ShapeKind.POINTS:
        pts = shape.as_points().pts
        if len(pts) == 1:
            return Point(pts[0])
        return MultiPoint([tuple(p) for p in pts])

    mesh = shape.as_triangles()
    return MultiPolygon([Polygon(mesh.get_triangle(k)) for k in range(len(mesh.tris))])

def _new_shape(factory, attrs: Dict[str, AttrValue]) -> VectorShape:
    shape = factory()
    shape.set_attributes(attrs)
    return shape

def geometry_to_shapes(geom: Optional[BaseGeometry], attrs: Optional[Dict[str, AttrValue]] = None) -> List[VectorShape]:
    """
    Convert a Shapely geometry into shapes, one per single-part component.

    Each shape receives its own copy of `attrs`. Null and empty geometries yield no shapes.

    Raises:
        TypeError: For geometry types with no shape counterpart.
    """
    attrs = attrs or {}
    if geom is None or geom.is_empty:
        return []

    if isinstance(geom, Point):
        shape = _new_shape(create_points, attrs)
        shape.as_points().pts = np.array([[geom.x, geom.y]], dtype=np.float64)
        return [shape]

    if isinstance(geom, MultiPoint):
        shape = _new_shape(create_points, attrs)
        shape.as_points().pts = np.array([[p.x, p.y] for p in geom.geoms], dtype=np.float64)
        return [shape]

    if isinstance(geom, LineString):
        coords = np.asarray(geom.coords, dtype=np.float64)
        if geom.has_z:
            shape = _new_shape(create_linear3d, attrs)
            shape.as_linear3d().pts = np.ascontiguousarray(coords[:, :3])
        else:
            shape = _new_shape(create_linear, attrs)
            shape.as_linear().pts = np.ascontiguousarray(coords[:, :2])
        return [shape]

    if isinstance(geom, Polygon):
        shape = _new_shape(create_areal, attrs)
        rings = [geom.exterior] + list(geom.interiors)
        shape.as_areal().loops = [
            np.ascontiguousarray(np.asarray(r.coords, dtype=np.float64)[:, :2]) for r in rings
        ]
        return [shape]

    if isinstance(geom, (MultiLineString, MultiPolygon, GeometryCollection)):
        shapes = []
        for part in geom.geoms:
            shapes.extend(geometry_to_shapes(part, attrs))
        return shapes

    raise TypeError(f"Unsupported geometry type: {geom.geom_type}")

# --- GeoDataFrame conversion ---

def _attr_value(value: Any) -> AttrValue:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return str(value)

def shapes_to_geodataframe(shapes: ShapeSet, crs: Any = None) -> gpd.GeoDataFrame:
    """One row per shape, in creation order; attribute keys become columns."""
    ordered = shapes.sorted()
    records = [dict(shape.attributes) for shape in ordered]
    geoms = [shape_to_geometry(shape) for shape in ordered]
    if not records:
        return gpd.GeoDataFrame(geometry=[], crs=crs)
    return gpd.GeoDataFrame(pd.DataFrame(records), geometry=geoms, crs=crs)

def _row_attributes(row: pd.Series, geometry_col: str, attr_filter: AttrFilter = None) -> Dict[str, AttrValue]:
    attrs = {str(k): _attr_value(v) for k, v in row.items() if k != geometry_col}
    return filter_attributes(attrs, attr_filter)

# --- File I/O ---

def load_geodataframe(path: Union[str, Path], engine: str = "pyogrio", **kwargs) -> gpd.GeoDataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Vector file not found: {path}")
    return gpd.read_file(path, engine=engine, **kwargs)

def resolve_geodataframe(func: Callable):
    """Let `func` accept a file path as well as a GeoDataFrame for its first argument."""
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, gpd.GeoDataFrame], *args, **kwargs):
        if input_obj is None:
            return func(None, *args, **kwargs)

        if isinstance(input_obj, (str, Path)):
            gdf = load_geodataframe(input_obj)
        elif isinstance(input_obj, gpd.GeoDataFrame):
            gdf = input_obj
        else:
            raise TypeError(f"Expected file path or GeoDataFrame, got {type(input_obj)}")

        return func(gdf, *args, **kwargs)
    return wrapper

@resolve_geodataframe
def geodataframe_to_shapes(gdf: gpd.GeoDataFrame, attr_filter: AttrFilter = None) -> ShapeSet:
    """
    Convert every feature of a GeoDataFrame (or vector file path) into shapes.
    Multi-part geometries yield one shape per part.
    """
    shapes = ShapeSet()
    if gdf is None:
        return shapes

    geometry_col = gdf.geometry.name
    for _, row in gdf.iterrows():
        for shape in geometry_to_shapes(row[geometry_col], _row_attributes(row, geometry_col, attr_filter)):
            shape.init_geo_mbr()
            shapes.add(shape)
    return shapes

def write_ogr_file(
    path: Union[str, Path],
    shapes: ShapeSet,
    crs: Any = None,
    driver: Optional[str] = None,
    engine: str = "pyogrio",
    **kwargs
) -> bool:
    """
    Write shapes through OGR. The driver is inferred from the extension unless given.

    Returns:
        bool: False if the write failed.
    """
    path = Path(path)
    try:
        gdf = shapes_to_geodataframe(shapes, crs=crs)
        path.parent.mkdir(parents=True, exist_ok=True)
        gdf.to_file(path, driver=driver, engine=engine, **kwargs)
    except Exception as e:
        # pyogrio surfaces driver failures under several exception types
        log.error(f"Failed to write {path} via OGR: {e}")
        return False

    log.info(f"Wrote {len(shapes)} shapes to {path.name}")
    return True

# --- Reader ---

class OGRVectorReader(VectorReader):
    """
    Random-access reader over any file pyogrio can open.

    Features are exploded to single parts on load, so each object index maps to
    exactly one shape. Rows with null or empty geometry are dropped.

    Args:
        source (Union[str, Path, gpd.GeoDataFrame]): File path or an in-memory GeoDataFrame.
        engine (str): GeoPandas I/O engine.
        **kwargs: Passed to geopandas.read_file (e.g. layer=...).
    """

    def __init__(self, source: Union[str, Path, gpd.GeoDataFrame], engine: str = "pyogrio", **kwargs):
        self._gdf: Optional[gpd.GeoDataFrame] = None
        self._next = 0
        self.crs: Optional[str] = None
        self.source = source

        try:
            gdf = source if isinstance(source, gpd.GeoDataFrame) else load_geodataframe(source, engine=engine, **kwargs)
        except Exception as e:
            log.error(f"Failed to open {source}: {e}")
            return

        gdf = gdf[~(gdf.geometry.isna() | gdf.geometry.is_empty)]
        self._gdf = gdf.explode(index_parts=False).reset_index(drop=True)
        if self._gdf.crs is not None:
            self.crs = self._gdf.crs.to_string()

        log.debug(f"Opened {source} with {len(self._gdf)} single-part features")

    def _shape_at(self, index: int, attr_filter: AttrFilter) -> Optional[VectorShape]:
        row = self._gdf.iloc[index]
        geometry_col = self._gdf.geometry.name
        try:
            shapes = geometry_to_shapes(row[geometry_col], _row_attributes(row, geometry_col, attr_filter))
        except TypeError as e:
            log.warning(f"Skipping feature {index}: {e}")
            return None
        if not shapes:
            return None
        shapes[0].init_geo_mbr()
        return shapes[0]

    def is_valid(self) -> bool:
        return self._gdf is not None

    def get_next_object(self, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        if self._gdf is None:
            return None
        while self._next < len(self._gdf):
            shape = self._shape_at(self._next, attr_filter)
            self._next += 1
            if shape is not None:
                return shape
        return None

    def can_read_by_index(self) -> bool:
        return self._gdf is not None

    def get_num_objects(self) -> int:
        return 0 if self._gdf is None else len(self._gdf)

    def get_object_by_index(self, index: int, attr_filter: AttrFilter = None) -> Optional[VectorShape]:
        if self._gdf is None or not (0 <= index < len(self._gdf)):
            return None
        return self._shape_at(index, attr_filter)

    def close(self):
        self._gdf = None

    def __repr__(self):
        return f"<OGRVectorReader source={self.source} features={self.get_num_objects()}>"
