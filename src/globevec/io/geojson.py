# src/globevec/io/geojson.py

"""
This module parses GeoJSON into ShapeSets and serializes ShapeSets back to GeoJSON.

Parse functions report failure by returning False and never add partial
results to the caller's ShapeSet.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from globevec.primitives import Ring, empty_ring
from globevec.vector.shapes import (
    ShapeKind,
    VectorShape,
    create_areal,
    create_linear,
    create_linear3d,
    create_points
)
from globevec.vector.shape_set import ShapeSet

log = logging.getLogger(__name__)

__all__ = [
    "GeoJSONError",
    "parse_geojson",
    "parse_geojson_dict",
    "parse_geojson_assembly",
    "shape_to_geojson_geometry",
    "shapes_to_geojson",
    "serialize_geojson"
]

class GeoJSONError(ValueError):
    """Raised internally for structurally invalid GeoJSON."""

_MALFORMED = (GeoJSONError, ValueError, TypeError, KeyError, AttributeError)

# --- Parsing ---

def _positions(coords: Any, max_dim: int = 3) -> Ring:
    """Convert a GeoJSON position array into a ring, keeping z when every position has it."""
    if not isinstance(coords, list):
        raise GeoJSONError(f"Expected a list of positions, got {type(coords).__name__}")
    if len(coords) == 0:
        return empty_ring(2)

    for pos in coords:
        if not isinstance(pos, (list, tuple)) or len(pos) < 2:
            raise GeoJSONError(f"Positions must have at least 2 components, got {pos!r}")

    # positions may mix 2D and 3D; z survives only if all of them carry it
    dim = min(max_dim, min(len(pos) for pos in coords), 3)
    arr = np.array([pos[:dim] for pos in coords], dtype=np.float64)
    return np.ascontiguousarray(arr)

def _clean_properties(props: Any) -> Dict[str, Any]:
    if props is None:
        return {}
    if not isinstance(props, dict):
        raise GeoJSONError(f"Feature properties must be an object, got {type(props).__name__}")

    out = {}
    for key, value in props.items():
        if isinstance(value, (dict, list)):
            # nested members are kept as JSON text
            value = json.dumps(value)
        out[str(key)] = value
    return out

def _new_shape(factory, props: Dict[str, Any]) -> VectorShape:
    shape = factory()
    shape.set_attributes(props)
    return shape

def _shapes_from_geometry(geom: Any, props: Dict[str, Any]) -> List[VectorShape]:
    if not isinstance(geom, dict):
        raise GeoJSONError(f"Geometry must be an object, got {type(geom).__name__}")

    gtype = geom.get("type")
    coords = geom.get("coordinates")
    shapes: List[VectorShape] = []

    if gtype == "Point":
        shape = _new_shape(create_points, props)
        shape.as_points().pts = _positions([coords], max_dim=2)
        shapes.append(shape)

    elif gtype == "MultiPoint":
        shape = _new_shape(create_points, props)
        shape.as_points().pts = _positions(coords, max_dim=2)
        shapes.append(shape)

    elif gtype in ("LineString", "MultiLineString"):
        parts = [coords] if gtype == "LineString" else coords
        if not isinstance(parts, list):
            raise GeoJSONError(f"{gtype} coordinates must be a list")
        for part in parts:
            pts = _positions(part)
            if pts.shape[1] == 3:
                shape = _new_shape(create_linear3d, props)
                shape.as_linear3d().pts = pts
            else:
                shape = _new_shape(create_linear, props)
                shape.as_linear().pts = pts
            shapes.append(shape)

    elif gtype in ("Polygon", "MultiPolygon"):
        polys = [coords] if gtype == "Polygon" else coords
        if not isinstance(polys, list):
            raise GeoJSONError(f"{gtype} coordinates must be a list")
        for poly in polys:
            if not isinstance(poly, list):
                raise GeoJSONError("Polygon must be a list of rings")
            shape = _new_shape(create_areal, props)
            shape.as_areal().loops = [_positions(loop, max_dim=2) for loop in poly]
            shapes.append(shape)

    elif gtype == "GeometryCollection":
        members = geom.get("geometries")
        if not isinstance(members, list):
            raise GeoJSONError("GeometryCollection requires a 'geometries' list")
        for member in members:
            shapes.extend(_shapes_from_geometry(member, props))

    else:
        raise GeoJSONError(f"Unsupported geometry type: {gtype!r}")

    return shapes

def _shapes_from_feature(feature: Any) -> List[VectorShape]:
    if not isinstance(feature, dict) or feature.get("type") != "Feature":
        raise GeoJSONError("FeatureCollection members must be Features")

    geom = feature.get("geometry")
    if geom is None:
        log.debug(f"Skipping feature with null geometry (id={feature.get('id')})")
        return []
    return _shapes_from_geometry(geom, _clean_properties(feature.get("properties")))

def _shapes_from_object(obj: Any) -> List[VectorShape]:
    if not isinstance(obj, dict):
        raise GeoJSONError(f"GeoJSON root must be an object, got {type(obj).__name__}")

    gtype = obj.get("type")
    if gtype == "FeatureCollection":
        features = obj.get("features")
        if not isinstance(features, list):
            raise GeoJSONError("FeatureCollection requires a 'features' list")
        shapes = []
        for feature in features:
            shapes.extend(_shapes_from_feature(feature))
        return shapes

    if gtype == "Feature":
        return _shapes_from_feature(obj)

    return _shapes_from_geometry(obj, {})

def _extract_crs(obj: Any) -> Optional[str]:
    if not isinstance(obj, dict):
        return None
    crs = obj.get("crs")
    if not isinstance(crs, dict):
        return None
    props = crs.get("properties")
    if not isinstance(props, dict):
        return None
    name = props.get("name")
    return str(name) if name is not None else None

def parse_geojson_dict(shapes: ShapeSet, obj: Mapping[str, Any]) -> bool:
    """
    Parse an already-decoded GeoJSON structure into `shapes`.

    Accepts a FeatureCollection, a single Feature or a bare geometry.
    Multi-part geometries yield one shape per part, each with its own copy
    of the feature properties.

    Args:
        shapes (ShapeSet): Destination set; untouched on failure.
        obj (Mapping): Decoded GeoJSON.

    Returns:
        bool: False if the structure is malformed.
    """
    try:
        parsed = _shapes_from_object(obj)
    except _MALFORMED as e:
        log.warning(f"Malformed GeoJSON: {e}")
        return False

    for shape in parsed:
        shape.init_geo_mbr()
        shapes.add(shape)

    log.debug(f"Parsed {len(parsed)} shapes from GeoJSON")
    return True

def _decode(data: Union[bytes, str]) -> Any:
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    return json.loads(data)

def parse_geojson(shapes: ShapeSet, data: Union[bytes, str]) -> Tuple[bool, Optional[str]]:
    """
    Parse raw GeoJSON text into `shapes`.

    Args:
        shapes (ShapeSet): Destination set; untouched on failure.
        data (Union[bytes, str]): UTF-8 encoded or decoded GeoJSON text.

    Returns:
        Tuple[bool, Optional[str]]: Success flag and the CRS name found in a
        top-level "crs" member, if any.
    """
    try:
        obj = _decode(data)
    except (ValueError, TypeError) as e:
        log.warning(f"Could not decode GeoJSON: {e}")
        return False, None

    if not parse_geojson_dict(shapes, obj):
        return False, None
    return True, _extract_crs(obj)

def parse_geojson_assembly(data: Union[bytes, str, Mapping[str, Any]], out: Dict[str, ShapeSet]) -> bool:
    """
    Parse an assembly: an object mapping names to FeatureCollections.

    Shapes are added to out[name], creating the ShapeSet if needed.
    Nothing is added to `out` unless every member parses.

    Returns:
        bool: False if the input or any member is malformed.
    """
    if isinstance(data, Mapping):
        obj = data
    else:
        try:
            obj = _decode(data)
        except (ValueError, TypeError) as e:
            log.warning(f"Could not decode GeoJSON assembly: {e}")
            return False

    if not isinstance(obj, Mapping):
        log.warning(f"GeoJSON assembly root must be an object, got {type(obj).__name__}")
        return False

    staged: Dict[str, ShapeSet] = {}
    for name, member in obj.items():
        member_shapes = ShapeSet()
        if not parse_geojson_dict(member_shapes, member):
            log.warning(f"Assembly member '{name}' is malformed")
            return False
        staged[str(name)] = member_shapes

    for name, member_shapes in staged.items():
        out.setdefault(name, ShapeSet())
        out[name] |= member_shapes

    log.debug(f"Parsed GeoJSON assembly with {len(staged)} collections")
    return True

# --- Serialization ---

def _closed(loop: np.ndarray) -> list:
    coords = loop.tolist()
    if coords and coords[0] != coords[-1]:
        coords.append(coords[0])
    return coords

def shape_to_geojson_geometry(shape: VectorShape) -> Dict[str, Any]:
    """
    GeoJSON geometry for one shape.

    TRIANGLES become a MultiPolygon of closed triangles carrying z.
    Areal loops are written as stored.
    """
    kind = shape.kind
    if kind is ShapeKind.AREAL:
        return {"type": "Polygon", "coordinates": [loop.tolist() for loop in shape.as_areal().loops]}
    if kind is ShapeKind.LINEAR:
        return {"type": "LineString", "coordinates": shape.as_linear().pts.tolist()}
    if kind is ShapeKind.LINEAR3D:
        return {"type": "LineString", "coordinates": shape.as_linear3d().pts.tolist()}
    if kind is ShapeKind.POINTS:
        pts = shape.as_points().pts
        if len(pts) == 1:
            return {"type": "Point", "coordinates": pts[0].tolist()}
        return {"type": "MultiPoint", "coordinates": pts.tolist()}

    mesh = shape.as_triangles()
    return {
        "type": "MultiPolygon",
        "coordinates": [[_closed(mesh.get_triangle(k))] for k in range(len(mesh.tris))]
    }

def shapes_to_geojson(shapes: ShapeSet, crs: Optional[str] = None) -> Dict[str, Any]:
    """Build a FeatureCollection with one Feature per shape, in creation order."""
    features = [
        {
            "type": "Feature",
            "properties": dict(shape.attributes),
            "geometry": shape_to_geojson_geometry(shape)
        }
        for shape in shapes.sorted()
    ]
    collection: Dict[str, Any] = {"type": "FeatureCollection", "features": features}
    if crs:
        collection["crs"] = {"type": "name", "properties": {"name": crs}}
    return collection

def serialize_geojson(shapes: ShapeSet, crs: Optional[str] = None) -> bytes:
    return json.dumps(shapes_to_geojson(shapes, crs=crs)).encode("utf-8")
