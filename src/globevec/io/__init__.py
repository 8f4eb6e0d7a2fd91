# src/globevec/io/__init__.py
#
# Copyright (c) The globevec project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The io subpackage provides the streaming reader contract and the codecs that
produce and consume ShapeSets: GeoJSON, the native .gvec record file and
OGR formats through GeoPandas.
"""

# Reader contract
from .reader import (
    AttrFilter,
    VectorReader,
    filter_attributes,
    read_all
)

# GeoJSON
from .geojson import (
    GeoJSONError,
    parse_geojson,
    parse_geojson_dict,
    parse_geojson_assembly,
    shape_to_geojson_geometry,
    shapes_to_geojson,
    serialize_geojson
)

# Native vector file
from .vecfile import (
    VECFILE_MAGIC,
    VECFILE_VERSION,
    VecFileReader,
    read_vector_file,
    write_vector_file
)

# OGR bridge
from .ogr import (
    shape_to_geometry,
    geometry_to_shapes,
    shapes_to_geodataframe,
    geodataframe_to_shapes,
    load_geodataframe,
    resolve_geodataframe,
    write_ogr_file,
    OGRVectorReader
)

__all__ = [
    # Reader contract
    "AttrFilter",
    "VectorReader",
    "filter_attributes",
    "read_all",

    # GeoJSON
    "GeoJSONError",
    "parse_geojson",
    "parse_geojson_dict",
    "parse_geojson_assembly",
    "shape_to_geojson_geometry",
    "shapes_to_geojson",
    "serialize_geojson",

    # Native vector file
    "VECFILE_MAGIC",
    "VECFILE_VERSION",
    "VecFileReader",
    "read_vector_file",
    "write_vector_file",

    # OGR bridge
    "shape_to_geometry",
    "geometry_to_shapes",
    "shapes_to_geodataframe",
    "geodataframe_to_shapes",
    "load_geodataframe",
    "resolve_geodataframe",
    "write_ogr_file",
    "OGRVectorReader"
]
