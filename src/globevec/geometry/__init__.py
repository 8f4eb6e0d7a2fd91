# src/globevec/geometry/__init__.py
#
# Copyright (c) The globevec project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The geometry subpackage provides the pure geometric algorithms over rings and shapes:
measurement, edge subdivision, containment and ray intersection.
"""

# Measurement
from .measure import (
    calc_ring_mbr,
    calc_rings_mbr,
    calc_loop_area,
    calc_loop_centroid,
    calc_center_of_mass
)

# Display projection
from .adapter import (
    DisplayAdapter,
    SphericalDisplayAdapter,
    FlatDisplayAdapter
)

# Edge subdivision
from .subdivide import (
    SubdivisionParams,
    subdivide_edges,
    subdivide_edges_to_surface,
    subdivide_edges_to_surface_gc
)

# Predicates and intersection
from .intersect import (
    RAY_EPSILON,
    RayHit,
    point_in_polygon,
    areal_point_inside,
    triangles_point_inside,
    ray_intersect_triangles
)

__all__ = [
    # Measurement
    "calc_ring_mbr",
    "calc_rings_mbr",
    "calc_loop_area",
    "calc_loop_centroid",
    "calc_center_of_mass",

    # Display projection
    "DisplayAdapter",
    "SphericalDisplayAdapter",
    "FlatDisplayAdapter",

    # Edge subdivision
    "SubdivisionParams",
    "subdivide_edges",
    "subdivide_edges_to_surface",
    "subdivide_edges_to_surface_gc",

    # Predicates and intersection
    "RAY_EPSILON",
    "RayHit",
    "point_in_polygon",
    "areal_point_inside",
    "triangles_point_inside",
    "ray_intersect_triangles"
]
