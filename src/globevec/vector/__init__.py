# src/globevec/vector/__init__.py
#
# Copyright (c) The globevec project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The vector subpackage provides the shape data model: the five shape kinds,
their identity and attribute handling, and the identity-deduplicated ShapeSet.
"""

# Data structures
from .shapes import (
    ShapeId,
    ShapeKind,
    AttrValue,
    ArealData,
    LinearData,
    Linear3dData,
    PointsData,
    TrianglesData,
    VectorShape
)

# Factories
from .shapes import (
    create_areal,
    create_linear,
    create_linear3d,
    create_points,
    create_triangles,
    create_shape
)

from .shape_set import (
    ShapeSet
)

__all__ = [
    # Data structures
    "ShapeId",
    "ShapeKind",
    "AttrValue",
    "ArealData",
    "LinearData",
    "Linear3dData",
    "PointsData",
    "TrianglesData",
    "VectorShape",
    "ShapeSet",

    # Factories
    "create_areal",
    "create_linear",
    "create_linear3d",
    "create_points",
    "create_triangles",
    "create_shape"
]
