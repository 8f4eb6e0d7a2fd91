# src/globevec/geometry/adapter.py

"""
This module defines the display adapter protocol consumed by surface subdivision,
along with two reference adapters: a unit globe and a flat plate carree map.
"""

import logging
import math
from typing import Protocol, runtime_checkable

import numpy as np

log = logging.getLogger(__name__)

__all__ = [
    "DisplayAdapter",
    "SphericalDisplayAdapter",
    "FlatDisplayAdapter"
]

@runtime_checkable
class DisplayAdapter(Protocol):
    """
    Projects geographic coordinates (degrees) to their true position in 3D display space.
    """

    def geo_to_display(self, lon: float, lat: float) -> np.ndarray:
        ...

class SphericalDisplayAdapter:
    """
    Places geographic points on a sphere centered at the origin.

    Args:
        radius (float): Sphere radius in display units.
    """

    def __init__(self, radius: float = 1.0):
        if radius <= 0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self.radius = radius

    def geo_to_display(self, lon: float, lat: float) -> np.ndarray:
        lon_r = math.radians(lon)
        lat_r = math.radians(lat)
        cos_lat = math.cos(lat_r)
        return self.radius * np.array([
            cos_lat * math.cos(lon_r),
            cos_lat * math.sin(lon_r),
            math.sin(lat_r)
        ])

    def __repr__(self):
        return f"<SphericalDisplayAdapter radius={self.radius}>"

class FlatDisplayAdapter:
    """Plate carree in radians on the z=0 plane; straight edges never deviate."""

    def geo_to_display(self, lon: float, lat: float) -> np.ndarray:
        return np.array([math.radians(lon), math.radians(lat), 0.0])

    def __repr__(self):
        return "<FlatDisplayAdapter>"
