# src/wrapspatial/vector/layer.py

"""
This module defines the core data structure for vector data (points, lines, polygons).
"""

import logging
from typing import Iterator, Optional

import geopandas as gpd
from pyproj import CRS
from shapely.geometry.base import BaseGeometry

from wrapspatial.envelope import Envelope

log = logging.getLogger(__name__)

__all__ = [
    "Vector"
]

class Vector:
    def __init__(self, data: gpd.GeoDataFrame):
        if not isinstance(data, gpd.GeoDataFrame):
            raise TypeError(f"Expected GeoDataFrame, got {type(data)}")
        self._data = data

    @property
    def data(self) -> gpd.GeoDataFrame:
        return self._data

    @property
    def crs(self) -> Optional[CRS]:
        return self._data.crs

    @property
    def envelope(self) -> Envelope:
        """Bounding envelope of every feature, empty for an empty layer."""
        if len(self._data) == 0 or self._data.geometry.is_empty.all():
            return Envelope.empty(self.crs)
        return Envelope.from_bounds(self._data.total_bounds, self.crs)

    @property
    def columns(self):
        return self._data.columns.tolist()

    def geometries(self) -> Iterator[Optional[BaseGeometry]]:
        return iter(self._data.geometry)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self):
        crs = self.crs.to_string() if self.crs is not None else None
        return f"<Vector features={len(self._data)} crs={crs}>"
