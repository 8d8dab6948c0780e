# src/wrapspatial/projection/geometry.py

"""
Small shapely helpers shared by the handlers and the coverage reader helper.
"""

from typing import Iterable, List

import shapely
from shapely.geometry import (
    GeometryCollection,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Polygon
)
from shapely.geometry.base import BaseGeometry

__all__ = [
    "empty_geometry",
    "extract_polygons",
    "collect_geometries"
]

_MULTI_TYPES = {
    "Polygon": MultiPolygon,
    "LineString": MultiLineString,
    "Point": MultiPoint,
}

def empty_geometry() -> GeometryCollection:
    return GeometryCollection()

def extract_polygons(geometry: BaseGeometry) -> List[Polygon]:
    """Every non-empty polygon found in a geometry, collections flattened."""
    if geometry is None or geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    if isinstance(geometry, (MultiPolygon, GeometryCollection)):
        polygons = []
        for part in geometry.geoms:
            polygons.extend(extract_polygons(part))
        return polygons
    return []

def collect_geometries(parts: Iterable[BaseGeometry]) -> BaseGeometry:
    """
    Gathers geometries into the narrowest multi geometry that holds them.

    Multi geometries are flattened one level; parts of mixed types end up in
    a GeometryCollection.
    """
    flat = []
    for part in parts:
        if part is None or part.is_empty:
            continue
        flat.extend(shapely.get_parts(part).tolist())

    if not flat:
        return empty_geometry()

    types = {part.geom_type for part in flat}
    if len(types) == 1:
        multi = _MULTI_TYPES.get(types.pop())
        if multi is not None:
            return multi(flat)
    return GeometryCollection(flat)
