# src/wrapspatial/projection/wrapping.py

"""
This module handles rendering CRSs whose horizontal axis repeats every 360
degrees of longitude (geographic and normal cylindrical projections).

Geometries reprojected into such a CRS may come out torn across the
antimeridian; the WrappingProjectionHandler stitches them back together and
replicates them so that every copy visible in the rendering area is painted.
"""

import logging
import math
from typing import Any, Optional, Tuple

import numpy as np
from shapely import affinity
from shapely.geometry import (
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPolygon,
    Polygon
)
from shapely.geometry.base import BaseGeometry

from wrapspatial.crs.transform import BaseTransform, PeriodPreservingTransform, find_transform
from wrapspatial.crs.utils import central_meridian, is_geographic
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError, ProjectionError
from wrapspatial.projection.families import MERCATOR_LATITUDE_LIMIT, ProjectionFamily
from wrapspatial.projection.geometry import collect_geometries
from wrapspatial.projection.handler import WRAP_LIMIT, ProjectionHandler, _check_geometry

log = logging.getLogger(__name__)

__all__ = [
    "WrappingProjectionHandler",
    "unwrap_geometry"
]

def _unwrap_coords(coords, radius: float) -> np.ndarray:
    """Removes every jump larger than radius between consecutive vertices."""
    coords = np.array(coords, dtype=float)[:, :2]
    if len(coords) < 2:
        return coords
    jumps = np.diff(coords[:, 0])
    period = 2.0 * radius
    steps = np.where(jumps > radius, -period, np.where(jumps < -radius, period, 0.0))
    coords[1:, 0] += np.cumsum(steps)
    return coords

def _unwrap_ring(ring: LinearRing, radius: float, pole_ordinates: Optional[Tuple[float, float]]):
    """
    Returns (coords, closed_at_pole) for an unwrapped ring, or (None, False)
    when the ring cannot be closed again.
    """
    coords = _unwrap_coords(ring.coords, radius)
    if abs(coords[-1, 0] - coords[0, 0]) < radius:
        coords[-1] = coords[0]
        return coords, False
    if pole_ordinates is None:
        return None, False

    # The ring goes once around a pole: close it along the pole ordinate
    south, north = pole_ordinates
    pole = south if coords[:, 1].mean() < (south + north) / 2.0 else north
    closing = np.array([[coords[-1, 0], pole], [coords[0, 0], pole], coords[0]])
    return np.vstack([coords, closing]), True

def _unwrap_polygon(polygon: Polygon, radius: float, pole_ordinates) -> Tuple[Polygon, bool]:
    shell, closed_at_pole = _unwrap_ring(polygon.exterior, radius, pole_ordinates)
    if shell is None:
        return polygon, False

    holes = []
    for interior in polygon.interiors:
        hole, hole_at_pole = _unwrap_ring(interior, radius, None)
        if hole is None:
            return polygon, False
        holes.append(hole)

    unwrapped = Polygon(shell, holes)
    if closed_at_pole and not unwrapped.is_valid:
        log.debug("Polygon closed along the pole is invalid, keeping it as is")
        return polygon, False
    return unwrapped, closed_at_pole

def unwrap_geometry(
    geometry: BaseGeometry,
    radius: float,
    pole_ordinates: Optional[Tuple[float, float]] = None
) -> Tuple[BaseGeometry, bool]:
    """
    Undoes antimeridian tears introduced by a reprojection.

    Every jump between consecutive vertices wider than radius is compensated
    by one period (2 * radius). Rings that wind around a pole are closed along
    the pole ordinate when pole_ordinates (south, north) is given.

    Args:
        geometry: Geometry in a periodic CRS.
        radius: Half the period of the horizontal axis.
        pole_ordinates: (south, north) ordinates of the poles in the CRS.

    Returns:
        Tuple[BaseGeometry, bool]: The unwrapped geometry and whether a ring
        was closed along a pole.
    """
    if isinstance(geometry, Polygon):
        return _unwrap_polygon(geometry, radius, pole_ordinates)
    if isinstance(geometry, LineString):
        return type(geometry)(_unwrap_coords(geometry.coords, radius)), False
    if isinstance(geometry, (MultiPolygon, MultiLineString, GeometryCollection)):
        parts = []
        closed_at_pole = False
        for part in geometry.geoms:
            unwrapped, part_at_pole = unwrap_geometry(part, radius, pole_ordinates)
            parts.append(unwrapped)
            closed_at_pole = closed_at_pole or part_at_pole
        return type(geometry)(parts), closed_at_pole
    return geometry, False

class WrappingProjectionHandler(ProjectionHandler):
    """
    Projection handler for periodic rendering CRSs.

    Args:
        source_crs: CRS of the data being rendered.
        valid_area_bounds: Area the rendering CRS projects sensibly.
        rendering_envelope: Area being rendered, in the rendering CRS.
        family: Projection family of the rendering CRS.
        max_wraps: Largest number of copies made on each side of a geometry.

    Attributes:
        radius (float): Rendering CRS distance covering 180 degrees of longitude.
        copies_made (int): Extra copies produced by post_process() so far.

    Raises:
        ProjectionError: If the radius of the rendering CRS cannot be measured.
    """

    def __init__(
        self,
        source_crs: Any,
        valid_area_bounds: Optional[Envelope],
        rendering_envelope: Envelope,
        family: ProjectionFamily = ProjectionFamily.GEOGRAPHIC,
        max_wraps: int = WRAP_LIMIT
    ):
        super().__init__(source_crs, valid_area_bounds, rendering_envelope, family)
        if max_wraps < 0:
            raise InvalidInputError(f"max_wraps cannot be negative, got {max_wraps}")

        self.query_across_dateline = True
        self.max_wraps = max_wraps
        self.copies_made = 0

        if self.target_crs.is_geographic:
            self.central_meridian = 0.0
            self.radius, self._origin_x = 180.0, 0.0
            self._pole_ordinates = (-90.0, 90.0)
        else:
            self.central_meridian = central_meridian(self.target_crs)
            self.radius, self._origin_x = self._measure_radius()
            self._pole_ordinates = self._measure_pole_ordinates()

    def _measure_radius(self) -> Tuple[float, float]:
        to_target = find_transform(self._geographic_crs, self.target_crs)
        x, _ = to_target.transform_coords(
            [self.central_meridian, self.central_meridian + 180.0], [0.0, 0.0], errcheck=False
        )
        radius = abs(x[1] - x[0])
        if not np.isfinite(radius) or radius <= 0:
            raise ProjectionError(f"Cannot measure the half period of {self.target_crs.name}")
        return float(radius), float(x[0])

    def _measure_pole_ordinates(self) -> Tuple[float, float]:
        if self.valid_area_bounds is not None:
            south, north = self.valid_area_bounds.miny, self.valid_area_bounds.maxy
        else:
            south, north = -MERCATOR_LATITUDE_LIMIT, MERCATOR_LATITUDE_LIMIT

        to_target = find_transform(self._geographic_crs, self.target_crs)
        _, y = to_target.transform_coords(
            [self.central_meridian] * 2, [south, north], errcheck=False
        )
        if not np.isfinite(y).all():
            return (self.rendering_envelope.miny, self.rendering_envelope.maxy)
        return (float(y[0]), float(y[1]))

    def _rendering_geographic_envelope(self) -> Envelope:
        geographic = super()._rendering_geographic_envelope()
        if self.target_crs.is_geographic:
            return geographic

        # Longitudes are linear in x, which keeps ranges beyond +/-180 intact
        r = self.rendering_envelope
        scale = 180.0 / self.radius
        return Envelope(
            self.central_meridian + (r.minx - self._origin_x) * scale, geographic.miny,
            self.central_meridian + (r.maxx - self._origin_x) * scale, geographic.maxy,
            geographic.crs
        )

    def requires_processing(self, geometry: BaseGeometry) -> bool:
        _check_geometry(geometry)
        return True

    def get_rendering_transform(self, transform: BaseTransform) -> BaseTransform:
        if is_geographic(transform.source_crs) and is_geographic(transform.target_crs) \
                and not transform.is_identity:
            return PeriodPreservingTransform(transform)
        return transform

    def post_process(self, transform: Optional[BaseTransform], geometry: BaseGeometry) -> BaseGeometry:
        """
        Repairs antimeridian tears and replicates a rendered geometry.

        Args:
            transform: The transform that produced the geometry, None when the
                       geometry was not reprojected.
            geometry: Geometry in the rendering CRS.

        Returns:
            The input object when it needs no change, otherwise the unwrapped
            geometry or a multi geometry holding every visible copy.
        """
        _check_geometry(geometry)
        minx, _, maxx, _ = geometry.bounds
        width = maxx - minx
        r = self.rendering_envelope
        period = 2.0 * self.radius
        if width < self.radius and r.minx <= minx and maxx <= r.maxx \
                and maxx - period < r.minx and r.maxx < minx + period:
            return geometry

        reprojected = transform is not None and not transform.is_identity
        if reprojected and self.radius < width < 2.0 * self.radius:
            unwrapped, closed_at_pole = unwrap_geometry(geometry, self.radius, self._pole_ordinates)
            unwrapped_minx, _, unwrapped_maxx, _ = unwrapped.bounds
            if unwrapped_maxx - unwrapped_minx <= self.radius or closed_at_pole:
                geometry = unwrapped
                minx, maxx = unwrapped_minx, unwrapped_maxx

        return self._replicate(geometry, minx, maxx)

    def _replicate(self, geometry: BaseGeometry, minx: float, maxx: float) -> BaseGeometry:
        period = 2.0 * self.radius
        r = self.rendering_envelope
        lowest = math.floor((r.minx - maxx) / period) + 1
        highest = math.ceil((r.maxx - minx) / period) - 1

        if lowest < -self.max_wraps or highest > self.max_wraps:
            log.debug(f"Capping copies to {self.max_wraps} on each side (asked {lowest}..{highest})")
            lowest = max(lowest, -self.max_wraps)
            highest = min(highest, self.max_wraps)

        offsets = sorted(range(lowest, highest + 1), key=lambda k: (abs(k), k))
        if not offsets or offsets == [0]:
            return geometry

        parts = [
            geometry if k == 0 else affinity.translate(geometry, xoff=k * period)
            for k in offsets
        ]
        self.copies_made += len(parts) - 1
        if len(parts) == 1:
            return parts[0]
        return collect_geometries(parts)
