# src/wrapspatial/envelope.py

"""
This module defines the Envelope, an axis aligned rectangle tagged with the
CRS its coordinates are expressed in.

Envelopes are immutable; every operation returns a new instance. The empty
envelope is the one whose minimum exceeds its maximum on either axis.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple, Union

import numpy as np
from pyproj import CRS
from shapely.geometry import Polygon, box

from wrapspatial.crs.transform import PeriodPreservingTransform, find_transform
from wrapspatial.crs.utils import horizontal_crs, is_geographic, same_crs, to_crs
from wrapspatial.exceptions import InvalidInputError, ProjectionError

log = logging.getLogger(__name__)

__all__ = [
    "Envelope",
    "DEFAULT_DENSIFY"
]

# Points sampled along each edge when an envelope is reprojected
DEFAULT_DENSIFY = 32

_LON_PERIOD = 360.0

@dataclass(frozen=True, repr=False)
class Envelope:
    """
    A rectangle in a coordinate reference system.

    Attributes:
        minx (float): West edge.
        miny (float): South edge.
        maxx (float): East edge.
        maxy (float): North edge.
        crs (pyproj.CRS | None): CRS of the coordinates.
    """
    minx: float
    miny: float
    maxx: float
    maxy: float
    crs: Optional[CRS] = None

    def __post_init__(self):
        for name in ("minx", "miny", "maxx", "maxy"):
            object.__setattr__(self, name, float(getattr(self, name)))
        if self.crs is not None:
            object.__setattr__(self, "crs", to_crs(self.crs))

    # Constructors

    @classmethod
    def empty(cls, crs: Any = None) -> 'Envelope':
        return cls(math.inf, math.inf, -math.inf, -math.inf, crs)

    @classmethod
    def from_bounds(cls, bounds: Tuple[float, float, float, float], crs: Any = None) -> 'Envelope':
        minx, miny, maxx, maxy = bounds
        return cls(minx, miny, maxx, maxy, crs)

    @classmethod
    def from_geometry(cls, geometry, crs: Any = None) -> 'Envelope':
        """Bounding envelope of a shapely geometry."""
        if geometry is None:
            raise InvalidInputError("Cannot compute the envelope of a missing geometry")
        if geometry.is_empty:
            return cls.empty(crs)
        return cls.from_bounds(geometry.bounds, crs)

    # Metrics

    @property
    def is_empty(self) -> bool:
        # Written so that NaN coordinates also count as empty
        return not (self.minx <= self.maxx and self.miny <= self.maxy)

    @property
    def width(self) -> float:
        return 0.0 if self.is_empty else self.maxx - self.minx

    @property
    def height(self) -> float:
        return 0.0 if self.is_empty else self.maxy - self.miny

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Returns (minx, miny, maxx, maxy)."""
        return (self.minx, self.miny, self.maxx, self.maxy)

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.minx + self.maxx) / 2.0, (self.miny + self.maxy) / 2.0)

    # Predicates

    def intersects(self, other: 'Envelope') -> bool:
        """Closed intersection test; touching envelopes intersect."""
        if self.is_empty or other.is_empty:
            return False
        return (self.minx <= other.maxx and other.minx <= self.maxx and
                self.miny <= other.maxy and other.miny <= self.maxy)

    def contains(self, other: Union['Envelope', Tuple[float, float]]) -> bool:
        """True if other (an envelope or an (x, y) point) lies inside or on the boundary."""
        if self.is_empty:
            return False
        if not isinstance(other, Envelope):
            x, y = other
            return self.minx <= x <= self.maxx and self.miny <= y <= self.maxy
        if other.is_empty:
            return False
        return (self.minx <= other.minx and other.maxx <= self.maxx and
                self.miny <= other.miny and other.maxy <= self.maxy)

    # Derived envelopes

    def intersection(self, other: 'Envelope') -> 'Envelope':
        if not self.intersects(other):
            return Envelope.empty(self.crs)
        return Envelope(
            max(self.minx, other.minx), max(self.miny, other.miny),
            min(self.maxx, other.maxx), min(self.maxy, other.maxy),
            self.crs
        )

    def union(self, other: 'Envelope') -> 'Envelope':
        if self.is_empty:
            return other if self.crs is None else other.with_crs(self.crs)
        if other.is_empty:
            return self
        return Envelope(
            min(self.minx, other.minx), min(self.miny, other.miny),
            max(self.maxx, other.maxx), max(self.maxy, other.maxy),
            self.crs
        )

    def translate(self, dx: float, dy: float = 0.0) -> 'Envelope':
        if self.is_empty:
            return self
        return Envelope(self.minx + dx, self.miny + dy, self.maxx + dx, self.maxy + dy, self.crs)

    def expand_by(self, dx: float, dy: Optional[float] = None) -> 'Envelope':
        """Grows the envelope by dx on the left and right, dy (default dx) on top and bottom."""
        if self.is_empty:
            return self
        dy = dx if dy is None else dy
        return Envelope(self.minx - dx, self.miny - dy, self.maxx + dx, self.maxy + dy, self.crs)

    def with_crs(self, crs: Any) -> 'Envelope':
        """Same coordinates, relabelled with another CRS."""
        return replace(self, crs=crs)

    def to_polygon(self) -> Polygon:
        if self.is_empty:
            return Polygon()
        return box(self.minx, self.miny, self.maxx, self.maxy)

    # Reprojection

    def transform(self, target_crs: Any, densify: int = DEFAULT_DENSIFY) -> 'Envelope':
        """
        Expresses the envelope in another CRS.

        The edges are densified before transforming so curved images of
        straight edges are bounded correctly. Points that cannot be projected
        are ignored.

        Args:
            target_crs: CRS-like destination.
            densify: Number of points sampled along each edge.

        Returns:
            Envelope: Bounding envelope of the transformed outline.

        Raises:
            InvalidInputError: If this envelope carries no CRS.
            ProjectionError: If no point of the outline can be transformed.
        """
        if self.crs is None:
            raise InvalidInputError("Cannot transform an envelope without a CRS")

        target = horizontal_crs(target_crs)
        if same_crs(self.crs, target):
            return replace(self, crs=target)
        if self.is_empty:
            return Envelope.empty(target)

        source_geographic = is_geographic(self.crs)
        transform = find_transform(self.crs, target)
        if source_geographic and target.is_geographic:
            transform = PeriodPreservingTransform(transform)

        xs, ys = self._densified_ring(densify)
        tx, ty = transform.transform_coords(xs, ys, errcheck=False)
        finite = np.isfinite(tx) & np.isfinite(ty)
        if not finite.any():
            raise ProjectionError(f"{self} has no image in {target.name}")

        if target.is_geographic and not source_geographic:
            return self._bound_geographic(tx, ty, finite, target)

        return Envelope(tx[finite].min(), ty[finite].min(), tx[finite].max(), ty[finite].max(), target)

    def _densified_ring(self, densify: int) -> Tuple[np.ndarray, np.ndarray]:
        """Closed outline, counter-clockwise from the south-west corner."""
        n = max(int(densify), 2)
        t = np.linspace(0.0, 1.0, n, endpoint=False)
        w = self.maxx - self.minx
        h = self.maxy - self.miny
        xs = np.concatenate([
            self.minx + t * w, np.full(n, self.maxx),
            self.maxx - t * w, np.full(n, self.minx), [self.minx]
        ])
        ys = np.concatenate([
            np.full(n, self.miny), self.miny + t * h,
            np.full(n, self.maxy), self.maxy - t * h, [self.miny]
        ])
        return xs, ys

    def _bound_geographic(self, tx: np.ndarray, ty: np.ndarray, finite: np.ndarray, target: CRS) -> 'Envelope':
        """Bounds a projected outline in longitude and latitude, across the antimeridian if needed."""
        lon = np.unwrap(tx[finite], period=_LON_PERIOD)
        lat = ty[finite]
        minlat, maxlat = lat.min(), lat.max()

        # An outline that does not close after unwrapping winds around a pole
        full_circle = lon.max() - lon.min() >= _LON_PERIOD
        if finite.all() and abs(lon[-1] - lon[0]) > _LON_PERIOD / 2:
            full_circle = True

        if full_circle:
            minlon, maxlon = -180.0, 180.0
        else:
            shift = np.round((lon.min() + lon.max()) / 2.0 / _LON_PERIOD) * _LON_PERIOD
            minlon, maxlon = lon.min() - shift, lon.max() - shift

        px, py = find_transform(target, self.crs).transform_coords([0.0, 0.0], [90.0, -90.0], errcheck=False)
        for x, y, pole in zip(px, py, (90.0, -90.0)):
            if np.isfinite(x) and np.isfinite(y) and self.contains((x, y)):
                log.debug(f"{self} contains the pole at latitude {pole}")
                minlon, maxlon = -180.0, 180.0
                minlat, maxlat = min(minlat, pole), max(maxlat, pole)

        return Envelope(minlon, minlat, maxlon, maxlat, target)

    def __repr__(self) -> str:
        crs = self.crs.to_string() if self.crs is not None else None
        return f"Envelope({self.minx}, {self.miny}, {self.maxx}, {self.maxy}, crs={crs})"
