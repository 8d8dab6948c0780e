# src/wrapspatial/crs/transform.py

"""
Coordinate transforms between two CRSs.

Every transform works in (east, north) order whatever axis order the CRS
definitions declare, and plugs straight into shapely.transform().
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Tuple

import numpy as np
import shapely
from pyproj import Transformer
from pyproj.exceptions import ProjError

from wrapspatial.crs.utils import horizontal_crs, same_crs
from wrapspatial.exceptions import ProjectionError

log = logging.getLogger(__name__)

__all__ = [
    "BaseTransform",
    "CoordinateTransform",
    "PeriodPreservingTransform",
    "find_transform",
    "normalize_longitude"
]

def normalize_longitude(lon, period: float = 360.0):
    """Maps longitudes into [-period/2, period/2)."""
    half = period / 2.0
    return np.mod(np.asarray(lon, dtype=float) + half, period) - half

class BaseTransform(ABC):
    """
    Common behaviour of every transform.

    Subclasses implement transform_coords() and inverse(). Calling the
    transform on an (N, 2) coordinate array makes it usable as the callback
    of shapely.transform().
    """

    source_crs = None
    target_crs = None
    is_identity = False

    @abstractmethod
    def transform_coords(self, x, y, errcheck: bool = True) -> Tuple[np.ndarray, np.ndarray]:
        """Transforms (east, north) coordinate arrays."""

    @abstractmethod
    def inverse(self) -> 'BaseTransform':
        """The transform going the other way."""

    def __call__(self, coords: np.ndarray) -> np.ndarray:
        x, y = self.transform_coords(coords[:, 0], coords[:, 1])
        return np.column_stack([x, y])

    def transform_geometry(self, geometry):
        """Applies the transform to every vertex of a shapely geometry."""
        if self.is_identity:
            return geometry
        return shapely.transform(geometry, self)

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} {self.source_crs.name!r} -> "
                f"{self.target_crs.name!r}>")

class CoordinateTransform(BaseTransform):
    """
    A pyproj Transformer between two horizontal CRSs.

    Args:
        source_crs: CRS-like value of the input coordinates.
        target_crs: CRS-like value of the output coordinates.

    Raises:
        ProjectionError: If pyproj cannot build an operation between the CRSs.
    """

    def __init__(self, source_crs: Any, target_crs: Any):
        self.source_crs = horizontal_crs(source_crs)
        self.target_crs = horizontal_crs(target_crs)
        self.is_identity = same_crs(self.source_crs, self.target_crs)

        try:
            self._transformer = Transformer.from_crs(
                self.source_crs, self.target_crs, always_xy=True
            )
        except ProjError as e:
            raise ProjectionError(
                f"No transform from {self.source_crs.name} to {self.target_crs.name}: {e}"
            ) from e

    def transform_coords(self, x, y, errcheck: bool = True) -> Tuple[np.ndarray, np.ndarray]:
        """
        Transforms coordinate arrays.

        Args:
            x: Eastings or longitudes.
            y: Northings or latitudes.
            errcheck: If True, points that cannot be projected raise instead of
                      coming back as inf.

        Raises:
            ProjectionError: If errcheck is set and a point fails.
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if self.is_identity:
            return x.copy(), y.copy()

        try:
            tx, ty = self._transformer.transform(x, y, errcheck=errcheck)
        except ProjError as e:
            raise ProjectionError(
                f"Transform {self.source_crs.name} -> {self.target_crs.name} failed: {e}"
            ) from e
        return np.asarray(tx, dtype=float), np.asarray(ty, dtype=float)

    def inverse(self) -> 'CoordinateTransform':
        return CoordinateTransform(self.target_crs, self.source_crs)

class PeriodPreservingTransform(BaseTransform):
    """
    Wraps a geographic to geographic transform so longitudes outside the
    canonical [-180, 180) range keep their period offset.

    A point at longitude 190 is moved to -170, transformed, and moved back by
    one period, so a datum shift never folds a wrapped geometry back onto
    the canonical range.
    """

    def __init__(self, base: BaseTransform, period: float = 360.0):
        self.base = base
        self.period = period
        self.source_crs = base.source_crs
        self.target_crs = base.target_crs
        self.is_identity = base.is_identity

    def transform_coords(self, x, y, errcheck: bool = True) -> Tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=float)
        normalized = normalize_longitude(x, self.period)
        offset = x - normalized

        tx, ty = self.base.transform_coords(normalized, y, errcheck=errcheck)
        # A datum shift can push a point across the antimeridian
        drift = np.round((tx - normalized) / self.period) * self.period
        return tx - drift + offset, ty

    def inverse(self) -> 'PeriodPreservingTransform':
        return PeriodPreservingTransform(self.base.inverse(), self.period)

def find_transform(source_crs: Any, target_crs: Any) -> CoordinateTransform:
    """Resolves the transform between two CRS-like values."""
    transform = CoordinateTransform(source_crs, target_crs)
    log.debug(f"Resolved transform {transform}")
    return transform
