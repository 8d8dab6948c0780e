# src/wrapspatial/raster/grid.py

"""
This module defines GridGeometry, a pixel rectangle bound to world coordinates.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from pyproj import CRS
from rasterio.transform import Affine, from_bounds
from rasterio.windows import Window

from wrapspatial.crs.utils import to_crs
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError

log = logging.getLogger(__name__)

__all__ = ["GridGeometry"]

# Pixel coordinates closer than this to an integer are snapped to it
_SNAP_TOLERANCE = 1e-6

@dataclass(frozen=True)
class GridGeometry:
    """
    A rectangle of pixels and the transform that places it in a CRS.

    The transform maps absolute grid coordinates of pixel corners to world
    coordinates, so the rectangle does not have to start at (0, 0): a padded
    grid simply has negative offsets.

    Attributes:
        col_off (int): First column of the rectangle.
        row_off (int): First row of the rectangle.
        width (int): Number of columns.
        height (int): Number of rows.
        transform (Affine): Grid to world transform.
        crs (pyproj.CRS): CRS of the world coordinates.
    """
    col_off: int
    row_off: int
    width: int
    height: int
    transform: Affine
    crs: CRS

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(f"Grid must have a positive size, got {self.width}x{self.height}")
        object.__setattr__(self, "crs", to_crs(self.crs))

    @classmethod
    def from_envelope(
        cls,
        envelope: Envelope,
        width: int,
        height: int,
        col_off: int = 0,
        row_off: int = 0
    ) -> 'GridGeometry':
        """
        Grid whose rectangle (col_off, row_off, width, height) covers envelope
        exactly, north up.
        """
        if envelope.is_empty:
            raise InvalidInputError("Cannot build a grid over an empty envelope")
        transform = from_bounds(
            envelope.minx, envelope.miny, envelope.maxx, envelope.maxy, width, height
        ) * Affine.translation(-col_off, -row_off)
        return cls(col_off, row_off, width, height, transform, envelope.crs)

    @property
    def window(self) -> Window:
        return Window(self.col_off, self.row_off, self.width, self.height)

    @property
    def resolution(self) -> Tuple[float, float]:
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def envelope(self) -> Envelope:
        """World envelope of the pixel rectangle."""
        corners = [
            self.transform * (self.col_off, self.row_off),
            self.transform * (self.col_off + self.width, self.row_off + self.height),
            self.transform * (self.col_off, self.row_off + self.height),
            self.transform * (self.col_off + self.width, self.row_off),
        ]
        xs = [x for x, _ in corners]
        ys = [y for _, y in corners]
        return Envelope(min(xs), min(ys), max(xs), max(ys), self.crs)

    def grid_bounds(self, envelope: Envelope) -> Tuple[int, int, int, int]:
        """
        Pixel rectangle (col_off, row_off, width, height) covering envelope.

        Fractional pixels are included, so the rectangle may be slightly
        larger than the envelope.
        """
        inverse = ~self.transform
        corners = [
            inverse * (envelope.minx, envelope.miny),
            inverse * (envelope.maxx, envelope.maxy),
            inverse * (envelope.minx, envelope.maxy),
            inverse * (envelope.maxx, envelope.miny),
        ]
        cols = [c for c, _ in corners]
        rows = [r for _, r in corners]
        col_min = math.floor(min(cols) + _SNAP_TOLERANCE)
        row_min = math.floor(min(rows) + _SNAP_TOLERANCE)
        col_max = math.ceil(max(cols) - _SNAP_TOLERANCE)
        row_max = math.ceil(max(rows) - _SNAP_TOLERANCE)
        return col_min, row_min, col_max - col_min, row_max - row_min

    def with_gutter(self, padding: int) -> 'GridGeometry':
        """Same grid grown by padding pixels on every side."""
        return GridGeometry(
            self.col_off - padding, self.row_off - padding,
            self.width + 2 * padding, self.height + 2 * padding,
            self.transform, self.crs
        )

    def normalized(self) -> 'GridGeometry':
        """Equivalent grid whose rectangle starts at (0, 0)."""
        transform = self.transform * Affine.translation(self.col_off, self.row_off)
        return GridGeometry(0, 0, self.width, self.height, transform, self.crs)
