# src/wrapspatial/raster/geom.py

"""
This module provides geometric operations on in-memory rasters.
"""

import logging
import math

from rasterio.windows import Window
from rasterio.windows import transform as window_transform

from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.raster.layer import Raster

log = logging.getLogger(__name__)

__all__ = [
    "crop",
    "is_not_empty"
]

# Fraction of a pixel ignored when snapping a crop to the grid
_SNAP_TOLERANCE = 1e-6

def is_not_empty(envelope: Envelope) -> bool:
    """True if envelope has a positive area."""
    return envelope is not None and not envelope.is_empty and envelope.width > 0 and envelope.height > 0

def crop(raster: Raster, envelope: Envelope) -> Raster:
    """
    Crop raster to an envelope in its own CRS.

    The envelope is snapped outward to whole pixels and clamped to the raster.

    Args:
        raster (Raster): Input raster.
        envelope (Envelope): Area to keep, in the raster CRS.

    Returns:
        Raster: A new cropped Raster object.

    Raises:
        InvalidInputError: If the envelope does not overlap the raster.
    """
    log.debug(f"Cropping raster to {envelope}")

    inverse = ~raster.transform
    corners = [inverse * (envelope.minx, envelope.maxy), inverse * (envelope.maxx, envelope.miny)]
    cols = [c for c, _ in corners]
    rows = [r for _, r in corners]

    col_start = max(0, math.floor(min(cols) + _SNAP_TOLERANCE))
    row_start = max(0, math.floor(min(rows) + _SNAP_TOLERANCE))
    col_end = min(raster.width, math.ceil(max(cols) - _SNAP_TOLERANCE))
    row_end = min(raster.height, math.ceil(max(rows) - _SNAP_TOLERANCE))

    if col_end <= col_start or row_end <= row_start:
        raise InvalidInputError(f"{envelope} does not overlap the raster {raster.envelope}")

    window = Window(col_start, row_start, col_end - col_start, row_end - row_start)
    new_data = raster.data[:, row_start:row_end, col_start:col_end].copy()

    return Raster(
        data=new_data,
        transform=window_transform(window, raster.transform),
        crs=raster.crs,
        nodata=raster.nodata,
        band_names=raster.band_names.copy()
    )
