# src/wrapspatial/raster/resolution.py

"""
This module works out the resolution at which a coverage must be read so that
one rendered pixel maps to about one read pixel.
"""

import logging
from typing import Any, Optional, Tuple

import numpy as np

from wrapspatial.crs.transform import find_transform
from wrapspatial.crs.utils import same_crs
from wrapspatial.raster.grid import GridGeometry

log = logging.getLogger(__name__)

__all__ = [
    "compute_read_resolution",
    "DEFAULT_SAMPLES"
]

# Pixels sampled along each axis of the rendering grid
DEFAULT_SAMPLES = 5

def compute_read_resolution(
    grid_geometry: GridGeometry,
    reader_crs: Any,
    full_resolution: Optional[Tuple[float, float]] = None,
    samples: int = DEFAULT_SAMPLES
) -> Tuple[float, float]:
    """
    Size of a rendered pixel expressed in reader CRS units.

    A lattice of pixels of the rendering grid is projected into the reader
    CRS; the finest size found wins so that no part of the rendering is
    undersampled. The result is never finer than the native resolution.

    Args:
        grid_geometry: Rendering grid, in the rendering CRS.
        reader_crs: CRS the coverage is read in.
        full_resolution: Native (x, y) resolution of the coverage, if known.
        samples: Pixels sampled along each axis.

    Returns:
        Tuple[float, float]: (x, y) resolution in reader CRS units.
    """
    if same_crs(grid_geometry.crs, reader_crs):
        res_x, res_y = grid_geometry.resolution
    else:
        res_x, res_y = _sampled_resolution(grid_geometry, reader_crs, samples)

    if full_resolution is not None:
        res_x = max(res_x, full_resolution[0])
        res_y = max(res_y, full_resolution[1])

    log.debug(f"Read resolution in {reader_crs}: ({res_x}, {res_y})")
    return float(res_x), float(res_y)

def _sampled_resolution(grid_geometry: GridGeometry, reader_crs: Any, samples: int) -> Tuple[float, float]:
    g = grid_geometry
    cols = np.linspace(g.col_off, g.col_off + g.width - 1, max(samples, 1)) + 0.5
    rows = np.linspace(g.row_off, g.row_off + g.height - 1, max(samples, 1)) + 0.5
    cc, rr = np.meshgrid(cols, rows)
    cc, rr = cc.ravel(), rr.ravel()

    # Pixel center and its right and lower neighbours
    grid_x = np.concatenate([cc, cc + 1, cc])
    grid_y = np.concatenate([rr, rr, rr + 1])
    world_x, world_y = g.transform * (grid_x, grid_y)

    transform = find_transform(g.crs, reader_crs)
    x, y = transform.transform_coords(world_x, world_y, errcheck=False)
    x = x.reshape(3, -1)
    y = y.reshape(3, -1)

    step_x = np.hypot(x[1] - x[0], y[1] - y[0])
    step_y = np.hypot(x[2] - x[0], y[2] - y[0])
    valid = np.isfinite(step_x) & np.isfinite(step_y) & (step_x > 0) & (step_y > 0)
    if not valid.any():
        envelope = g.envelope.transform(reader_crs)
        log.debug("No sampled pixel could be projected, using the envelope ratio")
        return envelope.width / g.width, envelope.height / g.height

    return float(step_x[valid].min()), float(step_y[valid].min())
