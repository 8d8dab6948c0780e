# src/wrapspatial/raster/reader.py

"""
This module defines the coverage reader contract used by the
GridCoverageReaderHelper and its rasterio implementation.
"""

import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
import psutil
import rasterio
from pyproj import CRS
from rasterio.crs import CRS as RioCRS
from rasterio.enums import Resampling
from rasterio.transform import Affine
from rasterio.vrt import WarpedVRT
from rasterio.windows import Window

from wrapspatial.crs.utils import same_crs, to_crs
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import RasterIOError
from wrapspatial.raster.grid import GridGeometry
from wrapspatial.raster.layer import Raster

log = logging.getLogger(__name__)

__all__ = [
    "CoverageReader",
    "RasterioCoverageReader",
    "check_memory_safety",
    "DEFAULT_SAFETY_FACTOR"
]

# Multiplier applied to the raw size of a read to account for NumPy overhead
DEFAULT_SAFETY_FACTOR = 3.0

# Fraction of a pixel ignored when snapping a window to the grid
_SNAP_TOLERANCE = 1e-6

def check_memory_safety(
    count: int,
    width: int,
    height: int,
    dtype: Any,
    safety_factor: float = DEFAULT_SAFETY_FACTOR
) -> Tuple[bool, str]:
    """
    Estimates if an array of the given shape fits in available system RAM.

    Returns:
        Tuple[bool, str]:
            - bool: True if safe to allocate.
            - str: A human-readable message explaining the memory math.
    """
    raw_bytes = count * width * height * np.dtype(dtype).itemsize
    estimated = raw_bytes * safety_factor
    available = psutil.virtual_memory().available

    req_gb = estimated / (1024**3)
    avail_gb = available / (1024**3)
    if estimated > available:
        return False, (
            f"Insufficient Memory: read requires ~{req_gb:.2f} GB RAM "
            f"(Factor: {safety_factor}), but only {avail_gb:.2f} GB is available."
        )
    return True, f"Memory Check Passed: Requires ~{req_gb:.2f} GB (Available: {avail_gb:.2f} GB)."

class CoverageReader(ABC):
    """A source of raster coverages readable at an arbitrary grid geometry."""

    @property
    @abstractmethod
    def crs(self) -> CRS:
        """Native CRS of the coverage."""

    @abstractmethod
    def original_envelope(self) -> Envelope:
        """Full extent of the coverage in its native CRS."""

    def resolution_levels(self) -> List[Tuple[float, float]]:
        """Available (x, y) resolutions, finest first. Empty if unknown."""
        return []

    @abstractmethod
    def read(self, grid_geometry: Optional[GridGeometry] = None, **params) -> Optional[Raster]:
        """
        Read the coverage over grid_geometry.

        Returns:
            Raster or None when the request does not intersect the data.
        """

class RasterioCoverageReader(CoverageReader):
    """
    Coverage reader over any raster file GDAL can open.

    The dataset is opened once to cache its metadata, and again for every
    read, so reads can run from several threads.

    Args:
        path: Path to the raster file.
        bands: Band index or list of 1-based band indices to read. All by default.
        safety_factor: Memory overhead factor used to refuse oversized reads.

    Raises:
        FileNotFoundError: If the file does not exist.
        RasterIOError: If rasterio cannot open it.
    """

    def __init__(
        self,
        path: Union[str, Path],
        bands: Optional[Union[int, Sequence[int]]] = None,
        safety_factor: float = DEFAULT_SAFETY_FACTOR
    ):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Raster file not found: {self.path}")
        self.safety_factor = safety_factor

        try:
            with rasterio.open(self.path) as src:
                if src.crs is None:
                    raise RasterIOError(f"{self.path.name} has no CRS")
                self._crs = to_crs(src.crs)
                self._transform = src.transform
                self._width, self._height = src.width, src.height
                self._dtype = src.dtypes[0]
                self._nodata = src.nodata
                self._descriptions = src.descriptions
                self._overviews = src.overviews(1)
                self._indexes = self._resolve_indexes(bands, src.indexes)
                west, south, east, north = src.bounds
        except rasterio.RasterioIOError as e:
            raise RasterIOError(f"Failed to open {self.path}: {e}") from e

        self._envelope = Envelope(
            min(west, east), min(south, north), max(west, east), max(south, north), self._crs
        )
        log.debug(f"Opened coverage {self.path.name} ({self._width}x{self._height}, {self._crs.name})")

    @staticmethod
    def _resolve_indexes(bands, available) -> List[int]:
        if bands is None:
            return list(available)
        if isinstance(bands, int):
            return [bands]
        return list(bands)

    @property
    def crs(self) -> CRS:
        return self._crs

    def original_envelope(self) -> Envelope:
        return self._envelope

    def resolution_levels(self) -> List[Tuple[float, float]]:
        res_x, res_y = abs(self._transform.a), abs(self._transform.e)
        return [(res_x, res_y)] + [(res_x * f, res_y * f) for f in self._overviews]

    def _band_names(self) -> dict:
        names = {}
        for i, idx in enumerate(self._indexes):
            desc = self._descriptions[idx - 1]
            if desc:
                names[desc] = i + 1
        return names

    def _ensure_fits(self, width: int, height: int):
        is_safe, msg = check_memory_safety(
            len(self._indexes), width, height, self._dtype, self.safety_factor
        )
        if not is_safe:
            log.error(msg)
            raise MemoryError(msg)
        log.debug(msg)

    def read(
        self,
        grid_geometry: Optional[GridGeometry] = None,
        resampling: Resampling = Resampling.nearest,
        **params
    ) -> Optional[Raster]:
        """
        Read the coverage over a grid geometry.

        In the native CRS the intersecting pixels are read, snapped outward to
        whole pixels and decimated to the requested resolution, never refined
        beyond the native one. In any other CRS the data is warped onto the
        requested grid.

        Args:
            grid_geometry: Requested grid. None reads the whole coverage.
            resampling: Resampling used when decimating or warping.
            **params: Ignored; accepted so callers can pass generic read parameters.

        Returns:
            Raster or None when the request does not intersect the data.

        Raises:
            MemoryError: If the read would not fit in available memory.
            RasterIOError: If rasterio fails to read.
        """
        if params:
            log.debug(f"Ignoring read parameters {sorted(params)}")

        try:
            with rasterio.open(self.path) as src:
                if grid_geometry is None:
                    self._ensure_fits(src.width, src.height)
                    return self._to_raster(src.read(self._indexes), src.transform)
                if same_crs(grid_geometry.crs, self._crs):
                    return self._read_native(src, grid_geometry, resampling)
                return self._read_warped(src, grid_geometry, resampling)
        except rasterio.RasterioIOError as e:
            raise RasterIOError(f"Failed to read {self.path}: {e}") from e

    def _to_raster(self, data: np.ndarray, transform: Affine) -> Raster:
        return Raster(
            data=data,
            transform=transform,
            crs=self._crs,
            nodata=self._nodata,
            band_names=self._band_names()
        )

    def _read_native(self, src, grid_geometry: GridGeometry, resampling: Resampling) -> Optional[Raster]:
        requested = grid_geometry.envelope
        overlap = requested.intersection(self._envelope)
        if overlap.is_empty or overlap.width == 0 or overlap.height == 0:
            log.debug(f"{requested} does not intersect {self.path.name}")
            return None

        inverse = ~src.transform
        c0, r0 = inverse * (overlap.minx, overlap.maxy)
        c1, r1 = inverse * (overlap.maxx, overlap.miny)
        col_start = max(0, math.floor(min(c0, c1) + _SNAP_TOLERANCE))
        row_start = max(0, math.floor(min(r0, r1) + _SNAP_TOLERANCE))
        col_end = min(src.width, math.ceil(max(c0, c1) - _SNAP_TOLERANCE))
        row_end = min(src.height, math.ceil(max(r0, r1) - _SNAP_TOLERANCE))
        if col_end <= col_start or row_end <= row_start:
            return None
        window = Window(col_start, row_start, col_end - col_start, row_end - row_start)

        # Decimate to the requested resolution, never beyond the native one
        req_x, req_y = grid_geometry.resolution
        native_x, native_y = abs(src.transform.a), abs(src.transform.e)
        out_width = max(1, round(window.width * native_x / max(req_x, native_x)))
        out_height = max(1, round(window.height * native_y / max(req_y, native_y)))
        self._ensure_fits(out_width, out_height)

        data = src.read(
            self._indexes,
            window=window,
            out_shape=(len(self._indexes), out_height, out_width),
            resampling=resampling
        )
        transform = src.window_transform(window) * Affine.scale(
            window.width / out_width, window.height / out_height
        )
        log.debug(f"Read {out_width}x{out_height} pixels from {self.path.name} window {window}")
        return self._to_raster(data, transform)

    def _read_warped(self, src, grid_geometry: GridGeometry, resampling: Resampling) -> Optional[Raster]:
        grid = grid_geometry.normalized()
        self._ensure_fits(grid.width, grid.height)

        with WarpedVRT(
            src,
            crs=RioCRS.from_wkt(grid.crs.to_wkt()),
            transform=grid.transform,
            width=grid.width,
            height=grid.height,
            resampling=resampling
        ) as vrt:
            if not vrt.dataset_mask().any():
                log.debug(f"Warped read of {self.path.name} over {grid.envelope} is empty")
                return None
            data = vrt.read(self._indexes)

        return Raster(
            data=data,
            transform=grid.transform,
            crs=grid.crs,
            nodata=self._nodata,
            band_names=self._band_names()
        )
