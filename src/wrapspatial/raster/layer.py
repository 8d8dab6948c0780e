# src/wrapspatial/raster/layer.py

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
import rasterio
from pyproj import CRS
from rasterio.transform import Affine

from wrapspatial.crs.utils import to_crs
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import RasterIOError, RasterValidationError

log = logging.getLogger(__name__)

__all__ = ["Raster"]

class Raster:
    """
    An in-memory coverage: a pixel array and the grid that places it on Earth.

    Readers return Raster objects; the coverage reader helper crops them to
    the parts a projection handler keeps.

    Attributes:
        data (np.ndarray): The pixel array in (Bands, Height, Width) format.
        transform (Affine): Maps pixel corners to CRS coordinates.
        crs (pyproj.CRS): The Coordinate Reference System.
        nodata (float | int | None): The value representing missing data.
        band_names (Dict[str, int]): Mapping of band descriptions to 1-based band indices.
    """

    def __init__(
        self,
        data: np.ndarray,
        transform: Affine,
        crs: Any,
        nodata: Optional[Union[float, int]] = None,
        band_names: Optional[Dict[str, int]] = None
    ):
        """
        Initialize a Raster object.

        Args:
            data: Input array. Must be 2D (Height, Width) or 3D (Bands, Height, Width).
                  2D arrays are promoted to 3D (1, Height, Width).
            transform: Affine transform of the pixel grid.
            crs: CRS-like value (pyproj, rasterio, EPSG string...).
            nodata: Value indicating no data.
            band_names: Optional mapping of names to band indices.

        Raises:
            RasterValidationError: If dimensions mismatch or types are incorrect.
        """
        self.validate_inputs(data, transform)

        if data.ndim == 2:
            data = data[np.newaxis, :, :]

        self._data = data
        self.transform = transform
        self.crs: CRS = to_crs(crs)
        self.nodata = nodata
        self.band_names = band_names or {}

    @staticmethod
    def validate_inputs(data: np.ndarray, transform: Affine):
        if not isinstance(data, np.ndarray):
            raise TypeError(f"Data must be numpy.ndarray, got {type(data)}")

        if data.ndim not in (2, 3):
            raise RasterValidationError(f"Data must be 2D or 3D, got shape {data.shape}")

        if not isinstance(transform, Affine):
            raise TypeError(f"Transform must be rasterio.Affine, got {type(transform)}")

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def width(self) -> int:
        return self._data.shape[2]

    @property
    def height(self) -> int:
        return self._data.shape[1]

    @property
    def count(self) -> int:
        return self._data.shape[0]

    @property
    def shape(self) -> Tuple[int, int, int]:
        """Returns (Bands, Height, Width)."""
        return self._data.shape

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Returns (left, bottom, right, top) in CRS units."""
        return rasterio.transform.array_bounds(self.height, self.width, self.transform)

    @property
    def envelope(self) -> Envelope:
        """World footprint of the pixel grid."""
        west, south, east, north = self.bounds
        return Envelope(min(west, east), min(south, north), max(west, east), max(south, north), self.crs)

    @property
    def profile(self) -> Dict[str, Any]:
        """Rasterio-compliant GeoTIFF profile describing the current state."""
        return {
            'driver': 'GTiff',
            'dtype': self._data.dtype,
            'nodata': self.nodata,
            'width': self.width,
            'height': self.height,
            'count': self.count,
            'crs': self.crs.to_wkt(),
            'transform': self.transform,
        }

    def save(self, path: Union[str, Path], **kwargs):
        """
        Write the Raster to disk.

        Args:
            path: Output file path.
            **kwargs: Overrides for the rasterio profile (e.g. compress='deflate').
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        out_profile = self.profile.copy()
        out_profile.update(kwargs)

        log.info(f"Saving Raster ({self.shape}) to {path}")

        try:
            with rasterio.open(path, 'w', **out_profile) as dst:
                dst.write(self._data)
                for name, idx in self.band_names.items():
                    if idx <= self.count:
                        dst.set_band_description(idx, name)
        except rasterio.RasterioIOError as e:
            raise RasterIOError(f"Failed to save {path}: {e}") from e

    def copy(self) -> 'Raster':
        """Returns a deep copy of the Raster."""
        return Raster(
            data=self._data.copy(),
            transform=copy.deepcopy(self.transform),
            crs=self.crs,
            nodata=self.nodata,
            band_names=self.band_names.copy()
        )

    def __repr__(self) -> str:
        return (f"<Raster shape={self.shape} dtype={self._data.dtype} "
                f"crs={self.crs.to_string()} bounds={self.bounds}>")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented

        # Metadata first, pixels only if needed
        meta_eq = (
            self.transform == other.transform and
            self.crs == other.crs and
            self.nodata == other.nodata and
            self.shape == other.shape
        )
        if not meta_eq:
            return False
        return np.array_equal(self._data, other.data)

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is not None:
            return self._data.astype(dtype)
        return self._data
