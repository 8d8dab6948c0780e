# src/wrapspatial/vector/io.py

"""
This module provides functions for reading and writing vector data using GeoPandas.
"""

from pathlib import Path
from typing import Callable, Optional, Tuple, Union
from functools import wraps
import logging

import geopandas as gpd
import pyogrio
from pyproj import CRS

from wrapspatial.crs.utils import to_crs
from wrapspatial.envelope import Envelope
from wrapspatial.vector.layer import Vector

log = logging.getLogger(__name__)

__all__ = [
    "load_vector",
    "save_vector",
    "resolve_vector",
    "read_crs"
]

def _check_exists(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"Vector file not found: {path}")

def read_crs(path: Union[str, Path]) -> Optional[CRS]:
    """CRS of a vector file, read from its metadata only."""
    path = Path(path)
    _check_exists(path)
    crs = pyogrio.read_info(str(path))["crs"]
    return to_crs(crs) if crs else None

def load_vector(
    path: Union[str, Path],
    bbox: Optional[Union[Envelope, Tuple[float, float, float, float]]] = None,
    engine: str = "pyogrio",
    **kwargs
) -> Vector:
    """
    Read a vector file.

    Args:
        path: Any file format supported by GDAL/OGR.
        bbox: Only features intersecting this box, in the file CRS, are read.
        engine: GeoPandas I/O engine.
        **kwargs: Passed to geopandas.read_file.
    """
    path = Path(path)
    _check_exists(path)

    if isinstance(bbox, Envelope):
        bbox = bbox.bounds
    if bbox is not None:
        kwargs["bbox"] = tuple(bbox)

    log.debug(f"Loading vector: {path.name} (bbox={bbox})")
    gdf = gpd.read_file(path, engine=engine, **kwargs)
    return Vector(gdf)

def save_vector(vector: Vector, path: Union[str, Path], driver: str = None, engine: str = "pyogrio", **kwargs):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    vector.data.to_file(path, driver=driver, engine=engine, **kwargs)

def resolve_vector(func: Callable):
    """Decorator: lets the first argument be either a file path or a Vector."""
    @wraps(func)
    def wrapper(input_obj: Union[str, Path, Vector], *args, **kwargs):
        if isinstance(input_obj, (str, Path)):
            vector_obj = load_vector(input_obj)
        elif isinstance(input_obj, Vector):
            vector_obj = input_obj
        else:
            raise TypeError(f"Expected file path or Vector object, got {type(input_obj)}")

        return func(vector_obj, *args, **kwargs)
    return wrapper
