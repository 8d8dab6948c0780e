# src/wrapspatial/__init__.py
#
# Copyright (c) The wrapspatial project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
wrapspatial decides how map data must be queried, cut, unwrapped and
replicated when it is rendered in a CRS other than its own: projection
valid areas, antimeridian handling and coverage reads split along them.
"""

from .envelope import (
    Envelope
)

from .exceptions import (
    WrapSpatialError,
    InvalidInputError,
    ProjectionError,
    RasterError,
    RasterIOError,
    RasterValidationError
)

from .projection import (
    ProjectionHandler,
    WrappingProjectionHandler,
    get_handler,
    WRAP_LIMIT
)

from .raster import (
    GridCoverageReaderHelper,
    RasterioCoverageReader
)

__version__ = "0.1.0"

__all__ = [
    "Envelope",
    "WrapSpatialError",
    "InvalidInputError",
    "ProjectionError",
    "RasterError",
    "RasterIOError",
    "RasterValidationError",
    "ProjectionHandler",
    "WrappingProjectionHandler",
    "get_handler",
    "WRAP_LIMIT",
    "GridCoverageReaderHelper",
    "RasterioCoverageReader"
]
