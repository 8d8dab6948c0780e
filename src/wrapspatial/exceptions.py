# src/wrapspatial/exceptions.py

"""
Exception hierarchy shared by the projection, raster and vector subpackages.
"""

__all__ = [
    "WrapSpatialError",
    "InvalidInputError",
    "ProjectionError",
    "RasterError",
    "RasterIOError",
    "RasterValidationError"
]

class WrapSpatialError(Exception):
    """Base class for every error raised by wrapspatial."""

class InvalidInputError(WrapSpatialError, ValueError):
    """A required geometry, envelope or CRS is missing or empty."""

class ProjectionError(WrapSpatialError):
    """A CRS could not be parsed or a coordinate transform failed."""

class RasterError(WrapSpatialError):
    pass

class RasterIOError(RasterError, IOError):
    pass

class RasterValidationError(RasterError, ValueError):
    pass
