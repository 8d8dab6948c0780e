# src/wrapspatial/crs/__init__.py
#
# Copyright (c) The wrapspatial project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The crs subpackage normalizes coordinate reference systems and provides the
coordinate transforms used by the projection handlers.
"""

# CRS normalization and inspection
from .utils import (
    WGS84,
    to_crs,
    horizontal_crs,
    same_crs,
    is_geographic,
    base_geographic,
    projection_method,
    projection_parameters,
    central_meridian,
    latitude_of_origin,
    standard_parallels
)

# Transforms
from .transform import (
    BaseTransform,
    CoordinateTransform,
    PeriodPreservingTransform,
    find_transform,
    normalize_longitude
)

__all__ = [
    # CRS normalization and inspection
    "WGS84",
    "to_crs",
    "horizontal_crs",
    "same_crs",
    "is_geographic",
    "base_geographic",
    "projection_method",
    "projection_parameters",
    "central_meridian",
    "latitude_of_origin",
    "standard_parallels",

    # Transforms
    "BaseTransform",
    "CoordinateTransform",
    "PeriodPreservingTransform",
    "find_transform",
    "normalize_longitude"
]
