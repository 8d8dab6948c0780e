# src/wrapspatial/raster/__init__.py
#
# Copyright (c) The wrapspatial project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The raster subpackage reads coverages for a rendering request: in-memory
rasters, grid geometries, coverage readers, read resolution calculation and
the reader helper that splits reads along projection handler queries.
"""
# Core data structures
from .layer import (
    Raster
)

from .grid import (
    GridGeometry
)

# Readers
from .reader import (
    CoverageReader,
    RasterioCoverageReader,
    check_memory_safety
)

from .resolution import (
    compute_read_resolution
)

# Geometry utilities
from .geom import (
    crop,
    is_not_empty
)

# Orchestration
from .helper import (
    GridCoverageReaderHelper,
    CoverageReadConfig,
    DEFAULT_PADDING
)

__all__ = [
    # Core data structures
    "Raster",
    "GridGeometry",

    # Readers
    "CoverageReader",
    "RasterioCoverageReader",
    "check_memory_safety",
    "compute_read_resolution",

    # Geometry utilities
    "crop",
    "is_not_empty",

    # Orchestration
    "GridCoverageReaderHelper",
    "CoverageReadConfig",
    "DEFAULT_PADDING"
]
