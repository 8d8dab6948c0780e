# src/wrapspatial/projection/__init__.py
#
# Copyright (c) The wrapspatial project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The projection subpackage decides how data must be queried and cut when it
is rendered in another CRS: valid areas of projection families, antimeridian
splitting of queries, geometry unwrapping and replication.
"""

# Handlers
from .handler import (
    ProjectionHandler,
    split_across_dateline,
    WRAP_LIMIT,
    QUERY_MARGIN
)

from .wrapping import (
    WrappingProjectionHandler,
    unwrap_geometry
)

from .finder import (
    get_handler
)

# Projection families
from .families import (
    ProjectionFamily,
    classify,
    valid_area_bounds
)

# Geometry helpers
from .geometry import (
    extract_polygons,
    collect_geometries,
    empty_geometry
)

__all__ = [
    # Handlers
    "ProjectionHandler",
    "WrappingProjectionHandler",
    "get_handler",
    "split_across_dateline",
    "unwrap_geometry",
    "WRAP_LIMIT",
    "QUERY_MARGIN",

    # Projection families
    "ProjectionFamily",
    "classify",
    "valid_area_bounds",

    # Geometry helpers
    "extract_polygons",
    "collect_geometries",
    "empty_geometry"
]
