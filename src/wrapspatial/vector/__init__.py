# src/wrapspatial/vector/__init__.py
#
# Copyright (c) The wrapspatial project contributors
# This software is distributed under the Apache-2.0 license.
# See the NOTICE file for more information

"""
The vector subpackage provides the vector layer, its I/O and the pipeline
preparing features for painting in a rendering CRS.
"""

# I/O and data structure
from .layer import (
    Vector
)

from .io import (
    load_vector,
    save_vector,
    resolve_vector,
    read_crs
)

# Rendering preparation
from .render import (
    render_geometry,
    project_for_rendering,
    load_for_rendering
)

__all__ = [
    # I/O and data structure
    "Vector",
    "load_vector",
    "save_vector",
    "resolve_vector",
    "read_crs",

    # Rendering preparation
    "render_geometry",
    "project_for_rendering",
    "load_for_rendering"
]
