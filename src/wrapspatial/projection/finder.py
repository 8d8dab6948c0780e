# src/wrapspatial/projection/finder.py

"""
This module picks the projection handler that fits a rendering request.
"""

import logging
from typing import Any, Optional

from wrapspatial.crs.utils import horizontal_crs
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.projection.families import classify, valid_area_bounds
from wrapspatial.projection.handler import WRAP_LIMIT, ProjectionHandler
from wrapspatial.projection.wrapping import WrappingProjectionHandler

log = logging.getLogger(__name__)

__all__ = [
    "get_handler",
    "WRAP_LIMIT"
]

def get_handler(
    rendering_envelope: Envelope,
    source_crs: Any,
    wrap: bool = True,
    max_wraps: int = WRAP_LIMIT
) -> Optional[ProjectionHandler]:
    """
    Builds the projection handler for painting data in source_crs inside
    rendering_envelope.

    The rendering CRS is classified into a projection family once; the family
    decides the valid area and whether the horizontal axis is periodic.
    Periodic rendering CRSs get a WrappingProjectionHandler when wrapping is
    enabled, and a plain handler that still splits queries across the
    antimeridian otherwise.

    Args:
        rendering_envelope: Area being rendered, carrying the rendering CRS.
        source_crs: CRS of the data. None yields no handler.
        wrap: Replicate geometries across the antimeridian.
        max_wraps: Cap on the copies made on each side of a geometry.

    Returns:
        ProjectionHandler or None when source_crs is None.

    Raises:
        InvalidInputError: If the rendering envelope or its CRS is missing.
        ProjectionError: If the CRSs cannot be related.
    """
    if rendering_envelope is None or rendering_envelope.crs is None:
        raise InvalidInputError("A rendering envelope with a CRS is required")
    if source_crs is None:
        log.debug("No source CRS, no projection handling possible")
        return None

    target = horizontal_crs(rendering_envelope.crs)
    family = classify(target)
    valid_area = valid_area_bounds(target, family)

    if family.is_periodic and wrap and max_wraps > 0:
        log.debug(f"Wrapping handler for {target.name} ({family.value})")
        return WrappingProjectionHandler(
            source_crs, valid_area, rendering_envelope, family=family, max_wraps=max_wraps
        )

    handler = ProjectionHandler(source_crs, valid_area, rendering_envelope, family=family)
    if family.is_periodic:
        handler.query_across_dateline = True
    log.debug(f"Projection handler for {target.name} ({family.value})")
    return handler
