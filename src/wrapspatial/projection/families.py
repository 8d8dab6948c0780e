# src/wrapspatial/projection/families.py

"""
This module sorts rendering CRSs into projection families and computes, for
each family, the area of the globe the projection can render sensibly.

Valid areas are expressed in decimal degrees of the projection's own
geographic base CRS. None means the whole globe is usable.
"""

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, Optional

from pyproj import CRS

from wrapspatial.crs.utils import (
    base_geographic,
    central_meridian,
    horizontal_crs,
    latitude_of_origin,
    projection_method,
    standard_parallels
)
from wrapspatial.envelope import Envelope

log = logging.getLogger(__name__)

__all__ = [
    "ProjectionFamily",
    "classify",
    "valid_area_bounds",
    "MERCATOR_LATITUDE_LIMIT",
    "CONIC_LATITUDE_SPAN",
    "CONIC_NORTH_LONGITUDE_LIMIT",
    "TRANSVERSE_LONGITUDE_SPAN",
    "POLAR_ASPECT_LATITUDE"
]

# Mercator ordinates diverge at the poles
MERCATOR_LATITUDE_LIMIT = 85.0
# Distance in degrees kept from the reference parallel of a conic projection
CONIC_LATITUDE_SPAN = 44.0
# Longitude limit of north conic valid areas
CONIC_NORTH_LONGITUDE_LIMIT = 179.9
# Half width in degrees of the band a transverse Mercator projects sensibly
TRANSVERSE_LONGITUDE_SPAN = 45.0
# Origin latitudes above this are treated as polar aspects
POLAR_ASPECT_LATITUDE = 45.0

class ProjectionFamily(Enum):
    """Closed set of projection families the handlers know how to deal with.

    Options:
        GEOGRAPHIC: Longitude/latitude CRSs.
        CYLINDRICAL: Normal aspect cylindrical projections (Mercator and kin).
        CONIC: Lambert conformal conic.
        AZIMUTHAL: Polar and oblique azimuthal projections.
        TRANSVERSE: Transverse Mercator, UTM included.
        GENERIC: Anything else. No valid area, no wrapping.
    """
    GEOGRAPHIC = "geographic"
    CYLINDRICAL = "cylindrical"
    CONIC = "conic"
    AZIMUTHAL = "azimuthal"
    TRANSVERSE = "transverse"
    GENERIC = "generic"

    @property
    def is_periodic(self) -> bool:
        """True if the horizontal axis repeats every 360 degrees of longitude."""
        return self in (ProjectionFamily.GEOGRAPHIC, ProjectionFamily.CYLINDRICAL)

# Matched in order against the lower-cased method name, first hit wins
_METHOD_FAMILIES = (
    ("transverse mercator", ProjectionFamily.TRANSVERSE),
    ("oblique mercator", ProjectionFamily.GENERIC),
    ("mercator", ProjectionFamily.CYLINDRICAL),
    ("cylindrical equal area", ProjectionFamily.CYLINDRICAL),
    ("equidistant cylindrical", ProjectionFamily.CYLINDRICAL),
    ("lambert conic conformal", ProjectionFamily.CONIC),
    ("azimuthal", ProjectionFamily.AZIMUTHAL),
    ("stereographic", ProjectionFamily.AZIMUTHAL),
    ("orthographic", ProjectionFamily.AZIMUTHAL),
)

def classify(crs: Any) -> ProjectionFamily:
    crs = horizontal_crs(crs)
    if crs.is_geographic:
        return ProjectionFamily.GEOGRAPHIC

    method = (projection_method(crs) or "").lower()
    for key, family in _METHOD_FAMILIES:
        if key in method:
            return family
    log.debug(f"No projection family for method {method!r}, using generic handling")
    return ProjectionFamily.GENERIC

def _whole_globe(crs: CRS) -> Optional[Envelope]:
    return None

def _cylindrical_area(crs: CRS) -> Envelope:
    return Envelope(
        -math.inf, -MERCATOR_LATITUDE_LIMIT,
        math.inf, MERCATOR_LATITUDE_LIMIT,
        base_geographic(crs)
    )

def _conic_area(crs: CRS) -> Envelope:
    parallels = standard_parallels(crs)
    if parallels:
        reference = sum(parallels) / len(parallels)
    else:
        reference = latitude_of_origin(crs)

    if reference > 0:
        return Envelope(
            -CONIC_NORTH_LONGITUDE_LIMIT, reference - CONIC_LATITUDE_SPAN,
            CONIC_NORTH_LONGITUDE_LIMIT, 90.0,
            base_geographic(crs)
        )
    return Envelope(-180.0, -90.0, 180.0, reference + CONIC_LATITUDE_SPAN, base_geographic(crs))

def _azimuthal_area(crs: CRS) -> Envelope:
    origin = latitude_of_origin(crs)
    geographic = base_geographic(crs)
    if origin >= POLAR_ASPECT_LATITUDE:
        return Envelope(-180.0, 0.0, 180.0, 90.0, geographic)
    if origin <= -POLAR_ASPECT_LATITUDE:
        return Envelope(-180.0, -90.0, 180.0, 0.0, geographic)
    # Equatorial and low oblique aspects see one hemisphere around the center
    center = central_meridian(crs)
    return Envelope(center - 90.0, -90.0, center + 90.0, 90.0, geographic)

def _transverse_area(crs: CRS) -> Envelope:
    center = central_meridian(crs)
    return Envelope(
        center - TRANSVERSE_LONGITUDE_SPAN, -90.0,
        center + TRANSVERSE_LONGITUDE_SPAN, 90.0,
        base_geographic(crs)
    )

_VALID_AREAS: Dict[ProjectionFamily, Callable[[CRS], Optional[Envelope]]] = {
    ProjectionFamily.GEOGRAPHIC: _whole_globe,
    ProjectionFamily.CYLINDRICAL: _cylindrical_area,
    ProjectionFamily.CONIC: _conic_area,
    ProjectionFamily.AZIMUTHAL: _azimuthal_area,
    ProjectionFamily.TRANSVERSE: _transverse_area,
    ProjectionFamily.GENERIC: _whole_globe,
}

def valid_area_bounds(crs: Any, family: Optional[ProjectionFamily] = None) -> Optional[Envelope]:
    """
    Area of the globe, in the base geographic CRS, that the CRS renders sensibly.

    Args:
        crs: Rendering CRS.
        family: Family of the CRS if already known.

    Returns:
        Envelope or None when the whole globe is valid.
    """
    crs = horizontal_crs(crs)
    family = family or classify(crs)
    return _VALID_AREAS[family](crs)
