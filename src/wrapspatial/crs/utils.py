# src/wrapspatial/crs/utils.py

"""
This module normalizes CRS inputs and exposes the few projection facts
(method, parameters, geographic base) the handlers reason about.
"""

import logging
import math
from typing import Any, Dict, Optional

from pyproj import CRS
from pyproj.exceptions import CRSError

from wrapspatial.exceptions import InvalidInputError, ProjectionError

log = logging.getLogger(__name__)

__all__ = [
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
    "standard_parallels"
]

WGS84 = CRS.from_epsg(4326)

_CENTRAL_MERIDIAN_PARAMS = (
    "Longitude of natural origin",
    "Longitude of false origin",
    "Longitude of origin",
    "Longitude of projection centre",
)

_ORIGIN_LATITUDE_PARAMS = (
    "Latitude of natural origin",
    "Latitude of false origin",
    "Latitude of standard parallel",
    "Latitude of projection centre",
)

_STANDARD_PARALLEL_PARAMS = (
    "Latitude of 1st standard parallel",
    "Latitude of 2nd standard parallel",
)

def to_crs(value: Any) -> CRS:
    """
    Coerce a CRS-like value into a pyproj CRS.

    Accepts pyproj CRS objects, rasterio CRS objects, EPSG codes, authority
    strings, WKT and PROJ strings.

    Raises:
        InvalidInputError: If value is None.
        ProjectionError: If the value cannot be parsed.
    """
    if value is None:
        raise InvalidInputError("A coordinate reference system is required")
    if isinstance(value, CRS):
        return value
    try:
        return CRS.from_user_input(value)
    except CRSError as e:
        raise ProjectionError(f"Cannot interpret {value!r} as a CRS: {e}") from e

def horizontal_crs(crs: Any) -> CRS:
    """
    Returns the 2D horizontal component of a CRS.

    Compound CRSs resolve to their first (horizontal) member, 3D geographic or
    projected CRSs are demoted to their 2D equivalent.
    """
    crs = to_crs(crs)
    if crs.is_compound:
        return horizontal_crs(crs.sub_crs_list[0])
    if len(crs.axis_info) > 2:
        return crs.to_2d()
    return crs

def same_crs(a: Any, b: Any) -> bool:
    """True if both CRSs describe the same horizontal system, axis order aside."""
    if a is None or b is None:
        return a is None and b is None
    return horizontal_crs(a).equals(horizontal_crs(b), ignore_axis_order=True)

def is_geographic(crs: Any) -> bool:
    return horizontal_crs(crs).is_geographic

def base_geographic(crs: Any) -> CRS:
    """Geographic CRS in which a projected CRS expresses its parameters."""
    crs = horizontal_crs(crs)
    if crs.is_geographic:
        return crs
    geodetic = crs.geodetic_crs
    if geodetic is None:
        raise ProjectionError(f"{crs.name} has no geodetic base CRS")
    return horizontal_crs(geodetic)

def projection_method(crs: Any) -> Optional[str]:
    """Name of the map projection method, None for geographic CRSs."""
    crs = horizontal_crs(crs)
    if crs.is_geographic or crs.coordinate_operation is None:
        return None
    return crs.coordinate_operation.method_name

def projection_parameters(crs: Any) -> Dict[str, float]:
    """
    Parameters of the projection method keyed by their EPSG names.

    Angular parameters are converted to decimal degrees whatever unit the
    definition uses.
    """
    crs = horizontal_crs(crs)
    operation = crs.coordinate_operation
    if crs.is_geographic or operation is None:
        return {}

    params = {}
    for param in operation.params:
        value = param.value
        if param.unit_category == "angular" and param.unit_conversion_factor:
            value = math.degrees(value * param.unit_conversion_factor)
        params[param.name] = value
    return params

def _first_parameter(params: Dict[str, float], names, default: Optional[float]) -> Optional[float]:
    for name in names:
        if name in params:
            return params[name]
    return default

def central_meridian(crs: Any) -> float:
    return _first_parameter(projection_parameters(crs), _CENTRAL_MERIDIAN_PARAMS, 0.0)

def latitude_of_origin(crs: Any) -> float:
    return _first_parameter(projection_parameters(crs), _ORIGIN_LATITUDE_PARAMS, 0.0)

def standard_parallels(crs: Any) -> tuple:
    params = projection_parameters(crs)
    return tuple(params[name] for name in _STANDARD_PARALLEL_PARAMS if name in params)
