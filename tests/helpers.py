# tests/helpers.py

import numpy as np
import pytest

from wrapspatial.envelope import Envelope
from wrapspatial.raster.layer import Raster

def assert_envelope_close(actual: Envelope, expected, abs_tol: float = 1e-6):
    """Compare envelope coordinates; expected may be an Envelope or a bounds tuple."""
    bounds = expected.bounds if isinstance(expected, Envelope) else tuple(expected)
    assert actual.bounds == pytest.approx(bounds, abs=abs_tol), \
        f"Envelope mismatch: {actual.bounds} != {bounds}"

def assert_grid_match(r1: Raster, r2: Raster):
    """Strictly verify two rasters share the exact same grid."""
    assert r1.crs == r2.crs, \
        f"CRS mismatch: {r1.crs} != {r2.crs}"

    assert r1.shape == r2.shape, \
        f"Shape mismatch: {r1.shape} != {r2.shape}"

    assert np.allclose(np.array(r1.transform), np.array(r2.transform), atol=1e-9), \
        "Transform mismatch (Pixel alignment error)"

def part_count(geometry) -> int:
    """Number of top level parts of a geometry, 1 for simple geometries."""
    return len(geometry.geoms) if hasattr(geometry, "geoms") else 1

def mercator_x(lon: float) -> float:
    """Easting of a longitude in World Mercator (EPSG:3395) and Web Mercator."""
    return 6378137.0 * np.radians(lon)
