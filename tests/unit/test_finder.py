# tests/unit/test_finder.py

import pytest

from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.projection import (
    ProjectionFamily,
    ProjectionHandler,
    WrappingProjectionHandler,
    get_handler
)
from wrapspatial.projection.finder import WRAP_LIMIT

WORLD = Envelope(-180, -90, 180, 90, "EPSG:4326")

def test_wrap_limit_value():
    assert WRAP_LIMIT == 10

def test_no_source_crs_means_no_handler():
    assert get_handler(WORLD, None) is None

def test_rendering_envelope_requires_crs():
    with pytest.raises(InvalidInputError):
        get_handler(Envelope(0, 0, 1, 1), "EPSG:4326")

def test_geographic_rendering_wraps():
    handler = get_handler(WORLD, "EPSG:4326")
    assert isinstance(handler, WrappingProjectionHandler)
    assert handler.query_across_dateline
    assert handler.radius == 180
    assert handler.max_wraps == WRAP_LIMIT

def test_wrapping_disabled_still_splits_queries():
    handler = get_handler(WORLD, "EPSG:4326", wrap=False)
    assert type(handler) is ProjectionHandler
    assert handler.query_across_dateline

def test_zero_wraps_disables_wrapping():
    handler = get_handler(WORLD, "EPSG:4326", max_wraps=0)
    assert type(handler) is ProjectionHandler

def test_mercator_radius():
    envelope = Envelope(-20037508.34, -1e7, 20037508.34, 1e7, "EPSG:3857")
    handler = get_handler(envelope, "EPSG:4326")
    assert isinstance(handler, WrappingProjectionHandler)
    assert handler.family == ProjectionFamily.CYLINDRICAL
    assert handler.radius == pytest.approx(20037508.342789244, rel=1e-9)

def test_polar_stereographic_handler():
    envelope = Envelope(-1e6, -1e6, 1e6, 1e6, "EPSG:5041")
    handler = get_handler(envelope, "EPSG:4326")
    assert type(handler) is ProjectionHandler
    assert handler.family == ProjectionFamily.AZIMUTHAL
    assert handler.rendering_envelope == envelope
    assert handler.valid_area_bounds.miny == 0

def test_utm_handler_has_valid_area():
    envelope = Envelope(400000, 4500000, 600000, 5500000, "EPSG:32632")
    handler = get_handler(envelope, "EPSG:4326")
    assert handler.family == ProjectionFamily.TRANSVERSE
    assert not handler.query_across_dateline
    assert handler.valid_area_bounds is not None
