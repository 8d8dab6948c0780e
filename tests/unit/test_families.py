# tests/unit/test_families.py

import pytest

from wrapspatial.projection.families import (
    ProjectionFamily,
    classify,
    valid_area_bounds
)

# --- Classification ---

@pytest.mark.parametrize("code, family", [
    ("EPSG:4326", ProjectionFamily.GEOGRAPHIC),
    ("EPSG:3857", ProjectionFamily.CYLINDRICAL),
    ("EPSG:3395", ProjectionFamily.CYLINDRICAL),
    ("EPSG:32632", ProjectionFamily.TRANSVERSE),
    ("EPSG:2062", ProjectionFamily.CONIC),
    ("EPSG:6931", ProjectionFamily.AZIMUTHAL),
    ("EPSG:3031", ProjectionFamily.AZIMUTHAL),
    ("EPSG:5041", ProjectionFamily.AZIMUTHAL),
])
def test_classify(code, family):
    assert classify(code) == family

def test_periodic_families():
    assert ProjectionFamily.GEOGRAPHIC.is_periodic
    assert ProjectionFamily.CYLINDRICAL.is_periodic
    assert not ProjectionFamily.TRANSVERSE.is_periodic
    assert not ProjectionFamily.AZIMUTHAL.is_periodic

# --- Valid areas ---

def test_geographic_has_no_valid_area():
    assert valid_area_bounds("EPSG:4326") is None

def test_mercator_valid_area():
    area = valid_area_bounds("EPSG:3395")
    assert area.minx <= -180
    assert area.maxx >= 180
    assert area.miny == -85
    assert area.maxy == 85
    assert area.crs.is_geographic

def test_laea_north_valid_area():
    area = valid_area_bounds("EPSG:6931")
    assert area.bounds == (-180, 0, 180, 90)

def test_laea_south_valid_area():
    area = valid_area_bounds("EPSG:6932")
    assert area.bounds == (-180, -90, 180, 0)

def test_polar_stereographic_south_valid_area():
    area = valid_area_bounds("EPSG:3031")
    assert area.maxy == 0
    assert area.miny == -90

def test_lambert_conformal_north_valid_area():
    # Latitude of origin 40N
    area = valid_area_bounds("EPSG:2062")
    assert (area.minx, area.maxx) == (-179.9, 179.9)
    assert area.miny == pytest.approx(-4, abs=1e-6)
    assert area.maxy == 90

def test_lambert_conformal_south_valid_area():
    # Latitude of origin near 14.27S
    area = valid_area_bounds("EPSG:2194")
    assert (area.minx, area.maxx) == (-180, 180)
    assert area.miny == -90
    assert area.maxy == pytest.approx(29.73, abs=0.1)

def test_utm_valid_area():
    area = valid_area_bounds("EPSG:32632")
    central_meridian = 9
    assert -90 < area.minx < central_meridian - 3
    assert central_meridian + 3 < area.maxx < 90
    assert area.miny <= -89.9
    assert area.maxy >= 89.9
