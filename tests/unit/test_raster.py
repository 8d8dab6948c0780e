# tests/unit/test_raster.py

import numpy as np
import pytest
import rasterio
from rasterio.transform import Affine, from_origin

from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError, RasterValidationError
from wrapspatial.raster import GridGeometry, Raster, crop
from helpers import assert_envelope_close

# --- Raster layer ---

def test_raster_promotes_2d_data():
    raster = Raster(np.zeros((4, 5)), from_origin(0, 4, 1, 1), "EPSG:4326")
    assert raster.shape == (1, 4, 5)
    assert (raster.width, raster.height, raster.count) == (5, 4, 1)

def test_raster_rejects_bad_inputs():
    with pytest.raises(RasterValidationError):
        Raster(np.zeros(5), from_origin(0, 4, 1, 1), "EPSG:4326")
    with pytest.raises(TypeError):
        Raster([[1, 2]], from_origin(0, 4, 1, 1), "EPSG:4326")
    with pytest.raises(TypeError):
        Raster(np.zeros((2, 2)), (1, 0, 0, 0, -1, 0), "EPSG:4326")

def test_raster_envelope(world_raster):
    assert_envelope_close(world_raster.envelope, (-180, -90, 180, 90))
    assert world_raster.envelope.crs.to_epsg() == 4326

def test_raster_save_roundtrip(tmp_path, world_raster):
    path = tmp_path / "nested" / "world.tif"
    world_raster.save(path)

    with rasterio.open(path) as src:
        assert src.crs.to_epsg() == 4326
        assert src.nodata == -9999
        assert np.array_equal(src.read(), world_raster.data)

def test_raster_copy_is_independent(world_raster):
    clone = world_raster.copy()
    assert clone == world_raster
    clone.data[0, 0, 0] = 42
    assert clone != world_raster

# --- Crop ---

def test_crop_snaps_outward(world_raster):
    cropped = crop(world_raster, Envelope(10.5, 0.2, 20.5, 9.8, "EPSG:4326"))
    assert_envelope_close(cropped.envelope, (10, 0, 21, 10))
    assert cropped.data[0, 0, 0] == 190

def test_crop_is_clamped_to_the_raster(world_raster):
    cropped = crop(world_raster, Envelope(170, 80, 200, 100, "EPSG:4326"))
    assert_envelope_close(cropped.envelope, (170, 80, 180, 90))

def test_crop_without_overlap_fails(world_raster):
    with pytest.raises(InvalidInputError):
        crop(world_raster, Envelope(190, 0, 200, 10, "EPSG:4326"))

# --- Grid geometry ---

def test_grid_from_envelope():
    grid = GridGeometry.from_envelope(Envelope(0, 0, 100, 50, "EPSG:3857"), 10, 5)
    assert grid.resolution == pytest.approx((10, 10))
    assert_envelope_close(grid.envelope, (0, 0, 100, 50))
    assert grid.window.width == 10 and grid.window.height == 5

def test_grid_with_offsets_keeps_its_envelope():
    envelope = Envelope(0, 0, 100, 50, "EPSG:3857")
    grid = GridGeometry.from_envelope(envelope, 10, 5, col_off=3, row_off=7)
    assert (grid.col_off, grid.row_off) == (3, 7)
    assert_envelope_close(grid.envelope, envelope)
    assert grid.transform * (3, 7) == pytest.approx((0, 50))

def test_grid_rejects_empty_size():
    with pytest.raises(InvalidInputError):
        GridGeometry(0, 0, 0, 10, Affine.identity(), "EPSG:4326")
    with pytest.raises(InvalidInputError):
        GridGeometry.from_envelope(Envelope.empty("EPSG:4326"), 10, 10)

def test_gutter_grows_the_envelope():
    grid = GridGeometry.from_envelope(Envelope(0, 0, 10, 10, "EPSG:4326"), 10, 10)
    padded = grid.with_gutter(10)
    assert (padded.col_off, padded.row_off, padded.width, padded.height) == (-10, -10, 30, 30)
    assert_envelope_close(padded.envelope, (-10, -10, 20, 20))

def test_grid_bounds_include_partial_pixels():
    grid = GridGeometry.from_envelope(Envelope(0, 0, 10, 10, "EPSG:4326"), 10, 10)
    assert grid.grid_bounds(Envelope(2.5, 3, 5, 7.5, "EPSG:4326")) == (2, 2, 3, 5)
    assert grid.grid_bounds(Envelope(2, 3, 5, 7, "EPSG:4326")) == (2, 3, 3, 4)

def test_normalized_grid_starts_at_origin():
    grid = GridGeometry.from_envelope(Envelope(0, 0, 10, 10, "EPSG:4326"), 10, 10).with_gutter(2)
    normalized = grid.normalized()
    assert (normalized.col_off, normalized.row_off) == (0, 0)
    assert_envelope_close(normalized.envelope, grid.envelope)
