# tests/integration/test_reader_helper.py

import logging

import numpy as np
import pytest
from pyproj import CRS
from rasterio.enums import Resampling
from rasterio.windows import Window

from wrapspatial.envelope import Envelope
from wrapspatial.projection import get_handler
from wrapspatial.raster import (
    CoverageReadConfig,
    CoverageReader,
    GridGeometry,
    GridCoverageReaderHelper,
    Raster,
    RasterioCoverageReader
)
from wrapspatial.raster.helper import READ_GRID_GEOMETRY
from helpers import assert_envelope_close, mercator_x

class RecordingReader(CoverageReader):
    """Coverage reader answering every request with zeros and recording the parameters."""

    def __init__(self, fail_envelope=False):
        self.fail_envelope = fail_envelope
        self.calls = []

    @property
    def crs(self):
        return CRS.from_epsg(4326)

    def original_envelope(self):
        if self.fail_envelope:
            raise RuntimeError("metadata unavailable")
        return Envelope(-180, -90, 180, 90, self.crs)

    def read(self, grid_geometry=None, **params):
        self.calls.append(dict(params, grid_geometry=grid_geometry))
        grid = grid_geometry.normalized()
        return Raster(np.zeros((grid.height, grid.width)), grid.transform, grid.crs)

class OverReadingReader(RecordingReader):
    """Answers with a coverage larger than the requested grid on every side."""

    def __init__(self, margin):
        super().__init__()
        self.margin = margin

    def read(self, grid_geometry=None, **params):
        self.calls.append(dict(params, grid_geometry=grid_geometry))
        grown = grid_geometry.envelope.expand_by(self.margin)
        grid = GridGeometry.from_envelope(grown, round(grown.width), round(grown.height))
        return Raster(np.zeros((grid.height, grid.width)), grid.transform, grid.crs)

class MisplacedReader(RecordingReader):
    """Answers every request with the same coverage, wherever it was asked."""

    def __init__(self, envelope):
        super().__init__()
        self.envelope = envelope

    def read(self, grid_geometry=None, **params):
        self.calls.append(dict(params, grid_geometry=grid_geometry))
        grid = GridGeometry.from_envelope(self.envelope, 10, 10)
        return Raster(np.zeros((10, 10)), grid.transform, grid.crs)

# --- Construction ---

def test_same_crs_nearest_needs_no_gutter():
    extent = Envelope(0, 0, 10, 10, "EPSG:4326")
    helper = GridCoverageReaderHelper(RecordingReader(), (0, 0, 10, 10), extent)

    assert helper.same_crs
    assert not helper.padding_required
    assert_envelope_close(helper.read_envelope, extent)

def test_interpolation_adds_a_gutter():
    extent = Envelope(0, 0, 10, 10, "EPSG:4326")
    helper = GridCoverageReaderHelper(
        RecordingReader(), Window(0, 0, 10, 10), extent, resampling=Resampling.bilinear
    )

    assert helper.padding_required
    assert helper.map_raster_area == (-10, -10, 30, 30)
    assert_envelope_close(helper.read_envelope, (-10, -10, 20, 20))

def test_reprojection_adds_a_configured_gutter():
    extent = Envelope(0, 0, 1000, 1000, "EPSG:3857")
    helper = GridCoverageReaderHelper(
        RecordingReader(), (0, 0, 100, 100), extent, config=CoverageReadConfig(padding=5)
    )

    assert not helper.same_crs
    assert helper.padding_required
    assert_envelope_close(helper.read_envelope, (-50, -50, 1050, 1050))

# --- Single reads ---

def test_read_parameters_reach_the_reader():
    reader = RecordingReader()
    helper = GridCoverageReaderHelper(reader, (0, 0, 10, 10), Envelope(0, 0, 10, 10, "EPSG:4326"))

    helper.read_coverage({"resampling": Resampling.bilinear, "band": 2, READ_GRID_GEOMETRY: None})

    call = reader.calls[0]
    assert call["resampling"] == Resampling.bilinear
    assert call["band"] == 2
    assert call[READ_GRID_GEOMETRY] == helper.requested_grid_geometry

def test_helper_resampling_is_the_default_read_parameter():
    reader = RecordingReader()
    helper = GridCoverageReaderHelper(
        reader, (0, 0, 10, 10), Envelope(0, 0, 10, 10, "EPSG:4326"), resampling=Resampling.cubic
    )
    helper.read_coverage()
    assert reader.calls[0]["resampling"] == Resampling.cubic

def test_envelope_comparison_failure_still_reads(caplog):
    reader = RecordingReader(fail_envelope=True)
    helper = GridCoverageReaderHelper(reader, (0, 0, 10, 10), Envelope(0, 0, 10, 10, "EPSG:4326"))

    with caplog.at_level(logging.WARNING):
        coverage = helper.read_coverage()

    assert coverage is not None
    assert "reading anyway" in caplog.text

def test_read_outside_the_coverage(west_raster_path):
    reader = RasterioCoverageReader(west_raster_path)
    helper = GridCoverageReaderHelper(reader, (0, 0, 10, 10), Envelope(10, 0, 20, 10, "EPSG:4326"))
    assert helper.read_coverage() is None
    assert helper.read_coverages() == []

# --- Reads split along query envelopes ---

DATELINE_VIEW = Envelope(-190, -90, 60, 45, "EPSG:4326")

def test_same_crs_read_across_the_dateline(world_raster_path):
    reader = RasterioCoverageReader(world_raster_path)
    helper = GridCoverageReaderHelper(reader, (0, 0, 250, 135), DATELINE_VIEW)
    handler = get_handler(DATELINE_VIEW, reader.crs)

    coverages = helper.read_coverages(handler=handler)

    assert len(coverages) == 2
    assert_envelope_close(coverages[0].envelope, (-180, -90, 60, 45))
    assert_envelope_close(coverages[1].envelope, (170, -90, 180, 45))
    assert coverages[1].data[0, 0, 0] == 350

def test_same_crs_read_of_partial_data(west_raster_path):
    reader = RasterioCoverageReader(west_raster_path)
    helper = GridCoverageReaderHelper(reader, (0, 0, 250, 135), DATELINE_VIEW)
    handler = get_handler(DATELINE_VIEW, reader.crs)

    coverages = helper.read_coverages(handler=handler)

    assert len(coverages) == 1
    assert_envelope_close(coverages[0].envelope, (-180, -90, 0, 45))

def test_threaded_reads_match_sequential_reads(world_raster_path):
    reader = RasterioCoverageReader(world_raster_path)
    handler = get_handler(DATELINE_VIEW, reader.crs)

    sequential = GridCoverageReaderHelper(reader, (0, 0, 250, 135), DATELINE_VIEW)
    threaded = GridCoverageReaderHelper(
        reader, (0, 0, 250, 135), DATELINE_VIEW, config=CoverageReadConfig(max_workers=4)
    )

    expected = sequential.read_coverages(handler=handler)
    actual = threaded.read_coverages(handler=handler)
    assert len(actual) == len(expected)
    assert all(a == e for a, e in zip(actual, expected))

def test_reprojected_read_across_the_dateline(world_raster_path):
    reader = RasterioCoverageReader(world_raster_path)
    extent = Envelope(mercator_x(170), -5e6, mercator_x(190), 5e6, "EPSG:3857")
    helper = GridCoverageReaderHelper(reader, (0, 0, 200, 100), extent)
    handler = get_handler(extent, reader.crs)

    coverages = helper.read_coverages(handler=handler)

    assert len(coverages) == 2
    east, west = coverages
    assert east.envelope.minx >= 160 and east.envelope.maxx <= 180
    assert west.envelope.minx >= -180 and west.envelope.maxx <= -160
    assert all(coverage.crs.to_epsg() == 4326 for coverage in coverages)

def test_over_read_coverage_is_cropped_to_the_request():
    view = Envelope(-20, -10, 20, 10, "EPSG:4326")
    reader = OverReadingReader(margin=1)
    helper = GridCoverageReaderHelper(reader, (0, 0, 40, 20), view)
    handler = get_handler(view, reader.crs)

    coverages = helper.read_coverages(handler=handler)

    assert len(reader.calls) == 1
    assert len(coverages) == 1
    assert_envelope_close(coverages[0].envelope, view)
    assert coverages[0].shape == (1, 20, 40)

def test_coverage_outside_the_rendering_area_is_dropped():
    view = Envelope(-20, -10, 20, 10, "EPSG:4326")
    reader = MisplacedReader(Envelope(100, 40, 110, 50, "EPSG:4326"))
    helper = GridCoverageReaderHelper(reader, (0, 0, 40, 20), view)
    handler = get_handler(view, reader.crs)

    coverages = helper.read_coverages(handler=handler)

    assert len(reader.calls) == 1
    assert coverages == []
