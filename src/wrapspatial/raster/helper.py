# src/wrapspatial/raster/helper.py

"""
This module orchestrates coverage reads for a rendering request.

Given a coverage reader, the pixel rectangle of the map and its world extent,
the GridCoverageReaderHelper reads one coverage per query envelope of a
projection handler, at a resolution matching the map, and crops every
coverage to the parts the handler keeps.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple, Union

from rasterio.enums import Resampling
from rasterio.windows import Window

from wrapspatial.crs.utils import WGS84, same_crs
from wrapspatial.envelope import Envelope
from wrapspatial.projection.geometry import extract_polygons
from wrapspatial.projection.handler import ProjectionHandler
from wrapspatial.raster.geom import crop, is_not_empty
from wrapspatial.raster.grid import GridGeometry
from wrapspatial.raster.layer import Raster
from wrapspatial.raster.reader import CoverageReader
from wrapspatial.raster.resolution import compute_read_resolution

log = logging.getLogger(__name__)

__all__ = [
    "GridCoverageReaderHelper",
    "CoverageReadConfig",
    "DEFAULT_PADDING",
    "READ_GRID_GEOMETRY"
]

# Pixels added on every side of a read that will be reprojected or interpolated
DEFAULT_PADDING = 10
# Read parameter carrying the requested grid geometry
READ_GRID_GEOMETRY = "grid_geometry"

class CoverageReadConfig:
    """Configuration object for the coverage reader helper.

    Args:
        padding: Gutter in pixels added around reads that need one. Default=10.
        max_workers: Threads reading query envelopes concurrently. None or 1
                     reads them one after the other.
    """
    def __init__(
        self,
        padding: int = DEFAULT_PADDING,
        max_workers: Optional[int] = None
    ):
        self.padding = padding
        self.max_workers = max_workers

class GridCoverageReaderHelper:
    """
    Reads the coverages needed to paint a map.

    Args:
        reader: Source of the coverage.
        map_raster_area: Pixel rectangle of the map, as (col_off, row_off,
                         width, height) or a rasterio Window.
        map_extent: World extent of the map, carrying the rendering CRS.
        resampling: Interpolation used when the map is painted.
        config: Optional CoverageReadConfig.

    Attributes:
        padding_required (bool): True when reads are reprojected or
            interpolated, which needs pixels beyond the map edges.
    """

    def __init__(
        self,
        reader: CoverageReader,
        map_raster_area: Union[Tuple[int, int, int, int], Window],
        map_extent: Envelope,
        resampling: Resampling = Resampling.nearest,
        config: Optional[CoverageReadConfig] = None
    ):
        self.reader = reader
        self.resampling = resampling
        self.config = config or CoverageReadConfig()

        if isinstance(map_raster_area, Window):
            map_raster_area = (
                int(map_raster_area.col_off), int(map_raster_area.row_off),
                int(map_raster_area.width), int(map_raster_area.height)
            )
        col_off, row_off, width, height = map_raster_area

        grid = GridGeometry.from_envelope(map_extent, width, height, col_off, row_off)
        self.same_crs = same_crs(map_extent.crs, reader.crs)
        self.padding_required = not self.same_crs or resampling != Resampling.nearest
        if self.padding_required:
            grid = grid.with_gutter(self.config.padding)

        self.requested_grid_geometry = grid
        self.map_extent = grid.envelope
        self.map_raster_area = (grid.col_off, grid.row_off, grid.width, grid.height)

    @property
    def read_envelope(self) -> Envelope:
        """Extent that will be read, gutter included."""
        return self.map_extent

    def read_coverage(self, read_params: Optional[Dict[str, Any]] = None) -> Optional[Raster]:
        """Reads the whole requested grid in one go."""
        return self._read_single_coverage(read_params, self.requested_grid_geometry)

    def read_coverages(
        self,
        read_params: Optional[Dict[str, Any]] = None,
        handler: Optional[ProjectionHandler] = None
    ) -> List[Raster]:
        """
        Reads one coverage per query envelope of handler.

        Args:
            read_params: Extra parameters passed to the reader.
            handler: Projection handler of the request. Without one the
                     requested grid is read as a single coverage.

        Returns:
            List[Raster]: Cropped coverages in query order. Query envelopes
            without data contribute nothing.
        """
        if handler is None:
            coverage = self.read_coverage(read_params)
            return [coverage] if coverage is not None else []

        envelopes = handler.get_query_envelopes()
        workers = self.config.max_workers
        if workers and workers > 1 and len(envelopes) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                batches = list(pool.map(
                    lambda envelope: self._read_query_envelope(envelope, handler, read_params),
                    envelopes
                ))
        else:
            batches = [self._read_query_envelope(e, handler, read_params) for e in envelopes]

        coverages = [coverage for batch in batches for coverage in batch]
        log.info(f"Read {len(coverages)} coverage(s) for {len(envelopes)} query envelope(s)")
        return coverages

    def _read_query_envelope(
        self,
        envelope: Envelope,
        handler: ProjectionHandler,
        read_params: Optional[Dict[str, Any]]
    ) -> List[Raster]:
        reading = self._compute_reading_geometry(envelope, handler)
        if reading is None:
            return []
        if self.padding_required:
            reading = reading.with_gutter(self.config.padding)

        coverage = self._read_single_coverage(read_params, reading)
        if coverage is None:
            return []

        reading_envelope = reading.envelope
        coverage_envelope = coverage.envelope
        footprint = coverage_envelope.to_polygon()
        processed = handler.pre_process(footprint)
        if processed is None or processed.is_empty:
            log.debug(f"Coverage {coverage_envelope} is outside the rendering area")
            return []

        if processed is footprint or processed.equals(footprint):
            # The reader may return more than was asked for
            if reading_envelope.contains(coverage_envelope):
                return [coverage]
            cropped = reading_envelope.intersection(coverage_envelope)
            return [crop(coverage, cropped)] if is_not_empty(cropped) else []

        coverages = []
        for polygon in extract_polygons(processed):
            cropped = (
                Envelope.from_geometry(polygon, coverage_envelope.crs)
                .intersection(coverage_envelope)
                .intersection(reading_envelope)
            )
            if is_not_empty(cropped):
                coverages.append(crop(coverage, cropped))
        return coverages

    def _compute_reading_geometry(
        self,
        envelope: Envelope,
        handler: ProjectionHandler
    ) -> Optional[GridGeometry]:
        """Grid geometry, in the reader CRS, used to read one query envelope."""
        grid = self.requested_grid_geometry
        if self.same_crs:
            col_off, row_off, width, height = grid.grid_bounds(envelope)
            if width <= 0 or height <= 0:
                return None
            return GridGeometry(col_off, row_off, width, height, grid.transform, self.reader.crs)

        reduced = self._reduce_envelope(envelope, handler)
        if reduced is None:
            return None

        col_off, row_off, width, height = grid.grid_bounds(reduced.transform(grid.crs))
        if width <= 0 or height <= 0:
            return None
        local = GridGeometry(col_off, row_off, width, height, grid.transform, grid.crs)
        levels = self.reader.resolution_levels()
        res_x, res_y = compute_read_resolution(local, self.reader.crs, levels[0] if levels else None)

        width = max(1, round(envelope.width / res_x))
        height = max(1, round(envelope.height / res_y))
        return GridGeometry.from_envelope(envelope.with_crs(self.reader.crs), width, height)

    def _reduce_envelope(self, envelope: Envelope, handler: ProjectionHandler) -> Optional[Envelope]:
        """Envelope of the largest part of envelope left after pre-processing."""
        processed = handler.pre_process(envelope.to_polygon())
        polygons = extract_polygons(processed)
        if not polygons:
            return None
        largest = max(polygons, key=lambda polygon: polygon.area)
        return Envelope.from_geometry(largest, envelope.crs)

    def _read_single_coverage(
        self,
        read_params: Optional[Dict[str, Any]],
        grid_geometry: GridGeometry
    ) -> Optional[Raster]:
        requested = grid_geometry.envelope
        try:
            data_envelope = self.reader.original_envelope()
            if same_crs(data_envelope.crs, requested.crs):
                overlaps = data_envelope.intersects(requested)
            else:
                overlaps = data_envelope.transform(WGS84).intersects(requested.transform(WGS84))
            if not overlaps:
                log.debug(f"{requested} does not intersect the coverage {data_envelope}")
                return None
        except Exception as e:
            log.warning(f"Could not compare the coverage and request envelopes, reading anyway: {e}")

        params = dict(read_params or {})
        params.setdefault("resampling", self.resampling)
        params[READ_GRID_GEOMETRY] = grid_geometry
        return self.reader.read(**params)
