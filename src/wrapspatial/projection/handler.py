# src/wrapspatial/projection/handler.py

"""
This module defines the ProjectionHandler, the object that decides which
parts of a data source have to be queried for a given rendering area and
how geometries must be cut before they are reprojected.

A handler is built for one rendering request. It works in three frames:
the source CRS of the data, the rendering (target) CRS, and the geographic
base CRS of the rendering CRS, where valid areas and antimeridian splits are
reasoned about.
"""

import logging
import math
from typing import Any, List, Optional

import shapely
from shapely.geometry.base import BaseGeometry

from wrapspatial.crs.transform import BaseTransform, find_transform
from wrapspatial.crs.utils import base_geographic, horizontal_crs, is_geographic
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.projection.families import ProjectionFamily
from wrapspatial.projection.geometry import empty_geometry

log = logging.getLogger(__name__)

__all__ = [
    "ProjectionHandler",
    "split_across_dateline",
    "WRAP_LIMIT",
    "QUERY_MARGIN",
    "LON_PERIOD"
]

# Maximum number of periods a geometry or query is replicated on each side
WRAP_LIMIT = 10
# Fraction of a query envelope added on every side before it is used as a mask
QUERY_MARGIN = 0.1
LON_PERIOD = 360.0

def split_across_dateline(envelope: Envelope, max_wraps: int = WRAP_LIMIT) -> List[Envelope]:
    """
    Splits a geographic envelope straddling the antimeridian into envelopes
    that can be queried against data stored in [-180, 180].

    The envelope itself always comes first, followed by its period shifted
    copies clipped to [-180, 180], nearest shifts first. Pieces that are empty
    or already covered by an earlier piece are skipped.

    Args:
        envelope: Geographic envelope, longitudes possibly beyond +/-180.
        max_wraps: Largest period shift considered.

    Returns:
        List[Envelope]: Envelopes in the CRS of the input.
    """
    if envelope.is_empty:
        return []
    if envelope.width >= LON_PERIOD:
        return [Envelope(-180.0, envelope.miny, 180.0, envelope.maxy, envelope.crs)]
    if envelope.minx >= -180.0 and envelope.maxx <= 180.0:
        return [envelope]

    canonical = Envelope(-180.0, envelope.miny, 180.0, envelope.maxy, envelope.crs)
    lowest = max(math.ceil((-180.0 - envelope.maxx) / LON_PERIOD), -max_wraps)
    highest = min(math.floor((180.0 - envelope.minx) / LON_PERIOD), max_wraps)

    pieces = [envelope]
    shifts = sorted((k for k in range(lowest, highest + 1) if k != 0), key=lambda k: (abs(k), k))
    for k in shifts:
        piece = envelope.translate(k * LON_PERIOD).intersection(canonical)
        if piece.is_empty or piece.width == 0:
            continue
        if any(existing.contains(piece) for existing in pieces):
            continue
        pieces.append(piece)
    return pieces

def _covers(outer: Envelope, inner: Envelope) -> bool:
    """Containment test tolerant to rounding in projected coordinates."""
    tolerance = 1e-9 * max(outer.width, outer.height)
    return outer.expand_by(tolerance).contains(inner)

def _check_geometry(geometry: Optional[BaseGeometry]):
    if geometry is None:
        raise InvalidInputError("A geometry is required")
    if geometry.is_empty:
        raise InvalidInputError("Cannot process an empty geometry")

class ProjectionHandler:
    """
    Computes query envelopes and cuts geometries to the area a rendering CRS
    can represent.

    Args:
        source_crs: CRS of the data being rendered.
        valid_area_bounds: Area the rendering CRS projects sensibly, in its
                           geographic base CRS. None for the whole globe.
        rendering_envelope: Area being rendered, in the rendering CRS.
        family: Projection family of the rendering CRS.

    Attributes:
        query_across_dateline (bool): If True, query envelopes crossing the
            antimeridian are split into pieces inside [-180, 180].

    Raises:
        InvalidInputError: If the rendering envelope is empty or has no CRS.
        ProjectionError: If no transform exists between the two CRSs.
    """

    def __init__(
        self,
        source_crs: Any,
        valid_area_bounds: Optional[Envelope],
        rendering_envelope: Envelope,
        family: ProjectionFamily = ProjectionFamily.GENERIC
    ):
        if rendering_envelope is None or rendering_envelope.crs is None:
            raise InvalidInputError("The rendering envelope must carry a CRS")
        if rendering_envelope.is_empty:
            raise InvalidInputError("The rendering envelope is empty")

        self.rendering_envelope = rendering_envelope
        self.source_crs = horizontal_crs(source_crs)
        self.target_crs = horizontal_crs(rendering_envelope.crs)
        self.valid_area_bounds = valid_area_bounds
        self.family = family
        self.query_across_dateline = False
        self.max_wraps = WRAP_LIMIT

        self._geographic_crs = base_geographic(self.target_crs)
        self._transform = find_transform(self.source_crs, self.target_crs)
        self._query_envelopes: Optional[List[Envelope]] = None

    # Query planning

    def get_query_envelopes(self) -> List[Envelope]:
        """
        Envelopes, in the source CRS, that must be queried to paint the
        rendering envelope.

        Returns:
            List[Envelope]: Possibly empty when the rendering area lies
            entirely outside the valid area.
        """
        if self._query_envelopes is None:
            self._query_envelopes = self._compute_query_envelopes()
            log.debug(f"Query envelopes for {self.rendering_envelope}: {self._query_envelopes}")
        return list(self._query_envelopes)

    def _compute_query_envelopes(self) -> List[Envelope]:
        if self.valid_area_bounds is None and not self.query_across_dateline:
            return [self.rendering_envelope.transform(self.source_crs)]

        geographic = self._rendering_geographic_envelope()
        clipped = geographic
        if self.valid_area_bounds is not None:
            clipped = geographic.intersection(self.valid_area_bounds)
            if clipped.is_empty:
                log.debug(f"{self.rendering_envelope} is outside the valid area {self.valid_area_bounds}")
                return []

        if not self.query_across_dateline:
            if self.valid_area_bounds.contains(geographic):
                return [self.rendering_envelope.transform(self.source_crs)]
            return [clipped.transform(self.source_crs)]

        envelopes = []
        for piece in split_across_dateline(clipped, self.max_wraps):
            envelope = piece.transform(self.source_crs)
            # Pieces apart in longitude can overlap once projected
            if any(_covers(existing, envelope) for existing in envelopes):
                log.debug(f"Dropping query envelope {envelope}, already covered")
                continue
            envelopes.append(envelope)
        return envelopes

    def _rendering_geographic_envelope(self) -> Envelope:
        return self.rendering_envelope.transform(self._geographic_crs)

    def _query_mask(self) -> List[Envelope]:
        """Query envelopes grown by the margin, replicated over the period for geographic sources."""
        periodic = self.query_across_dateline and is_geographic(self.source_crs)
        mask = []
        for query in self.get_query_envelopes():
            grown = query.expand_by(query.width * QUERY_MARGIN, query.height * QUERY_MARGIN)
            if periodic:
                mask.extend(grown.translate(k * LON_PERIOD) for k in (0, -1, 1))
            else:
                mask.append(grown)
        return mask

    def _valid_area_mask(self, envelope: Envelope) -> Optional[Envelope]:
        """
        The valid area in the source CRS, or None when envelope needs no cut.

        No cut is applied without reprojection: data already in the rendering
        CRS is representable as is.
        """
        if self.valid_area_bounds is None or self._transform.is_identity:
            return None

        geographic = envelope.transform(self._geographic_crs)
        if self.valid_area_bounds.contains(geographic):
            return None
        clipped = self.valid_area_bounds.intersection(geographic)
        if clipped.is_empty:
            return Envelope.empty(self.source_crs)
        return clipped.transform(self.source_crs)

    # Geometry processing

    def requires_processing(self, geometry: BaseGeometry) -> bool:
        """
        Cheap test telling whether pre_process() could change the geometry.

        Raises:
            InvalidInputError: If the geometry is missing or empty.
        """
        _check_geometry(geometry)
        envelope = Envelope.from_geometry(geometry, self.source_crs)
        if self._valid_area_mask(envelope) is not None:
            return True
        return not any(rect.contains(envelope) for rect in self._query_mask())

    def pre_process(self, geometry: BaseGeometry) -> BaseGeometry:
        """
        Cuts a source geometry to the parts the rendering CRS can represent.

        Args:
            geometry: Geometry in the source CRS.

        Returns:
            The input object itself when nothing had to be cut, an empty
            GeometryCollection when nothing is left, the clipped geometry
            otherwise.

        Raises:
            InvalidInputError: If the geometry is missing or empty.
        """
        _check_geometry(geometry)
        envelope = Envelope.from_geometry(geometry, self.source_crs)

        mask = self._query_mask()
        valid = self._valid_area_mask(envelope)
        if valid is not None:
            mask = [rect.intersection(valid) for rect in mask]

        if any(rect.contains(envelope) for rect in mask):
            return geometry

        mask = [
            rect for rect in mask
            if rect.intersects(envelope) and rect.width > 0 and rect.height > 0
        ]
        if not mask:
            log.debug(f"Geometry with envelope {envelope} is entirely outside the rendering area")
            return empty_geometry()

        if not geometry.is_valid:
            geometry = shapely.make_valid(geometry)
        clip = shapely.union_all([rect.to_polygon() for rect in mask])
        result = geometry.intersection(clip)
        if result.is_empty:
            return empty_geometry()
        return result

    def post_process(self, transform: Optional[BaseTransform], geometry: BaseGeometry) -> BaseGeometry:
        """
        Adjusts a geometry already expressed in the rendering CRS.

        The base handler returns the geometry untouched.
        """
        _check_geometry(geometry)
        return geometry

    def get_rendering_transform(self, transform: BaseTransform) -> BaseTransform:
        """The transform to use when projecting source geometries for rendering."""
        return transform

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} family={self.family.value} "
                f"source={self.source_crs.name!r} target={self.target_crs.name!r}>")
