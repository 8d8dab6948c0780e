# src/wrapspatial/vector/render.py

"""
This module prepares vector features for painting in a rendering CRS.

Every feature goes through the projection handler of the request: cut to
the renderable area in the source CRS, reprojected, then unwrapped and
replicated across the antimeridian when the rendering CRS is periodic.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import geopandas as gpd
import pandas as pd
from shapely.geometry.base import BaseGeometry

from wrapspatial.crs.transform import BaseTransform, find_transform
from wrapspatial.crs.utils import horizontal_crs
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.projection.finder import WRAP_LIMIT, get_handler
from wrapspatial.projection.handler import ProjectionHandler
from wrapspatial.vector.io import load_vector, read_crs, resolve_vector
from wrapspatial.vector.layer import Vector

log = logging.getLogger(__name__)

__all__ = [
    "render_geometry",
    "project_for_rendering",
    "load_for_rendering"
]

def render_geometry(
    handler: ProjectionHandler,
    transform: BaseTransform,
    geometry: Optional[BaseGeometry]
) -> Optional[BaseGeometry]:
    """
    Runs one source geometry through pre-processing, reprojection and
    post-processing.

    Returns:
        The geometry in the rendering CRS, or None if nothing of it is visible.
    """
    if geometry is None or geometry.is_empty:
        return None

    if handler.requires_processing(geometry):
        geometry = handler.pre_process(geometry)
        if geometry.is_empty:
            return None

    projected = transform.transform_geometry(geometry)
    if projected.is_empty:
        return None
    return handler.post_process(transform, projected)

@resolve_vector
def project_for_rendering(
    vector: Vector,
    rendering_envelope: Envelope,
    wrap: bool = True,
    max_wraps: int = WRAP_LIMIT
) -> Vector:
    """
    Projects every feature of a layer for painting inside rendering_envelope.

    Features left empty by the projection handler are dropped; attributes of
    the others are kept.

    Args:
        vector: Layer or path to a vector file.
        rendering_envelope: Area being rendered, carrying the rendering CRS.
        wrap: Replicate features across the antimeridian.
        max_wraps: Cap on the copies made on each side of a feature.

    Returns:
        Vector: Features in the rendering CRS.

    Raises:
        InvalidInputError: If the layer has no CRS.
    """
    if vector.crs is None:
        raise InvalidInputError("Vector has no CRS. Cannot reproject.")

    target_crs = horizontal_crs(rendering_envelope.crs)
    handler = get_handler(rendering_envelope, vector.crs, wrap=wrap, max_wraps=max_wraps)
    transform = handler.get_rendering_transform(find_transform(vector.crs, target_crs))

    positions, geometries = [], []
    try:
        for position, geometry in enumerate(vector.geometries()):
            rendered = render_geometry(handler, transform, geometry)
            if rendered is not None:
                positions.append(position)
                geometries.append(rendered)
    except Exception as e:
        log.error(f"Rendering preparation failed with {handler}: {e}")
        raise

    gdf = vector.data
    geometry_column = gdf.geometry.name
    attributes = gdf.iloc[positions].drop(columns=geometry_column)
    projected = gpd.GeoDataFrame(
        attributes,
        geometry=gpd.GeoSeries(geometries, index=attributes.index),
        crs=target_crs
    )
    if geometry_column != projected.geometry.name:
        projected = projected.rename_geometry(geometry_column)

    log.info(f"Prepared {len(projected)} of {len(gdf)} features for rendering in {target_crs.name}")
    return Vector(projected)

def load_for_rendering(
    path: Union[str, Path],
    rendering_envelope: Envelope,
    wrap: bool = True,
    max_wraps: int = WRAP_LIMIT
) -> Vector:
    """
    Reads only the features of a file needed to paint rendering_envelope and
    projects them for rendering.

    One bounding box read is made per query envelope of the projection
    handler; features matched by several boxes are read once.

    Args:
        path: Vector file with a CRS.
        rendering_envelope: Area being rendered, carrying the rendering CRS.
        wrap: Replicate features across the antimeridian.
        max_wraps: Cap on the copies made on each side of a feature.

    Returns:
        Vector: Visible features in the rendering CRS.
    """
    source_crs = read_crs(path)
    if source_crs is None:
        raise InvalidInputError(f"{path} has no CRS. Cannot reproject.")

    handler = get_handler(rendering_envelope, source_crs, wrap=wrap, max_wraps=max_wraps)
    frames = [
        load_vector(path, bbox=envelope, fid_as_index=True).data
        for envelope in handler.get_query_envelopes()
    ]
    frames = [frame for frame in frames if len(frame)]

    if frames:
        gdf = pd.concat(frames)
        gdf = gdf[~gdf.index.duplicated(keep="first")]
    else:
        gdf = gpd.GeoDataFrame(geometry=[], crs=source_crs)
    log.debug(f"Read {len(gdf)} features from {Path(path).name}")

    return project_for_rendering(Vector(gdf), rendering_envelope, wrap=wrap, max_wraps=max_wraps)
