# tests/conftest.py

import pytest
import numpy as np
import geopandas as gpd
from shapely.geometry import Point, Polygon
from rasterio.transform import from_origin
from pyproj import CRS

from wrapspatial.raster.layer import Raster

@pytest.fixture
def wgs84():
    return CRS.from_epsg(4326)

@pytest.fixture
def world_raster():
    """
    Fixture: A global 1 degree grid in WGS84.
    Every pixel holds its column index, so pixel values reveal longitudes
    (value = lon + 180 at the west edge of the pixel).
    """
    data = np.tile(np.arange(360, dtype="float32"), (180, 1))
    return Raster(data, from_origin(-180, 90, 1, 1), "EPSG:4326", nodata=-9999)

@pytest.fixture
def world_raster_path(tmp_path, world_raster):
    path = tmp_path / "world.tif"
    world_raster.save(path)
    return path

@pytest.fixture
def west_raster_path(tmp_path):
    """A 1 degree grid covering the western hemisphere only."""
    data = np.ones((180, 180), dtype="float32")
    raster = Raster(data, from_origin(-180, 90, 1, 1), "EPSG:4326", nodata=-9999)
    path = tmp_path / "west.tif"
    raster.save(path)
    return path

@pytest.fixture
def dateline_gdf():
    """
    Three features in WGS84: a polygon stored across the antimeridian
    (longitudes 175 to 185), a polygon around the origin and a point in Asia.
    """
    straddling = Polygon([(175, -20), (185, -20), (185, -10), (175, -10)])
    central = Polygon([(-10, 0), (10, 0), (10, 10), (-10, 10)])
    return gpd.GeoDataFrame(
        {
            'name': ['fiji', 'gulf', 'siberia'],
            'geometry': [straddling, central, Point(100, 60)]
        },
        crs="EPSG:4326"
    )

@pytest.fixture
def dateline_vector_path(tmp_path, dateline_gdf):
    path = tmp_path / "features.gpkg"
    dateline_gdf.to_file(path, driver="GPKG", engine="pyogrio")
    return path
