# tests/unit/test_vector.py

import pytest
import geopandas as gpd
from shapely.geometry import MultiPolygon, Point, Polygon

from wrapspatial.crs import find_transform
from wrapspatial.envelope import Envelope
from wrapspatial.exceptions import InvalidInputError
from wrapspatial.projection import get_handler
from wrapspatial.vector import (
    Vector,
    load_vector,
    project_for_rendering,
    read_crs,
    render_geometry,
    resolve_vector,
    save_vector
)
from helpers import assert_envelope_close, mercator_x

# --- Initialization & I/O Tests ---

def test_init_valid(dateline_gdf):
    v = Vector(dateline_gdf)
    assert len(v) == 3
    assert v.crs == dateline_gdf.crs
    assert v.columns == ["name", "geometry"]

def test_init_invalid_type():
    with pytest.raises(TypeError):
        Vector("not a dataframe")

def test_envelope(dateline_gdf):
    assert_envelope_close(Vector(dateline_gdf).envelope, (-10, -20, 185, 60))
    empty = gpd.GeoDataFrame(geometry=[], crs="EPSG:4326")
    assert Vector(empty).envelope.is_empty

def test_save_and_load(tmp_path, dateline_gdf):
    path = tmp_path / "out" / "saved.gpkg"
    save_vector(Vector(dateline_gdf), path, driver="GPKG")

    loaded = load_vector(path)
    assert len(loaded) == 3
    assert loaded.crs.to_epsg() == 4326

def test_load_missing_file():
    with pytest.raises(FileNotFoundError):
        load_vector("ghost.gpkg")

def test_read_crs(dateline_vector_path):
    assert read_crs(dateline_vector_path).to_epsg() == 4326

def test_load_with_envelope_filter(dateline_vector_path):
    loaded = load_vector(dateline_vector_path, bbox=Envelope(160, -30, 200, 0, "EPSG:4326"))
    assert loaded.data["name"].tolist() == ["fiji"]

def test_resolve_vector(dateline_vector_path, dateline_gdf):
    @resolve_vector
    def count(vector):
        return len(vector)

    assert count(dateline_vector_path) == 3
    assert count(str(dateline_vector_path)) == 3
    assert count(Vector(dateline_gdf)) == 3
    with pytest.raises(TypeError):
        count(42)

# --- Rendering preparation ---

def test_render_geometry_skips_missing_geometries(wgs84):
    handler = get_handler(Envelope(-180, -90, 180, 90, wgs84), wgs84)
    transform = find_transform(wgs84, wgs84)
    assert render_geometry(handler, transform, None) is None
    assert render_geometry(handler, transform, Polygon()) is None

def test_project_to_world_mercator(dateline_gdf):
    rendering = Envelope(mercator_x(-180), -1.5e7, mercator_x(180), 1.5e7, "EPSG:3395")
    projected = project_for_rendering(Vector(dateline_gdf), rendering)

    assert projected.crs.to_epsg() == 3395
    assert projected.data["name"].tolist() == ["fiji", "gulf", "siberia"]

    fiji, gulf, siberia = projected.data.geometry
    assert isinstance(fiji, MultiPolygon)
    assert len(fiji.geoms) == 2
    assert isinstance(gulf, Polygon)
    assert isinstance(siberia, Point)
    assert siberia.x == pytest.approx(mercator_x(100))

def test_project_without_wrapping_keeps_one_copy(dateline_gdf):
    rendering = Envelope(mercator_x(-180), -1.5e7, mercator_x(180), 1.5e7, "EPSG:3395")
    projected = project_for_rendering(Vector(dateline_gdf), rendering, wrap=False)

    assert len(projected) == 3
    assert not isinstance(projected.data.geometry.iloc[0], MultiPolygon)

def test_project_to_utm_drops_features_outside_the_valid_area(dateline_gdf):
    rendering = Envelope(0, 0, 1000000, 1200000, "EPSG:32632")
    projected = project_for_rendering(Vector(dateline_gdf), rendering)

    assert projected.data["name"].tolist() == ["gulf"]
    assert projected.data.index.tolist() == [1]
    assert projected.crs.to_epsg() == 32632

def test_project_from_a_path(dateline_vector_path):
    rendering = Envelope(-180, -90, 180, 90, "EPSG:4326")
    projected = project_for_rendering(dateline_vector_path, rendering)
    assert len(projected) == 3
    assert len(projected.data.geometry.iloc[0].geoms) == 2

def test_project_without_crs():
    naive = gpd.GeoDataFrame({"geometry": [Point(0, 0)]})
    with pytest.raises(InvalidInputError, match="no CRS"):
        project_for_rendering(Vector(naive), Envelope(-180, -90, 180, 90, "EPSG:4326"))
