"""Unit tests for the grid model and rasterization of the 1848 layer."""

import geopandas as gpd
import numpy as np
import pytest
from shapely.geometry import box

from conftest import SIZE, UTM, X0, Y0, cell_box
from src.config import CLASS_LEGEND, STUDY_EXTENT
from src.errors import SchemaError
from src.raster.grid import GridSpec, class_codes, no_data_mask, pixel_size_from_scale
from src.raster.rasterize_utils import rasterize_features, study_grid_spec


def labelled(geoms, labels, crs=UTM):
    return gpd.GeoDataFrame(
        {"id": list(range(1, len(geoms) + 1)), "class_label": labels},
        geometry=list(geoms), crs=crs,
    )


def test_pixel_size_from_map_scale():
    assert pixel_size_from_scale(12000) == pytest.approx(6.0)
    assert pixel_size_from_scale(25000) == pytest.approx(12.5)


def test_study_grid_spec():
    spec = study_grid_spec()
    assert spec.resolution == pytest.approx(6.0)
    assert spec.bounds == STUDY_EXTENT
    assert spec.shape == (7500, 11000)
    assert spec.transform.c == STUDY_EXTENT[0]
    assert spec.transform.f == STUDY_EXTENT[3]


def test_grid_spec_rejects_partial_cells():
    with pytest.raises(ValueError, match="not a multiple"):
        GridSpec(bounds=(0.0, 0.0, 100.0, 60.0), resolution=6.0, crs=UTM)


def test_rasterize_burns_class_codes(grid_spec):
    gdf = labelled([cell_box(0, 0, 10, 20), cell_box(10, 0, 10, 20)],
                   ["agriculture", "shola_forest"])
    grid = rasterize_features(gdf, grid_spec)

    assert grid.shape == (20, 20)
    assert grid.data.dtype == np.uint8
    assert (grid.data[:, :10] == 1).all()
    assert (grid.data[:, 10:] == 4).all()
    assert grid.legend == CLASS_LEGEND
    assert grid.bounds == pytest.approx((X0, Y0, X0 + SIZE, Y0 + SIZE))


def test_rasterize_is_deterministic(grid_spec):
    gdf = labelled([box(X0 + 3, Y0 + 7, X0 + 77, Y0 + 101), box(X0 + 50, Y0, X0 + 119, Y0 + 40)],
                   ["settlements", "water_bodies"])
    first = rasterize_features(gdf, grid_spec)
    second = rasterize_features(gdf, grid_spec)
    np.testing.assert_array_equal(first.data, second.data)


def test_rasterize_last_feature_wins(grid_spec):
    gdf = labelled([cell_box(0, 0, 4, 4), cell_box(2, 2, 4, 4)], ["agriculture", "plantations"])
    grid = rasterize_features(gdf, grid_spec)

    assert grid.data[0, 0] == 1
    assert grid.data[3, 3] == 2  # overlap
    assert grid.data[5, 5] == 2

    reversed_grid = rasterize_features(gdf.iloc[::-1], grid_spec)
    assert reversed_grid.data[3, 3] == 1


def test_rasterize_uses_cell_centres(grid_spec):
    # covers the left third of the top-left cell, not its centre
    sliver = box(X0, Y0 + SIZE - 6, X0 + 2, Y0 + SIZE)
    grid = rasterize_features(labelled([sliver], ["settlements"]), grid_spec)
    assert grid.data[0, 0] == 0


def test_rasterize_ignores_features_outside_extent(grid_spec):
    outside = box(X0 + 500, Y0 + 500, X0 + 600, Y0 + 600)
    grid = rasterize_features(labelled([outside], ["agriculture"]), grid_spec)
    assert (grid.data == 0).all()


def test_rasterize_empty_collection(grid_spec):
    grid = rasterize_features(labelled([], []), grid_spec)
    assert grid.shape == (20, 20)
    assert no_data_mask(grid).all()
    assert class_codes(grid) == set()


def test_rasterize_reprojects_input(grid_spec):
    gdf = labelled([cell_box(0, 0, 20, 20)], ["shola_grassland"]).to_crs("EPSG:4326")
    grid = rasterize_features(gdf, grid_spec)
    assert (grid.data[1:-1, 1:-1] == 5).all()


def test_rasterize_unknown_label(grid_spec):
    with pytest.raises(SchemaError, match="swamps"):
        rasterize_features(labelled([cell_box(0, 0)], ["swamps"]), grid_spec)


def test_no_data_mask_includes_no_data_class(grid_spec):
    gdf = labelled([cell_box(0, 0, 10, 20), cell_box(10, 0, 5, 20)], ["no_data", "agriculture"])
    grid = rasterize_features(gdf, grid_spec)
    mask = no_data_mask(grid)
    assert mask[:, :10].all()       # no_data class
    assert not mask[:, 10:15].any()
    assert mask[:, 15:].all()       # never burned
