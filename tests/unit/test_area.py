"""Unit tests for per-class areas and transition tables."""

import numpy as np
import pytest
from rasterio.transform import from_origin

from conftest import UTM, X0, Y0
from src.area.area_utils import area_table, class_cell_counts, compute_class_areas, transition_areas
from src.config import CLASS_LEGEND
from src.raster.grid import CategoricalGrid, no_data_mask

LEGEND = {1: "agriculture", 2: "shola_forest", 7: "no_data"}


def small_grid(values, res=6.0, legend=LEGEND, crs=UTM):
    data = np.asarray(values, dtype="uint8")
    return CategoricalGrid(data=data, transform=from_origin(X0, Y0 + data.shape[0] * res, res, res),
                           crs=crs, nodata=0, legend=legend)


def test_two_by_two_scenario():
    grid = small_grid([[1, 1], [2, 0]])
    areas = compute_class_areas(grid)

    assert set(areas) == {"agriculture", "shola_forest"}
    assert areas["agriculture"] == pytest.approx(0.000072)
    assert areas["shola_forest"] == pytest.approx(0.000036)


def test_no_data_class_is_not_counted():
    grid = small_grid([[1, 7], [7, 0]])
    assert compute_class_areas(grid) == pytest.approx({"agriculture": 0.000036})


def test_cell_counts_exclude_nodata():
    grid = small_grid([[1, 1, 0], [2, 0, 0]])
    assert class_cell_counts(grid) == {1: 2, 2: 1}


def test_areas_are_conserved():
    rng = np.random.default_rng(0)
    data = rng.integers(0, 8, size=(30, 40))
    grid = small_grid(data, legend=CLASS_LEGEND)

    areas = compute_class_areas(grid)

    valid_cells = (~no_data_mask(grid)).sum()
    assert sum(areas.values()) == pytest.approx(valid_cells * 36 / 1e6)


def test_non_square_cells():
    data = np.ones((2, 3), dtype="uint8")
    grid = CategoricalGrid(data=data, transform=from_origin(X0, Y0, 10.0, 5.0), crs=UTM,
                           nodata=0, legend=LEGEND)
    assert compute_class_areas(grid)["agriculture"] == pytest.approx(6 * 50 / 1e6)


def test_geographic_crs_is_rejected():
    grid = small_grid([[1, 2]], res=0.0001, crs="EPSG:4326")
    with pytest.raises(ValueError, match="geographic"):
        compute_class_areas(grid)


def test_area_table_columns():
    table = area_table({"agriculture": 1.5, "shola_forest": 2.0}, 1848)
    assert list(table.columns) == ["class", "time_period", "area_in_square_km"]
    assert table["time_period"].tolist() == ["1848", "1848"]
    assert table["area_in_square_km"].sum() == pytest.approx(3.5)


def test_transition_areas():
    before = small_grid([[1, 1], [2, 7]])
    after = small_grid([[1, 2], [2, 1]])

    table = transition_areas(before, after)

    assert table.loc["agriculture", "agriculture"] == pytest.approx(0.000036)
    assert table.loc["agriculture", "shola_forest"] == pytest.approx(0.000036)
    assert table.loc["shola_forest", "shola_forest"] == pytest.approx(0.000036)
    # the no_data cell in the 1848 grid is ignored
    assert table.values.sum() == pytest.approx(3 * 0.000036)
    assert table.index.name == "from_class"


def test_transition_areas_shape_mismatch():
    with pytest.raises(ValueError, match="shape"):
        transition_areas(small_grid([[1, 1]]), small_grid([[1], [1]]))
