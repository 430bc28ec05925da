"""Shared pytest fixtures for the land cover pipeline test suite."""

import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

from src.config import CLASS_LEGEND
from src.historical.harmonize_utils import LayerSpec
from src.raster.grid import CategoricalGrid, GridSpec

# ---------------------------------------------------------------------------
# Study window used throughout the tests: 120 m x 120 m near Ooty, UTM 43N
# ---------------------------------------------------------------------------

UTM = "EPSG:32643"
X0 = 680000.0
Y0 = 1260000.0
SIZE = 120.0


def cell_box(col, row, n_cols=1, n_rows=1, res=6.0):
    """Box covering whole cells of the 6 m test grid (row 0 at the top)."""
    left = X0 + col * res
    top = Y0 + SIZE - row * res
    return box(left, top - n_rows * res, left + n_cols * res, top)


def make_layer(geoms, id_column="Id", crs=UTM, **extra):
    data = {id_column: list(range(1, len(geoms) + 1))}
    data.update(extra)
    return gpd.GeoDataFrame(data, geometry=list(geoms), crs=crs)


def write_geotiff(path, data, transform, crs=UTM, nodata=0):
    data = np.asarray(data, dtype="uint8")
    with rasterio.open(
        path, "w", driver="GTiff", height=data.shape[0], width=data.shape[1],
        count=1, dtype="uint8", crs=crs, transform=transform, nodata=nodata,
    ) as dst:
        dst.write(data, 1)
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def contour():
    """Single-row contour boundary covering the left 3/4 of the window."""
    return gpd.GeoDataFrame(geometry=[box(X0, Y0, X0 + 90, Y0 + SIZE)], crs=UTM)


@pytest.fixture()
def full_contour():
    return gpd.GeoDataFrame(geometry=[box(X0, Y0, X0 + SIZE, Y0 + SIZE)], crs=UTM)


@pytest.fixture()
def grid_spec():
    """6 m grid over the window: 20 x 20 cells."""
    return GridSpec(bounds=(X0, Y0, X0 + SIZE, Y0 + SIZE), resolution=6.0, crs=UTM)


@pytest.fixture()
def area_spec():
    return LayerSpec("agriculture", "agri.shp", "agriculture", "Id", "area")


@pytest.fixture()
def historical_grid():
    """20 x 20 grid at 6 m: left half agriculture, right half grassland, top rows unmapped."""
    data = np.zeros((20, 20), dtype="uint8")
    data[:, :10] = 1
    data[:, 10:] = 5
    data[:2, :] = 7
    data[-2:, -2:] = 0
    return CategoricalGrid(data=data, transform=from_origin(X0, Y0 + SIZE, 6.0, 6.0),
                           crs=UTM, nodata=0, legend=CLASS_LEGEND)


@pytest.fixture()
def modern_tif(tmp_path):
    """10 m classified raster larger than the test window, nodata 255."""
    rng = np.random.default_rng(42)
    data = rng.integers(1, 7, size=(16, 16)).astype("uint8")
    data[0, :] = 255
    data[5, 4] = 255
    transform = from_origin(X0 - 20, Y0 + SIZE + 20, 10.0, 10.0)
    return write_geotiff(tmp_path / "modern_2018.tif", data, transform, nodata=255)
