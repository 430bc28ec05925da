"""
Area Utilities
--------------

Per-class area of a categorical grid (zonal statistics over the whole
grid extent) and class-to-class transition areas between two epochs.

Area model:
    area_km2 = cell count * |xres * yres| / 1e6

This only holds for a projected CRS in metres (the UTM grid used here);
grids in a geographic CRS are rejected.
"""

import numpy as np
import pandas as pd
from rasterstats import zonal_stats
from shapely.geometry import box

from src.config import NO_DATA_LABEL
from src.raster.grid import no_data_mask

M2_PER_KM2 = 1_000_000
METRE_UNITS = {"metre", "meter", "m", "metres", "meters"}


def check_metric_crs(grid):
    crs = grid.crs
    if crs.is_geographic:
        raise ValueError(f"Cell areas cannot be computed in geographic CRS {crs}")
    units = (crs.linear_units or "").lower()
    if units not in METRE_UNITS:
        raise ValueError(f"Expected a CRS in metres, got units '{crs.linear_units}' ({crs})")


def class_cell_counts(grid):
    """Count cells per class code inside the grid extent (nodata excluded)."""
    stats = zonal_stats(
        [box(*grid.bounds)],
        grid.data,
        affine=grid.transform,
        nodata=grid.nodata,
        categorical=True,
        all_touched=True,
    )
    counts = stats[0] if stats else {}
    return {
        int(code): int(n) for code, n in counts.items()
        if isinstance(code, (int, np.integer)) and code != grid.nodata
    }


def compute_class_areas(grid, legend=None):
    """
    Area per class label in km².

    Parameters
    ----------
    grid : CategoricalGrid
        Grid with a legend (code -> label).
    legend : dict, optional
        Overrides ``grid.legend``.

    Returns
    -------
    dict
        label -> area in km². Cells that are nodata or hold the
        ``no_data`` class are not counted.
    """
    check_metric_crs(grid)
    legend = legend or grid.legend
    cell_area = grid.cell_area

    areas = {}
    for code, count in sorted(class_cell_counts(grid).items()):
        label = legend.get(code, str(code))
        if label == NO_DATA_LABEL:
            continue
        areas[label] = areas.get(label, 0.0) + count * cell_area / M2_PER_KM2
    return areas


def area_table(areas, time_period):
    """Long-form area table with columns {class, time_period, area_in_square_km}."""
    return pd.DataFrame({
        "class": list(areas.keys()),
        "time_period": str(time_period),
        "area_in_square_km": list(areas.values()),
    }, columns=["class", "time_period", "area_in_square_km"])


def transition_areas(before, after):
    """
    Class-to-class transition areas (km²) between two aligned grids.

    Rows are classes in ``before``, columns classes in ``after``. Cells that
    are no data in either grid are ignored.
    """
    if before.shape != after.shape:
        raise ValueError(f"Grids differ in shape: {before.shape} vs {after.shape}")
    check_metric_crs(after)

    valid = ~(no_data_mask(before) | no_data_mask(after))
    table = pd.crosstab(
        pd.Series(before.data[valid], name="from_class"),
        pd.Series(after.data[valid], name="to_class"),
    )
    table = table.rename(
        index=lambda c: before.legend.get(int(c), str(c)),
        columns=lambda c: after.legend.get(int(c), str(c)),
    )
    return table.astype(np.float64) * after.cell_area / M2_PER_KM2
