"""
grid.py
---------------------------------------------------------
In-memory categorical raster used between pipeline stages.

A CategoricalGrid never changes after it is built: resampling, masking
and legend attachment all return a new grid.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

import numpy as np
from rasterio.crs import CRS
from rasterio.transform import Affine, array_bounds, from_origin

from src.config import NO_DATA_LABEL, NODATA_VALUE


def pixel_size_from_scale(scale_denominator: int, precision_mm: float = 0.5) -> float:
    """Ground size (m) of the smallest mappable line at a given map scale."""
    return scale_denominator * precision_mm / 1000.0


@dataclass(frozen=True)
class GridSpec:
    """Resolution and extent of a north-up grid."""
    bounds: Tuple[float, float, float, float]
    resolution: float
    crs: str

    def __post_init__(self):
        minx, miny, maxx, maxy = self.bounds
        if maxx <= minx or maxy <= miny:
            raise ValueError(f"Invalid grid bounds: {self.bounds}")
        for extent in (maxx - minx, maxy - miny):
            cells = extent / self.resolution
            if abs(cells - round(cells)) > 1e-6:
                raise ValueError(
                    f"Extent {extent} is not a multiple of resolution {self.resolution}"
                )

    @property
    def shape(self) -> Tuple[int, int]:
        minx, miny, maxx, maxy = self.bounds
        return (int(round((maxy - miny) / self.resolution)),
                int(round((maxx - minx) / self.resolution)))

    @property
    def transform(self) -> Affine:
        minx, _, _, maxy = self.bounds
        return from_origin(minx, maxy, self.resolution, self.resolution)


@dataclass(frozen=True, eq=False)
class CategoricalGrid:
    data: np.ndarray
    transform: Affine
    crs: CRS
    nodata: int = NODATA_VALUE
    legend: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.data.ndim != 2:
            raise ValueError(f"Grid data must be 2D, got shape {self.data.shape}")
        object.__setattr__(self, "crs", CRS.from_user_input(self.crs))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def res(self) -> Tuple[float, float]:
        return abs(self.transform.a), abs(self.transform.e)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        height, width = self.shape
        west, south, east, north = array_bounds(height, width, self.transform)
        return west, south, east, north

    @property
    def cell_area(self) -> float:
        xres, yres = self.res
        return xres * yres

    def with_data(self, data: np.ndarray) -> "CategoricalGrid":
        return replace(self, data=data)

    def with_legend(self, legend: Dict[int, str]) -> "CategoricalGrid":
        return replace(self, legend=dict(legend))


def no_data_mask(grid: CategoricalGrid) -> np.ndarray:
    """True where a cell is nodata or holds the ``no_data`` class."""
    mask = grid.data == grid.nodata
    for code, label in grid.legend.items():
        if label == NO_DATA_LABEL:
            mask |= grid.data == code
    return mask


def class_codes(grid: CategoricalGrid) -> set:
    """Class codes present in the grid, nodata excluded."""
    values = np.unique(grid.data)
    return {int(v) for v in values if v != grid.nodata}
