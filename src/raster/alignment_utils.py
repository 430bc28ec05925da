"""
Raster Alignment Utilities
--------------------------

Bring the 2018 classified raster onto the extent of the 1848 grid and mask
it wherever the 1848 maps have no information.

Pipeline steps (align_to_historical):
1. Crop the 2018 raster to the 1848 extent (window read, or reprojection
   when the CRS differs).
2. Force the cropped extent to the exact 1848 bounds. Cropping snaps to
   the 2018 pixel grid, so the bounds differ by less than one cell.
3. Resample the 1848 grid to the 2018 resolution (nearest neighbour).
4. Mask 2018 cells that are no data in the resampled 1848 grid.
5. Attach the fixed class legend.

Notes:
- Class codes are categories, not measurements: every resampling here is
  nearest neighbour.
"""

import math
from pathlib import Path

import numpy as np
import rasterio
from rasterio.errors import RasterioIOError
from rasterio.transform import from_bounds, from_origin
from rasterio.warp import Resampling, calculate_default_transform, reproject, transform_bounds
from rasterio.windows import Window
from rasterio.windows import from_bounds as window_from_bounds

from src.config import CLASS_LEGEND, NODATA_VALUE
from src.errors import AlignmentError, PipelineIOError
from src.raster.grid import CategoricalGrid, no_data_mask


def _normalize_nodata(arr, src_nodata, nodata=NODATA_VALUE):
    if src_nodata is not None:
        arr = np.where(arr == src_nodata, nodata, arr)
    return arr.astype("uint8")


def _overlaps(bounds, other):
    return not (bounds[0] >= other[2] or bounds[2] <= other[0]
                or bounds[1] >= other[3] or bounds[3] <= other[1])


def _source_window(bounds, transform, width, height, pad=1):
    """Pixel window of a raster covering ``bounds``, padded and clamped to the raster."""
    win = window_from_bounds(*bounds, transform=transform)
    col0 = max(0, math.floor(win.col_off) - pad)
    row0 = max(0, math.floor(win.row_off) - pad)
    col1 = min(width, math.ceil(win.col_off + win.width) + pad)
    row1 = min(height, math.ceil(win.row_off + win.height) + pad)
    return Window(col0, row0, max(0, col1 - col0), max(0, row1 - row0))


def crop_raster_to_reference(path, reference: CategoricalGrid) -> CategoricalGrid:
    """
    Read a classified raster over the extent of ``reference``.

    The result keeps the source resolution. Source nodata is rewritten to
    the pipeline nodata value.
    """
    path = Path(path)
    if not path.exists():
        raise PipelineIOError(f"Input raster not found: {path}", path=path)

    try:
        src = rasterio.open(path)
    except RasterioIOError as e:
        raise PipelineIOError(f"Failed to read {path}: {e}", path=path) from e

    with src:
        if src.crs is None:
            raise AlignmentError(f"Raster {path} has no CRS")

        # the requested bounds must at least overlap the raster
        requested = transform_bounds(reference.crs, src.crs, *reference.bounds)
        if not _overlaps(requested, tuple(src.bounds)):
            raise AlignmentError(f"Raster {path} does not overlap the reference extent "
                                 f"{reference.bounds}")

        if src.crs == reference.crs:
            win = window_from_bounds(*reference.bounds, transform=src.transform)
            win = Window(round(win.col_off), round(win.row_off),
                         round(win.width), round(win.height))
            if win.width < 1 or win.height < 1:
                raise AlignmentError(f"Reference extent {reference.bounds} is smaller than "
                                     f"one cell of {path}")
            arr = src.read(1, window=win, boundless=True,
                           fill_value=src.nodata if src.nodata is not None else NODATA_VALUE)
            transform = src.window_transform(win)
            data = _normalize_nodata(arr, src.nodata)
        else:
            print(f"Reprojecting {path.name} from {src.crs} to {reference.crs} (nearest) ...")
            native, _, _ = calculate_default_transform(
                src.crs, reference.crs, src.width, src.height, *src.bounds)
            res = abs(native.a)
            left, bottom, right, top = reference.bounds
            width = max(1, int(round((right - left) / res)))
            height = max(1, int(round((top - bottom) / res)))
            transform = from_origin(left, top, res, res)
            data = np.full((height, width), NODATA_VALUE, dtype="uint8")
            # only the part of the scene under the reference extent is read
            win = _source_window(requested, src.transform, src.width, src.height)
            source = _normalize_nodata(src.read(1, window=win), src.nodata)
            reproject(
                source=source,
                destination=data,
                src_transform=src.window_transform(win),
                src_crs=src.crs,
                src_nodata=NODATA_VALUE,
                dst_transform=transform,
                dst_crs=reference.crs,
                dst_nodata=NODATA_VALUE,
                resampling=Resampling.nearest,
            )

    return CategoricalGrid(data=data, transform=transform, crs=reference.crs,
                           nodata=NODATA_VALUE)


def force_extent(grid: CategoricalGrid, bounds, tolerance=None) -> CategoricalGrid:
    """
    Set a grid's bounds to ``bounds`` exactly, keeping its rows and columns.

    Raises AlignmentError when any edge is further than ``tolerance``
    (default: one cell) from its target.
    """
    if tolerance is None:
        tolerance = max(grid.res)

    diffs = [abs(a - b) for a, b in zip(grid.bounds, bounds)]
    if max(diffs) > tolerance:
        raise AlignmentError(
            f"Grid bounds {grid.bounds} differ from reference {tuple(bounds)} by "
            f"{max(diffs):.3f}, more than the tolerance {tolerance:.3f}"
        )

    height, width = grid.shape
    transform = from_bounds(*bounds, width=width, height=height)
    return CategoricalGrid(data=grid.data, transform=transform, crs=grid.crs,
                           nodata=grid.nodata, legend=grid.legend)


def resample_nearest(grid: CategoricalGrid, like: CategoricalGrid) -> CategoricalGrid:
    """Resample ``grid`` onto the cells of ``like`` with nearest neighbour."""
    out = np.full(like.shape, grid.nodata, dtype=grid.data.dtype)
    reproject(
        source=grid.data,
        destination=out,
        src_transform=grid.transform,
        src_crs=grid.crs,
        src_nodata=grid.nodata,
        dst_transform=like.transform,
        dst_crs=like.crs,
        dst_nodata=grid.nodata,
        resampling=Resampling.nearest,
    )
    return CategoricalGrid(data=out, transform=like.transform, crs=like.crs,
                           nodata=grid.nodata, legend=grid.legend)


def mask_with(grid: CategoricalGrid, mask_grid: CategoricalGrid) -> CategoricalGrid:
    """Set every cell that is no data in ``mask_grid`` to nodata."""
    if grid.shape != mask_grid.shape:
        raise AlignmentError(f"Cannot mask grid of shape {grid.shape} "
                             f"with mask of shape {mask_grid.shape}")
    data = np.where(no_data_mask(mask_grid), grid.nodata, grid.data).astype(grid.data.dtype)
    return grid.with_data(data)


def attach_legend(grid: CategoricalGrid, legend=CLASS_LEGEND) -> CategoricalGrid:
    return grid.with_legend(legend)


def align_to_historical(path, historical: CategoricalGrid, legend=CLASS_LEGEND):
    """
    Align and mask the 2018 raster against the 1848 grid.

    Returns
    -------
    (CategoricalGrid, CategoricalGrid)
        The masked 2018 grid on the 1848 extent, and the 1848 grid
        resampled to the 2018 resolution.
    """
    cropped = crop_raster_to_reference(path, historical)
    modern = force_extent(cropped, historical.bounds)
    historical_resampled = resample_nearest(historical, like=modern)
    modern = mask_with(modern, historical_resampled)
    modern = attach_legend(modern, legend)

    masked = int(no_data_mask(historical_resampled).sum())
    print(f"Aligned 2018 raster: {modern.shape[0]} x {modern.shape[1]} cells at "
          f"{modern.res[0]:.2f} m, {masked:,} cells masked as no data")
    return modern, historical_resampled
