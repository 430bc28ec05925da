"""
Output Utilities
----------------

Writers for the harmonized vectors, the two aligned categorical rasters
and the area tables, plus a quick side-by-side map preview.

write_outputs() stages every file in a temporary directory next to the
results and only moves them into place once all of them were written, so
a failing run never leaves a half-updated results directory.
"""

import os
import shutil
from pathlib import Path
from tempfile import TemporaryDirectory

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import numpy as np
import rasterio
from matplotlib.colors import ListedColormap, to_rgb

from src.config import CLASS_COLORS, FIGURE_DPI
from src.raster.grid import CategoricalGrid

LEGEND_TAG_PREFIX = "CLASS_"


def write_vector(gdf, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    gdf.to_file(path, driver="GPKG")
    print(f"Saved vector → {path} ({len(gdf):,} features)")
    return path


def build_colormap(legend, colors=CLASS_COLORS):
    """GDAL colour table {code: (r, g, b, a)} from the label palette."""
    colormap = {}
    for code, label in legend.items():
        rgb = to_rgb(colors.get(label, "#000000"))
        colormap[int(code)] = tuple(int(round(c * 255)) for c in rgb) + (255,)
    return colormap


def write_categorical_raster(grid: CategoricalGrid, path):
    """
    Write a CategoricalGrid as a single-band uint8 GeoTIFF.

    The class legend is stored twice: as a colour table for viewers and as
    band tags (CLASS_<code>=<label>) so read_categorical_raster() can
    restore it.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    height, width = grid.shape
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": 1,
        "dtype": "uint8",
        "crs": grid.crs,
        "transform": grid.transform,
        "nodata": grid.nodata,
        "compress": "lzw",
    }
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(grid.data.astype("uint8"), 1)
        if grid.legend:
            dst.write_colormap(1, build_colormap(grid.legend))
            dst.update_tags(1, **{f"{LEGEND_TAG_PREFIX}{code}": label
                                  for code, label in grid.legend.items()})
    print(f"Saved raster → {path} ({height} x {width})")
    return path


def read_categorical_raster(path) -> CategoricalGrid:
    with rasterio.open(path) as src:
        data = src.read(1)
        tags = src.tags(1)
        legend = {
            int(key[len(LEGEND_TAG_PREFIX):]): value
            for key, value in tags.items() if key.startswith(LEGEND_TAG_PREFIX)
        }
        nodata = int(src.nodata) if src.nodata is not None else 0
        return CategoricalGrid(data=data, transform=src.transform, crs=src.crs,
                               nodata=nodata, legend=legend)


def write_table(df, path, index=False):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    print(f"Saved table → {path}")
    return path


def _write_one(obj, path):
    # figures are passed as callables taking the output path
    if callable(obj):
        return Path(obj(path))
    if isinstance(obj, CategoricalGrid):
        return write_categorical_raster(obj, path)
    if hasattr(obj, "geometry") and hasattr(obj, "to_file"):
        return write_vector(obj, path)
    # transition tables keep their class index
    return write_table(obj, path, index=obj.index.name is not None)


def write_outputs(outputs, results_dir):
    """
    Write every output, then move them into ``results_dir`` together.

    Parameters
    ----------
    outputs : dict
        file name -> GeoDataFrame, DataFrame, CategoricalGrid, or a
        callable that writes a figure to the path it is given
    results_dir : path-like
        Final destination directory.

    Returns
    -------
    list of Path
        Final paths of the written files.
    """
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    with TemporaryDirectory(dir=results_dir, prefix=".staging_") as staging:
        staged = [_write_one(obj, Path(staging) / name) for name, obj in outputs.items()]

        final = []
        for path in staged:
            target = results_dir / path.name
            if target.is_dir():
                shutil.rmtree(target)
            os.replace(path, target)
            final.append(target)

    print(f"All outputs written to {results_dir}")
    return final


def plot_epoch_maps(historical, modern, out_path, colors=CLASS_COLORS, dpi=FIGURE_DPI,
                    titles=("1848", "2018")):
    """Side-by-side categorical maps of two grids sharing a legend."""
    legend = historical.legend or modern.legend
    codes = sorted(legend)
    max_code = max(codes + [historical.nodata])
    palette = ["#FFFFFF"] * (max_code + 1)
    for code in codes:
        palette[code] = colors.get(legend[code], "#000000")
    cmap = ListedColormap(palette)

    fig, axes = plt.subplots(1, 2, figsize=(14, 7))
    for ax, grid, title in zip(axes, (historical, modern), titles):
        left, bottom, right, top = grid.bounds
        ax.imshow(np.ma.masked_equal(grid.data, grid.nodata), cmap=cmap,
                  vmin=0, vmax=max_code, interpolation="nearest",
                  extent=(left, right, bottom, top))
        ax.set_title(title)
        ax.axis("off")

    handles = [mpatches.Patch(color=colors.get(legend[c], "#000000"), label=legend[c])
               for c in codes]
    fig.legend(handles=handles, loc="lower center", ncol=len(handles), frameon=False)
    plt.tight_layout(rect=(0, 0.06, 1, 1))

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    print(f"Saved visualization → {out_path}")
    return out_path
