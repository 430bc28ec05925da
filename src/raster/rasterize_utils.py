"""
rasterize_utils.py
---------------------------------------------------------
Burn the harmonized 1848 feature collection into a categorical grid.

Each cell takes the class code of the feature covering its centre.
Where features overlap, the one later in the collection wins, so the
input order of the layers is the burn order.
"""

import numpy as np
from rasterio import features

from src.config import (
    CLASS_LEGEND,
    LABEL_TO_CODE,
    MAP_PRECISION_MM,
    MAP_SCALE,
    NODATA_VALUE,
    STUDY_EXTENT,
    TARGET_CRS,
)
from src.errors import SchemaError
from src.raster.grid import CategoricalGrid, GridSpec, pixel_size_from_scale


def study_grid_spec(bounds=STUDY_EXTENT, crs=TARGET_CRS,
                    scale=MAP_SCALE, precision_mm=MAP_PRECISION_MM) -> GridSpec:
    """Grid of the 1848 maps: 6 m cells over the fixed study extent."""
    return GridSpec(bounds=bounds, resolution=pixel_size_from_scale(scale, precision_mm), crs=crs)


def rasterize_features(gdf, spec: GridSpec, label_column="class_label",
                       label_to_code=LABEL_TO_CODE, legend=CLASS_LEGEND,
                       nodata=NODATA_VALUE) -> CategoricalGrid:
    """
    Rasterize a labelled feature collection.

    Parameters
    ----------
    gdf : gpd.GeoDataFrame
        Features with a class label column.
    spec : GridSpec
        Output extent, resolution and CRS.
    label_column : str
        Column holding class labels.
    label_to_code : dict
        Label -> integer class code.

    Returns
    -------
    CategoricalGrid
        uint8 grid; cells not covered by any feature hold ``nodata``.
    """
    if label_column not in gdf.columns:
        raise SchemaError(f"Feature collection has no '{label_column}' column")

    unknown = set(gdf[label_column].dropna().unique()) - set(label_to_code)
    if unknown:
        raise SchemaError(f"Labels without a class code: {sorted(unknown)}")

    if gdf.crs is not None and gdf.crs != spec.crs:
        gdf = gdf.to_crs(spec.crs)

    shapes = [
        (geom, label_to_code[label])
        for geom, label in zip(gdf.geometry, gdf[label_column])
        if geom is not None and not geom.is_empty
    ]

    if shapes:
        data = features.rasterize(
            shapes,
            out_shape=spec.shape,
            transform=spec.transform,
            fill=nodata,
            all_touched=False,
            merge_alg=features.MergeAlg.replace,
            dtype="uint8",
        )
    else:
        data = np.full(spec.shape, nodata, dtype="uint8")

    grid = CategoricalGrid(data=data, transform=spec.transform, crs=spec.crs,
                           nodata=nodata, legend=legend)
    print(f"Rasterized {len(shapes):,} features onto a {spec.shape[0]} x {spec.shape[1]} grid "
          f"({spec.resolution:g} m cells)")
    return grid
