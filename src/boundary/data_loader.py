"""
data_loader.py
---------------------------------------------------------
Readers for the vector inputs of the pipeline.

- read_vector(): read any OGR vector file, failing fast with the path
  in the error message.
- load_contour(): read the 1400 m elevation contour that limits every
  later stage to the upper plateau.
"""

from pathlib import Path

import geopandas as gpd

from src.config import CONTOUR_PATH, TARGET_CRS
from src.errors import PipelineIOError, SchemaError

POLYGON_TYPES = ("Polygon", "MultiPolygon")
LINE_TYPES = ("LineString", "MultiLineString")


def read_vector(path):
    """Read a vector file into a GeoDataFrame, raising PipelineIOError on failure."""
    path = Path(path)
    if not path.exists():
        raise PipelineIOError(f"Input file not found: {path}", path=path)
    try:
        return gpd.read_file(path)
    except Exception as e:
        raise PipelineIOError(f"Failed to read {path}: {e}", path=path) from e


def load_contour(path=CONTOUR_PATH, target_crs=TARGET_CRS):
    """
    Load the contour boundary as a single dissolved polygon.

    Parameters
    ----------
    path : path-like
        Polygon vector file in any CRS.
    target_crs : str
        CRS all later stages work in.

    Returns
    -------
    gpd.GeoDataFrame
        One row holding the (multi)polygon boundary in ``target_crs``.
    """
    contour = read_vector(path)

    if contour.crs is None:
        raise SchemaError(f"Contour file {path} has no CRS")

    contour = contour[contour.geometry.notna() & ~contour.geometry.is_empty]
    polygons = contour.geom_type.isin(POLYGON_TYPES)
    if not polygons.any():
        raise SchemaError(f"Contour file {path} contains no polygon geometry")

    contour = contour.loc[polygons, ["geometry"]].to_crs(target_crs)

    # Repair invalid rings before dissolving
    contour["geometry"] = contour.buffer(0)
    boundary = contour.dissolve().reset_index(drop=True)

    print(f"Contour loaded from {path} "
          f"({polygons.sum()} part(s), {boundary.area.iloc[0] / 1e6:,.1f} km²)")
    return boundary
