"""
Historical Map Harmonization Utilities
--------------------------------------

Core operations that turn the nine hand-digitized 1848 survey layers into
one clean feature collection on the UTM 43N grid.

Functions:
    - read_layer(): Load one source layer described by a LayerSpec.
    - drop_empty_geometries(): Remove null/empty geometries.
    - standardize_schema(): Rename attributes to {id, class_label, geometry}.
    - reproject_layer(): Move a layer to the target CRS.
    - concat_layers(): Stack area layers into a single GeoDataFrame.
    - remap_labels(): Apply a declarative {old: new} label table.
    - repair_geometries(): Zero-width buffer to fix self-intersections.
    - validate_geometries(): Fail if anything is still invalid.
    - clip_to_contour(): Restrict features to the contour boundary.
    - harmonize_layers(): Run the whole sequence above.

Notes:
    Linear layers (roads) are carried through the same cleaning steps but
    are never concatenated with the area classes, so they cannot leak into
    rasterization or area sums.
"""

from collections import namedtuple

import geopandas as gpd
import pandas as pd
from tqdm import tqdm

from src.boundary.data_loader import LINE_TYPES, POLYGON_TYPES, read_vector
from src.config import (
    HISTORICAL_DIR,
    HISTORICAL_LAYERS,
    HISTORICAL_REMAP,
    LABEL_TO_CODE,
    TARGET_CRS,
)
from src.errors import GeometryValidityError, SchemaError

SCHEMA_COLUMNS = ["id", "class_label", "geometry"]

LayerSpec = namedtuple("LayerSpec", ["name", "path", "class_label", "id_column", "kind"])


def default_layer_specs(base_dir=HISTORICAL_DIR):
    """Build LayerSpecs for the configured 1848 layers."""
    return [
        LayerSpec(name, base_dir / fname, label, id_col, kind)
        for name, fname, label, id_col, kind in HISTORICAL_LAYERS
    ]


def read_layer(spec):
    gdf = read_vector(spec.path)
    print(f"Loaded layer '{spec.name}': {len(gdf):,} features, "
          f"types {sorted(gdf.geom_type.dropna().unique())}")
    return gdf


def drop_empty_geometries(gdf):
    """Drop rows whose geometry is missing or empty."""
    keep = gdf.geometry.notna() & ~gdf.geometry.is_empty
    return gdf[keep].copy()


def standardize_schema(gdf, spec, remap=HISTORICAL_REMAP):
    """
    Rename a layer's attributes to the canonical schema.

    The layer's id column becomes ``id`` and every feature gets the
    layer's constant class label. All other attributes are dropped.
    """
    if gdf.crs is None:
        raise SchemaError(f"Layer '{spec.name}' ({spec.path}) has no CRS")

    if spec.id_column not in gdf.columns:
        raise SchemaError(
            f"Layer '{spec.name}' ({spec.path}) has no '{spec.id_column}' column; "
            f"found {list(gdf.columns)}"
        )

    if spec.kind == "area" and spec.class_label not in LABEL_TO_CODE and spec.class_label not in remap:
        raise SchemaError(f"Layer '{spec.name}' has unknown class label '{spec.class_label}'")

    out = gdf[[spec.id_column, gdf.geometry.name]].rename(columns={spec.id_column: "id"})
    out = out.rename_geometry("geometry") if out.geometry.name != "geometry" else out
    out["class_label"] = spec.class_label
    return out[SCHEMA_COLUMNS]


def reproject_layer(gdf, target_crs=TARGET_CRS):
    # Ensure same CRS
    if gdf.crs == target_crs:
        return gdf
    return gdf.to_crs(target_crs)


def concat_layers(layers, crs=TARGET_CRS):
    """Concatenate layers that already share the canonical schema and CRS."""
    if not layers:
        return gpd.GeoDataFrame(columns=SCHEMA_COLUMNS, geometry="geometry", crs=crs)
    combined = pd.concat(layers, ignore_index=True)
    return gpd.GeoDataFrame(combined, geometry="geometry", crs=crs)


def remap_labels(df, column, remap):
    """Replace labels in ``column`` according to an {old: new} table."""
    df = df.copy()
    df[column] = df[column].replace(remap)
    return df


def repair_geometries(gdf):
    """Repair self-intersections with a zero-width buffer."""
    gdf = gdf.copy()
    invalid = ~gdf.is_valid
    if invalid.any():
        print(f"Repairing {invalid.sum():,} invalid geometries with buffer(0)")
        gdf.loc[invalid, "geometry"] = gdf.loc[invalid].buffer(0)
    return gdf


def validate_geometries(gdf, name="harmonized layer"):
    invalid = ~gdf.is_valid
    if invalid.any():
        ids = gdf.loc[invalid, "id"].tolist()[:10]
        raise GeometryValidityError(
            f"{invalid.sum()} geometries in {name} are still invalid after repair "
            f"(first ids: {ids})"
        )
    return gdf


def clip_to_contour(gdf, contour):
    """
    Intersect features with the contour boundary.

    Only polygonal parts are kept; features that fall entirely outside the
    contour are dropped and ``id`` is renumbered 1..N.
    """
    if gdf.empty:
        return gdf.copy()

    boundary = contour.to_crs(gdf.crs)
    clipped = gpd.clip(gdf, boundary, keep_geom_type=True)
    clipped = drop_empty_geometries(clipped)
    clipped = clipped[clipped.geom_type.isin(POLYGON_TYPES)]

    # gpd.clip does not preserve input order
    clipped = clipped.sort_index().reset_index(drop=True)
    clipped["id"] = range(1, len(clipped) + 1)
    return clipped[SCHEMA_COLUMNS]


def clip_lines_to_contour(gdf, contour):
    """Clip linear features to the contour; points left on the boundary are dropped."""
    if gdf.empty:
        return gdf.copy()
    clipped = gpd.clip(gdf, contour.to_crs(gdf.crs), keep_geom_type=True)
    clipped = drop_empty_geometries(clipped)
    clipped = clipped[clipped.geom_type.isin(LINE_TYPES)]
    clipped = clipped.sort_index().reset_index(drop=True)
    clipped["id"] = range(1, len(clipped) + 1)
    return clipped[SCHEMA_COLUMNS]


def clean_layer(gdf, spec, target_crs=TARGET_CRS):
    """Empty-geometry filter, schema rename and reprojection for one layer."""
    before = len(gdf)
    gdf = drop_empty_geometries(gdf)
    if len(gdf) < before:
        print(f"  '{spec.name}': dropped {before - len(gdf):,} empty geometries")
    gdf = standardize_schema(gdf, spec)
    return reproject_layer(gdf, target_crs)


def load_layers(specs):
    """Read every LayerSpec, returning (spec, GeoDataFrame) pairs in input order."""
    return [(spec, read_layer(spec)) for spec in specs]


def harmonize_layers(loaded, contour, target_crs=TARGET_CRS, remap=HISTORICAL_REMAP):
    """
    Harmonize heterogeneous 1848 layers into one feature collection.

    Parameters
    ----------
    loaded : list of (LayerSpec, gpd.GeoDataFrame)
        Source layers as read from disk, in burn order.
    contour : gpd.GeoDataFrame
        Contour boundary from load_contour().
    target_crs : str
        CRS of the output.
    remap : dict
        Label remap applied after concatenation.

    Returns
    -------
    (gpd.GeoDataFrame, gpd.GeoDataFrame)
        Area features with columns {id, class_label, geometry}, clipped to
        the contour, and the linear features kept apart.
    """
    areas, lines = [], []
    for spec, gdf in tqdm(loaded, desc="Harmonizing 1848 layers", ncols=80):
        cleaned = clean_layer(gdf, spec, target_crs)
        (lines if spec.kind == "line" else areas).append(cleaned)

    combined = concat_layers(areas, target_crs)
    combined = remap_labels(combined, "class_label", remap)

    combined = repair_geometries(combined)
    combined = validate_geometries(combined)
    harmonized = clip_to_contour(combined, contour)
    harmonized = validate_geometries(harmonized, "clipped layer")

    linear = clip_lines_to_contour(concat_layers(lines, target_crs), contour)

    print(f"Harmonized 1848 layer: {len(harmonized):,} area features, "
          f"{len(linear):,} linear features")
    return harmonized, linear


def summarize_layer(gdf, title="Harmonized layer"):
    """Print feature counts and area (km²) per class."""
    print(f"\n--- {title} ---")
    print("CRS:", gdf.crs)
    print("Total features:", len(gdf))
    if gdf.empty:
        return pd.DataFrame(columns=["features", "area_km2"])
    summary = (
        gdf.assign(area_km2=gdf.geometry.area / 1e6)
        .groupby("class_label")
        .agg(features=("id", "count"), area_km2=("area_km2", "sum"))
    )
    print(summary.round(3))
    return summary
