"""
==============================================================================
NILGIRIS LAND COVER 1848 vs 2018 — EXECUTION SCRIPT
==============================================================================

1. Load the 1400 m contour that bounds the study area.
2. Harmonize the nine 1848 survey layers into one feature collection.
3. Rasterize it to a 6 m grid over the fixed study extent.
4. Crop, align and mask the 2018 classified raster to that grid.
5. Compute per-class areas (km²) for both epochs and the transitions.
6. Write vectors, rasters and tables to results/.

All parameters come from src/config.py. Nothing is written unless every
stage succeeds.
==============================================================================
"""

from pathlib import Path

import pandas as pd

from src.area.area_utils import area_table, compute_class_areas, transition_areas
from src.boundary.data_loader import load_contour
from src.config import (
    AREA_TABLE_NAME,
    CONTOUR_PATH,
    HARMONIZED_VECTOR_NAME,
    HISTORICAL_RASTER_NAME,
    MAP_FIGURE_NAME,
    MODERN_RASTER_NAME,
    MODERN_RASTER_PATH,
    PERIOD_HISTORICAL,
    PERIOD_MODERN,
    RESULTS_DIR,
    ROADS_VECTOR_NAME,
    TARGET_CRS,
    TRANSITION_TABLE_NAME,
)
from src.historical.harmonize_utils import (
    default_layer_specs,
    harmonize_layers,
    load_layers,
    summarize_layer,
)
from src.output.output_utils import plot_epoch_maps, write_outputs
from src.raster.alignment_utils import align_to_historical
from src.raster.rasterize_utils import rasterize_features, study_grid_spec


def run_pipeline(contour_path=CONTOUR_PATH, layer_specs=None,
                 modern_path=MODERN_RASTER_PATH, grid_spec=None, target_crs=TARGET_CRS):
    """
    Run every stage in memory and return the results.

    Returns
    -------
    dict
        contour, harmonized, roads, historical_grid, modern_grid,
        historical_resampled, areas (long table), transitions
    """
    layer_specs = layer_specs if layer_specs is not None else default_layer_specs()
    grid_spec = grid_spec or study_grid_spec(crs=target_crs)

    #loading the boundary and the 1848 layers
    contour = load_contour(contour_path, target_crs)
    loaded = load_layers(layer_specs)

    #vector harmonization
    harmonized, roads = harmonize_layers(loaded, contour, target_crs)
    summarize_layer(harmonized, "Harmonized 1848 land cover")

    #rasterization and alignment
    historical_grid = rasterize_features(harmonized, grid_spec)
    modern_grid, historical_resampled = align_to_historical(modern_path, historical_grid)

    #areas
    areas = pd.concat([
        area_table(compute_class_areas(historical_grid), PERIOD_HISTORICAL),
        area_table(compute_class_areas(modern_grid), PERIOD_MODERN),
    ], ignore_index=True)
    transitions = transition_areas(historical_resampled, modern_grid)
    print(areas.round(3))

    return {
        "contour": contour,
        "harmonized": harmonized,
        "roads": roads,
        "historical_grid": historical_grid,
        "modern_grid": modern_grid,
        "historical_resampled": historical_resampled,
        "areas": areas,
        "transitions": transitions,
    }


def save_results(results, results_dir=RESULTS_DIR, plot=True):
    outputs = {
        HARMONIZED_VECTOR_NAME: results["harmonized"],
        ROADS_VECTOR_NAME: results["roads"],
        HISTORICAL_RASTER_NAME: results["historical_grid"],
        MODERN_RASTER_NAME: results["modern_grid"],
        AREA_TABLE_NAME: results["areas"],
        TRANSITION_TABLE_NAME: results["transitions"],
    }
    if results["roads"].empty:
        del outputs[ROADS_VECTOR_NAME]
    if plot:
        outputs[MAP_FIGURE_NAME] = lambda path: plot_epoch_maps(
            results["historical_resampled"], results["modern_grid"], path)

    return write_outputs(outputs, Path(results_dir))


def main():
    results = run_pipeline()
    save_results(results)


if __name__ == "__main__":
    main()
