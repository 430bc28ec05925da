"""
config.py
---------------------------------------------------------
Constants for the Nilgiris 1848 vs 2018 land cover comparison.

Every path, CRS, grid parameter and class lookup used by the pipeline
lives here. Paths are resolved from the project root; update them before
running if the data directory is laid out differently.

Directory layout expected under data/raw:
  contour/contour_1400m.shp          (1400 m elevation contour polygon)
  historical_1848/*.shp              (nine digitized 1848 survey layers)
  classified_2018/nilgiris_2018.tif  (2018 supervised classification)
"""

from pathlib import Path

# ==========================================================
# Paths
# ==========================================================
BASE_DIR = Path(__file__).resolve().parents[1]
RAW_DIR = BASE_DIR / "data" / "raw"
RESULTS_DIR = BASE_DIR / "results"

CONTOUR_PATH = RAW_DIR / "contour" / "contour_1400m.shp"
HISTORICAL_DIR = RAW_DIR / "historical_1848"
MODERN_RASTER_PATH = RAW_DIR / "classified_2018" / "nilgiris_2018.tif"

# output file names (written inside RESULTS_DIR)
HARMONIZED_VECTOR_NAME = "landcover_1848_harmonized.gpkg"
ROADS_VECTOR_NAME = "roads_1848.gpkg"
HISTORICAL_RASTER_NAME = "landcover_1848.tif"
MODERN_RASTER_NAME = "landcover_2018_aligned.tif"
AREA_TABLE_NAME = "area_1848_2018.csv"
TRANSITION_TABLE_NAME = "transitions_1848_2018.csv"
MAP_FIGURE_NAME = "landcover_1848_2018.png"

# ==========================================================
# Spatial reference and grid
# ==========================================================
TARGET_CRS = "EPSG:32643"  # WGS 84 / UTM zone 43N

# 1848 survey sheets were drawn at 1:12000; a 0.5 mm line on paper
# covers 6 m on the ground.
MAP_SCALE = 12000
MAP_PRECISION_MM = 0.5

# (minx, miny, maxx, maxy) in TARGET_CRS
STUDY_EXTENT = (652000.0, 1239000.0, 718000.0, 1284000.0)

NODATA_VALUE = 0

# ==========================================================
# Classes
# ==========================================================
# Value -> label lookup fixed when the 2018 image was classified.
CLASS_LEGEND = {
    1: "agriculture",
    2: "plantations",
    3: "settlements",
    4: "shola_forest",
    5: "shola_grassland",
    6: "water_bodies",
    7: "no_data",
}
NO_DATA_LABEL = "no_data"
LABEL_TO_CODE = {label: code for code, label in CLASS_LEGEND.items()}

# 1848 swamps are treated as grassland for the comparison.
HISTORICAL_REMAP = {"swamps": "shola_grassland"}

# Tea and timber are mapped separately in the 1973/1995/2017 tables.
PLANTATION_REMAP = {
    "tea_plantations": "plantations",
    "timber_plantations": "plantations",
}

CLASS_COLORS = {
    "agriculture": "#E6B422",
    "plantations": "#8E5A9B",
    "settlements": "#D7301F",
    "shola_forest": "#1B7837",
    "shola_grassland": "#A6D96A",
    "water_bodies": "#2C7FB8",
    "no_data": "#BDBDBD",
}

FIGURE_DPI = 300

# ==========================================================
# 1848 source layers
# ==========================================================
# name, file, class label, id column in the source file, geometry kind
HISTORICAL_LAYERS = [
    ("agriculture", "1848_cultivation.shp", "agriculture", "Id", "area"),
    ("shola", "1848_shola.shp", "shola_forest", "id", "area"),
    ("grassland", "1848_grassland.shp", "shola_grassland", "Id", "area"),
    ("settlements", "1848_villages.shp", "settlements", "FID_1", "area"),
    ("plantations", "1848_plantations.shp", "plantations", "ID", "area"),
    ("swamps", "1848_swamps.shp", "swamps", "Id", "area"),
    ("lakes", "1848_lakes.shp", "water_bodies", "OBJECTID", "area"),
    ("unmapped", "1848_unmapped.shp", "no_data", "Id", "area"),
    ("roads", "1848_roads.shp", "roads", "Id", "line"),
]

PERIOD_HISTORICAL = "1848"
PERIOD_MODERN = "2018"
