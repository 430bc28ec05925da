"""
==============================================================================
AREA COMPARISON ACROSS PERIODS — EXECUTION SCRIPT (LEGACY, NOT RUN BY main.py)
==============================================================================

Combines the 1848/2018 area table written by main.py with the 1973, 1995
and 2017 area tables produced by the separate Landsat classification
workflow, then draws the comparison charts.

PRIMARY OUTPUTS:
    results/area_by_period.csv            {class, time_period, area_in_square_km}
    results/area_by_class_km2.png
    results/area_by_class_percent.png
    results/area_comparison.png

NOTES:
- The 1973/1995/2017 CSVs are external inputs; this script fails with a
  clear error if they are missing.
- Tea and timber plantations are folded into a single plantations class.
==============================================================================
"""

from src.comparison.comparison_utils import (
    add_percentages,
    load_area_tables,
    load_long_table,
    merge_area_tables,
    merge_plantations,
    plot_area_comparison,
    plot_grouped_areas,
    to_long_form,
)
from src.config import AREA_TABLE_NAME, RAW_DIR, RESULTS_DIR
from src.output.output_utils import write_table

EXTERNAL_TABLES = {
    "1973": RAW_DIR / "area_tables" / "area_1973.csv",
    "1995": RAW_DIR / "area_tables" / "area_1995.csv",
    "2017": RAW_DIR / "area_tables" / "area_2017.csv",
}


def run_comparison(pipeline_table=RESULTS_DIR / AREA_TABLE_NAME,
                   external_tables=EXTERNAL_TABLES, out_dir=RESULTS_DIR):
    print("Loading area tables...")
    tables = load_long_table(pipeline_table)
    tables.update(load_area_tables(external_tables))
    tables = dict(sorted(tables.items()))

    wide = merge_plantations(merge_area_tables(tables))
    long = add_percentages(to_long_form(wide))

    write_table(long[["class", "time_period", "area_in_square_km"]], out_dir / "area_by_period.csv")

    print("\nCreating charts...")
    plot_grouped_areas(long, "area_in_square_km", out_dir / "area_by_class_km2.png")
    plot_grouped_areas(long, "area_percent", out_dir / "area_by_class_percent.png")
    plot_area_comparison(long, out_dir / "area_comparison.png")
    return long


if __name__ == "__main__":
    run_comparison()
