"""
Multi-period Area Comparison (LEGACY — not part of the main pipeline)

Combines per-class area tables from several time periods into one long
table and renders grouped bar charts of absolute and percentage area.

Only the 1848 and 2018 tables are produced by main.py. The 1973, 1995 and
2017 tables come from a separate classification workflow and must be
supplied as CSV files with columns {class, area_in_square_km}.

Functions:
    - load_area_tables(): Read per-period CSVs.
    - merge_area_tables(): Outer join on class (one column per period).
    - merge_plantations(): Fold tea/timber plantations into one class.
    - to_long_form(): Wide table -> {class, time_period, area_in_square_km}.
    - add_percentages(): Percentage of the mapped area per period.
    - plot_grouped_areas(), plot_area_comparison(): Bar charts.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from src.config import CLASS_COLORS, FIGURE_DPI, PLANTATION_REMAP
from src.errors import PipelineIOError, SchemaError
from src.historical.harmonize_utils import remap_labels

AREA_COLUMNS = {"class", "area_in_square_km"}


def load_area_tables(paths):
    """
    Read area tables for several periods.

    Parameters
    ----------
    paths : dict
        time period -> CSV path

    Returns
    -------
    dict
        time period -> DataFrame with columns {class, area_in_square_km}
    """
    tables = {}
    for period, path in paths.items():
        path = Path(path)
        if not path.exists():
            raise PipelineIOError(f"Area table for {period} not found: {path}", path=path)
        df = pd.read_csv(path)
        if missing := (AREA_COLUMNS - set(df.columns)):
            raise SchemaError(f"Area table {path} missing columns: {sorted(missing)}")
        tables[str(period)] = df[["class", "area_in_square_km"]]
        print(f"  Loaded: {period} ({len(df)} classes)")
    return tables


def split_long_table(df):
    """Split a long {class, time_period, area_in_square_km} table by period."""
    return {
        str(period): group[["class", "area_in_square_km"]].reset_index(drop=True)
        for period, group in df.groupby("time_period", sort=False)
    }


def load_long_table(path):
    """Read a long-form area table (as written by main.py) and split it by period."""
    path = Path(path)
    if not path.exists():
        raise PipelineIOError(f"Area table not found: {path}", path=path)
    df = pd.read_csv(path, dtype={"time_period": str})
    if missing := ((AREA_COLUMNS | {"time_period"}) - set(df.columns)):
        raise SchemaError(f"Area table {path} missing columns: {sorted(missing)}")
    return split_long_table(df)


def merge_area_tables(tables):
    """Outer join of per-period tables on class; missing areas become 0."""
    merged = None
    for period, df in tables.items():
        df = df.groupby("class", as_index=False)["area_in_square_km"].sum()
        df = df.rename(columns={"area_in_square_km": period})
        merged = df if merged is None else merged.merge(df, on="class", how="outer")
    if merged is None:
        return pd.DataFrame(columns=["class"])
    return merged.fillna(0).sort_values("class").reset_index(drop=True)


def merge_plantations(wide, remap=PLANTATION_REMAP):
    """Reclassify plantation sub-classes into a single class."""
    wide = remap_labels(wide, "class", remap)
    return wide.groupby("class", as_index=False).sum(numeric_only=True)


def to_long_form(wide):
    return wide.melt(id_vars="class", var_name="time_period", value_name="area_in_square_km")


def add_percentages(long):
    """Add area_percent: share of each class in the period's total area."""
    long = long.copy()
    totals = long.groupby("time_period")["area_in_square_km"].transform("sum")
    long["area_percent"] = (long["area_in_square_km"] / totals * 100).fillna(0)
    return long


def _draw_grouped_bars(ax, long, value_column, colors):
    pivot = long.pivot(index="time_period", columns="class", values=value_column).fillna(0)
    periods = list(pivot.index)
    classes = list(pivot.columns)
    width = 0.8 / max(len(classes), 1)

    x = range(len(periods))
    for i, cls in enumerate(classes):
        offset = (i - len(classes) / 2 + 0.5) * width
        ax.bar([xi + offset for xi in x], pivot[cls].values, width,
               label=cls, color=colors.get(cls, "gray"), edgecolor="white")

    ax.set_xticks(list(x))
    ax.set_xticklabels(periods)
    ax.set_xlabel("Year", fontsize=12, fontweight="bold")
    ax.grid(True, axis="y", alpha=0.3, linestyle="--")


def plot_grouped_areas(long, value_column, out_path, colors=CLASS_COLORS, dpi=FIGURE_DPI):
    """Grouped bar chart of one value column per class and year."""
    ylabel = "Area (%)" if value_column == "area_percent" else "Area (km²)"
    fig, ax = plt.subplots(figsize=(12, 7))
    _draw_grouped_bars(ax, long, value_column, colors)
    ax.set_ylabel(ylabel, fontsize=12, fontweight="bold")
    ax.set_title("Land cover area by class above 1400 m", fontsize=14, fontweight="bold")
    ax.legend(title="Land cover class", bbox_to_anchor=(1.02, 1), loc="upper left")
    plt.tight_layout()

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    print(f"  Saved: {out_path}")
    return out_path


def plot_area_comparison(long, out_path, colors=CLASS_COLORS, dpi=FIGURE_DPI):
    """Two facets: absolute area and percentage area per class and year."""
    if "area_percent" not in long.columns:
        long = add_percentages(long)

    fig, axes = plt.subplots(1, 2, figsize=(18, 7))
    for ax, column, ylabel in zip(axes, ("area_in_square_km", "area_percent"),
                                  ("Area (km²)", "Area (%)")):
        _draw_grouped_bars(ax, long, column, colors)
        ax.set_ylabel(ylabel, fontsize=12, fontweight="bold")

    handles, labels = axes[0].get_legend_handles_labels()
    fig.legend(handles, labels, title="Land cover class", loc="upper left",
               bbox_to_anchor=(1.0, 0.9))
    fig.suptitle("Land cover change in the upper Nilgiris", fontsize=14, fontweight="bold")
    plt.tight_layout()

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    print(f"  Saved: {out_path}")
    return out_path
