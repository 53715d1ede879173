"""Tabular and chart outputs for ROI projections."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

import matplotlib.pyplot as plt
import pandas as pd

NON_SERIES_FIELDS = ("offset_label", "price")
SERIES_COLORS = ["#8b5cf6", "#06b6d4", "#10b981", "#f59e0b", "#ef4444", "#ec4899"]


def _ensure_dir(output_dir: str) -> Path:
    """Create output directory if missing and return Path."""
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def chart_frame(chart_series: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """One row per offset, one ROI column per contract series."""
    if not chart_series:
        return pd.DataFrame()
    df = pd.DataFrame(list(chart_series)).set_index("offset_label")
    df.index.name = "offset"
    return df


def series_columns(frame: pd.DataFrame) -> List[str]:
    return [c for c in frame.columns if c not in NON_SERIES_FIELDS]


def table_frame(grouped_table: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Long format: one row per (offset, contract) with numeric ROI/profit."""
    rows = []
    for group in grouped_table:
        for detail in group["details"]:
            rows.append(
                {
                    "offset_days": group["offset_days"],
                    "offset": group["offset_label"],
                    "label": detail["label"],
                    "strike": detail["strike"],
                    "estimated_price": float(detail["estimated_price"]),
                    "profit": float(detail["profit"]),
                    "roi_pct": float(detail["roi"]),
                }
            )
    columns = ["offset_days", "offset", "label", "strike", "estimated_price", "profit", "roi_pct"]
    return pd.DataFrame(rows, columns=columns)


def plot_roi_projection(
    chart_series: Sequence[Dict[str, Any]],
    output_dir: str,
    volatility_crush: bool = False,
    file_name: str = "roi_projection.png",
) -> Path:
    out = _ensure_dir(output_dir)
    df = chart_frame(chart_series)

    fig, ax = plt.subplots(figsize=(12, 6))
    if not df.empty:
        x = range(len(df.index))
        for i, col in enumerate(series_columns(df)):
            color = SERIES_COLORS[i % len(SERIES_COLORS)]
            values = df[col].astype(float)
            ax.plot(x, values, label=col, color=color, linewidth=1.8)
            ax.fill_between(x, 0.0, values, color=color, alpha=0.15)
        ax.set_xticks(list(x))
        ax.set_xticklabels(df.index, rotation=45)

    title = "ROI Projection (Price Hits Target @ Day X)"
    if volatility_crush:
        title += " | IV crush assumed"
    ax.axhline(0, color="black", linewidth=1.0, linestyle="--")
    ax.set_title(title)
    ax.set_ylabel("ROI %")
    ax.set_xlabel("Scenario offset")
    if not df.empty and series_columns(df):
        ax.legend(loc="best")
    ax.grid(alpha=0.2)
    fig.tight_layout()

    file_path = out / file_name
    fig.savefig(file_path, dpi=140)
    plt.close(fig)
    return file_path
