"""
Base angle vs size metric for intact road moai (Figure 5).

Checks whether base angles stay within a narrow band (about 5-14 degrees)
regardless of statue size (length x base width).
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from .config import OUTPUT_DIR
from .regression import fit_linear_trend
from .synthetic import angle_size_sample, make_rng

MIN_SIZE_METRIC = 100


def prepare_angle_size(df: pd.DataFrame) -> pd.DataFrame:
    """Add ``size_metric`` when missing and keep plottable rows."""
    out = df.copy()
    if "size_metric" not in out.columns or out["size_metric"].isna().all():
        out["size_metric"] = out["total_length_cm"] * out["base_width_cm"]
    if "position" not in out.columns:
        out["position"] = None
    out = out[out["size_metric"].notna() & (out["size_metric"] > MIN_SIZE_METRIC)]
    return out.reset_index(drop=True)


def pearson_complete(x, y) -> dict:
    """Pearson r over complete pairs (R's use = "complete.obs")."""
    frame = pd.DataFrame({"x": x, "y": y}).astype(float).dropna()
    if len(frame) < 3:
        return {"r": np.nan, "p_value": np.nan, "n": len(frame)}
    r, p = stats.pearsonr(frame["x"], frame["y"])
    return {"r": float(r), "p_value": float(p), "n": len(frame)}


def angle_size_summary(data: pd.DataFrame) -> dict:
    angle = data["mean_base_angle"].astype(float)
    size = data["size_metric"].astype(float)
    min_size, max_size = size.min(), size.max()
    return {
        "n": len(data),
        "angle_min": angle.min(),
        "angle_max": angle.max(),
        "size_min": min_size,
        "size_max": max_size,
        "size_fold_variation": max_size / min_size if min_size > 0 else np.nan,
    }


def position_breakdown(data: pd.DataFrame) -> pd.DataFrame:
    counts = data["position"].fillna("unknown").value_counts()
    return counts.rename_axis("position").reset_index(name="n")


def run(
    df: Optional[pd.DataFrame] = None,
    rng: Optional[np.random.Generator] = None,
    output_dir: Path = OUTPUT_DIR,
) -> dict:
    """Run the base angle vs size analysis; ``df=None`` uses the sample data."""
    if df is None:
        df = angle_size_sample(rng if rng is not None else make_rng())
        source = "synthetic"
    else:
        source = "file"

    data = prepare_angle_size(df)
    correlation = pearson_complete(data["mean_base_angle"], data["size_metric"])
    trend = fit_linear_trend(data["mean_base_angle"], data["size_metric"])

    output_dir.mkdir(parents=True, exist_ok=True)
    data.to_csv(output_dir / "figure5_data.csv", index=False)

    return {
        "data": data,
        "source": source,
        "correlation": correlation,
        "trend": trend,
        "summary": angle_size_summary(data),
        "positions": position_breakdown(data),
    }
