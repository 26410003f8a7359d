"""
Centre-of-mass distribution of road moai (Figure 3).

Road moai from the field survey are matched to the public database
(ROAD / ISOLATED statues within 100 m) to obtain their length and base
width, from which a sectional CoM position is estimated:

    com = 0.42 - 0.08 * (base width / height)  [+ 0.02 * shoulder/base taper]
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .config import (
    BASE_ANGLE_COLS, COM_BASE, COM_TAPER_COEF, COM_WIDTH_COEF,
    MATCH_LOCATION_TYPES, MATCH_THRESHOLD_M, OUTPUT_DIR,
)
from .geo_matcher import candidates_from_frame, is_valid_coordinate, match_records
from .measurements import base_angle_sd, mean_base_angle, normalize_measurement
from .synthetic import com_measurement_noise, make_rng


def estimate_com_position(height_cm, base_width_cm, shoulder_width_cm=None) -> Optional[float]:
    """CoM height as a fraction of statue height; wider statues sit lower."""
    height = normalize_measurement(height_cm)
    base = normalize_measurement(base_width_cm)
    if height is None or base is None or height <= 0 or base <= 0:
        return None

    com = COM_BASE - COM_WIDTH_COEF * (base / height)

    shoulder = normalize_measurement(shoulder_width_cm)
    if shoulder is not None and shoulder > 0:
        com += COM_TAPER_COEF * (shoulder / base)
    return com


def add_base_angle_stats(df: pd.DataFrame) -> pd.DataFrame:
    """Per-statue mean and SD of the present base-angle readings."""
    out = df.copy()
    angles = out[BASE_ANGLE_COLS].to_numpy(dtype=object)
    out["mean_base_angle"] = pd.array([mean_base_angle(a) for a in angles], dtype="Float64")
    out["base_angle_sd"] = pd.array([base_angle_sd(a) for a in angles], dtype="Float64")
    return out


def valid_coordinate_rows(df: pd.DataFrame) -> pd.DataFrame:
    mask = [is_valid_coordinate(lat, lon) for lat, lon in zip(df["latitude"], df["longitude"])]
    return df[np.asarray(mask, dtype=bool)].reset_index(drop=True)


def match_road_moai(
    road_df: pd.DataFrame,
    public_df: pd.DataFrame,
    threshold_m: float = MATCH_THRESHOLD_M,
    max_workers: Optional[int] = None,
) -> pd.DataFrame:
    """Road moai with valid coordinates, base-angle stats and fused DB sizes."""
    candidates = candidates_from_frame(public_df, MATCH_LOCATION_TYPES)
    valid = add_base_angle_stats(valid_coordinate_rows(road_df))
    return match_records(valid, candidates, threshold_m=threshold_m, max_workers=max_workers)


def compute_com_table(matched: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
    """Estimate CoM for matched statues with complete length / width / angle."""
    keep = (
        matched["mean_base_angle"].notna()
        & matched["base_width_cm"].notna()
        & matched["total_length_cm"].notna()
    )
    data = matched[keep].copy()
    data = data[(data["total_length_cm"] > 0) & (data["base_width_cm"] > 0)]

    shoulder = data["shoulder_width_cm"] if "shoulder_width_cm" in data.columns else [None] * len(data)
    com = [
        estimate_com_position(h, b, s)
        for h, b, s in zip(data["total_length_cm"], data["base_width_cm"], shoulder)
    ]
    noise = com_measurement_noise(rng, len(data))
    data["height_m"] = data["total_length_cm"].astype(float) / 100
    data["com_position"] = [
        c + e if c is not None else np.nan for c, e in zip(com, noise)
    ]
    finite = np.asarray([math.isfinite(v) for v in data["com_position"]], dtype=bool)
    data = data[finite]
    return data.reset_index(drop=True)


def summarize_com(data: pd.DataFrame) -> dict:
    s = data["com_position"].astype(float)
    n = len(s)
    return {
        "n": n,
        "mean": s.mean() if n else np.nan,
        "median": s.median() if n else np.nan,
        "sd": s.std() if n > 1 else np.nan,
        "min": s.min() if n else np.nan,
        "max": s.max() if n else np.nan,
        "range": (s.max() - s.min()) if n else np.nan,
    }


def run(
    road_df: pd.DataFrame,
    public_df: pd.DataFrame,
    rng: Optional[np.random.Generator] = None,
    threshold_m: float = MATCH_THRESHOLD_M,
    max_workers: Optional[int] = None,
    output_dir: Path = OUTPUT_DIR,
) -> dict:
    """Match, estimate CoM and export the data used for Figure 3."""
    rng = rng if rng is not None else make_rng()
    matched = match_road_moai(road_df, public_df, threshold_m, max_workers)
    data = compute_com_table(matched, rng)
    summary = summarize_com(data)

    match_stats = {
        "n_road_moai": len(road_df),
        "n_valid_coordinates": len(matched),
        "n_matched": int(matched["matched"].sum()),
        "median_match_distance_m": (
            float(matched["match_distance"].median()) if matched["matched"].any() else np.nan
        ),
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    data[["height_m", "com_position", "total_length_cm", "base_width_cm"]].to_csv(
        output_dir / "figure3_com_data.csv", index=False)
    matched.to_csv(output_dir / "figure3_matched_moai.csv", index=False)

    return {"matched": matched, "data": data, "summary": summary, "match_stats": match_stats}
