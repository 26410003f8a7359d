"""
Road moai distances from the quarry vs a transport failure model
(Figures 11 and 12).

Figure 11: expected distribution of failed statues per km under the
transport failure hypothesis (most failures near the quarry).
Figure 12: observed distance distribution of road moai compared with a
failure density model:

    f(x) ∝ 0.6·Exp(x; 1.5) + 0.3·Gamma(x; 2, 0.8) + 0.1·Gamma(x - 2; 2, 0.3)·[x > 2]

normalised over the plotted range, with a one-sample Kolmogorov-Smirnov
test of the observed distances against the model CDF.
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
from scipy import integrate, stats

from .config import (
    DISTANCE_ZONES, FAILURE_MODEL, FAILURE_PROFILE, OBSERVED_PCT_WITHIN_2KM, OUTPUT_DIR,
)
from .synthetic import make_rng, quarry_distance_sample

HIST_BIN_KM = 0.5
CDF_GRID_POINTS = 2001


# ──────────────────────────────────────────────────────────────────
# Figure 11: expected profile
# ──────────────────────────────────────────────────────────────────
def expected_failure_profile(heights=FAILURE_PROFILE) -> pd.DataFrame:
    """Expected moai per 1 km bin, with the distance zone of each bin."""
    rows = []
    for i, h in enumerate(heights):
        rows.append({
            "bin_start_km": float(i),
            "bin_end_km": float(i + 1),
            "expected": float(h),
            "zone": zone_for_distance(i + 0.5),
        })
    return pd.DataFrame(rows)


def zone_for_distance(km: float) -> str:
    for label, (lo, hi) in DISTANCE_ZONES.items():
        if km >= lo and (hi is None or km < hi):
            return label
    return list(DISTANCE_ZONES)[-1]


def zone_shares(profile: pd.DataFrame) -> pd.DataFrame:
    """Share (%) of expected failures falling in each distance zone."""
    total = profile["expected"].sum()
    shares = profile.groupby("zone", sort=False)["expected"].sum() / total * 100
    return shares.rename("pct").reset_index()


def run_expected(observed_pct: float = OBSERVED_PCT_WITHIN_2KM) -> dict:
    profile = expected_failure_profile()
    return {
        "profile": profile,
        "zone_shares": zone_shares(profile),
        "observed_pct_within_2km": observed_pct,
    }


# ──────────────────────────────────────────────────────────────────
# Figure 12: observed distribution
# ──────────────────────────────────────────────────────────────────
def prepare_distances(df: pd.DataFrame) -> pd.Series:
    """Positive distances in km (from ``distance_km`` or ``distance_m``)."""
    if "distance_km" in df.columns:
        km = df["distance_km"].astype(float)
    else:
        km = df["distance_m"].astype(float) / 1000
    km = km.dropna()
    return km[km > 0].reset_index(drop=True).rename("distance_km")


def distance_summary(km: pd.Series) -> dict:
    n = len(km)
    if n == 0:
        return {"n": 0, "median_km": np.nan, "pct_within_2km": np.nan,
                "q1_km": np.nan, "q3_km": np.nan, "max_km": 0}
    q1, median, q3 = np.quantile(km, [0.25, 0.5, 0.75])
    return {
        "n": n,
        "median_km": float(median),
        "pct_within_2km": float((km <= 2).sum() / n * 100),
        "q1_km": float(q1),
        "q3_km": float(q3),
        "max_km": int(math.ceil(km.max())),
    }


def histogram_counts(km: pd.Series, max_km: int, bin_km: float = HIST_BIN_KM) -> pd.DataFrame:
    edges = np.arange(0, max_km + bin_km / 2, bin_km)
    if len(edges) < 2:
        edges = np.array([0, bin_km])
    counts, edges = np.histogram(km, bins=edges)
    return pd.DataFrame({"bin_start_km": edges[:-1], "bin_end_km": edges[1:], "count": counts})


def raw_failure_density(x) -> np.ndarray:
    """Unnormalised failure density mixture (early / middle / late failures)."""
    p = FAILURE_MODEL
    x = np.asarray(x, dtype=float)
    early = p["early_weight"] * stats.expon.pdf(x, scale=1 / p["early_rate"])
    middle = p["middle_weight"] * stats.gamma.pdf(x, a=p["middle_shape"], scale=1 / p["middle_rate"])
    shifted = x - p["late_offset_km"]
    late = p["late_weight"] * stats.gamma.pdf(shifted, a=p["late_shape"], scale=1 / p["late_rate"])
    return early + middle + np.where(shifted > 0, late, 0.0)


class FailureModel:
    """Failure density normalised to integrate to 1 over ``[0, max_km]``."""

    def __init__(self, max_km: float):
        self.max_km = float(max_km)
        offset = FAILURE_MODEL["late_offset_km"]
        points = [offset] if 0 < offset < self.max_km else None
        self.norm, _ = integrate.quad(raw_failure_density, 0, self.max_km, points=points)
        self._grid = np.linspace(0, self.max_km, CDF_GRID_POINTS)
        cum = integrate.cumulative_trapezoid(self.pdf(self._grid), self._grid, initial=0)
        self._cdf = cum / cum[-1]

    def pdf(self, x) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        inside = (x >= 0) & (x <= self.max_km)
        return np.where(inside, raw_failure_density(x) / self.norm, 0.0)

    def cdf(self, x) -> np.ndarray:
        return np.interp(x, self._grid, self._cdf, left=0.0, right=1.0)

    def median(self) -> float:
        return float(np.interp(0.5, self._cdf, self._grid))

    def pct_within(self, km: float) -> float:
        return float(self.cdf(km) * 100)

    def curve(self, n_points: int = 200) -> pd.DataFrame:
        x = np.linspace(0, self.max_km, n_points)
        return pd.DataFrame({"distance_km": x, "density": self.pdf(x)})


def compare_with_model(km: pd.Series, model: FailureModel) -> dict:
    """One-sample Kolmogorov-Smirnov test of observed distances vs the model."""
    if len(km) == 0:
        return {"ks_statistic": np.nan, "p_value": np.nan}
    result = stats.kstest(np.asarray(km, dtype=float), model.cdf)
    return {"ks_statistic": float(result.statistic), "p_value": float(result.pvalue)}


def run(
    df: Optional[pd.DataFrame] = None,
    rng: Optional[np.random.Generator] = None,
    output_dir: Path = OUTPUT_DIR,
) -> dict:
    """Observed distribution and model comparison; ``df=None`` uses sample data."""
    if df is None:
        df = quarry_distance_sample(rng if rng is not None else make_rng())
        source = "synthetic"
    else:
        source = "file"

    km = prepare_distances(df)
    summary = distance_summary(km)
    max_km = max(summary["max_km"], 1)
    model = FailureModel(max_km)

    model_stats = {
        "median_km": model.median(),
        "pct_within_2km": model.pct_within(2.0),
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    km.to_frame().to_csv(output_dir / "figure12_data.csv", index=False)

    return {
        "distances_km": km,
        "source": source,
        "summary": summary,
        "histogram": histogram_counts(km, max_km),
        "model": model,
        "model_curve": model.curve(),
        "model_stats": model_stats,
        "comparison": compare_with_model(km, model),
    }
