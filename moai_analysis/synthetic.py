"""
Illustrative sample datasets.

Used when an analysis is run without its input file. Every generator draws
from the ``numpy.random.Generator`` it is given; nothing touches global
random state.
"""
from __future__ import annotations

import numpy as np
import pandas as pd

from .config import COM_NOISE_SD, SEED


def make_rng(seed: int | None = SEED) -> np.random.Generator:
    return np.random.default_rng(seed)


def angle_size_sample(rng: np.random.Generator, n: int = 13) -> pd.DataFrame:
    """Intact road moai: base angle, length, base width and final position."""
    df = pd.DataFrame({
        "mean_base_angle": rng.uniform(5.2, 13.9, n),
        "total_length_cm": rng.normal(600, 150, n),
        "base_width_cm": rng.normal(180, 40, n),
        "position": rng.choice(["prone", "supine", None], size=n, p=[0.6, 0.3, 0.1]),
    })
    df["size_metric"] = df["total_length_cm"] * df["base_width_cm"]
    keep = (df["size_metric"] > 100) & (df["total_length_cm"] > 0) & (df["base_width_cm"] > 0)
    return df[keep].reset_index(drop=True)


def quarry_distance_sample(rng: np.random.Generator) -> pd.DataFrame:
    """62 road moai distances (km): heavy concentration within 2 km."""
    distances = np.concatenate([
        rng.exponential(scale=1 / 1.5, size=32),
        rng.uniform(2, 4, 15),
        rng.uniform(4, 12, 15),
    ])
    return pd.DataFrame({"distance_km": np.clip(distances, 0.1, 12)})


def size_distance_sample(rng: np.random.Generator) -> pd.DataFrame:
    """38 road moai with length (cm) decreasing slightly with distance (km)."""
    phases = [
        # (n, mean size, sd size, min km, max km)
        (16, 634, 150, 0, 2),
        (12, 611, 140, 2, 4),
        (10, 569, 130, 4, 8),
    ]
    sizes, distances = [], []
    for n, mean, sd, lo, hi in phases:
        sizes.append(rng.normal(mean, sd, n))
        distances.append(rng.uniform(lo, hi, n))

    df = pd.DataFrame({
        "distance_km": np.concatenate(distances),
        "size_cm": np.concatenate(sizes),
    })
    small = df["size_cm"] < 200
    df.loc[small, "size_cm"] = 200 + np.abs(rng.normal(0, 50, int(small.sum())))
    return df


def com_measurement_noise(rng: np.random.Generator, n: int, sd: float = COM_NOISE_SD) -> np.ndarray:
    """Measurement uncertainty added to CoM estimates (fraction of height)."""
    return rng.normal(0, sd, n)
