"""
Measurement normalisation.

Spreadsheet cells for statue dimensions mix numbers with free text such as
"Missing" or "N/A". Absent values are represented explicitly: ``None`` for
scalars and ``pd.NA`` in nullable ``Float64`` columns, so they are skipped by
aggregates instead of silently propagating like NaN.
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from .config import MISSING_SENTINELS

logger = logging.getLogger(__name__)


def _is_missing_scalar(raw: Any) -> bool:
    if raw is None or raw is pd.NA or raw is pd.NaT:
        return True
    return isinstance(raw, float) and math.isnan(raw)


def normalize_measurement(raw: Any) -> Optional[float]:
    """Convert a raw cell value to a float, or ``None`` when absent.

    Text is trimmed and lower-cased; known sentinels ("missing", "n/a",
    "na", "") are absent, anything else that does not parse as a finite
    number is absent too. Negative and fractional values pass through
    unchanged, range checks are left to the caller.
    """
    if _is_missing_scalar(raw) or isinstance(raw, bool):
        return None

    if isinstance(raw, numbers.Real):
        value = float(raw)
        return value if math.isfinite(value) else None

    text = str(raw).strip().lower()
    if text in MISSING_SENTINELS:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def is_unparsable(raw: Any) -> bool:
    """True for values that are neither absent markers nor numbers."""
    if _is_missing_scalar(raw):
        return False
    if isinstance(raw, str) and raw.strip().lower() in MISSING_SENTINELS:
        return False
    return normalize_measurement(raw) is None


def normalize_series(series: pd.Series) -> pd.Series:
    """Normalise a column into the nullable ``Float64`` dtype."""
    values = [normalize_measurement(v) for v in series]
    n_bad = sum(1 for v in series if is_unparsable(v))
    if n_bad:
        logger.warning(
            "Column %r: %d value(s) could not be parsed as numbers and are treated as absent",
            series.name, n_bad,
        )
    return pd.Series(values, index=series.index, name=series.name, dtype="Float64")


def present_values(values: Iterable[Any]) -> list[float]:
    """Return the present (non-absent) values as floats, in order."""
    out = []
    for v in values:
        value = normalize_measurement(v)
        if value is not None:
            out.append(value)
    return out


def summarize_present(values: Iterable[Any]) -> dict:
    """Descriptive statistics over present values only.

    Absent values are counted in ``n_absent`` and never contribute to the
    mean or standard deviation (sample SD, ddof=1).
    """
    values = list(values)
    present = present_values(values)
    n = len(present)
    arr = np.asarray(present, dtype=float)
    return {
        "n": n,
        "n_absent": len(values) - n,
        "mean": float(arr.mean()) if n else None,
        "sd": float(arr.std(ddof=1)) if n > 1 else None,
        "median": float(np.median(arr)) if n else None,
        "min": float(arr.min()) if n else None,
        "max": float(arr.max()) if n else None,
    }


def mean_base_angle(angles: Iterable[Any]) -> Optional[float]:
    """Mean of the present base-angle readings of one statue."""
    return summarize_present(angles)["mean"]


def base_angle_sd(angles: Iterable[Any]) -> Optional[float]:
    """SD of the present base-angle readings (needs at least two)."""
    return summarize_present(angles)["sd"]
