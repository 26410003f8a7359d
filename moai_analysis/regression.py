"""Ordinary least-squares trend lines with confidence bands."""
from __future__ import annotations

import numpy as np
import pandas as pd
import statsmodels.api as sm

from .config import ALPHA


def fit_linear_trend(x, y, n_points: int = 100, alpha: float = ALPHA) -> dict:
    """Fit ``y ~ x`` and predict the mean with a (1 - alpha) confidence band.

    Returns slope, intercept, r_squared, slope p-value and a ``band``
    DataFrame (x, fit, lower, upper) over ``n_points`` evenly spaced x
    values. Fewer than three complete pairs gives NaN coefficients and an
    empty band.
    """
    frame = pd.DataFrame({"x": x, "y": y}).astype(float).dropna()
    if len(frame) < 3 or frame["x"].nunique() < 2:
        return {
            "slope": np.nan, "intercept": np.nan, "r_squared": np.nan,
            "p_value": np.nan, "n": len(frame),
            "band": pd.DataFrame(columns=["x", "fit", "lower", "upper"]),
        }

    model = sm.OLS(frame["y"], sm.add_constant(frame["x"])).fit()
    grid = np.linspace(frame["x"].min(), frame["x"].max(), n_points)
    pred = model.get_prediction(sm.add_constant(grid, has_constant="add"))
    ci = pred.summary_frame(alpha=alpha)

    return {
        "slope": float(model.params["x"]),
        "intercept": float(model.params["const"]),
        "r_squared": float(model.rsquared),
        "p_value": float(model.pvalues["x"]),
        "n": len(frame),
        "band": pd.DataFrame({
            "x": grid,
            "fit": ci["mean"].to_numpy(),
            "lower": ci["mean_ci_lower"].to_numpy(),
            "upper": ci["mean_ci_upper"].to_numpy(),
        }),
    }
