"""
Base-to-shoulder width ratio of ahu vs road moai (Figure 2).

Using Van Tilburg (1986) measurements:
- Locations 1-6 are ahu (moai on platforms), location 8 is roads
- Ratio = base width / shoulder width
- Welch's t-test between the two groups
"""
from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from scipy import stats

from .config import AHU_LOCATION_RANGE, ALPHA, MOAI_TYPES, OUTPUT_DIR, ROAD_LOCATION_CODE


def classify_location(code) -> str:
    """Map a Van Tilburg location code to Ahu / Road / Other."""
    if code is None or pd.isna(code):
        return "Other"
    lo, hi = AHU_LOCATION_RANGE
    if lo <= code <= hi:
        return "Ahu"
    if code == ROAD_LOCATION_CODE:
        return "Road"
    return "Other"


def prepare_ratio_data(df: pd.DataFrame) -> pd.DataFrame:
    """Compute ratio, classify and keep Ahu / Road rows with a present ratio."""
    out = df.copy()
    out["ratio"] = out["base_width"] / out["shoulder_width"]
    out = out[out["ratio"].notna() & out["location"].notna()]
    out = out[np.isfinite(out["ratio"].astype(float))]
    out["moai_type"] = out["location"].map(classify_location)
    out = out[out["moai_type"].isin(MOAI_TYPES)].copy()
    out["moai_type"] = pd.Categorical(out["moai_type"], categories=MOAI_TYPES)
    out["ratio"] = out["ratio"].astype(float)
    return out.reset_index(drop=True)


def welch_t_test(a, b) -> dict:
    """Welch's unequal-variance t-test with Welch-Satterthwaite df."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if len(a) < 2 or len(b) < 2:
        return {"t": np.nan, "df": np.nan, "p_value": np.nan}

    t_stat, p = stats.ttest_ind(a, b, equal_var=False)
    va, vb = a.var(ddof=1) / len(a), b.var(ddof=1) / len(b)
    denom = va ** 2 / (len(a) - 1) + vb ** 2 / (len(b) - 1)
    dof = (va + vb) ** 2 / denom if denom > 0 else np.nan
    return {"t": float(t_stat), "df": float(dof), "p_value": float(p)}


def group_summary(data: pd.DataFrame) -> pd.DataFrame:
    rows = []
    for moai_type in MOAI_TYPES:
        s = data.loc[data["moai_type"] == moai_type, "ratio"]
        rows.append({
            "moai_type": moai_type,
            "n": len(s),
            "mean": s.mean() if len(s) else np.nan,
            "sd": s.std() if len(s) > 1 else np.nan,
            "median": s.median() if len(s) else np.nan,
        })
    return pd.DataFrame(rows)


def run(df: pd.DataFrame, output_dir: Path = OUTPUT_DIR) -> dict:
    """Run the ratio comparison and export the data used."""
    data = prepare_ratio_data(df)
    summary = group_summary(data)
    test = welch_t_test(
        data.loc[data["moai_type"] == "Ahu", "ratio"],
        data.loc[data["moai_type"] == "Road", "ratio"],
    )
    test["significant"] = bool(test["p_value"] < ALPHA) if not np.isnan(test["p_value"]) else False

    output_dir.mkdir(parents=True, exist_ok=True)
    data[["moai_type", "base_width", "shoulder_width", "ratio"]].to_csv(
        output_dir / "Figure_2_data.csv", index=False)

    return {"data": data, "summary": summary, "welch": test}
