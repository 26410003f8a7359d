"""
Data loading for the moai spreadsheets.

Structural problems (missing file, unsupported format, missing columns,
empty table) raise here, before any record reaches the analyses. Cell-level
data quality problems do not raise: measurement columns are normalised to
nullable floats with absent values.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pandas as pd

from . import config
from .measurements import normalize_series

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xls"}


class DataLoadError(ValueError):
    """Raised when an input table is structurally unusable."""


def read_table(path: Path | str) -> pd.DataFrame:
    """Read an Excel workbook (first sheet) or a CSV file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        df = pd.read_excel(path)
    elif suffix == ".csv":
        df = pd.read_csv(path)
    else:
        raise ValueError(f"Unsupported input format {suffix!r} for {path.name}")

    if df.empty:
        raise DataLoadError(f"{path.name} contains no rows")
    logger.info("Loaded %s: %d rows x %d columns", path.name, *df.shape)
    return df


def require_columns(df: pd.DataFrame, columns: Iterable[str], source: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(
            f"{source} is missing required column(s) {missing}; "
            f"available: {sorted(map(str, df.columns))}"
        )


def _normalize_columns(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    out = df.copy()
    for col in columns:
        if col in out.columns:
            out[col] = normalize_series(out[col])
    return out


def load_van_tilburg(path: Path | str) -> pd.DataFrame:
    """Van Tilburg (1986) measurements: base width, shoulder width, location code."""
    df = read_table(path)
    require_columns(df, ["Width:Base", "Width:Shoulders", "Location"], Path(path).name)
    df = df.rename(columns={
        "Width:Base": "base_width",
        "Width:Shoulders": "shoulder_width",
        "Location": "location",
    })
    return _normalize_columns(df, ["base_width", "shoulder_width", "location"])


def load_road_moai(path: Path | str) -> pd.DataFrame:
    """Field survey of road moai: coordinates and three base-angle readings."""
    df = read_table(path)
    source_angles = ["base angle 1", "base angle 2", "base angle 3"]
    require_columns(df, ["latitude", "longitude", *source_angles], Path(path).name)
    df = df.rename(columns=dict(zip(source_angles, config.BASE_ANGLE_COLS)))
    optional = [c for c in ("shoulder_width_cm",) if c in df.columns]
    return _normalize_columns(
        df, ["latitude", "longitude", *config.BASE_ANGLE_COLS, *optional])


def load_public_database(path: Path | str) -> pd.DataFrame:
    """Public moai database: identifier, location type, coordinates, sizes."""
    df = read_table(path)
    require_columns(
        df,
        ["OBJECTID", "LOCATION_TYPE", "latitude", "longitude", *config.PUBLIC_SIZE_COLUMNS],
        Path(path).name,
    )
    df = df.rename(columns={
        "OBJECTID": "object_id",
        "LOCATION_TYPE": "location_type",
        **config.PUBLIC_SIZE_COLUMNS,
    })
    df["location_type"] = df["location_type"].astype("string").str.strip()
    return _normalize_columns(df, ["latitude", "longitude", *config.SIZE_COLS])


def load_quarry_distances(path: Path | str) -> pd.DataFrame:
    """Distance from the quarry (meters) with optional statue length.

    Accepts both ``Distance from Quarry`` and R's mangled
    ``Distance.from.Quarry`` header. Returns ``distance_m`` and, when present,
    ``size_cm`` as nullable floats.
    """
    df = read_table(path)
    df = df.rename(columns={
        "Distance.from.Quarry": "distance_m",
        "Distance from Quarry": "distance_m",
        "TOTAL_LENGTH_cm": "size_cm",
    })
    require_columns(df, ["distance_m"], Path(path).name)
    return _normalize_columns(df, ["distance_m", "size_cm"])


def load_angle_size_table(path: Path | str) -> pd.DataFrame:
    """Intact road moai with mean base angle, length, width and final position."""
    df = read_table(path)
    require_columns(
        df, ["mean_base_angle", "total_length_cm", "base_width_cm"], Path(path).name)
    df = _normalize_columns(
        df, ["mean_base_angle", "total_length_cm", "base_width_cm", "size_metric"])
    if "Position" not in df.columns:
        df["Position"] = pd.NA
    df = df.rename(columns={"Position": "position"})
    return df
