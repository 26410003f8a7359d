"""
Geographic nearest-candidate matching.

Links each road moai from the field survey to the nearest statue of the
public moai database (ROAD / ISOLATED location types) within 100 m, and
copies the database's size measurements onto the survey row.

The search is a linear scan over the candidates. Record sets are tens to
low hundreds of statues, so no spatial index is used.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from functools import partial
from typing import Any, Iterable, Optional, Sequence

import pandas as pd

from .config import (
    EARTH_RADIUS_M, LAT_BOUNDS, LON_BOUNDS, MATCH_THRESHOLD_M, SIZE_COLS,
)
from .measurements import normalize_measurement

logger = logging.getLogger(__name__)

MATCH_COLUMNS = [
    "matched", "match_distance", "public_objectid", "location_type", *SIZE_COLS,
]


@dataclass(frozen=True)
class CandidateRecord:
    """A statue of the reference database."""
    object_id: Any
    latitude: Optional[float]
    longitude: Optional[float]
    location_type: Optional[str]
    total_length_cm: Optional[float] = None
    base_width_cm: Optional[float] = None
    face_width_cm: Optional[float] = None

    @property
    def coordinate(self) -> tuple:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class MatchResult:
    """The nearest candidate within the threshold, with fused attributes."""
    object_id: Any
    distance_m: float
    location_type: Optional[str]
    total_length_cm: Optional[float] = None
    base_width_cm: Optional[float] = None
    face_width_cm: Optional[float] = None
    matched: bool = True

    @classmethod
    def from_candidate(cls, candidate: CandidateRecord, distance_m: float) -> "MatchResult":
        return cls(
            object_id=candidate.object_id,
            distance_m=distance_m,
            location_type=candidate.location_type,
            total_length_cm=candidate.total_length_cm,
            base_width_cm=candidate.base_width_cm,
            face_width_cm=candidate.face_width_cm,
        )

    def to_row(self) -> dict:
        row = asdict(self)
        return {
            "matched": self.matched,
            "match_distance": row["distance_m"],
            "public_objectid": row["object_id"],
            "location_type": row["location_type"],
            **{col: row[col] for col in SIZE_COLS},
        }


def _unmatched_row() -> dict:
    return {"matched": False, **{col: None for col in MATCH_COLUMNS[1:]}}


# ──────────────────────────────────────────────────────────────────
# Distance
# ──────────────────────────────────────────────────────────────────
def _coerce_point(point) -> Optional[tuple[float, float]]:
    """Return ``(lat, lon)`` as floats, or None if missing / out of bounds."""
    if point is None:
        return None
    lat, lon = point
    lat = normalize_measurement(lat)
    lon = normalize_measurement(lon)
    if lat is None or lon is None:
        return None
    if not (LAT_BOUNDS[0] <= lat <= LAT_BOUNDS[1]):
        return None
    if not (LON_BOUNDS[0] <= lon <= LON_BOUNDS[1]):
        return None
    return lat, lon


def is_valid_coordinate(latitude, longitude) -> bool:
    return _coerce_point((latitude, longitude)) is not None


def distance(point_a, point_b) -> Optional[float]:
    """Haversine great-circle distance in meters between two (lat, lon) points.

    Returns None when either point is missing or outside the valid
    latitude / longitude range. Differences are taken as absolute values so
    that ``distance(a, b) == distance(b, a)`` holds exactly.
    """
    a = _coerce_point(point_a)
    b = _coerce_point(point_b)
    if a is None or b is None:
        return None

    phi1, phi2 = math.radians(a[0]), math.radians(b[0])
    dphi = abs(phi2 - phi1)
    dlmb = abs(math.radians(b[1]) - math.radians(a[1]))
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def haversine_distance(lat1, lon1, lat2, lon2) -> Optional[float]:
    return distance((lat1, lon1), (lat2, lon2))


# ──────────────────────────────────────────────────────────────────
# Matching
# ──────────────────────────────────────────────────────────────────
def find_nearest_match(
    target,
    candidates: Iterable[CandidateRecord],
    threshold_m: float = MATCH_THRESHOLD_M,
) -> Optional[MatchResult]:
    """Nearest candidate to ``target`` within ``threshold_m`` (inclusive).

    Candidates with invalid coordinates are skipped. On equal distances the
    first candidate in iteration order wins. Returns None for an invalid
    target, an empty / all-invalid candidate set, or a nearest distance
    beyond the threshold.
    """
    if _coerce_point(target) is None:
        return None

    best, best_d = None, None
    for candidate in candidates:
        d = distance(target, candidate.coordinate)
        if d is None:
            continue
        if best_d is None or d < best_d:
            best, best_d = candidate, d

    if best is None or best_d > threshold_m:
        return None
    return MatchResult.from_candidate(best, best_d)


def candidates_from_frame(
    df: pd.DataFrame,
    location_types: Optional[Sequence[str]] = None,
) -> tuple[CandidateRecord, ...]:
    """Build an immutable candidate set from the public database table.

    Rows are ordered stably by ``object_id`` so that tie-breaks between
    equidistant candidates do not depend on the spreadsheet's row order.
    """
    sub = df
    if location_types is not None:
        sub = sub[sub["location_type"].isin(list(location_types))]
    sub = sub.sort_values("object_id", kind="mergesort", na_position="last")

    records = []
    for row in sub.itertuples(index=False):
        records.append(CandidateRecord(
            object_id=row.object_id,
            latitude=normalize_measurement(row.latitude),
            longitude=normalize_measurement(row.longitude),
            location_type=None if pd.isna(row.location_type) else str(row.location_type),
            **{col: normalize_measurement(getattr(row, col, None)) for col in SIZE_COLS},
        ))
    return tuple(records)


def match_records(
    primary: pd.DataFrame,
    candidates: Sequence[CandidateRecord],
    threshold_m: float = MATCH_THRESHOLD_M,
    max_workers: Optional[int] = None,
) -> pd.DataFrame:
    """Fuse the nearest-candidate attributes onto every primary row.

    Returns a copy of ``primary`` (same rows, same order) with the columns
    in ``MATCH_COLUMNS``. Unmatched rows get ``matched=False`` and absent
    values. With ``max_workers > 1`` rows are matched on a thread pool; the
    candidate tuple is only read.
    """
    candidates = tuple(candidates)
    targets = list(zip(primary["latitude"], primary["longitude"]))
    match = partial(find_nearest_match, candidates=candidates, threshold_m=threshold_m)

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(match, targets))
    else:
        results = [match(t) for t in targets]

    rows = [r.to_row() if r is not None else _unmatched_row() for r in results]
    fused = pd.DataFrame(rows, index=primary.index, columns=MATCH_COLUMNS)

    out = primary.copy()
    out["matched"] = fused["matched"].astype(bool)
    out["match_distance"] = fused["match_distance"].astype("Float64")
    out["public_objectid"] = fused["public_objectid"]
    out["location_type"] = fused["location_type"]
    for col in SIZE_COLS:
        out[col] = fused[col].astype("Float64")

    n_matched = int(out["matched"].sum())
    logger.info(
        "Matched %d/%d records to %d candidates within %.0f m",
        n_matched, len(out), len(candidates), threshold_m,
    )
    return out
