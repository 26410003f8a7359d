"""Pytest configuration and shared fixtures."""
import numpy as np
import pandas as pd
import pytest

from moai_analysis.geo_matcher import CandidateRecord

# Approximately the Rano Raraku quarry
RANO_RARAKU = (-27.1127, -109.3497)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def rano_raraku():
    return RANO_RARAKU


@pytest.fixture
def scenario_candidates():
    """One statue about 45 m from the quarry point, one several km away."""
    return (
        CandidateRecord(1, -27.1130, -109.3500, "ROAD", 650.0, 190.0, 120.0),
        CandidateRecord(2, -27.2000, -109.4000, "ISOLATED", 540.0, 160.0, 100.0),
    )


@pytest.fixture
def public_db():
    """Public database rows as returned by ``load_public_database``."""
    return pd.DataFrame({
        "object_id": [30, 10, 20, 40],
        "location_type": pd.array(["ISOLATED", "ROAD", "AHU", "ROAD"], dtype="string"),
        "latitude": pd.array([-27.2000, -27.1130, -27.1131, -27.1500], dtype="Float64"),
        "longitude": pd.array([-109.4000, -109.3500, -109.3501, -109.3000], dtype="Float64"),
        "total_length_cm": pd.array([540.0, 650.0, 900.0, None], dtype="Float64"),
        "base_width_cm": pd.array([160.0, 190.0, 300.0, 150.0], dtype="Float64"),
        "face_width_cm": pd.array([100.0, 120.0, 200.0, None], dtype="Float64"),
    })


@pytest.fixture
def road_moai():
    """Road moai survey rows as returned by ``load_road_moai``."""
    return pd.DataFrame({
        "latitude": pd.array([-27.1127, -27.1501, -26.0, None, 91.0], dtype="Float64"),
        "longitude": pd.array([-109.3497, -109.3001, -109.0, -109.3, -109.3], dtype="Float64"),
        "base_angle_1": pd.array([10.0, 8.0, 12.0, 9.0, 9.0], dtype="Float64"),
        "base_angle_2": pd.array([12.0, None, 11.0, 9.0, 9.0], dtype="Float64"),
        "base_angle_3": pd.array([11.0, 10.0, None, 9.0, 9.0], dtype="Float64"),
    })


@pytest.fixture
def van_tilburg(rng):
    """Van Tilburg style measurements: ahu statues wider at the shoulders."""
    n_ahu, n_road = 40, 20
    shoulder = np.concatenate([rng.normal(200, 20, n_ahu), rng.normal(180, 20, n_road)])
    ratio = np.concatenate([rng.normal(0.85, 0.05, n_ahu), rng.normal(1.05, 0.05, n_road)])
    location = np.concatenate([rng.integers(1, 7, n_ahu), np.full(n_road, 8)])
    df = pd.DataFrame({
        "base_width": shoulder * ratio,
        "shoulder_width": shoulder,
        "location": location.astype(float),
    })
    # A location outside both groups and a row with an absent width
    extra = pd.DataFrame({
        "base_width": [150.0, None],
        "shoulder_width": [160.0, 170.0],
        "location": [7.0, 2.0],
    })
    return pd.concat([df, extra], ignore_index=True).astype("Float64")
