"""Tests for config.py"""
import pytest

from moai_analysis import config


def test_paths():
    assert config.DATA_DIR == config.ROOT / "data"
    assert config.OUTPUT_DIR == config.ROOT / "figures"


def test_matching_configuration():
    assert config.MATCH_THRESHOLD_M == 100.0
    assert config.EARTH_RADIUS_M == 6_378_137.0
    assert set(config.MATCH_LOCATION_TYPES) == {"ROAD", "ISOLATED"}


def test_sentinels_are_lowercase():
    assert config.MISSING_SENTINELS == {"missing", "n/a", "na", ""}
    assert all(s == s.strip().lower() for s in config.MISSING_SENTINELS)


def test_location_coding():
    lo, hi = config.AHU_LOCATION_RANGE
    assert (lo, hi) == (1, 6)
    assert not lo <= config.ROAD_LOCATION_CODE <= hi


def test_phases_and_zones():
    assert len(config.PHASE_BINS) == len(config.PHASE_LABELS) + 1
    assert config.PHASE_BINS == sorted(config.PHASE_BINS)
    assert len(config.DISTANCE_ZONES) == 3
    assert len(config.FAILURE_PROFILE) == 12


def test_failure_model_weights():
    m = config.FAILURE_MODEL
    assert m["early_weight"] + m["middle_weight"] + m["late_weight"] == pytest.approx(1.0)


def test_export_settings():
    assert config.PRINT_DPI == 600
    assert config.PREVIEW_DPI == 150
    assert 0 < config.ALPHA < 1
