"""Tests for the per-figure analysis modules."""
import numpy as np
import pandas as pd
import pytest
from scipy import integrate, stats

from moai_analysis import (
    angle_size, center_of_mass, ratio_analysis, regression, size_distance, synthetic,
    transport_failure,
)
from moai_analysis.config import FAILURE_PROFILE, PHASE_LABELS


# ── Fixtures ───────────────────────────────────────────────────────

@pytest.fixture
def size_df(rng):
    return pd.DataFrame({
        "distance_m": rng.uniform(100, 9000, 50),
        "size_cm": np.where(rng.random(50) < 0.1, "Missing", rng.normal(600, 120, 50).round(1)),
    })


# ── Synthetic samples ──────────────────────────────────────────────

class TestSynthetic:
    def test_same_seed_same_sample(self):
        a = synthetic.quarry_distance_sample(synthetic.make_rng(7))
        b = synthetic.quarry_distance_sample(synthetic.make_rng(7))
        pd.testing.assert_frame_equal(a, b)

    def test_distance_sample_bounds(self, rng):
        km = synthetic.quarry_distance_sample(rng)["distance_km"]
        assert len(km) == 62
        assert km.between(0.1, 12).all()

    def test_size_sample_floor(self, rng):
        df = synthetic.size_distance_sample(rng)
        assert len(df) == 38
        assert (df["size_cm"] >= 200).all()
        assert df["distance_km"].between(0, 8).all()

    def test_angle_sample(self, rng):
        df = synthetic.angle_size_sample(rng)
        assert df["mean_base_angle"].between(5.2, 13.9).all()
        assert (df["size_metric"] > 100).all()

    def test_com_noise_scale(self, rng):
        noise = synthetic.com_measurement_noise(rng, 5000)
        assert noise.std() == pytest.approx(0.005, rel=0.1)


# ── Figure 2 ───────────────────────────────────────────────────────

class TestRatioAnalysis:
    @pytest.mark.parametrize("code, expected", [
        (1, "Ahu"), (6, "Ahu"), (3.0, "Ahu"), (8, "Road"), (7, "Other"), (0, "Other"),
        (None, "Other"), (pd.NA, "Other"),
    ])
    def test_classify_location(self, code, expected):
        assert ratio_analysis.classify_location(code) == expected

    def test_prepare_drops_other_and_absent(self, van_tilburg):
        data = ratio_analysis.prepare_ratio_data(van_tilburg)
        assert len(data) == 60
        assert set(data["moai_type"]) == {"Ahu", "Road"}

    def test_welch_matches_scipy(self, rng):
        a, b = rng.normal(0.85, 0.05, 30), rng.normal(1.0, 0.1, 15)
        result = ratio_analysis.welch_t_test(a, b)
        expected = stats.ttest_ind(a, b, equal_var=False)
        assert result["t"] == pytest.approx(expected.statistic)
        assert result["p_value"] == pytest.approx(expected.pvalue)
        assert 14 <= result["df"] <= 43

    def test_welch_too_few(self):
        result = ratio_analysis.welch_t_test([1.0], [1.0, 2.0])
        assert np.isnan(result["t"]) and np.isnan(result["p_value"])

    def test_run(self, van_tilburg, tmp_path):
        result = ratio_analysis.run(van_tilburg, output_dir=tmp_path)
        assert result["welch"]["significant"]
        assert result["welch"]["t"] < 0
        summary = result["summary"].set_index("moai_type")
        assert summary.loc["Ahu", "n"] == 40
        assert summary.loc["Road", "mean"] > summary.loc["Ahu", "mean"]
        assert (tmp_path / "Figure_2_data.csv").exists()


# ── Figure 3 ───────────────────────────────────────────────────────

class TestCenterOfMass:
    def test_estimate_formula(self):
        assert center_of_mass.estimate_com_position(600, 180) == pytest.approx(0.42 - 0.08 * 0.3)

    def test_estimate_with_shoulder(self):
        com = center_of_mass.estimate_com_position(600, 180, 200)
        assert com == pytest.approx(0.42 - 0.08 * 0.3 + 0.02 * 200 / 180)

    @pytest.mark.parametrize("height, width", [
        (None, 180), (600, "Missing"), (0, 180), (600, -5), (pd.NA, 180),
    ])
    def test_estimate_absent(self, height, width):
        assert center_of_mass.estimate_com_position(height, width) is None

    def test_wider_statues_sit_lower(self):
        narrow = center_of_mass.estimate_com_position(600, 150)
        wide = center_of_mass.estimate_com_position(600, 250)
        assert wide < narrow

    def test_base_angle_stats(self, road_moai):
        out = center_of_mass.add_base_angle_stats(road_moai)
        assert out.loc[0, "mean_base_angle"] == pytest.approx(11.0)
        assert out.loc[1, "mean_base_angle"] == pytest.approx(9.0)
        assert out.loc[0, "base_angle_sd"] == pytest.approx(1.0)

    def test_valid_coordinate_rows(self, road_moai):
        assert len(center_of_mass.valid_coordinate_rows(road_moai)) == 3

    def test_run(self, road_moai, public_db, tmp_path, rng):
        result = center_of_mass.run(road_moai, public_db, rng=rng, output_dir=tmp_path)
        stats_ = result["match_stats"]
        assert stats_["n_road_moai"] == 5
        assert stats_["n_valid_coordinates"] == 3
        assert stats_["n_matched"] == 2
        # Only statue 10 has both length and width
        assert result["summary"]["n"] == 1
        com = result["data"].loc[0, "com_position"]
        assert com == pytest.approx(0.42 - 0.08 * 190 / 650, abs=0.03)
        assert (tmp_path / "figure3_com_data.csv").exists()
        assert (tmp_path / "figure3_matched_moai.csv").exists()

    def test_run_is_reproducible(self, road_moai, public_db, tmp_path):
        a = center_of_mass.run(road_moai, public_db, rng=np.random.default_rng(1), output_dir=tmp_path)
        b = center_of_mass.run(road_moai, public_db, rng=np.random.default_rng(1), output_dir=tmp_path)
        pd.testing.assert_frame_equal(a["data"], b["data"])

    def test_run_parallel(self, road_moai, public_db, tmp_path):
        a = center_of_mass.run(road_moai, public_db, rng=np.random.default_rng(1), output_dir=tmp_path)
        b = center_of_mass.run(road_moai, public_db, rng=np.random.default_rng(1),
                               max_workers=3, output_dir=tmp_path)
        pd.testing.assert_frame_equal(a["matched"], b["matched"])


# ── Regression ─────────────────────────────────────────────────────

class TestRegression:
    def test_recovers_line(self, rng):
        x = np.linspace(0, 10, 50)
        y = 3 * x + 2 + rng.normal(0, 0.1, 50)
        fit = regression.fit_linear_trend(x, y)
        assert fit["slope"] == pytest.approx(3, abs=0.05)
        assert fit["intercept"] == pytest.approx(2, abs=0.1)
        assert fit["r_squared"] > 0.99

    def test_band_contains_fit(self, rng):
        x = rng.uniform(0, 5, 30)
        fit = regression.fit_linear_trend(x, x + rng.normal(0, 1, 30), n_points=25)
        band = fit["band"]
        assert len(band) == 25
        assert (band["lower"] <= band["fit"]).all()
        assert (band["fit"] <= band["upper"]).all()

    def test_too_few_points(self):
        fit = regression.fit_linear_trend([1, 2], [3, 4])
        assert np.isnan(fit["slope"])
        assert fit["band"].empty

    def test_ignores_absent_pairs(self):
        x = pd.array([1, 2, 3, None, 5], dtype="Float64")
        y = pd.array([2, 4, 6, 8, None], dtype="Float64")
        fit = regression.fit_linear_trend(x, y)
        assert fit["n"] == 3
        assert fit["slope"] == pytest.approx(2)


# ── Figure 5 ───────────────────────────────────────────────────────

class TestAngleSize:
    def test_size_metric_computed(self):
        df = pd.DataFrame({
            "mean_base_angle": [8.0, 9.0, 10.0],
            "total_length_cm": [500.0, 600.0, 0.1],
            "base_width_cm": [150.0, 200.0, 1.0],
        })
        out = angle_size.prepare_angle_size(df)
        assert out["size_metric"].tolist() == [75000.0, 120000.0]
        assert "position" in out.columns

    def test_pearson_complete(self):
        result = angle_size.pearson_complete([1, 2, 3, 4, None], [2, 4, 6, 8, 10])
        assert result["n"] == 4
        assert result["r"] == pytest.approx(1.0)

    def test_run_synthetic(self, tmp_path):
        result = angle_size.run(rng=np.random.default_rng(42), output_dir=tmp_path)
        assert result["source"] == "synthetic"
        summary = result["summary"]
        assert 5.2 <= summary["angle_min"] <= summary["angle_max"] <= 13.9
        assert summary["size_fold_variation"] >= 1
        assert -1 <= result["correlation"]["r"] <= 1
        assert result["positions"]["n"].sum() == summary["n"]
        assert (tmp_path / "figure5_data.csv").exists()

    def test_run_deterministic(self, tmp_path):
        a = angle_size.run(rng=np.random.default_rng(3), output_dir=tmp_path)
        b = angle_size.run(rng=np.random.default_rng(3), output_dir=tmp_path)
        pd.testing.assert_frame_equal(a["data"], b["data"])


# ── Figures 11 & 12 ────────────────────────────────────────────────

class TestTransportFailure:
    def test_expected_profile(self):
        profile = transport_failure.expected_failure_profile()
        assert len(profile) == len(FAILURE_PROFILE)
        assert profile["expected"].sum() == pytest.approx(sum(FAILURE_PROFILE))
        assert profile.loc[0, "zone"].startswith("Near")
        assert profile.loc[11, "zone"].startswith("Far")

    def test_zone_shares_sum_to_100(self):
        shares = transport_failure.run_expected()["zone_shares"]
        assert shares["pct"].sum() == pytest.approx(100)
        assert shares["pct"].iloc[0] == pytest.approx(26 / 42 * 100)

    def test_zone_for_distance(self):
        assert transport_failure.zone_for_distance(1.9).startswith("Near")
        assert transport_failure.zone_for_distance(2.0).startswith("Middle")
        assert transport_failure.zone_for_distance(50).startswith("Far")

    def test_prepare_distances_meters(self):
        df = pd.DataFrame({"distance_m": pd.array([500, 0, None, 2500], dtype="Float64")})
        km = transport_failure.prepare_distances(df)
        assert km.tolist() == [0.5, 2.5]

    def test_distance_summary(self):
        km = pd.Series([0.5, 1.0, 1.5, 3.0, 6.2])
        summary = transport_failure.distance_summary(km)
        assert summary["n"] == 5
        assert summary["median_km"] == 1.5
        assert summary["pct_within_2km"] == pytest.approx(60)
        assert summary["max_km"] == 7

    def test_histogram_counts(self):
        hist = transport_failure.histogram_counts(pd.Series([0.1, 0.2, 0.7, 2.9]), 3)
        assert len(hist) == 6
        assert hist["count"].sum() == 4
        assert hist["count"].tolist()[:2] == [2, 1]

    @pytest.mark.parametrize("max_km", [1, 5, 12])
    def test_model_density_integrates_to_one(self, max_km):
        model = transport_failure.FailureModel(max_km)
        total, _ = integrate.quad(lambda x: float(model.pdf(x)), 0, max_km, limit=200)
        assert total == pytest.approx(1, abs=1e-4)
        assert model.cdf(0) == 0
        assert model.cdf(max_km) == pytest.approx(1)

    def test_model_concentrated_near_quarry(self):
        model = transport_failure.FailureModel(12)
        assert 0 < model.median() < 2
        assert model.pct_within(2) > 50
        assert model.pdf(-1) == 0 and model.pdf(13) == 0

    def test_run_synthetic(self, tmp_path):
        result = transport_failure.run(rng=np.random.default_rng(42), output_dir=tmp_path)
        assert result["source"] == "synthetic"
        assert result["summary"]["n"] == 62
        assert result["histogram"]["count"].sum() == 62
        assert 0 <= result["comparison"]["p_value"] <= 1
        assert (tmp_path / "figure12_data.csv").exists()

    def test_run_from_meters(self, tmp_path):
        df = pd.DataFrame({"distance_m": pd.array([300, 800, 1500, 2200, 5100], dtype="Float64")})
        result = transport_failure.run(df, output_dir=tmp_path)
        assert result["source"] == "file"
        assert result["summary"]["pct_within_2km"] == pytest.approx(60)
        assert result["summary"]["max_km"] == 6


# ── Figure 13 ──────────────────────────────────────────────────────

class TestSizeDistance:
    def test_prepare_drops_absent_sizes(self, size_df):
        data = size_distance.prepare_size_data(size_df)
        n_missing = (size_df["size_cm"] == "Missing").sum()
        assert len(data) == len(size_df) - n_missing
        assert data["distance_km"].max() <= 9

    def test_phase_boundaries(self):
        df = pd.DataFrame({"distance_km": [0.0, 2.0, 2.01, 4.0, 7.5], "size_cm": [1.0] * 5})
        phases = size_distance.assign_phase(df)["phase"].astype(str).tolist()
        assert phases == [PHASE_LABELS[0], PHASE_LABELS[0], PHASE_LABELS[1],
                          PHASE_LABELS[1], PHASE_LABELS[2]]

    def test_phase_statistics(self, size_df):
        data = size_distance.assign_phase(size_distance.prepare_size_data(size_df))
        ps = size_distance.phase_statistics(data)
        assert ps["phase"].tolist() == PHASE_LABELS
        assert ps["n"].sum() == len(data)

    def test_kruskal_single_phase(self):
        df = pd.DataFrame({"distance_km": [0.5, 1.0, 1.5], "size_cm": [500.0, 600.0, 700.0]})
        result = size_distance.kruskal_wallis_by_phase(size_distance.assign_phase(df))
        assert np.isnan(result["H"])
        assert result["phase_sample_sizes"] == {PHASE_LABELS[0]: 3}

    def test_spearman_monotone(self):
        df = pd.DataFrame({"distance_km": [1, 2, 3, 4, 5], "size_cm": [900, 800, 700, 600, 500]})
        assert size_distance.spearman_distance_size(df)["rho"] == pytest.approx(-1)

    def test_run_synthetic(self, tmp_path):
        result = size_distance.run(rng=np.random.default_rng(42), output_dir=tmp_path)
        assert result["source"] == "synthetic"
        assert result["phase_stats"]["n"].sum() == 38
        assert set(result["kruskal"]["phase_sample_sizes"]) == set(PHASE_LABELS)
        assert not result["trend"]["band"].empty
        assert (tmp_path / "figure13_data.csv").exists()

    def test_run_from_file_frame(self, size_df, tmp_path):
        result = size_distance.run(size_df, output_dir=tmp_path)
        assert result["source"] == "file"
        assert -1 <= result["spearman"]["rho"] <= 1
