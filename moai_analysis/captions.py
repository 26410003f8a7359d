"""Figure captions built from the computed statistics."""
from __future__ import annotations

from pathlib import Path


def _fmt_p(p: float) -> str:
    return f"{p:.3e}" if p < 0.001 else f"{p:.3f}"


def figure2_caption(welch: dict) -> str:
    return " ".join([
        "Figure 2. Comparison of the ratio of base width to shoulder width for "
        "ahu moai (left) and road moai (right).",
        "Using measurement data of moai from Van Tilburg (1986), the figures show that "
        "the two types of moai have statistically distinctive ratios "
        f"(Welch's t-test: t = {welch['t']:.3f}, df = {welch['df']:.1f}, "
        f"p = {welch['p_value']:.3e}).",
    ])


def figure3_caption(summary: dict, match_stats: dict) -> str:
    return " ".join([
        "Figure 3. Estimated centre of mass position, as a fraction of statue height, "
        "for road moai.",
        f"Road moai were matched to the public moai database within 100 m "
        f"({match_stats['n_matched']} of {match_stats['n_valid_coordinates']} matched);",
        f"n = {summary['n']}, mean = {summary['mean']:.3f} ± {summary['sd']:.3f}, "
        f"range {summary['min']:.3f} to {summary['max']:.3f}.",
        "Point colour indicates statue height; the red diamond marks the mean.",
    ])


def figure5_caption(summary: dict, correlation: dict) -> str:
    return " ".join([
        "Figure 5. Relationship between moai base angle and size metric",
        f"(total length × base width) for intact road moai (n = {summary['n']}).",
        f"Despite a {summary['size_fold_variation']:.0f}-fold variation in size, base angles "
        f"remain remarkably consistent between {summary['angle_min']:.0f}° and "
        f"{summary['angle_max']:.0f}°.",
        "Point size indicates moai height, and colors distinguish final positions "
        "(prone = successful transport, supine = fell backward).",
        f"The negligible correlation (r = {correlation['r']:.3f}) suggests standardized "
        "construction techniques optimized for walking transport regardless of moai size.",
    ])


def figure11_caption(zone_shares, observed_pct: float) -> str:
    shares = ", ".join(
        f"{label.split(chr(10))[0].lower()} {pct:.0f}%"
        for label, pct in zip(zone_shares["zone"], zone_shares["pct"])
    )
    return " ".join([
        "Figure 11. Expected distribution of road moai under the transport failure "
        "hypothesis.",
        "Failures are expected to concentrate near the quarry because of structural flaws, "
        f"the learning curve and initiation challenges (expected shares: {shares}).",
        f"Observed: {observed_pct:.1f}% of road moai lie within 2 km of the quarry.",
    ])


def figure12_caption(summary: dict, model_stats: dict, comparison: dict) -> str:
    return " ".join([
        "Figure 12. Observed road moai distribution and statistical comparison with "
        "transport failure expectations.",
        f"(A) Histogram showing the concentration of {summary['n']} road moai near the "
        f"quarry, with {summary['pct_within_2km']:.1f}% within 2 km.",
        f"Quartile markers indicate 25%, 50% (median = {summary['median_km']:.2f} km), "
        "and 75% of the distribution.",
        "(B) Comparison of observed distribution (gray bars) with transport failure model "
        f"prediction (red line; model median = {model_stats['median_km']:.2f} km, "
        f"{model_stats['pct_within_2km']:.0f}% within 2 km).",
        f"Kolmogorov-Smirnov test against the model: D = {comparison['ks_statistic']:.3f}, "
        f"p = {_fmt_p(comparison['p_value'])}.",
    ])


def figure13_caption(phase_stats, spearman: dict, kruskal: dict) -> str:
    means = " → ".join(f"{m:.0f}" for m in phase_stats["mean_size"])
    n_total = int(phase_stats["n"].sum())
    return " ".join([
        "Figure 13. Analysis of moai size in relation to transport distance.",
        "(A) Box plots of statue length across transport phases "
        f"(mean length {means} cm for early, middle and late phases; "
        f"Kruskal-Wallis H = {kruskal['H']:.2f}, p = {_fmt_p(kruskal['p_value'])}).",
        "(B) Scatter plot with regression line and 95% confidence band for size vs distance "
        f"(Spearman ρ = {spearman['rho']:.2f}, p = {_fmt_p(spearman['p_value'])}).",
        f"Sample includes {n_total} road moai with available size measurements.",
    ])


def write_caption(text: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")
    return path
