"""
Visualization module: all figures of the road moai article.

Generates:
1. Base/shoulder ratio, ahu vs road: violin + box + points (Figure 2)
2. Centre of mass distribution of matched road moai (Figure 3)
3. Base angle vs size metric with OLS trend (Figure 5)
4. Expected distribution under the transport failure hypothesis (Figure 11)
5. Observed distance distribution vs failure model (Figure 12)
6. Size by transport phase and size vs distance (Figure 13)
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.ticker import StrMethodFormatter
import seaborn as sns

from .config import (
    DISTANCE_ZONES, MOAI_COLORS, MOAI_TYPES, NA_COLOR, OUTPUT_DIR, PHASE_LABELS,
    POSITION_COLORS, PREVIEW_DPI, PRINT_DPI, TYPE_COLORS,
)
from .synthetic import make_rng

# Global plot style
plt.rcParams.update({
    "figure.dpi": 150,
    "savefig.bbox": "tight",
    "savefig.facecolor": "white",
    "font.size": 10,
    "axes.titlesize": 12,
    "axes.labelsize": 11,
    "svg.fonttype": "none",
})

ZONE_SHADES = ["#ffcccc", "#ccccff", "#ccffcc"]
HEIGHT_CMAP = LinearSegmentedColormap.from_list("height", ["#3498db", "#e74c3c"])
PHASE_COLORS = [MOAI_COLORS["early"], MOAI_COLORS["middle"], MOAI_COLORS["late"]]


def _save(fig, name: str, output_dir: Path = OUTPUT_DIR, formats=("png",)) -> list[Path]:
    """Save figure in each format; ``preview`` is a low-resolution PNG."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for fmt in formats:
        if fmt == "preview":
            path = output_dir / f"{name}_preview.png"
            fig.savefig(path, dpi=PREVIEW_DPI)
        else:
            path = output_dir / f"{name}.{fmt}"
            fig.savefig(path, dpi=PRINT_DPI)
        paths.append(path)
    plt.close(fig)
    return paths


def _shade_zones(ax, max_km: float, alpha: float = 0.3):
    for (lo, hi), color in zip(DISTANCE_ZONES.values(), ZONE_SHADES):
        ax.axvspan(lo, max_km if hi is None else min(hi, max_km), color=color,
                   alpha=alpha, lw=0, zorder=0)


def _empty_panel(ax, message: str):
    ax.text(0.5, 0.5, message, transform=ax.transAxes, ha="center", va="center",
            color="gray")


# ──────────────────────────────────────────────────────────────────
# 1. Ratio comparison (Figure 2)
# ──────────────────────────────────────────────────────────────────
def plot_ratio_comparison(result: dict, output_dir: Path = OUTPUT_DIR) -> list[Path]:
    """Violin + box + jittered points of base/shoulder ratio by moai type."""
    data = result["data"]
    welch = result["welch"]
    summary = result["summary"].set_index("moai_type")

    fig, ax = plt.subplots(figsize=(6, 6))
    sns.violinplot(
        data=data, x="moai_type", y="ratio", hue="moai_type", order=MOAI_TYPES,
        palette=TYPE_COLORS, density_norm="width", inner=None, linewidth=0.7,
        legend=False, ax=ax,
    )
    for coll in ax.collections:
        coll.set_alpha(0.5)
    sns.boxplot(
        data=data, x="moai_type", y="ratio", hue="moai_type", order=MOAI_TYPES,
        palette=TYPE_COLORS, width=0.25, showfliers=False, legend=False, ax=ax,
    )
    sns.stripplot(
        data=data, x="moai_type", y="ratio", order=MOAI_TYPES, jitter=0.12,
        size=3, alpha=0.7, color="black", ax=ax,
    )
    ax.axhline(1, ls="--", color="black", lw=0.7)

    y_min = data["ratio"].min() if len(data) else 0.5
    y_max = data["ratio"].max() if len(data) else 1.5
    for i, moai_type in enumerate(MOAI_TYPES):
        row = summary.loc[moai_type]
        ax.text(i, y_min - 0.08, f"n = {row['n']}\nmean = {row['mean']:.2f} ± {row['sd']:.2f}",
                ha="center", va="top", fontsize=8)

    if welch["significant"]:
        y = y_max + 0.05
        ax.plot([0.05, 0.05, 0.95, 0.95], [y - 0.02, y, y, y - 0.02], color="black", lw=0.8)
        ax.text(0.5, y + 0.01, "*", ha="center", va="bottom", fontsize=16)

    ax.set_ylim(y_min - 0.25, y_max + 0.15)
    ax.set_xticks(range(len(MOAI_TYPES)))
    ax.set_xticklabels([f"{t} Moai" for t in MOAI_TYPES])
    ax.set_xlabel("")
    ax.set_ylabel("Base width / shoulder width")
    ax.set_title("Base-to-shoulder ratio: ahu vs road moai\n"
                 f"Welch's t = {welch['t']:.2f}, df = {welch['df']:.1f}, "
                 f"p = {welch['p_value']:.2e}", fontsize=11)
    fig.tight_layout()
    return _save(fig, "Figure_2_moai_ratio_comparison", output_dir, ("svg", "png", "preview"))


# ──────────────────────────────────────────────────────────────────
# 2. Centre of mass distribution (Figure 3)
# ──────────────────────────────────────────────────────────────────
def plot_com_distribution(
    result: dict,
    output_dir: Path = OUTPUT_DIR,
    rng: Optional[np.random.Generator] = None,
) -> list[Path]:
    """Box plot + height-coloured jittered points of CoM position."""
    data = result["data"]
    summary = result["summary"]
    rng = rng if rng is not None else make_rng()

    fig, ax = plt.subplots(figsize=(7, 6))
    if len(data) == 0:
        _empty_panel(ax, "No matched road moai with complete measurements")
    else:
        com = data["com_position"].astype(float).to_numpy()
        height = data["height_m"].astype(float).to_numpy()
        ax.boxplot(com, positions=[0], widths=0.4, patch_artist=True, showfliers=False,
                   boxprops={"facecolor": "lightgray", "alpha": 0.5},
                   medianprops={"color": "black"})
        x = rng.uniform(-0.15, 0.15, len(com))
        points = ax.scatter(x, com, c=height, cmap=HEIGHT_CMAP, s=40, alpha=0.8, zorder=3)
        ax.scatter([0], [com.mean()], marker="D", s=60, color="darkred", zorder=4)
        fig.colorbar(points, ax=ax, label="Height (m)")

        pad = (com.max() - com.min()) * 0.05 or 0.01
        ax.set_ylim(com.min() - pad, com.max() + pad)

    ax.set_xlim(-0.5, 0.5)
    ax.set_xticks([])
    ax.set_ylabel("Estimated CoM position (fraction of height)")
    ax.set_title("Center of Mass Distribution - Road Moai\n"
                 f"n = {summary['n']}; mean = {summary['mean']:.3f} ± {summary['sd']:.3f}",
                 fontsize=11)
    fig.tight_layout()
    return _save(fig, "figure3_com_distribution", output_dir, ("png", "svg"))


# ──────────────────────────────────────────────────────────────────
# 3. Base angle vs size (Figure 5)
# ──────────────────────────────────────────────────────────────────
def plot_angle_vs_size(result: dict, output_dir: Path = OUTPUT_DIR) -> list[Path]:
    """Scatter of size metric vs mean base angle with OLS band."""
    data = result["data"]
    band = result["trend"]["band"]
    corr = result["correlation"]

    fig, ax = plt.subplots(figsize=(10, 8))
    if len(band):
        ax.fill_between(band["x"], band["lower"], band["upper"], color="lightgray", alpha=0.5)
        ax.plot(band["x"], band["fit"], ls="--", color="darkgray", lw=1.5)

    length = data["total_length_cm"].astype(float)
    span = (length.max() - length.min()) or 1.0
    sizes = (30 + (length - length.min()) / span * 170).fillna(30)
    positions = data["position"].astype(object).where(data["position"].notna(), None)
    for label in [*POSITION_COLORS, None]:
        mask = (positions == label) if label is not None else positions.isna()
        if not mask.any():
            continue
        ax.scatter(
            data.loc[mask, "mean_base_angle"].astype(float),
            data.loc[mask, "size_metric"].astype(float),
            s=sizes[mask], alpha=0.7,
            color=POSITION_COLORS.get(label, NA_COLOR),
            label=label.capitalize() if label else "Unknown",
        )

    ax.yaxis.set_major_formatter(StrMethodFormatter("{x:,.0f}"))
    ax.set_xlabel("Mean base angle (°)")
    ax.set_ylabel("Size metric (length × base width, cm²)")
    ax.set_title("Base angle vs moai size\n"
                 f"Pearson r = {corr['r']:.3f} (p = {corr['p_value']:.3f}, n = {corr['n']})")
    ax.legend(title="Final position")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return _save(fig, "figure5_base_angle_vs_size", output_dir, ("png", "pdf"))


# ──────────────────────────────────────────────────────────────────
# 4. Transport failure expectation (Figure 11)
# ──────────────────────────────────────────────────────────────────
def plot_failure_expectation(result: dict, output_dir: Path = OUTPUT_DIR) -> list[Path]:
    """Bars of expected failures per km with shaded distance zones."""
    profile = result["profile"]
    shares = result["zone_shares"].set_index("zone")["pct"]
    max_km = profile["bin_end_km"].max()
    top = profile["expected"].max() + 1

    fig, ax = plt.subplots(figsize=(12, 8))
    _shade_zones(ax, max_km)
    ax.bar(profile["bin_start_km"] + 0.5, profile["expected"], width=0.8,
           color=MOAI_COLORS["secondary"], alpha=0.8)

    for zone, (lo, hi) in DISTANCE_ZONES.items():
        hi = max_km if hi is None else hi
        ax.text((lo + hi) / 2, top * 0.92, zone, ha="center", va="top", fontweight="bold")
        in_zone = profile[profile["zone"] == zone]
        if len(in_zone):
            ax.text(in_zone["bin_start_km"].iloc[0] + 0.5, in_zone["expected"].iloc[0] + 0.3,
                    f"~{shares[zone]:.0f}%", ha="center", va="bottom", fontweight="bold")

    ax.text(max_km * 0.7, top * 0.65,
            f"Observed: {result['observed_pct_within_2km']:.1f}%\nwithin 2 km",
            ha="center", color=MOAI_COLORS["highlight"], fontsize=12, fontweight="bold",
            bbox=dict(boxstyle="round", facecolor="white", alpha=0.8))

    ax.set_xlim(0, max_km)
    ax.set_ylim(0, top)
    ax.set_xlabel("Distance from quarry (km)")
    ax.set_ylabel("Expected number of failed moai")
    ax.set_title("Expected Distribution Under Transport Failure Hypothesis")
    fig.tight_layout()
    return _save(fig, "figure11_transport_failure_expectation", output_dir, ("png", "svg", "pdf"))


# ──────────────────────────────────────────────────────────────────
# 5. Observed distribution vs model (Figure 12)
# ──────────────────────────────────────────────────────────────────
def plot_distance_distribution(result: dict, output_dir: Path = OUTPUT_DIR) -> list[Path]:
    """(A) observed histogram with quartiles; (B) density vs failure model."""
    km = result["distances_km"]
    summary = result["summary"]
    hist = result["histogram"]
    curve = result["model_curve"]
    max_km = max(summary["max_km"], 1)

    fig, (ax_a, ax_b) = plt.subplots(1, 2, figsize=(14, 6))

    _shade_zones(ax_a, max_km)
    ax_a.bar(hist["bin_start_km"], hist["count"], width=hist["bin_end_km"] - hist["bin_start_km"],
             align="edge", color=MOAI_COLORS["secondary"], edgecolor="white", alpha=0.8)
    top = max(hist["count"].max(), 1) * 1.2
    if summary["n"]:
        quartiles = [summary["q1_km"], summary["median_km"], summary["q3_km"]]
        for q, label in zip(quartiles, ["Q1", "Median", "Q3"]):
            ax_a.axvline(q, ls="--", lw=2, color=MOAI_COLORS["highlight"])
            ax_a.text(q, top * 0.85, f"{label}\n{q:.1f} km", ha="center", fontsize=8,
                      color=MOAI_COLORS["highlight"])
    ax_a.text(max_km * 0.65, top * 0.95,
              f"n = {summary['n']}\n{summary['pct_within_2km']:.1f}% within 2 km",
              ha="center", va="top", fontsize=10)
    ax_a.set_xlim(0, max_km)
    ax_a.set_ylim(0, top)
    ax_a.set_xlabel("Distance from quarry (km)")
    ax_a.set_ylabel("Number of moai")
    ax_a.set_title("A. Observed Distribution of Road Moai")

    ax_b.hist(km, bins=np.arange(0, max_km + 1, 1), density=True, color="lightgray",
              edgecolor="white", label="Observed Data")
    ax_b.plot(curve["distance_km"], curve["density"], color=MOAI_COLORS["highlight"], lw=3,
              label="Transport Failure Model")
    near = curve[curve["distance_km"] <= 2]
    ax_b.fill_between(near["distance_km"], near["density"], color=MOAI_COLORS["highlight"],
                      alpha=0.2)
    comparison = result["comparison"]
    ax_b.text(0.6, 0.6,
              f"Model median = {result['model_stats']['median_km']:.2f} km\n"
              f"KS D = {comparison['ks_statistic']:.3f}, p = {comparison['p_value']:.3f}",
              transform=ax_b.transAxes, fontsize=9)
    ax_b.set_xlim(0, max_km)
    ax_b.set_xlabel("Distance from quarry (km)")
    ax_b.set_ylabel("Density")
    ax_b.set_title("B. Observed vs. Transport Failure Model")
    ax_b.legend(loc="upper right", frameon=False)

    fig.tight_layout()
    return _save(fig, "figure12_distribution_analysis", output_dir, ("png", "svg", "pdf"))


# ──────────────────────────────────────────────────────────────────
# 6. Size by transport phase (Figure 13)
# ──────────────────────────────────────────────────────────────────
def plot_size_analysis(result: dict, output_dir: Path = OUTPUT_DIR) -> list[Path]:
    """(A) notched box plots by phase; (B) size vs distance with OLS band."""
    data = result["data"]
    phase_stats = result["phase_stats"]
    band = result["trend"]["band"]
    spearman = result["spearman"]

    fig, (ax_a, ax_b) = plt.subplots(1, 2, figsize=(14, 6))

    if len(data):
        sns.boxplot(
            data=data, x="phase", y="size_cm", hue="phase", order=PHASE_LABELS,
            hue_order=PHASE_LABELS, palette=PHASE_COLORS, notch=True, legend=False, ax=ax_a,
        )
        for i, n in enumerate(phase_stats["n"]):
            ax_a.text(i, data["size_cm"].min() * 0.95, f"n = {n}", ha="center", fontsize=9)
    else:
        _empty_panel(ax_a, "No size measurements")
    ax_a.set_xlabel("Transport phase")
    ax_a.set_ylabel("Statue length (cm)")
    ax_a.set_title("A. Moai Size by Transport Phase")

    ax_b.scatter(data["distance_km"], data["size_cm"], s=40, alpha=0.7,
                 color=MOAI_COLORS["secondary"])
    if len(band):
        ax_b.fill_between(band["x"], band["lower"], band["upper"],
                          color=MOAI_COLORS["highlight"], alpha=0.2)
        ax_b.plot(band["x"], band["fit"], color=MOAI_COLORS["highlight"], lw=3)
    for level, label in [(500, "Small"), (700, "Large")]:
        ax_b.axhline(level, ls=":", color="gray")
        ax_b.text(0.9, level + 10, label, color="gray", fontsize=9,
                  transform=ax_b.get_yaxis_transform())
    ax_b.text(0.6, 0.95, f"Spearman ρ = {spearman['rho']:.2f}\np = {spearman['p_value']:.3f}",
              transform=ax_b.transAxes, va="top", fontsize=10)
    ax_b.set_xlabel("Distance from quarry (km)")
    ax_b.set_ylabel("Statue length (cm)")
    ax_b.set_title("B. Size vs. Distance Relationship")

    fig.tight_layout()
    return _save(fig, "figure13_size_analysis", output_dir, ("png", "svg", "pdf"))


# ──────────────────────────────────────────────────────────────────
# Run all plots
# ──────────────────────────────────────────────────────────────────
def run_all_plots(results: dict, output_dir: Path = OUTPUT_DIR, rng=None) -> dict:
    """Render every figure whose analysis result is present."""
    plotters = {
        "ratio": plot_ratio_comparison,
        "angle_size": plot_angle_vs_size,
        "failure_expected": plot_failure_expectation,
        "distribution": plot_distance_distribution,
        "size_distance": plot_size_analysis,
    }
    saved = {}
    for key, plotter in plotters.items():
        if results.get(key) is not None:
            saved[key] = plotter(results[key], output_dir)
    if results.get("com") is not None:
        saved["com"] = plot_com_distribution(results["com"], output_dir, rng=rng)

    print(f"  All plots saved to {output_dir}")
    return saved
