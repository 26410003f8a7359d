"""
Orchestrator: run all moai analyses, render figures, write captions and a
text report.

Usage:
    python -m moai_analysis.run_all [--data-dir DIR] [--output-dir DIR] [--seed N]
"""

import argparse
import logging
import time
from pathlib import Path

from moai_analysis.config import (
    DATA_DIR, MATCH_THRESHOLD_M, OBSERVED_PCT_WITHIN_2KM, OUTPUT_DIR,
    PUBLIC_DATABASE_XLSX, ROAD_MOAI_XLSX, SEED, VAN_TILBURG_XLSX,
)
from moai_analysis import (
    angle_size,
    captions,
    center_of_mass,
    data_loader,
    plots,
    ratio_analysis,
    size_distance,
    transport_failure,
)
from moai_analysis.synthetic import make_rng


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Road moai statistics: figures 2, 3, 5, 11, 12 and 13.",
    )
    parser.add_argument("--data-dir", type=Path, default=DATA_DIR,
                        help=f"Directory holding the input spreadsheets (default: {DATA_DIR})")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR,
                        help=f"Directory for figures, captions and data (default: {OUTPUT_DIR})")
    parser.add_argument("--van-tilburg", type=Path, help="Van Tilburg measurement workbook")
    parser.add_argument("--road-moai", type=Path, help="Road moai field survey workbook")
    parser.add_argument("--public-db", type=Path, help="Public moai database workbook")
    parser.add_argument("--angle-size-csv", type=Path,
                        help="Base angle / size table for Figure 5 (sample data if omitted)")
    parser.add_argument("--distances-csv", type=Path,
                        help="Distances from the quarry for Figure 12 (sample data if omitted)")
    parser.add_argument("--size-csv", type=Path,
                        help="Distances and lengths for Figure 13 (sample data if omitted)")
    parser.add_argument("--threshold", type=float, default=MATCH_THRESHOLD_M,
                        help="Match distance threshold in meters (default: %(default)s)")
    parser.add_argument("--max-workers", type=int, default=None,
                        help="Threads for road moai matching (default: sequential)")
    parser.add_argument("--seed", type=int, default=SEED,
                        help="Seed for sample data and measurement noise (default: %(default)s)")
    parser.add_argument("--no-plots", action="store_true", help="Skip figure rendering")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def _input_path(explicit, data_dir: Path, default_name: str) -> Path:
    return explicit if explicit is not None else data_dir / default_name


def _load_if_present(loader, path):
    """Load ``path`` when given and present; ``None`` otherwise."""
    if path is None:
        return None
    if not Path(path).exists():
        print(f"  Not found: {path}")
        return None
    return loader(path)


def _section(lines: list, title: str):
    lines.append(title)
    lines.append("-" * 60)


def generate_text_report(all_results: dict) -> str:
    """Generate a human-readable analysis report."""
    lines = [
        "=" * 80,
        "ROAD MOAI STATISTICAL ANALYSIS REPORT",
        "Transport design, centre of mass and distribution along the roads",
        "=" * 80,
        "",
    ]

    _section(lines, "FIGURE 2. BASE / SHOULDER WIDTH RATIO (AHU vs ROAD)")
    ratio = all_results.get("ratio")
    if ratio is None:
        lines.append("  Skipped: Van Tilburg data not available")
    else:
        lines.append(ratio["summary"].to_string(index=False))
        w = ratio["welch"]
        lines.append(f"\n  Welch's t = {w['t']:.3f}, df = {w['df']:.1f}, p = {w['p_value']:.3e}"
                     f" ({'significant' if w['significant'] else 'not significant'})")
    lines.append("")

    _section(lines, "FIGURE 3. CENTRE OF MASS OF MATCHED ROAD MOAI")
    com = all_results.get("com")
    if com is None:
        lines.append("  Skipped: road moai / public database not available")
    else:
        ms = com["match_stats"]
        lines.append(f"  Road moai: {ms['n_road_moai']}, valid coordinates: "
                     f"{ms['n_valid_coordinates']}, matched: {ms['n_matched']}")
        lines.append(f"  Median match distance: {ms['median_match_distance_m']:.1f} m")
        s = com["summary"]
        lines.append(f"  CoM n = {s['n']}, mean = {s['mean']:.3f}, SD = {s['sd']:.3f}, "
                     f"range {s['min']:.3f} - {s['max']:.3f}")
    lines.append("")

    _section(lines, "FIGURE 5. BASE ANGLE vs SIZE")
    ang = all_results.get("angle_size")
    if ang is not None:
        s, c, t = ang["summary"], ang["correlation"], ang["trend"]
        lines.append(f"  Source: {ang['source']}, n = {s['n']}")
        lines.append(f"  Base angle range: {s['angle_min']:.1f} - {s['angle_max']:.1f} deg")
        lines.append(f"  Size variation: {s['size_fold_variation']:.1f}-fold")
        lines.append(f"  Pearson r = {c['r']:.3f} (p = {c['p_value']:.3f})")
        lines.append(f"  OLS slope = {t['slope']:.1f}, R^2 = {t['r_squared']:.3f}")
        lines.append(ang["positions"].to_string(index=False))
    lines.append("")

    _section(lines, "FIGURE 11. EXPECTED FAILURE PROFILE")
    exp = all_results.get("failure_expected")
    if exp is not None:
        lines.append(exp["zone_shares"].assign(
            zone=exp["zone_shares"]["zone"].str.replace("\n", " ")).to_string(index=False))
        lines.append(f"\n  Observed within 2 km: {exp['observed_pct_within_2km']:.1f}%")
    lines.append("")

    _section(lines, "FIGURE 12. OBSERVED DISTANCES vs FAILURE MODEL")
    dist = all_results.get("distribution")
    if dist is not None:
        s, m, k = dist["summary"], dist["model_stats"], dist["comparison"]
        lines.append(f"  Source: {dist['source']}, n = {s['n']}")
        lines.append(f"  Median = {s['median_km']:.2f} km, within 2 km = {s['pct_within_2km']:.1f}%")
        lines.append(f"  Quartiles: {s['q1_km']:.2f} / {s['median_km']:.2f} / {s['q3_km']:.2f} km")
        lines.append(f"  Model median = {m['median_km']:.2f} km, "
                     f"model within 2 km = {m['pct_within_2km']:.1f}%")
        lines.append(f"  KS D = {k['ks_statistic']:.3f}, p = {k['p_value']:.3f}")
    lines.append("")

    _section(lines, "FIGURE 13. SIZE BY TRANSPORT PHASE")
    size = all_results.get("size_distance")
    if size is not None:
        lines.append(f"  Source: {size['source']}")
        lines.append(size["phase_stats"].to_string(index=False))
        sp, kw = size["spearman"], size["kruskal"]
        lines.append(f"\n  Spearman rho = {sp['rho']:.3f} (p = {sp['p_value']:.3f})")
        lines.append(f"  Kruskal-Wallis H = {kw['H']:.3f} (p = {kw['p_value']:.3f})")
    lines.append("")

    return "\n".join(lines)


def write_captions(all_results: dict, output_dir: Path) -> list[Path]:
    """Write a ``*_caption.txt`` file for every figure that was produced."""
    texts = {}
    if all_results.get("ratio") is not None:
        texts["Figure_2_caption.txt"] = captions.figure2_caption(all_results["ratio"]["welch"])
    if all_results.get("com") is not None:
        com = all_results["com"]
        texts["figure3_caption.txt"] = captions.figure3_caption(com["summary"], com["match_stats"])
    if all_results.get("angle_size") is not None:
        ang = all_results["angle_size"]
        texts["figure5_caption.txt"] = captions.figure5_caption(ang["summary"], ang["correlation"])
    if all_results.get("failure_expected") is not None:
        exp = all_results["failure_expected"]
        texts["figure11_caption.txt"] = captions.figure11_caption(
            exp["zone_shares"], exp["observed_pct_within_2km"])
    if all_results.get("distribution") is not None:
        dist = all_results["distribution"]
        texts["figure12_caption.txt"] = captions.figure12_caption(
            dist["summary"], dist["model_stats"], dist["comparison"])
    if all_results.get("size_distance") is not None:
        size = all_results["size_distance"]
        texts["figure13_caption.txt"] = captions.figure13_caption(
            size["phase_stats"], size["spearman"], size["kruskal"])

    return [captions.write_caption(text, output_dir / name) for name, text in texts.items()]


def main(argv=None) -> dict:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    t0 = time.time()
    output_dir = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    van_tilburg = _load_if_present(
        data_loader.load_van_tilburg,
        _input_path(args.van_tilburg, args.data_dir, VAN_TILBURG_XLSX))
    road = _load_if_present(
        data_loader.load_road_moai, _input_path(args.road_moai, args.data_dir, ROAD_MOAI_XLSX))
    public = _load_if_present(
        data_loader.load_public_database,
        _input_path(args.public_db, args.data_dir, PUBLIC_DATABASE_XLSX))

    all_results = {}

    print("\n--- Figure 2: base/shoulder ratio ---")
    if van_tilburg is not None:
        all_results["ratio"] = ratio_analysis.run(van_tilburg, output_dir=output_dir)
    else:
        print("  Skipped (no Van Tilburg data)")

    print("--- Figure 3: centre of mass ---")
    if road is not None and public is not None:
        all_results["com"] = center_of_mass.run(
            road, public, rng=make_rng(args.seed), threshold_m=args.threshold,
            max_workers=args.max_workers, output_dir=output_dir)
    else:
        print("  Skipped (road moai or public database missing)")

    print("--- Figure 5: base angle vs size ---")
    all_results["angle_size"] = angle_size.run(
        _load_if_present(data_loader.load_angle_size_table, args.angle_size_csv),
        rng=make_rng(args.seed), output_dir=output_dir)

    print("--- Figure 12: observed distances ---")
    all_results["distribution"] = transport_failure.run(
        _load_if_present(data_loader.load_quarry_distances, args.distances_csv),
        rng=make_rng(args.seed), output_dir=output_dir)

    print("--- Figure 11: expected failure profile ---")
    distribution = all_results["distribution"]
    observed_pct = (distribution["summary"]["pct_within_2km"]
                    if distribution["source"] == "file" else OBSERVED_PCT_WITHIN_2KM)
    all_results["failure_expected"] = transport_failure.run_expected(observed_pct)

    print("--- Figure 13: size by transport phase ---")
    all_results["size_distance"] = size_distance.run(
        _load_if_present(data_loader.load_quarry_distances, args.size_csv),
        rng=make_rng(args.seed), output_dir=output_dir)

    if not args.no_plots:
        print("--- Generating plots ---")
        plots.run_all_plots(all_results, output_dir, rng=make_rng(args.seed))

    print("--- Writing captions ---")
    write_captions(all_results, output_dir)

    print("--- Generating report ---")
    report = generate_text_report(all_results)
    report_path = output_dir / "analysis_report.txt"
    report_path.write_text(report, encoding="utf-8")
    print(f"\nReport saved to: {report_path}")

    elapsed = time.time() - t0
    print(f"\nAll analyses completed in {elapsed:.1f}s")
    print(f"Output directory: {output_dir}")

    # Print report to console (handle Windows encoding)
    try:
        print("\n" + report)
    except UnicodeEncodeError:
        print("\n" + report.encode("ascii", errors="replace").decode("ascii"))

    return all_results


if __name__ == "__main__":
    main()
