"""
Compare two horses over repeated paired races.

Usage:
    python scripts/run_comparison.py horses/uma1.json horses/uma2.json --course 10506

    # Dump the sorted results and the four representative runs
    python scripts/run_comparison.py horses/uma1.json horses/uma2.json --dump out/compare.json

    # Render the length histogram and the median run's speed lines
    python scripts/run_comparison.py horses/uma1.json horses/uma2.json --plot out/compare.png

    # Rank every catalog skill the first horse could add
    python scripts/run_comparison.py horses/uma1.json --skill-chart --workers 4
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from race_compare import CompareOptions, default_catalog, run_comparison, run_skill_chart  # noqa: E402
from race_compare.config import DEFAULT_SAMPLES, get_config  # noqa: E402
from race_compare.engine import (  # noqa: E402
    DEFAULT_COURSE_REGISTRY,
    GroundCondition,
    HorseConfig,
    RaceDefinition,
    Season,
    TimeOfDay,
    Weather,
)
from race_compare.selector import ComparisonResult  # noqa: E402

COLORS = ("tab:blue", "tab:red")


def _load_horse(path: Path) -> HorseConfig:
    with open(path, "r", encoding="utf-8") as f:
        return HorseConfig.from_dict(json.load(f))


def _racedef_from_args(args: argparse.Namespace) -> RaceDefinition:
    order_range = tuple(args.order) if args.order else None
    return RaceDefinition(
        mood=args.mood,
        ground=GroundCondition[args.ground.upper()],
        weather=Weather[args.weather.upper()],
        season=Season[args.season.upper()],
        time=TimeOfDay[args.time.upper()],
        order_range=order_range,
        num_umas=args.num_umas if order_range else None,
    )


def dump_result(result: ComparisonResult, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f)
    print(f"[compare] wrote {len(result.results)} results to {output_path}")


def plot_result(result: ComparisonResult, names, course_distance: float, output_path: Path) -> None:
    if not result.results:
        raise RuntimeError("No results to plot.")

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig, (hist_ax, speed_ax) = plt.subplots(2, 1, figsize=(10, 8))

    hist_ax.hist(result.results, bins=40, color="tab:gray", edgecolor="black")
    stats = result.summary()
    for label, value, style in (("mean", stats["mean"], "--"), ("median", stats["median"], ":")):
        hist_ax.axvline(value, color="black", linestyle=style, label=f"{label} {value:.2f}")
    hist_ax.set_xlabel("Lengths (positive = second horse ahead)")
    hist_ax.set_ylabel("Samples")
    hist_ax.legend(loc="upper right")

    run = result.run_data.median_run
    for slot, trajectory in enumerate(run.runs):
        speed_ax.plot(trajectory.position, trajectory.speed, color=COLORS[slot], linewidth=1.0, label=names[slot])
        for skill_id, intervals in trajectory.skills.items():
            for start, end in intervals:
                speed_ax.axvspan(start, end, color=COLORS[slot], alpha=0.12)
    speed_ax.set_xlim(0.0, course_distance)
    speed_ax.set_xlabel("Position (m)")
    speed_ax.set_ylabel("Speed (m/s)")
    speed_ax.set_title("Median run")
    speed_ax.legend(loc="lower right")

    fig.tight_layout()
    fig.savefig(str(output_path))
    plt.close(fig)
    print(f"[compare] saved chart to {output_path}")


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare two horses in lengths over repeated races.")
    parser.add_argument("horse_a", type=Path, help="JSON file for the first horse.")
    parser.add_argument("horse_b", type=Path, nargs="?", help="JSON file for the second horse.")
    parser.add_argument("--course", type=int, default=10506, help="Course id (default: 10506).")
    parser.add_argument(
        "--samples",
        type=int,
        default=int(get_config("comparison.default_samples", DEFAULT_SAMPLES)),
        help="Number of paired samples.",
    )
    parser.add_argument("--seed", type=int, help="Seed shared by both streams.")
    parser.add_argument("--mood", type=int, default=2, help="Mood from -2 to 2 (default: 2).")
    parser.add_argument("--ground", default="good", help="firm, good, soft or heavy.")
    parser.add_argument("--weather", default="sunny", help="sunny, cloudy, rainy or snowy.")
    parser.add_argument("--season", default="spring", help="spring, summer, autumn, winter or sakura.")
    parser.add_argument("--time", default="midday", help="morning, midday, evening or night.")
    parser.add_argument("--order", type=int, nargs=2, metavar=("LO", "HI"), help="Finishing order range.")
    parser.add_argument("--num-umas", type=int, default=9, help="Field size used with --order.")
    parser.add_argument("--no-pos-keep", action="store_true", help="Disable the default pacer.")
    parser.add_argument("--int-checks", action="store_true", help="Enable wisdom checks on skill activation.")
    parser.add_argument("--global-ruleset", action="store_true", help="Disable the region-specific mechanics.")
    parser.add_argument("--dump", type=Path, help="Optional JSON file for results and run data.")
    parser.add_argument("--plot", type=Path, help="Optional PNG path for a results chart (requires matplotlib).")
    parser.add_argument("--skill-chart", action="store_true", help="Rank catalog skills for the first horse.")
    parser.add_argument("--workers", type=int, help="Worker processes for --skill-chart.")
    parser.add_argument("--verbose", action="store_true", help="Print per-swap progress.")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    args = parse_args(argv)
    course = DEFAULT_COURSE_REGISTRY.load(args.course)
    racedef = _racedef_from_args(args)
    options = CompareOptions.from_config(
        seed=args.seed,
        use_pos_keep=False if args.no_pos_keep else None,
        use_int_checks=True if args.int_checks else None,
        global_ruleset=True if args.global_ruleset else None,
    )
    horse_a = _load_horse(args.horse_a)

    if args.skill_chart:
        catalog = default_catalog()
        rows = run_skill_chart(
            horse_a,
            catalog.skill_ids(),
            course,
            racedef,
            options,
            nsamples=args.samples,
            workers=args.workers,
            catalog=catalog,
            silent=False,
        )
        print(f"\n{'Skill':<28}{'Mean':>8}{'Median':>8}{'Min':>8}{'Max':>8}")
        for row in rows:
            stats = row.as_dict()
            print(f"{row.name:<28}{stats['mean']:>8.2f}{stats['median']:>8.2f}{stats['min']:>8.2f}{stats['max']:>8.2f}")
        return

    if args.horse_b is None:
        raise SystemExit("A second horse is required unless --skill-chart is given.")
    horse_b = _load_horse(args.horse_b)

    result = run_comparison(args.samples, course, racedef, horse_a, horse_b, options, verbose=args.verbose)
    stats = result.summary()
    print(f"\n{horse_a.name} vs {horse_b.name} on {course.name}:")
    print(f"  mean {stats['mean']:.2f}  median {stats['median']:.2f}  min {stats['min']:.2f}  max {stats['max']:.2f}")

    if args.dump:
        dump_result(result, args.dump)
    if args.plot:
        plot_result(result, (horse_a.name, horse_b.name), course.distance, args.plot)


if __name__ == "__main__":
    main()
