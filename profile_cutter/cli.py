# profile_cutter/cli.py
# Command line runner:
# - items from CSV (--items) or a full JSON job (--job)
# - any registered algorithm, or nsga-ii front summary with --pareto
# - optional CSV / JSON export folder
# - prints per-bar plans + totals, optional matplotlib figure
#
# Run:
#   python -m profile_cutter --items items.csv --stock 6100,6500 --algorithm bfd --out out/
#
# CSV items format (header required):
#   profileType,length,quantity,workOrderId

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from .config import DEFAULTS, parse_objectives, parse_stock_lengths
from .costing import cost_lines, cost_per_meter
from .io_csv import export_all, read_items_csv
from .io_json import load_job_json
from .logger import get_logger, set_enabled, set_verbose
from .run import ALGORITHMS, optimize, optimize_multi_objective
from .types import Constraints, PerformanceConfig
from .utils import save_result_json


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="1D aluminium profile cutting optimizer")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--items", type=str, help="Path to items CSV")
    src.add_argument("--job", type=str, help="Path to job JSON (items, stock lengths, constraints, ...)")
    p.add_argument(
        "--stock",
        type=str,
        default=",".join(f"{x:g}" for x in DEFAULTS.standard_stock_lengths),
        help="Stock lengths in mm, e.g. 6100,6500",
    )
    p.add_argument("--kerf", type=float, default=DEFAULTS.standard_kerf, help="Saw kerf in mm")
    p.add_argument("--start_safety", type=float, default=DEFAULTS.standard_start_safety, help="Start safety in mm")
    p.add_argument("--end_safety", type=float, default=DEFAULTS.standard_end_safety, help="End safety in mm")
    p.add_argument("--min_scrap", type=float, default=0.0, help="Offcuts at least this long are reclaimable")
    p.add_argument(
        "--algorithm",
        type=str,
        default="",
        help=f"One of: {', '.join(sorted(ALGORITHMS))}, auto (job value or 'genetic' when omitted)",
    )
    p.add_argument("--objectives", type=str, default="", help="Weights, e.g. waste=0.5,efficiency=0.3,cost=0.2")
    p.add_argument("--population", type=int, default=0, help="Population size override")
    p.add_argument("--generations", type=int, default=0, help="Generation count override")
    p.add_argument("--seed", type=int, default=DEFAULTS.seed, help="RNG seed")
    p.add_argument("--pareto", action="store_true", help="Run NSGA-II and print the Pareto front")
    p.add_argument("--out", type=str, default="", help="Output directory for CSV/JSON exports (optional)")
    p.add_argument("--plot", action="store_true", help="Show matplotlib plot of the plan")
    p.add_argument("--quiet", action="store_true", help="No log output")
    p.add_argument("--debug", action="store_true", help="Debug log output")
    return p


def _print_result(res) -> None:
    print(f"Algorithm: {res.algorithm}")
    print(f"Bars used: {res.stock_count}")
    print(f"Efficiency: {res.efficiency:.2f}% ({res.efficiency_category})")
    print(f"Total waste: {res.total_waste:,.1f} mm ({res.waste_percentage:.2f}%)")
    print(f"Total time: {res.total_time:.0f} min")
    print(f"Total cost: {res.total_cost:,.2f} ({cost_per_meter(res.total_cost, res.total_length):,.2f} per m)")
    for line in cost_lines(res.cost_breakdown):
        print(f"  {line}")
    for c in res.cuts:
        print(
            f"- Bar {c.index + 1}: {c.stock_length:g} mm | {c.plan_label} | "
            f"offcut {c.remaining_length:,.1f} mm ({c.waste_category.value}"
            f"{', reclaimable' if c.is_reclaimable else ''})"
        )


def main(argv: Optional[List[str]] = None) -> None:
    args = build_argparser().parse_args(argv)
    set_enabled(not args.quiet)
    set_verbose(args.debug)
    log = get_logger()

    context = None
    if args.job:
        job = load_job_json(Path(args.job))
        items = job.items
        stock = job.stock_lengths or parse_stock_lengths(args.stock)
        constraints = job.constraints
        objectives = job.objectives
        algorithm = args.algorithm or job.algorithm
        performance = job.performance
        context = job.context
    else:
        items = read_items_csv(Path(args.items))
        stock = parse_stock_lengths(args.stock)
        constraints = Constraints(
            kerf_width=args.kerf,
            start_safety=args.start_safety,
            end_safety=args.end_safety,
            min_scrap_length=args.min_scrap,
        )
        objectives = parse_objectives(args.objectives) if args.objectives else []
        algorithm = args.algorithm or "genetic"
        performance = None

    if not items:
        raise SystemExit("No items found.")

    if performance is None or args.population or args.generations:
        base = performance or PerformanceConfig(seed=args.seed)
        performance = PerformanceConfig(
            population_size=args.population or base.population_size,
            generations=args.generations or base.generations,
            seed=base.seed,
        )

    out_dir = Path(args.out) if args.out.strip() else None

    if args.pareto:
        pres = optimize_multi_objective(
            items, stock, constraints, objectives, performance, logger=log, context=context
        )
        print(f"Pareto front: {pres.front_size} solutions")
        print(f"Hypervolume: {pres.hypervolume:.4f}  spacing: {pres.spacing:.4f}  spread: {pres.spread:.4f}")
        for k, r in enumerate(pres.pareto_front):
            print(
                f"  [{k + 1}] bars={r.stock_count} waste={r.total_waste:,.1f} cost={r.total_cost:,.2f} "
                f"efficiency={r.efficiency:.2f}% time={r.total_time:.0f}"
            )
        res = pres.recommended_solution
        print("Recommended (knee point):")
        if out_dir is not None:
            save_result_json(pres, out_dir / "pareto.json")
    else:
        res = optimize(items, stock, constraints, objectives, algorithm, performance, logger=log, context=context)

    _print_result(res)

    if out_dir is not None:
        export_all(res, out_dir=out_dir, prefix="plan")
        save_result_json(res, out_dir / "plan.json")

    if args.plot:
        from .plotting import show_result
        show_result(res)


if __name__ == "__main__":
    main()
