# profile_cutter/run.py
# High-level runner that ties together:
# - algorithm registry (ffd, bfd, genetic, pooling, pattern-exact, nsga-ii)
# - optional stock-length resolver (work order -> stock lengths + provenance)
# - post-run validation (accounting + demand) and theoretical-minimum sanity warnings
# - execution timing
#
# Example:
#   from profile_cutter.run import optimize
#   res = optimize(items, [6000, 6500], Constraints(kerf_width=3.5), algorithm="bfd")

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULTS
from .errors import UnknownAlgorithmError
from .genetic import GeneticAlgorithm
from .heuristics import PatternExactAlgorithm, PoolingAlgorithm, best_fit_decreasing, first_fit_decreasing
from .logger import Logger, or_null
from .normalize import build_demand, build_stock_defs
from .nsga2 import NSGAIIAlgorithm
from .theoretical import calculate_minimum_stock, sanity_warnings
from .types import (
    Constraints,
    CostModel,
    Item,
    Objective,
    OptimizationResult,
    ParetoResult,
    PerformanceConfig,
    TimeModel,
    total_pieces,
)
from .utils import timer
from .validate import raise_on_errors, validate_cuts, validate_demand

ALGORITHMS: Dict[str, Callable[..., Any]] = {
    "ffd": lambda logger, device=None: first_fit_decreasing(logger),
    "bfd": lambda logger, device=None: best_fit_decreasing(logger),
    "genetic": lambda logger, device=None: GeneticAlgorithm(logger),
    "pooling": lambda logger, device=None: PoolingAlgorithm(logger),
    "pattern-exact": lambda logger, device=None: PatternExactAlgorithm(logger),
    "nsga-ii": lambda logger, device=None: NSGAIIAlgorithm(logger, device=device),
}

# Piece count below which "auto" picks NSGA-II instead of the GA
AUTO_NSGA_BELOW = 30


def auto_algorithm(piece_count: int) -> str:
    return "nsga-ii" if piece_count < AUTO_NSGA_BELOW else "genetic"


def get_algorithm(name: str, logger: Optional[Logger] = None, device: Any = None):
    key = (name or "").strip().lower()
    factory = ALGORITHMS.get(key)
    if factory is None:
        raise UnknownAlgorithmError(name, ALGORITHMS.keys())
    return factory(or_null(logger), device=device)


# ----------------------------
# Stock-length resolution
# ----------------------------

@dataclass(frozen=True)
class ProfileContext:
    work_order_id: str = ""
    profile_type: str = ""
    week_number: Optional[int] = None
    year: Optional[int] = None


# Returns (stock lengths, "mapping" | "fallback") or None when nothing is known
StockResolver = Callable[[ProfileContext], Optional[Tuple[List[float], str]]]


def resolve_stock_lengths(
    stock_lengths: Optional[Sequence[float]],
    resolver: Optional[StockResolver] = None,
    context: Optional[ProfileContext] = None,
    logger: Optional[Logger] = None,
) -> Tuple[List[float], str]:
    """
    Resolver answers win when non-empty; otherwise caller lengths, otherwise shop standard.
    Returns (lengths, provenance).
    """
    log = or_null(logger)
    if resolver is not None and context is not None:
        answer = resolver(context)
        if answer:
            lengths, source = answer
            if lengths:
                log.info("Stock lengths resolved", source=source, lengths=",".join(f"{x:g}" for x in lengths))
                return [float(x) for x in lengths], source
        log.debug("Stock resolver returned nothing", work_order=context.work_order_id)
    if stock_lengths:
        return [float(x) for x in stock_lengths], "request"
    log.warn("No stock lengths given, using shop standard lengths")
    return list(DEFAULTS.standard_stock_lengths), "default"


# ----------------------------
# Checks
# ----------------------------

def check_result(
    result: OptimizationResult,
    items: Sequence[Item],
    stock_lengths: Sequence[float],
    constraints: Constraints,
    logger: Optional[Logger] = None,
) -> List[str]:
    """
    Raises on accounting violations and demand shortage. Returns warnings
    (over-production, theoretical-minimum sanity checks), which are also logged.
    """
    log = or_null(logger)
    demand = build_demand(items)
    issues = validate_cuts(result.cuts, constraints.max_cuts_per_stock) + validate_demand(result.cuts, demand)
    raise_on_errors(issues)

    warnings = [i.message for i in issues if i.level.upper() == "WARN"]
    for w in warnings:
        log.warn(w)

    stocks = build_stock_defs(stock_lengths, constraints)
    minimum = calculate_minimum_stock(demand, stocks, constraints)
    total_stock = sum(c.stock_length for c in result.cuts)
    warnings.extend(sanity_warnings(minimum, result.stock_count, total_stock, log))
    result.metadata.setdefault("theoretical_min_bars", minimum.min_stock_count)
    return warnings


# ----------------------------
# Entry points
# ----------------------------

def optimize(
    items: Sequence[Item],
    stock_lengths: Optional[Sequence[float]] = None,
    constraints: Optional[Constraints] = None,
    objectives: Optional[Sequence[Objective]] = None,
    algorithm: str = "genetic",
    performance: Optional[PerformanceConfig] = None,
    cost_model: Optional[CostModel] = None,
    time_model: Optional[TimeModel] = None,
    *,
    logger: Optional[Logger] = None,
    stock_resolver: Optional[StockResolver] = None,
    context: Optional[ProfileContext] = None,
    device: Any = None,
    validate: bool = True,
) -> OptimizationResult:
    """
    Single-result optimization. `algorithm` is one of ALGORITHMS or "auto".
    For nsga-ii the knee point of the front is returned.
    """
    log = or_null(logger)
    constraints = constraints or Constraints()
    lengths, source = resolve_stock_lengths(stock_lengths, stock_resolver, context, log)

    name = algorithm
    if (algorithm or "").strip().lower() == "auto":
        name = auto_algorithm(total_pieces(items))
        log.info("Auto algorithm selection", algorithm=name)
    algo = get_algorithm(name, log, device=device)

    with timer("optimize") as t:
        result = algo.optimize(items, lengths, constraints, objectives, performance, cost_model, time_model)
    result.execution_time_ms = t["seconds"] * 1000.0
    result.metadata["stock_source"] = source

    if validate:
        result.metadata["warnings"] = check_result(result, items, lengths, constraints, log)

    log.info(
        "Optimization done",
        algorithm=result.algorithm,
        bars=result.stock_count,
        efficiency=result.efficiency,
        waste=result.total_waste,
        ms=result.execution_time_ms,
    )
    return result


def optimize_multi_objective(
    items: Sequence[Item],
    stock_lengths: Optional[Sequence[float]] = None,
    constraints: Optional[Constraints] = None,
    objectives: Optional[Sequence[Objective]] = None,
    performance: Optional[PerformanceConfig] = None,
    cost_model: Optional[CostModel] = None,
    time_model: Optional[TimeModel] = None,
    *,
    logger: Optional[Logger] = None,
    stock_resolver: Optional[StockResolver] = None,
    context: Optional[ProfileContext] = None,
    device: Any = None,
    validate: bool = True,
) -> ParetoResult:
    log = or_null(logger)
    constraints = constraints or Constraints()
    lengths, source = resolve_stock_lengths(stock_lengths, stock_resolver, context, log)
    algo = NSGAIIAlgorithm(log, device=device)

    with timer("nsga-ii") as t:
        res = algo.optimize_multi_objective(
            items, lengths, constraints, objectives, performance, cost_model, time_model
        )
    elapsed_ms = t["seconds"] * 1000.0
    res.metadata["stock_source"] = source

    members = res.pareto_front + [res.recommended_solution]
    for member in members:
        member.execution_time_ms = elapsed_ms
        if validate:
            member.metadata["warnings"] = check_result(member, items, lengths, constraints, log)
    return res
