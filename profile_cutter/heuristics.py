# profile_cutter/heuristics.py
# Fast constructive algorithms:
# - ffd: first-fit decreasing
# - bfd: best-fit decreasing (tightest remaining space)
# - pooling: pieces grouped by profile type, each group packed with BFD (no mixed bars)
# - pattern-exact: patterns + Pareto filter + CP-SAT (min bars, then min waste)
#
# New bars take the stock length with the least waste per piece for the piece that opens them.

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .arena import ItemArena
from .errors import NoSolutionError
from .logger import Logger, or_null
from .metrics import build_result
from .normalize import normalize_input
from .packing import cuts_from_solution, finalize_cuts, pack_decreasing
from .pareto_filter import ParetoFilter
from .patterns import PatternConfig, generate_patterns
from .solver_pattern_cp_sat import ExactParams, solve_patterns_exact
from .types import (
    Constraints,
    CostModel,
    Cut,
    Item,
    Objective,
    OptimizationResult,
    PerformanceConfig,
    TimeModel,
)


class DecreasingFitAlgorithm:
    """FFD / BFD over all pieces."""

    def __init__(self, name: str, best_fit: bool, logger: Optional[Logger] = None):
        self.name = name
        self.best_fit = best_fit
        self.logger = or_null(logger)

    def optimize(
        self,
        items: Sequence[Item],
        stock_lengths: Sequence[float],
        constraints: Constraints,
        objectives: Optional[Sequence[Objective]] = None,
        performance: Optional[PerformanceConfig] = None,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
    ) -> OptimizationResult:
        norm = normalize_input(items, stock_lengths, constraints, objectives, self.logger)
        arena = ItemArena(items)
        cuts = pack_decreasing(arena, arena.indices(), norm.stocks, constraints, self.best_fit)
        finalize_cuts(cuts, constraints)
        self.logger.debug(f"{self.name} packed", pieces=len(arena), bars=len(cuts))
        return build_result(self.name, cuts, constraints, cost_model, time_model)


def first_fit_decreasing(logger: Optional[Logger] = None) -> DecreasingFitAlgorithm:
    return DecreasingFitAlgorithm("ffd", best_fit=False, logger=logger)


def best_fit_decreasing(logger: Optional[Logger] = None) -> DecreasingFitAlgorithm:
    return DecreasingFitAlgorithm("bfd", best_fit=True, logger=logger)


class PoolingAlgorithm:
    """One BFD pool per profile type."""

    name = "pooling"

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)

    def optimize(
        self,
        items: Sequence[Item],
        stock_lengths: Sequence[float],
        constraints: Constraints,
        objectives: Optional[Sequence[Objective]] = None,
        performance: Optional[PerformanceConfig] = None,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
    ) -> OptimizationResult:
        norm = normalize_input(items, stock_lengths, constraints, objectives, self.logger)
        arena = ItemArena(items)

        pools: Dict[str, List[int]] = {}
        for p in arena.pieces:
            pools.setdefault(p.profile_type, []).append(p.index)

        cuts: List[Cut] = []
        for profile, indices in pools.items():
            group = pack_decreasing(arena, indices, norm.stocks, constraints, best_fit=True, first_index=len(cuts))
            self.logger.debug("Pool packed", profile=profile, pieces=len(indices), bars=len(group))
            cuts.extend(group)
        finalize_cuts(cuts, constraints)
        return build_result(
            self.name,
            cuts,
            constraints,
            cost_model,
            time_model,
            metadata={"pools": {k: len(v) for k, v in pools.items()}},
        )


class PatternExactAlgorithm:
    """Pattern enumeration + Pareto filter + CP-SAT selection."""

    name = "pattern-exact"

    def __init__(self, logger: Optional[Logger] = None, params: Optional[ExactParams] = None):
        self.logger = or_null(logger)
        self.params = params or ExactParams()

    def optimize(
        self,
        items: Sequence[Item],
        stock_lengths: Sequence[float],
        constraints: Constraints,
        objectives: Optional[Sequence[Objective]] = None,
        performance: Optional[PerformanceConfig] = None,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
    ) -> OptimizationResult:
        log = self.logger
        norm = normalize_input(items, stock_lengths, constraints, objectives, log)
        arena = ItemArena(items)

        config = PatternConfig(
            kerf_width=constraints.kerf_width,
            max_pieces_per_stock=min(constraints.max_cuts_per_stock, PatternConfig().max_pieces_per_stock),
        )
        raw = generate_patterns(norm.stocks, norm.demand, config, log)
        patterns = ParetoFilter(log).filter(raw)
        log.debug("Pattern set", generated=len(raw), kept=len(patterns))

        solution = solve_patterns_exact(patterns, norm.demand, self.params, log)
        if solution is None and len(patterns) < len(raw):
            # filtered sets can lose the small patterns needed to stay within tolerance
            log.warn("No selection from filtered patterns, retrying with all patterns", patterns=len(raw))
            patterns = raw
            solution = solve_patterns_exact(patterns, norm.demand, self.params, log)
        if solution is None:
            raise NoSolutionError(
                f"Pattern-exact solver found no selection covering demand "
                f"({len(norm.demand)} lengths, {len(patterns)} patterns)"
            )
        cuts = cuts_from_solution(patterns, solution, constraints, arena)
        return build_result(
            self.name,
            cuts,
            constraints,
            cost_model,
            time_model,
            metadata={"patterns_generated": len(raw), "patterns_considered": len(patterns)},
        )
