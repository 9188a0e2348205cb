# profile_cutter/solver_pattern_cp_sat.py
# Exact pattern-selection solver (OR-Tools CP-SAT) for the "pattern-exact" algorithm:
# - one integer variable per pattern = how many bars are cut with it
# - demand[L] <= produced[L] <= demand[L] + over_production_tolerance
# - lexicographic objective: minimize bars first, then (with bars fixed) minimize waste
#
# Waste is scaled to integers (waste_scale units per mm) because CP-SAT needs integer
# coefficients. The pattern set should be Pareto filtered before it gets here; the model
# size is linear in the number of patterns.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from ortools.sat.python import cp_model

from .config import DEFAULTS
from .logger import Logger, or_null
from .solver_priority import SolverSolution
from .types import Pattern


@dataclass(frozen=True)
class ExactParams:
    time_limit_s: float = 10.0
    num_workers: int = 8
    over_production_tolerance: int = DEFAULTS.over_production_tolerance
    # integer units per mm of waste in the second phase objective
    waste_scale: int = 100


def _upper_bound(pattern: Pattern, demand: Mapping[float, int], tol: int) -> int:
    """Bars of this pattern that can be used before some length exceeds demand + tol."""
    ub = None
    for ln, c in pattern.cuts:
        cap = (int(demand.get(ln, 0)) + tol) // c
        ub = cap if ub is None else min(ub, cap)
    return max(0, ub or 0)


def _solve(model: cp_model.CpModel, params: ExactParams) -> Optional[cp_model.CpSolver]:
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(params.time_limit_s)
    solver.parameters.num_search_workers = int(params.num_workers)
    status = solver.Solve(model)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        return None
    return solver


def solve_patterns_exact(
    patterns: Sequence[Pattern],
    demand: Mapping[float, int],
    params: Optional[ExactParams] = None,
    logger: Optional[Logger] = None,
) -> Optional[SolverSolution]:
    """
    Returns None when the model is infeasible (some demanded length is in no pattern)
    or the time limit is hit without a feasible solution.
    """
    params = params or ExactParams()
    log = or_null(logger)
    tol = max(0, int(params.over_production_tolerance))
    wanted = {ln: int(q) for ln, q in demand.items() if q > 0}
    if not wanted:
        return SolverSolution(produced={}, total_bars=0, total_waste=0.0, picks=())

    m = cp_model.CpModel()

    # Number of bars cut with pattern j
    x = []
    for j, p in enumerate(patterns):
        x.append(m.NewIntVar(0, _upper_bound(p, wanted, tol), f"x[{j}]"))

    # Coverage: demand <= produced <= demand + tol
    for ln, q in wanted.items():
        terms = [p.count(ln) * x[j] for j, p in enumerate(patterns) if p.count(ln) > 0]
        if not terms:
            log.warn("No pattern contains demanded length", length=ln)
            return None
        m.Add(sum(terms) >= q)
        m.Add(sum(terms) <= q + tol)

    # Patterns with lengths outside demand must not be used
    for j, p in enumerate(patterns):
        if any(ln not in wanted for ln, _ in p.cuts):
            m.Add(x[j] == 0)

    # Phase 1: minimize bars
    bars = sum(x)
    m.Minimize(bars)
    solver = _solve(m, params)
    if solver is None:
        log.warn("CP-SAT found no feasible pattern selection (phase 1)")
        return None
    best_bars = int(round(solver.ObjectiveValue()))

    # Phase 2: bars fixed, minimize scaled waste
    waste_int = [int(math.ceil(p.waste * params.waste_scale - 1e-9)) for p in patterns]
    m.Add(bars == best_bars)
    for j in range(len(patterns)):
        m.AddHint(x[j], int(solver.Value(x[j])))
    m.Minimize(sum(w * x[j] for j, w in enumerate(waste_int)))
    solver2 = _solve(m, params)
    if solver2 is not None:
        solver = solver2
    else:
        log.warn("CP-SAT waste phase failed, keeping bar-minimal selection", bars=best_bars)

    counts: List[int] = [int(solver.Value(x[j])) for j in range(len(patterns))]
    picks: List[int] = []
    produced: Dict[float, int] = {}
    total_waste = 0.0
    for j, n in enumerate(counts):
        if n <= 0:
            continue
        picks.extend([j] * n)
        total_waste += patterns[j].waste * n
        for ln, c in patterns[j].cuts:
            produced[ln] = produced.get(ln, 0) + c * n

    log.debug(
        "CP-SAT pattern selection",
        bars=len(picks),
        waste=total_waste,
        patterns_used=sum(1 for n in counts if n > 0),
    )
    return SolverSolution(
        produced=produced,
        total_bars=len(picks),
        total_waste=total_waste,
        picks=tuple(picks),
        states_explored=0,
        fallback_picks=0,
    )
