# profile_cutter/tests/test_solver.py
# Priority search + CP-SAT pattern selection.

from __future__ import annotations

import pytest

from profile_cutter.packing import cuts_from_solution
from profile_cutter.patterns import PatternConfig, generate_patterns, make_pattern
from profile_cutter.solver_pattern_cp_sat import solve_patterns_exact
from profile_cutter.solver_priority import PrioritySearchSolver, SearchState, SolverSettings
from profile_cutter.types import Constraints, StockDef

STOCK_6000 = StockDef("stock-6000", 6000.0)


def test_one_bar_five_pieces() -> None:
    demand = {1000.0: 5}
    patterns = generate_patterns([STOCK_6000], demand, PatternConfig())
    sol = PrioritySearchSolver().solve(patterns, demand)

    assert sol is not None
    assert sol.total_bars == 1
    assert sol.produced == {1000.0: 5}
    assert sol.total_waste == pytest.approx(1000.0)

    cuts = cuts_from_solution(patterns, sol, Constraints())
    assert len(cuts) == 1
    assert cuts[0].segment_count == 5
    assert cuts[0].remaining_length == pytest.approx(1000.0)
    assert cuts[0].used_length + cuts[0].remaining_length == pytest.approx(6000.0, abs=0.01)


def test_covers_mixed_demand() -> None:
    demand = {992.0: 7, 687.0: 2}
    patterns = generate_patterns([StockDef("stock-7000", 7000.0)], demand, PatternConfig())
    sol = PrioritySearchSolver().solve(patterns, demand)
    assert sol is not None
    for ln, q in demand.items():
        assert sol.produced[ln] >= q
    assert sol.total_bars == len(sol.picks)


def test_fallback_when_tolerance_is_exceeded() -> None:
    only = make_pattern(STOCK_6000, ((1000.0, 5),), 0.0)
    sol = PrioritySearchSolver().solve([only], {1000.0: 1})
    assert sol is not None
    assert sol.fallback_picks == 1
    assert sol.produced == {1000.0: 5}


def test_state_budget_fails_search() -> None:
    demand = {1000.0: 5}
    patterns = generate_patterns([STOCK_6000], demand, PatternConfig())
    assert PrioritySearchSolver(SolverSettings(max_states=1)).solve(patterns, demand) is None


def test_useless_patterns_are_never_picked() -> None:
    other = make_pattern(STOCK_6000, ((500.0, 2),), 0.0)
    assert PrioritySearchSolver().solve([other], {1000.0: 1}) is None


def test_search_state_copy_on_extend() -> None:
    state = SearchState(remaining={1000.0: 5})
    p = make_pattern(STOCK_6000, ((1000.0, 2),), 0.0)
    nxt = state.extend(0, p)
    assert state.remaining == {1000.0: 5}
    assert state.picks == []
    assert nxt.remaining == {1000.0: 3}
    assert nxt.bars_used == 1
    assert nxt.waste == pytest.approx(4000.0)


def test_cp_sat_single_bar() -> None:
    demand = {1000.0: 5}
    patterns = generate_patterns([STOCK_6000], demand, PatternConfig())
    sol = solve_patterns_exact(patterns, demand)
    assert sol is not None
    assert sol.total_bars == 1
    assert sol.total_waste == pytest.approx(1000.0)


def test_cp_sat_minimizes_bars() -> None:
    demand = {992.0: 7, 687.0: 2}
    patterns = generate_patterns([StockDef("stock-7000", 7000.0)], demand, PatternConfig())
    sol = solve_patterns_exact(patterns, demand)
    assert sol is not None
    # 8318 mm of pieces cannot fit one 7000 mm bar
    assert sol.total_bars == 2
    for ln, q in demand.items():
        assert q <= sol.produced[ln] <= q + 2


def test_cp_sat_infeasible_returns_none() -> None:
    only = make_pattern(STOCK_6000, ((500.0, 1),), 0.0)
    assert solve_patterns_exact([only], {1000.0: 1}) is None
