# profile_cutter/tests/test_genetic.py

from __future__ import annotations

import pytest

from profile_cutter.genetic import GeneticAlgorithm, adaptive_parameters, normalize01, objective_weights
from profile_cutter.config import ALUMINUM_OBJECTIVES
from profile_cutter.types import Constraints, Item, PerformanceConfig


def _three_items():
    return [
        Item("P40", 1200.0, 1, "WO-1"),
        Item("P40", 800.0, 1, "WO-2"),
        Item("P50", 2500.0, 1, "WO-3"),
    ]


def test_same_seed_same_plan() -> None:
    cons = Constraints(kerf_width=3.0)
    perf = PerformanceConfig(generations=20, seed=12345)
    a = GeneticAlgorithm().optimize(_three_items(), [6000], cons, performance=perf)
    b = GeneticAlgorithm().optimize(_three_items(), [6000], cons, performance=perf)

    assert a.cuts == b.cuts
    assert a.objectives() == b.objectives()
    assert a.metadata["sequence"] == b.metadata["sequence"]
    assert a.metadata["rng_draws"] == b.metadata["rng_draws"]
    assert a.stock_count == 1
    assert a.algorithm == "genetic"
    assert a.metadata["convergence_reason"] in ("max-generations", "converged", "stagnation")


def test_accounting_and_demand() -> None:
    items = [Item("P40", 1200.0, 4), Item("P40", 950.0, 3), Item("P50", 600.0, 5)]
    cons = Constraints(kerf_width=3.5, start_safety=2.0, end_safety=2.0)
    res = GeneticAlgorithm().optimize(items, [6000, 6500], cons, performance=PerformanceConfig(generations=10))
    for c in res.cuts:
        assert c.used_length + c.remaining_length == pytest.approx(c.stock_length, abs=0.01)
    assert res.produced() == {1200.0: 4, 950.0: 3, 600.0: 5}
    assert 0.0 < res.efficiency <= 100.0


def test_zero_kerf_goes_through_pattern_evaluator() -> None:
    res = GeneticAlgorithm().optimize([Item("A", 1000.0, 5)], [6000], Constraints())
    assert res.stock_count == 1
    assert res.total_waste == pytest.approx(1000.0)
    assert res.metadata["evaluator"] == "pattern"


def test_adaptive_parameters() -> None:
    small = adaptive_parameters(5)
    assert (small.population_size, small.generations) == (10, 20)
    large = adaptive_parameters(1000)
    assert (large.population_size, large.generations) == (25, 30)
    tuned = adaptive_parameters(5, PerformanceConfig(population_size=40))
    assert tuned.population_size == 40
    assert tuned.generations == 20


def test_normalize01() -> None:
    assert normalize01(5.0, 0.0, 10.0) == pytest.approx(0.5)
    assert normalize01(20.0, 0.0, 10.0) == 1.0
    assert normalize01(0.0, 0.0, 0.0) == 0.5
    assert normalize01(3.0, 3.0, 3.0) == pytest.approx(1.0)


def test_objective_weights() -> None:
    w = objective_weights(ALUMINUM_OBJECTIVES)
    assert sum(w.values()) == pytest.approx(1.0)
    assert w["minimize-waste"] == pytest.approx(0.5)


def test_zero_kerf_respects_cut_limit() -> None:
    cons = Constraints(max_cuts_per_stock=2)
    res = GeneticAlgorithm().optimize([Item("A", 1000.0, 6)], [6000], cons)
    assert res.metadata["evaluator"] == "pattern"
    assert [c.segment_count for c in res.cuts] == [2, 2, 2]
    assert res.produced() == {1000.0: 6}
