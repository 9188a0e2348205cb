# profile_cutter/tests/test_run.py
# Registry + runner: every algorithm must return a valid plan for the same job.

from __future__ import annotations

import pytest

from profile_cutter.errors import UnknownAlgorithmError
from profile_cutter.run import (
    ALGORITHMS,
    ProfileContext,
    auto_algorithm,
    get_algorithm,
    optimize,
    optimize_multi_objective,
    resolve_stock_lengths,
)
from profile_cutter.types import Constraints, Item, PerformanceConfig

ITEMS = [
    Item("P40", 1200.0, 3, "WO-1"),
    Item("P40", 800.0, 4, "WO-1"),
    Item("P50", 2300.0, 2, "WO-2"),
]
DEMAND = {1200.0: 3, 800.0: 4, 2300.0: 2}
CONS = Constraints(kerf_width=3.0, start_safety=2.0, end_safety=2.0)
PERF = PerformanceConfig(population_size=10, generations=5)


def test_registry() -> None:
    assert set(ALGORITHMS) == {"ffd", "bfd", "genetic", "pooling", "pattern-exact", "nsga-ii"}
    assert get_algorithm("BFD").name == "bfd"
    with pytest.raises(UnknownAlgorithmError):
        get_algorithm("simulated-annealing")
    with pytest.raises(ValueError):
        optimize(ITEMS, [6000], CONS, algorithm="nope")


def test_auto_algorithm() -> None:
    assert auto_algorithm(10) == "nsga-ii"
    assert auto_algorithm(50) == "genetic"


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_every_algorithm_returns_a_valid_plan(name: str) -> None:
    res = optimize(ITEMS, [6000, 6500], CONS, algorithm=name, performance=PERF)
    assert res.algorithm == name
    assert res.stock_count == len(res.cuts) > 0
    for c in res.cuts:
        assert c.used_length + c.remaining_length == pytest.approx(c.stock_length, abs=0.01)
        assert c.stock_length in (6000.0, 6500.0)
    produced = res.produced()
    for ln, q in DEMAND.items():
        assert q <= produced[ln] <= q + 2
    assert res.execution_time_ms >= 0.0
    assert res.metadata["stock_source"] == "request"
    assert isinstance(res.metadata["warnings"], list)
    assert res.metadata["theoretical_min_bars"] >= 1
    assert res.stock_count >= res.metadata["theoretical_min_bars"]


def test_pooling_never_mixes_profiles() -> None:
    res = optimize(ITEMS, [6000], CONS, algorithm="pooling")
    for c in res.cuts:
        assert len({s.profile_type for s in c.segments}) == 1
    assert res.metadata["pools"] == {"P40": 7, "P50": 2}


def test_pattern_exact_single_bar() -> None:
    res = optimize([Item("A", 1000.0, 5)], [6000], Constraints(), algorithm="pattern-exact")
    assert res.stock_count == 1
    assert res.total_waste == pytest.approx(1000.0)


def test_resolver_provenance() -> None:
    ctx = ProfileContext(work_order_id="WO-1", profile_type="P40")
    res = optimize(
        ITEMS, [6000], CONS, algorithm="bfd", stock_resolver=lambda c: ([6500.0], "mapping"), context=ctx
    )
    assert res.metadata["stock_source"] == "mapping"
    assert {c.stock_length for c in res.cuts} == {6500.0}

    res = optimize(ITEMS, [6000], CONS, algorithm="bfd", stock_resolver=lambda c: None, context=ctx)
    assert res.metadata["stock_source"] == "request"
    assert {c.stock_length for c in res.cuts} == {6000.0}


def test_standard_lengths_when_nothing_given() -> None:
    lengths, source = resolve_stock_lengths(None)
    assert source == "default"
    assert lengths == [6100.0, 6500.0, 7300.0, 8000.0]
    res = optimize(ITEMS, None, CONS, algorithm="ffd")
    assert res.metadata["stock_source"] == "default"


def test_item_longer_than_stock_is_rejected() -> None:
    with pytest.raises(ValueError):
        optimize([Item("P", 7000.0, 1)], [6000], CONS, algorithm="bfd")


def test_multi_objective_entry_point() -> None:
    res = optimize_multi_objective(ITEMS, [6000, 6500], CONS, performance=PERF)
    assert res.front_size >= 1
    assert res.metadata["stock_source"] == "request"
    for member in res.pareto_front:
        assert isinstance(member.metadata["warnings"], list)
