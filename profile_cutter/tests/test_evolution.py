# profile_cutter/tests/test_evolution.py

from __future__ import annotations

import pytest

from profile_cutter.arena import ItemArena
from profile_cutter.evolution import EvaluationSettings, EvolutionOperators, Lcg, cluster_shuffle, lcg_next
from profile_cutter.normalize import build_stock_defs
from profile_cutter.solver_priority import SolverSettings
from profile_cutter.types import Constraints, Item


def _ops(items, stock_lengths, constraints, settings=None) -> EvolutionOperators:
    arena = ItemArena(items)
    stocks = build_stock_defs(stock_lengths, constraints)
    return EvolutionOperators(arena, stocks, constraints, "genetic", settings=settings)


def _ten_pieces():
    return [Item("P40", 1200.0, 3), Item("P40", 950.0, 2), Item("P50", 700.0, 3), Item("P50", 450.0, 2)]


def test_lcg_known_first_step() -> None:
    state, value = lcg_next(12345)
    assert state == 87628868
    assert value == pytest.approx(87628868 / 2 ** 32)


def test_lcg_is_reproducible() -> None:
    a, b = Lcg(42), Lcg(42)
    assert [a.random() for _ in range(50)] == [b.random() for _ in range(50)]
    assert a.draws == 50
    r = Lcg(7)
    for _ in range(100):
        v = r.below(10)
        assert 0 <= v < 10


def test_cluster_shuffle_is_a_permutation() -> None:
    lengths = [float(100 + 10 * i) for i in range(25)]
    seq = list(range(25))
    out = cluster_shuffle(seq, lengths, 1234)
    assert sorted(out) == seq
    assert out == cluster_shuffle(seq, lengths, 1234)


def test_initial_population() -> None:
    ops = _ops(_ten_pieces(), [6000], Constraints(kerf_width=3.0))
    pop = ops.initial_population(8, Lcg(1))
    assert len(pop) == 8
    for seq in pop:
        assert sorted(seq) == list(range(10))
    lengths = ops.arena.lengths
    assert [lengths[i] for i in pop[0]] == sorted(lengths, reverse=True)


def test_order_crossover_keeps_every_piece_once() -> None:
    ops = _ops(_ten_pieces(), [6000], Constraints(kerf_width=3.0))
    p1 = list(range(10))
    p2 = list(reversed(p1))
    rng = Lcg(99)
    for _ in range(20):
        child = ops.order_crossover(p1, p2, rng)
        assert sorted(child) == p1
    assert ops.crossover_repairs == 0


def test_mutations_are_permutations() -> None:
    ops = _ops(_ten_pieces(), [6000], Constraints(kerf_width=3.0))
    seq = list(range(10))
    rng = Lcg(5)
    swapped = ops.swap_mutation(seq, rng)
    assert sorted(swapped) == seq
    assert sum(1 for a, b in zip(seq, swapped) if a != b) == 2
    inverted = ops.inversion_mutation(seq, rng)
    assert sorted(inverted) == seq
    assert ops.inversion_mutation([0, 1], rng) == [0, 1]


def test_tournament_returns_valid_index() -> None:
    ops = _ops(_ten_pieces(), [6000], Constraints(kerf_width=3.0))
    rng = Lcg(3)
    for _ in range(10):
        assert 0 <= ops.tournament([0.1, 0.9, 0.5], rng) < 3


def test_look_ahead_evaluation_is_cached() -> None:
    ops = _ops(_ten_pieces(), [6000], Constraints(kerf_width=3.0))
    seq = list(range(10))
    first = ops.evaluate(seq)
    second = ops.evaluate(seq)
    assert first is second
    assert ops.evaluations == 1
    assert sum(first.produced().values()) == 10


def test_zero_kerf_uses_pattern_evaluator() -> None:
    ops = _ops([Item("A", 1000.0, 5)], [6000], Constraints())
    res = ops.evaluate([4, 3, 2, 1, 0])
    assert ops.uses_pattern_evaluator
    assert res.stock_count == 1
    assert res.total_waste == pytest.approx(1000.0)
    assert res.metadata["evaluator"] == "pattern"
    assert ops.evaluate([0, 1, 2, 3, 4]) is res


@pytest.mark.parametrize("skip_filter", [True, False])
def test_pattern_evaluator_covers_demand_with_and_without_filter(skip_filter: bool) -> None:
    settings = EvaluationSettings(solver=SolverSettings(skip_pattern_pareto_filter=skip_filter))
    items = [Item("P", 992.0, 7), Item("P", 687.0, 2)]
    ops = _ops(items, [7000], Constraints(), settings)
    res = ops.evaluate(ops.arena.indices())
    produced = res.produced()
    assert produced[992.0] >= 7
    assert produced[687.0] >= 2


def test_pattern_evaluator_skipped_for_large_instances() -> None:
    settings = EvaluationSettings(dp_max_distinct_lengths=1)
    items = [Item("P", 992.0, 2), Item("P", 687.0, 2)]
    ops = _ops(items, [7000], Constraints(), settings)
    res = ops.evaluate(ops.arena.indices())
    assert not ops.uses_pattern_evaluator
    assert sum(res.produced().values()) == 4


class _FixedDraws:
    def __init__(self, *values: float):
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0)


def test_order_crossover_backfills_from_first_parent() -> None:
    ops = _ops([Item("A", 1000.0, 6)], [6000], Constraints())
    # slice keeps p1[3]; p2 only brings 0 and 1, so the child comes out short
    child = ops.order_crossover([0, 1, 2, 3, 4, 5], [0, 0, 1, 1, 3, 3], _FixedDraws(0.5, 0.0))
    assert child == [0, 1, 3, 2, 4, 5]
    assert ops.crossover_repairs == 1
