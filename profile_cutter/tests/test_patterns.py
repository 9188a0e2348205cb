# profile_cutter/tests/test_patterns.py
# Pattern generation: fit, exact waste, kerf, caps, strategy switch.

from __future__ import annotations

import pytest

from profile_cutter.patterns import (
    BoundedPatternGenerator,
    BruteForcePatternGenerator,
    HybridPatternGenerator,
    PatternConfig,
    generate_patterns,
    make_pattern,
    used_length,
)
from profile_cutter.types import StockDef


def _stock(raw: float, start: float = 0.0, end: float = 0.0) -> StockDef:
    return StockDef(id=f"stock-{raw:g}", raw_length=raw, start_margin=start, end_margin=end)


def _check_fit(patterns, usable):
    for p in patterns:
        assert p.used_length <= usable + 1e-9
        assert p.waste == pytest.approx(usable - p.used_length)


def test_mixed_pattern_for_two_lengths() -> None:
    stock = _stock(7000)
    demand = {992.0: 7, 687.0: 2}
    patterns = generate_patterns([stock], demand, PatternConfig(kerf_width=0.0))

    _check_fit(patterns, 7000)
    mixed = [p for p in patterns if p.count(992.0) > 0 and p.count(687.0) > 0]
    assert mixed
    assert any(p.waste < 7000 - (992 + 687) for p in mixed)
    assert min(p.waste for p in mixed) == pytest.approx(361.0)


def test_counts_never_exceed_demand() -> None:
    patterns = generate_patterns([_stock(6000)], {1000.0: 5}, PatternConfig())
    assert sorted(p.count(1000.0) for p in patterns) == [1, 2, 3, 4, 5]


def test_kerf_between_segments_only() -> None:
    stock = _stock(3000)
    patterns = generate_patterns([stock], {1000.0: 5}, PatternConfig(kerf_width=10.0))
    _check_fit(patterns, 3000)
    assert max(p.count(1000.0) for p in patterns) == 2
    two = [p for p in patterns if p.count(1000.0) == 2][0]
    assert two.used_length == pytest.approx(2010.0)
    assert used_length(((1000.0, 3),), 10.0) == pytest.approx(3020.0)


def test_safety_margins_reduce_usable_length() -> None:
    stock = _stock(6000, start=2.0, end=2.0)
    assert stock.usable_length == pytest.approx(5996.0)
    patterns = generate_patterns([stock], {1000.0: 6}, PatternConfig())
    # 6 x 1000 needs 6000 > 5996
    assert max(p.count(1000.0) for p in patterns) == 5
    _check_fit(patterns, stock.usable_length)


def test_max_pieces_per_stock() -> None:
    patterns = generate_patterns([_stock(6000)], {100.0: 20}, PatternConfig(max_pieces_per_stock=5))
    assert max(p.piece_count for p in patterns) == 5


def test_strategy_switch_on_distinct_lengths() -> None:
    gen = HybridPatternGenerator()
    few = {float(100 * k): 1 for k in range(1, 9)}
    many = {float(100 * k): 1 for k in range(1, 10)}
    assert isinstance(gen.strategy_for(few, PatternConfig()), BruteForcePatternGenerator)
    assert isinstance(gen.strategy_for(many, PatternConfig()), BoundedPatternGenerator)


def test_bounded_enumerator_fits_and_is_unique() -> None:
    stock = _stock(1000)
    demand = {float(100 * k): 1 for k in range(1, 10)}
    patterns = generate_patterns([stock], demand, PatternConfig())
    _check_fit(patterns, 1000)
    keys = [p.cuts for p in patterns]
    assert len(keys) == len(set(keys))
    assert all(c <= 1 for p in patterns for _, c in p.cuts)
    # 100 + 200 + ... + 400 = 1000 fits exactly
    assert any(p.waste == pytest.approx(0.0) for p in patterns)


def test_pattern_cap() -> None:
    stock = _stock(1000)
    demand = {float(100 * k): 1 for k in range(1, 10)}
    patterns = generate_patterns([stock], demand, PatternConfig(max_patterns_per_stock=5))
    assert len(patterns) == 5


def test_nothing_fits_gives_empty_list() -> None:
    patterns = generate_patterns([_stock(500)], {1000.0: 2}, PatternConfig())
    assert patterns == []


def test_make_pattern_label() -> None:
    p = make_pattern(_stock(6000), ((1000.0, 2), (687.0, 1)), 0.0)
    assert p.label() == "2 × 1000 mm + 1 × 687 mm"
    assert p.piece_count == 3
    assert p.counts() == {1000.0: 2, 687.0: 1}
