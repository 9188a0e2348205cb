# profile_cutter/tests/test_pareto_filter.py

from __future__ import annotations

from profile_cutter.pareto_filter import ParetoFilter, pattern_dominates
from profile_cutter.patterns import PatternConfig, generate_patterns, make_pattern
from profile_cutter.types import StockDef


def test_more_pieces_less_waste_dominates() -> None:
    stock = StockDef("stock-6000", 6000.0)
    p4 = make_pattern(stock, ((1000.0, 4),), 0.0)
    p5 = make_pattern(stock, ((1000.0, 5),), 0.0)
    assert pattern_dominates(p5, p4)
    assert not pattern_dominates(p4, p5)
    assert ParetoFilter().filter([p4, p5]) == [p5]


def test_different_stock_lengths_never_dominate() -> None:
    a = make_pattern(StockDef("stock-6000", 6000.0), ((1000.0, 5),), 0.0)
    b = make_pattern(StockDef("stock-6500", 6500.0), ((1000.0, 1),), 0.0)
    assert not pattern_dominates(a, b)
    assert ParetoFilter().filter([a, b]) == [a, b]


def test_filter_is_idempotent() -> None:
    stocks = [StockDef("stock-6000", 6000.0), StockDef("stock-7000", 7000.0)]
    patterns = generate_patterns(stocks, {992.0: 7, 687.0: 2, 450.0: 3}, PatternConfig())
    flt = ParetoFilter()
    once = flt.filter(patterns)
    twice = flt.filter(once)
    assert twice == once
    assert len(once) <= len(patterns)


def test_survivors_are_mutually_non_dominated() -> None:
    stocks = [StockDef("stock-7000", 7000.0)]
    kept = ParetoFilter().filter(generate_patterns(stocks, {992.0: 7, 687.0: 2}, PatternConfig()))
    for a in kept:
        for b in kept:
            assert not pattern_dominates(a, b)
