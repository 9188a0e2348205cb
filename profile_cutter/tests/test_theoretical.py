# profile_cutter/tests/test_theoretical.py

from __future__ import annotations

from profile_cutter.theoretical import calculate_minimum_stock, sanity_warnings
from profile_cutter.types import Constraints, Item, StockDef


def test_single_bar_lower_bound() -> None:
    m = calculate_minimum_stock({1000.0: 5}, [StockDef("stock-6000", 6000.0)], Constraints())
    assert m.min_stock_count == 1
    assert m.recommended_stock_length == 6000.0
    assert m.total_piece_length == 5000.0


def test_kerf_counts_per_piece() -> None:
    m = calculate_minimum_stock({1000.0: 6}, [StockDef("stock-6000", 6000.0)], Constraints(kerf_width=10.0))
    # 6 * 1010 = 6060 > 6000 + 10
    assert m.min_stock_count == 2


def test_accepts_items_and_prefers_fewer_bars() -> None:
    items = [Item("P", 1500.0, 8)]
    stocks = [StockDef("stock-6000", 6000.0), StockDef("stock-12000", 12000.0)]
    m = calculate_minimum_stock(items, stocks, Constraints())
    assert m.min_stock_count == 1
    assert m.recommended_stock_length == 12000.0
    assert len(m.breakdown) == 2


def test_sanity_warnings() -> None:
    m = calculate_minimum_stock({1000.0: 5}, [StockDef("stock-6000", 6000.0)], Constraints())
    assert sanity_warnings(m, 1, 6000.0) == []
    warnings = sanity_warnings(m, 3, 18000.0)
    assert len(warnings) == 2
