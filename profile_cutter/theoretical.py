# profile_cutter/theoretical.py
# Theoretical minimum bar count (lower bound, ignores packing difficulty).
#
# Every piece costs its length plus one kerf; a bar holds at most usable + kerf of that
# (n pieces need only n - 1 kerfs). So per stock length:
#     bars = ceil(sum(qty * (length + kerf)) / (usable + kerf))
# The recommended stock length minimizes bars, ties broken by higher coverage.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULTS
from .logger import Logger, or_null
from .types import Constraints, StockDef

_EPS = 1e-9


@dataclass(frozen=True)
class StockBound:
    stock_length: float
    usable_length: float
    bar_count: int
    coverage: float  # required / (bars * capacity), 0..1
    fits_all: bool   # longest piece fits this stock


@dataclass(frozen=True)
class TheoreticalMinimum:
    min_stock_count: int
    recommended_stock_length: float
    total_required: float        # pieces + kerf per piece
    total_piece_length: float    # pieces only
    breakdown: Tuple[StockBound, ...]


def _demand_from(items_or_demand) -> Mapping[float, int]:
    if isinstance(items_or_demand, Mapping):
        return items_or_demand
    out = {}
    for it in items_or_demand:
        out[float(it.length)] = out.get(float(it.length), 0) + int(it.quantity)
    return out


def calculate_minimum_stock(
    items_or_demand,
    stocks: Sequence[StockDef],
    constraints: Constraints,
) -> TheoreticalMinimum:
    """
    items_or_demand: list of Item, or a demand map length -> count.
    """
    demand = _demand_from(items_or_demand)
    if not stocks:
        raise ValueError("At least one stock definition is required")

    kerf = constraints.kerf_width
    piece_total = sum(ln * q for ln, q in demand.items())
    required = sum((ln + kerf) * q for ln, q in demand.items())
    longest = max(demand.keys()) if demand else 0.0

    bounds: List[StockBound] = []
    for s in stocks:
        capacity = s.usable_length + kerf
        bars = int(math.ceil(required / capacity - _EPS)) if required > 0 else 0
        coverage = required / (bars * capacity) if bars > 0 else 0.0
        bounds.append(
            StockBound(
                stock_length=s.raw_length,
                usable_length=s.usable_length,
                bar_count=bars,
                coverage=coverage,
                fits_all=longest <= s.usable_length + _EPS,
            )
        )

    candidates = [b for b in bounds if b.fits_all] or bounds
    best = min(candidates, key=lambda b: (b.bar_count, -b.coverage))
    return TheoreticalMinimum(
        min_stock_count=best.bar_count,
        recommended_stock_length=best.stock_length,
        total_required=required,
        total_piece_length=piece_total,
        breakdown=tuple(bounds),
    )


def sanity_warnings(
    minimum: TheoreticalMinimum,
    stock_count: int,
    total_stock_length: float,
    logger: Optional[Logger] = None,
) -> List[str]:
    """
    Soft checks of an actual result against the bound. Returns (and logs) warnings.
    """
    log = or_null(logger)
    out: List[str] = []
    if minimum.min_stock_count > 0 and stock_count > minimum.min_stock_count * DEFAULTS.bar_count_warn_factor:
        out.append(
            f"Bar count {stock_count} exceeds theoretical minimum {minimum.min_stock_count} "
            f"by more than {DEFAULTS.bar_count_warn_factor:g}x"
        )
    if minimum.total_required > 0 and total_stock_length > minimum.total_required * DEFAULTS.stock_length_warn_factor:
        out.append(
            f"Total stock length {total_stock_length:g} mm exceeds theoretical requirement "
            f"{minimum.total_required:g} mm by more than {DEFAULTS.stock_length_warn_factor:g}x"
        )
    for w in out:
        log.warn(w)
    return out
