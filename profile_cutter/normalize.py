# profile_cutter/normalize.py
# Normalizer: raw items / stock lengths / objectives -> canonical run inputs.
# - demand: length -> total quantity (longest first)
# - stocks: one StockDef per distinct raw length, usable length after margins
# - objectives: weights summing to 1 (defaults when missing or degenerate)

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import ALUMINUM_OBJECTIVES, FALLBACK_OBJECTIVES
from .logger import Logger, or_null
from .types import Constraints, Item, Objective, StockDef


@dataclass(frozen=True)
class NormalizedInput:
    demand: Dict[float, int]
    stocks: Tuple[StockDef, ...]
    objectives: Tuple[Objective, ...]


def build_demand(items: Iterable[Item]) -> Dict[float, int]:
    out: Dict[float, int] = {}
    for it in items:
        ln = float(it.length)
        out[ln] = out.get(ln, 0) + int(it.quantity)
    return dict(sorted(out.items(), key=lambda kv: -kv[0]))


def build_stock_defs(stock_lengths: Iterable[float], constraints: Constraints) -> List[StockDef]:
    """Distinct stock lengths, ascending. Raises ValueError on empty/invalid input."""
    lengths = sorted({float(x) for x in stock_lengths})
    if not lengths:
        raise ValueError("At least one stock length is required")
    stocks: List[StockDef] = []
    for ln in lengths:
        if ln <= 0:
            raise ValueError(f"Stock length must be positive: {ln}")
        stocks.append(
            StockDef(
                id=f"stock-{ln:g}",
                raw_length=ln,
                start_margin=constraints.start_margin,
                end_margin=constraints.end_safety,
            )
        )
    return stocks


def normalize_objectives(
    objectives: Optional[Sequence[Objective]],
    logger: Optional[Logger] = None,
) -> Tuple[Objective, ...]:
    """
    Weights are rescaled to sum 1. Empty input -> aluminium defaults,
    sum <= 0 -> fallback set (logged).
    """
    log = or_null(logger)
    if not objectives:
        return ALUMINUM_OBJECTIVES

    total = sum(o.weight for o in objectives)
    if total <= 0:
        log.warn("Invalid objective weights (sum <= 0), using defaults")
        return FALLBACK_OBJECTIVES

    if abs(total - 1.0) < 1e-3:
        return tuple(objectives)

    log.warn("Objective weights not normalized, auto-normalizing", original_sum=total)
    return tuple(Objective(o.type, o.weight / total) for o in objectives)


def normalize_input(
    items: Sequence[Item],
    stock_lengths: Iterable[float],
    constraints: Constraints,
    objectives: Optional[Sequence[Objective]] = None,
    logger: Optional[Logger] = None,
) -> NormalizedInput:
    if not items:
        raise ValueError("No items to optimize")
    stocks = build_stock_defs(stock_lengths, constraints)
    longest = max(it.length for it in items)
    if longest > max(s.usable_length for s in stocks):
        raise ValueError(
            f"Item of {longest:g} mm does not fit any stock "
            f"(largest usable length {max(s.usable_length for s in stocks):g} mm)"
        )
    return NormalizedInput(
        demand=build_demand(items),
        stocks=tuple(stocks),
        objectives=normalize_objectives(objectives, logger),
    )
