# profile_cutter/metrics.py
# Metrics for 1D cutting plans:
# - waste category per bar + reclaimable offcuts
# - efficiency (material utilisation, percent)
# - waste distribution and per-stock-length summary
# - build_result: finalized cuts -> OptimizationResult
#
# These metrics are algorithm-agnostic: they work for any list of finalized Cuts.

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .config import DEFAULTS
from .costing import compute_cost_breakdown, estimate_time
from .types import Constraints, CostModel, Cut, OptimizationResult, TimeModel, WasteCategory


def waste_category(remaining: float) -> WasteCategory:
    if remaining < DEFAULTS.waste_minimal_below:
        return WasteCategory.MINIMAL
    if remaining < DEFAULTS.waste_small_below:
        return WasteCategory.SMALL
    if remaining < DEFAULTS.waste_medium_below:
        return WasteCategory.MEDIUM
    if remaining < DEFAULTS.waste_large_below:
        return WasteCategory.LARGE
    return WasteCategory.EXCESSIVE


def is_reclaimable(remaining: float, min_scrap_length: float) -> bool:
    return min_scrap_length > 0 and remaining >= min_scrap_length


def compute_efficiency(total_stock_length: float, total_waste: float) -> float:
    if total_stock_length <= 0:
        return 0.0
    return (total_stock_length - total_waste) / total_stock_length * 100.0


def efficiency_category(efficiency: float) -> str:
    if efficiency >= 95:
        return "excellent"
    if efficiency >= 90:
        return "good"
    if efficiency >= 70:
        return "average"
    return "poor"


def waste_distribution(cuts: Iterable[Cut]) -> Dict[str, int]:
    out = {c.value: 0 for c in WasteCategory}
    out["reclaimable"] = 0
    for cut in cuts:
        out[cut.waste_category.value] += 1
        if cut.is_reclaimable:
            out["reclaimable"] += 1
    return out


def stock_summary(cuts: Iterable[Cut]) -> List[Dict[str, float]]:
    """One row per stock length: count, used, waste, efficiency."""
    grouped: Dict[float, List[Cut]] = {}
    for c in cuts:
        grouped.setdefault(c.stock_length, []).append(c)
    rows: List[Dict[str, float]] = []
    for length in sorted(grouped):
        group = grouped[length]
        waste = sum(c.remaining_length for c in group)
        rows.append(
            {
                "stock_length": length,
                "count": len(group),
                "used_length": sum(c.used_length for c in group),
                "waste": waste,
                "efficiency": compute_efficiency(length * len(group), waste),
            }
        )
    return rows


def build_result(
    algorithm: str,
    cuts: List[Cut],
    constraints: Constraints,
    cost_model: Optional[CostModel] = None,
    time_model: Optional[TimeModel] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> OptimizationResult:
    """
    Aggregate finalized cuts. Cuts must already satisfy used + remaining == stock length.
    """
    total_stock = sum(c.stock_length for c in cuts)
    total_waste = sum(c.remaining_length for c in cuts)
    total_used = sum(c.used_length for c in cuts)
    segments = sum(c.segment_count for c in cuts)
    eff = compute_efficiency(total_stock, total_waste)
    breakdown = compute_cost_breakdown(cuts, cost_model, time_model)
    t = estimate_time(len(cuts), segments, time_model)

    return OptimizationResult(
        algorithm=algorithm,
        cuts=cuts,
        efficiency=eff,
        total_waste=total_waste,
        total_cost=breakdown.total_cost,
        stock_count=len(cuts),
        total_length=total_used,
        total_segments=segments,
        cost_breakdown=breakdown,
        setup_time=t.setup_time,
        cutting_time=t.cutting_time,
        total_time=t.total_time,
        waste_percentage=(total_waste / total_stock * 100.0) if total_stock > 0 else 0.0,
        total_kerf_loss=sum(c.kerf_loss for c in cuts),
        total_safety_reserve=len(cuts) * constraints.total_margin,
        efficiency_category=efficiency_category(eff),
        waste_distribution=waste_distribution(cuts),
        stock_summary=stock_summary(cuts),
        metadata=dict(metadata or {}),
    )
