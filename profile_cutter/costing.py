# profile_cutter/costing.py
# Cost and time utilities for a finished cutting plan.
#
# Notes:
# - material is charged on used bar length (pieces + kerf + safety margins)
# - waste is charged on the remaining (offcut) length of every bar
# - time is setup per bar + cutting per segment (minutes), charged at time_cost per minute
# - energy is a flat per-bar figure (energy_per_stock * energy_cost)

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .types import CostBreakdown, CostModel, Cut, TimeModel


@dataclass(frozen=True)
class TimeEstimate:
    setup_time: float
    cutting_time: float

    @property
    def total_time(self) -> float:
        return self.setup_time + self.cutting_time


def estimate_time(cut_count: int, segment_count: int, time_model: Optional[TimeModel] = None) -> TimeEstimate:
    tm = time_model or TimeModel()
    return TimeEstimate(
        setup_time=cut_count * tm.setup_per_stock,
        cutting_time=segment_count * tm.cut_per_segment,
    )


def compute_cost_breakdown(
    cuts: Iterable[Cut],
    cost_model: Optional[CostModel] = None,
    time_model: Optional[TimeModel] = None,
) -> CostBreakdown:
    cm = cost_model or CostModel()
    cuts = list(cuts)

    segments = sum(c.segment_count for c in cuts)
    used = sum(c.used_length for c in cuts)
    waste = sum(c.remaining_length for c in cuts)
    t = estimate_time(len(cuts), segments, time_model)

    material = used * cm.material_cost
    cutting = segments * cm.cutting_cost
    setup = len(cuts) * cm.setup_cost
    waste_cost = waste * cm.waste_cost
    time_cost = t.total_time * cm.time_cost
    energy = len(cuts) * cm.energy_per_stock * cm.energy_cost

    return CostBreakdown(
        material_cost=material,
        cutting_cost=cutting,
        setup_cost=setup,
        waste_cost=waste_cost,
        time_cost=time_cost,
        energy_cost=energy,
        total_cost=material + cutting + setup + waste_cost + time_cost + energy,
    )


def cost_per_meter(total_cost: float, total_length_mm: float) -> float:
    if total_length_mm <= 0:
        return 0.0
    return total_cost / (total_length_mm / 1000.0)


def cost_lines(breakdown: CostBreakdown) -> List[str]:
    """Human readable breakdown (CLI)."""
    return [
        f"material: {breakdown.material_cost:,.2f}",
        f"cutting:  {breakdown.cutting_cost:,.2f}",
        f"setup:    {breakdown.setup_cost:,.2f}",
        f"waste:    {breakdown.waste_cost:,.2f}",
        f"time:     {breakdown.time_cost:,.2f}",
        f"energy:   {breakdown.energy_cost:,.2f}",
        f"total:    {breakdown.total_cost:,.2f}",
    ]
