# profile_cutter/types.py
# Core data structures for 1D profile cutting (aluminium bars, saw kerf, safety margins).
# Keep this file dependency-light so it can be imported everywhere.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


# ----------------------------
# Inputs
# ----------------------------

OBJECTIVE_TYPES = (
    "minimize-waste",
    "minimize-cost",
    "minimize-time",
    "maximize-efficiency",
)


@dataclass(frozen=True)
class Item:
    """A requested piece length (mm) with quantity."""
    profile_type: str
    length: float
    quantity: int = 1
    work_order_id: str = ""

    def __post_init__(self):
        if not (self.length > 0):
            raise ValueError(f"Invalid item length for {self.profile_type}: {self.length}")
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1 for {self.profile_type} ({self.length} mm)")


@dataclass(frozen=True)
class Constraints:
    """
    Cutting constraints in millimeters.
    safety_margin is an extra margin charged at the start of every bar, on top of start_safety.
    """
    kerf_width: float = 0.0
    start_safety: float = 0.0
    end_safety: float = 0.0
    min_scrap_length: float = 0.0
    max_waste_percentage: float = 100.0
    max_cuts_per_stock: int = 50
    safety_margin: float = 0.0

    def __post_init__(self):
        for name in ("kerf_width", "start_safety", "end_safety", "min_scrap_length", "safety_margin"):
            if getattr(self, name) < 0:
                raise ValueError(f"Constraints.{name} must be >= 0")
        if self.max_cuts_per_stock < 1:
            raise ValueError("Constraints.max_cuts_per_stock must be >= 1")

    @property
    def start_margin(self) -> float:
        return self.start_safety + self.safety_margin

    @property
    def total_margin(self) -> float:
        return self.start_margin + self.end_safety


@dataclass(frozen=True)
class Objective:
    type: str
    weight: float

    def __post_init__(self):
        if self.type not in OBJECTIVE_TYPES:
            raise ValueError(f"Unknown objective type: {self.type} (expected one of {OBJECTIVE_TYPES})")
        if self.weight < 0:
            raise ValueError(f"Objective weight must be >= 0 ({self.type}={self.weight})")


@dataclass(frozen=True)
class PerformanceConfig:
    population_size: Optional[int] = None
    generations: Optional[int] = None
    seed: int = 12345


@dataclass(frozen=True)
class StockDef:
    """One available bar length with its margins. usable_length excludes both margins."""
    id: str
    raw_length: float
    start_margin: float = 0.0
    end_margin: float = 0.0

    def __post_init__(self):
        if self.usable_length <= 0:
            raise ValueError(
                f"Safety margins too large for stock {self.id}: raw={self.raw_length}, "
                f"margins={self.start_margin}+{self.end_margin}"
            )

    @property
    def safety_margin(self) -> float:
        return self.start_margin + self.end_margin

    @property
    def usable_length(self) -> float:
        return self.raw_length - self.start_margin - self.end_margin


# ----------------------------
# Cost / time models
# ----------------------------

@dataclass(frozen=True)
class CostModel:
    # per mm of bar used
    material_cost: float = 0.05
    # per segment cut
    cutting_cost: float = 0.05
    # per bar loaded
    setup_cost: float = 10.0
    # per mm of waste
    waste_cost: float = 0.02
    # per minute of machine time
    time_cost: float = 0.5
    # per bar, multiplied by energy_per_stock
    energy_cost: float = 0.15
    energy_per_stock: float = 0.5


@dataclass(frozen=True)
class TimeModel:
    """Production time estimates in minutes."""
    setup_per_stock: float = 5.0
    cut_per_segment: float = 2.0


@dataclass(frozen=True)
class CostBreakdown:
    material_cost: float
    cutting_cost: float
    setup_cost: float
    waste_cost: float
    time_cost: float
    energy_cost: float
    total_cost: float


# ----------------------------
# Patterns (pattern generator / solver)
# ----------------------------

@dataclass(frozen=True)
class Pattern:
    """
    A multiset of piece lengths cut from one bar.
    cuts is ordered by length descending: ((length, count), ...).
    used_length includes kerf between consecutive segments.
    """
    stock_id: str
    stock_length: float
    usable_length: float
    cuts: Tuple[Tuple[float, int], ...]
    used_length: float

    def __post_init__(self):
        if self.used_length > self.usable_length + 1e-9:
            raise ValueError(
                f"Pattern exceeds usable length on {self.stock_id}: "
                f"used={self.used_length}, usable={self.usable_length}"
            )

    @property
    def waste(self) -> float:
        return self.usable_length - self.used_length

    @property
    def piece_count(self) -> int:
        return sum(c for _, c in self.cuts)

    def count(self, length: float) -> int:
        for ln, c in self.cuts:
            if ln == length:
                return c
        return 0

    def counts(self) -> Dict[float, int]:
        return dict(self.cuts)

    def label(self) -> str:
        return " + ".join(f"{c} × {ln:g} mm" for ln, c in self.cuts)


# ----------------------------
# Outputs / cutting plan objects
# ----------------------------

class WasteCategory(str, Enum):
    MINIMAL = "minimal"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXCESSIVE = "excessive"


@dataclass(frozen=True)
class CuttingSegment:
    """One piece on a bar. position/end_position are measured from the raw bar start."""
    length: float
    position: float
    end_position: float
    profile_type: str = ""
    work_order_id: str = ""
    quantity: int = 1
    piece_index: Optional[int] = None


@dataclass
class Cut:
    """
    One physical bar.
    While packing, used_length counts start margin + segments + kerf.
    After finalize_cuts, used_length also includes the end margin and
    used_length + remaining_length == stock_length.
    """
    index: int
    stock_length: float
    segments: List[CuttingSegment] = field(default_factory=list)
    used_length: float = 0.0
    remaining_length: float = 0.0
    kerf_loss: float = 0.0
    safety_margin: float = 0.0
    waste_category: WasteCategory = WasteCategory.MINIMAL
    is_reclaimable: bool = False
    plan_label: str = ""
    finalized: bool = False

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def plan(self) -> List[Tuple[float, int]]:
        """(length, count) pairs, longest first."""
        counts: Dict[float, int] = {}
        for s in self.segments:
            counts[s.length] = counts.get(s.length, 0) + s.quantity
        return sorted(counts.items(), key=lambda kv: -kv[0])


@dataclass(frozen=True)
class ObjectiveValues:
    """waste/cost/time are minimized, efficiency (percent) is maximized."""
    waste: float
    cost: float
    efficiency: float
    time: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.waste, self.cost, self.efficiency, self.time)


@dataclass
class OptimizationResult:
    algorithm: str
    cuts: List[Cut]
    efficiency: float
    total_waste: float
    total_cost: float
    stock_count: int
    total_length: float
    total_segments: int
    cost_breakdown: CostBreakdown
    setup_time: float
    cutting_time: float
    total_time: float
    waste_percentage: float
    total_kerf_loss: float
    total_safety_reserve: float
    efficiency_category: str
    waste_distribution: Dict[str, int] = field(default_factory=dict)
    stock_summary: List[Dict[str, float]] = field(default_factory=list)
    execution_time_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def produced(self) -> Dict[float, int]:
        out: Dict[float, int] = {}
        for c in self.cuts:
            for s in c.segments:
                out[s.length] = out.get(s.length, 0) + s.quantity
        return out

    def objectives(self) -> ObjectiveValues:
        return ObjectiveValues(
            waste=self.total_waste,
            cost=self.total_cost,
            efficiency=self.efficiency,
            time=self.total_time,
        )


@dataclass
class ParetoResult:
    algorithm: str
    pareto_front: List[OptimizationResult]
    hypervolume: float
    spacing: float
    spread: float
    front_size: int
    recommended_solution: OptimizationResult
    metadata: Dict[str, Any] = field(default_factory=dict)


def total_pieces(items: Iterable[Item]) -> int:
    return sum(it.quantity for it in items)
