# profile_cutter/__init__.py
"""
Profile cutter package (1D aluminium profile cutting stock).

Current state:
- Pattern enumeration (brute force / bounded recursion) + Pareto filter
- Greedy priority search over patterns, exact CP-SAT pattern selection
- Genetic algorithm over piece sequences (look-ahead packer, pattern evaluator for kerf 0)
- NSGA-II with hypervolume / spacing / spread and knee-point recommendation
- FFD / BFD / pooling heuristics
- kerf + start/end safety accounting, cost and time model, matplotlib plan plot
"""

from .types import (
    Item,
    Constraints,
    Objective,
    PerformanceConfig,
    StockDef,
    CostModel,
    TimeModel,
    CostBreakdown,
    Pattern,
    WasteCategory,
    CuttingSegment,
    Cut,
    ObjectiveValues,
    OptimizationResult,
    ParetoResult,
)

from .errors import (
    OptimizationError,
    DemandShortageError,
    AccountingError,
    UnknownAlgorithmError,
    EmptyResultError,
    NoSolutionError,
)

from .patterns import PatternConfig, generate_patterns
from .pareto_filter import ParetoFilter
from .theoretical import calculate_minimum_stock
from .solver_priority import PrioritySearchSolver, SolverSettings
from .genetic import GeneticAlgorithm
from .nsga2 import NSGAIIAlgorithm

from .run import (
    ALGORITHMS,
    ProfileContext,
    get_algorithm,
    optimize,
    optimize_multi_objective,
)

__all__ = [
    # types
    "Item",
    "Constraints",
    "Objective",
    "PerformanceConfig",
    "StockDef",
    "CostModel",
    "TimeModel",
    "CostBreakdown",
    "Pattern",
    "WasteCategory",
    "CuttingSegment",
    "Cut",
    "ObjectiveValues",
    "OptimizationResult",
    "ParetoResult",
    # errors
    "OptimizationError",
    "DemandShortageError",
    "AccountingError",
    "UnknownAlgorithmError",
    "EmptyResultError",
    "NoSolutionError",
    # engine
    "PatternConfig",
    "generate_patterns",
    "ParetoFilter",
    "calculate_minimum_stock",
    "PrioritySearchSolver",
    "SolverSettings",
    "GeneticAlgorithm",
    "NSGAIIAlgorithm",
    # runner
    "ALGORITHMS",
    "ProfileContext",
    "get_algorithm",
    "optimize",
    "optimize_multi_objective",
]
