# profile_cutter/config.py
# Centralized defaults and configuration helpers.
# Keeps "magic numbers" (thresholds, GA/NSGA-II constants, weights) in one place.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .types import OBJECTIVE_TYPES, Objective


@dataclass(frozen=True)
class Defaults:
    # Shop standard (used by the CLI when nothing is given)
    standard_stock_lengths: Tuple[float, ...] = (6100.0, 6500.0, 7300.0, 8000.0)
    standard_kerf: float = 3.5
    standard_start_safety: float = 2.0
    standard_end_safety: float = 2.0

    # Pattern generation
    # Brute force up to this many distinct lengths, bounded recursion above it
    brute_force_threshold: int = 8
    # 3-length combinations are only enumerated for this many distinct lengths or fewer
    triple_combination_threshold: int = 5
    max_pieces_per_stock: int = 50
    # Hard cap on emitted patterns per stock (complexity cliff of the recursive enumerator)
    max_patterns_per_stock: int = 20000

    # Pattern-based evaluator limits (GA with kerf == 0)
    dp_max_distinct_lengths: int = 15
    dp_max_total_pieces: int = 1000

    # Priority search solver
    solver_max_states: int = 5000
    over_production_tolerance: int = 2
    waste_normalization: float = 1500.0
    coverage_weight: float = 10000.0
    score_tie_epsilon: float = 1e-9
    skip_pattern_pareto_filter: bool = True

    # Deterministic RNG (LCG)
    seed: int = 12345
    lcg_multiplier: int = 1664525
    lcg_increment: int = 1013904223
    lcg_modulus: int = 2 ** 32

    # Genetic algorithm
    elite_ratio: float = 0.1
    tournament_size: int = 3
    mutation_rate: float = 0.15
    crossover_rate: float = 0.8
    convergence_cv_threshold: float = 0.01
    min_convergence_generation: int = 10
    fitness_improvement_threshold: float = 1e-4
    stats_update_interval: int = 5
    inversion_stagnation: int = 8
    mutation_boost_stagnation: int = 5
    stock_penalty_factor: float = 0.1
    stock_penalty_slack: int = 0
    cost_baseline: float = 10000.0
    time_baseline: float = 60.0

    # Look-ahead packer
    look_ahead_limit: int = 20
    look_ahead_max_additions: int = 3
    look_ahead_min_remaining: float = 50.0

    # NSGA-II
    nsga_population_size: int = 100
    nsga_generations: int = 200
    nsga_crossover_rate: float = 0.8
    nsga_mutation_rate: float = 0.15
    nsga_convergence_window: int = 6
    nsga_convergence_threshold: float = 1e-5
    nsga_min_convergence_generation: int = 10
    gpu_threshold: int = 20
    dom_eps: float = 1e-9
    normalize_eps: float = 1e-12
    hv_tracking_reference: float = 1.2
    hv_final_reference: float = 1.1
    knee_angle_weight: float = 0.6

    # Sanity checks against the theoretical minimum
    bar_count_warn_factor: float = 2.0
    stock_length_warn_factor: float = 1.5

    # Waste classification (mm)
    waste_minimal_below: float = 50.0
    waste_small_below: float = 100.0
    waste_medium_below: float = 200.0
    waste_large_below: float = 500.0


DEFAULTS = Defaults()


# Aluminium cutting: waste first, then efficiency
ALUMINUM_OBJECTIVES: Tuple[Objective, ...] = (
    Objective("minimize-waste", 0.5),
    Objective("maximize-efficiency", 0.3),
    Objective("minimize-cost", 0.15),
    Objective("minimize-time", 0.05),
)

# Used when caller weights are degenerate (sum <= 0)
FALLBACK_OBJECTIVES: Tuple[Objective, ...] = (
    Objective("maximize-efficiency", 0.5),
    Objective("minimize-waste", 0.3),
    Objective("minimize-cost", 0.2),
)

_OBJECTIVE_ALIASES = {
    "waste": "minimize-waste",
    "cost": "minimize-cost",
    "time": "minimize-time",
    "efficiency": "maximize-efficiency",
}


def parse_stock_lengths(text: str) -> List[float]:
    """
    Parse '6100,6500 7300' -> [6100.0, 6500.0, 7300.0]
    """
    vals = [v for v in text.replace(";", ",").replace(" ", ",").split(",") if v.strip() != ""]
    if not vals:
        raise ValueError("stock lengths must be like '6100,6500'")
    out = [float(v) for v in vals]
    if any(v <= 0 for v in out):
        raise ValueError(f"stock lengths must be positive: {text}")
    return out


def parse_objectives(text: str) -> List[Objective]:
    """
    Parse 'waste=0.5,cost=0.2' -> [Objective('minimize-waste', 0.5), ...]
    Full names ('minimize-waste=0.5') are accepted too.
    """
    out: List[Objective] = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        if "=" not in chunk:
            raise ValueError(f"objective must be like 'waste=0.5', got '{chunk}'")
        name, weight = chunk.split("=", 1)
        name = _OBJECTIVE_ALIASES.get(name.strip().lower(), name.strip().lower())
        if name not in OBJECTIVE_TYPES:
            raise ValueError(f"Unknown objective '{name}'")
        out.append(Objective(name, float(weight)))
    return out
