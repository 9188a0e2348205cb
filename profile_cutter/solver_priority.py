# profile_cutter/solver_priority.py
# Greedy priority search over cutting patterns.
#
# From the current remaining-demand state, every pattern whose contribution stays within
# the over-production tolerance is scored:
#     score = coverage_weight * coverage - waste / waste_normalization
#     coverage = (useful pieces - over-produced pieces) / remaining pieces
# The best pattern is applied and the loop repeats until demand is met. Equal scores prefer
# the longer stock. Patterns with no useful piece are never picked, so every pick strictly
# reduces remaining demand. If nothing passes the tolerance, the least over-producing useful
# pattern is applied as a fallback. Scoring more than max_states candidate states fails the
# search (returns None).

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULTS
from .logger import Logger, or_null
from .types import Pattern


@dataclass(frozen=True)
class SolverSettings:
    max_states: int = DEFAULTS.solver_max_states
    over_production_tolerance: int = DEFAULTS.over_production_tolerance
    waste_normalization: float = DEFAULTS.waste_normalization
    coverage_weight: float = DEFAULTS.coverage_weight
    score_tie_epsilon: float = DEFAULTS.score_tie_epsilon
    # kerf == 0 pattern evaluator: skip Pareto filtering to keep small patterns for remainders
    skip_pattern_pareto_filter: bool = DEFAULTS.skip_pattern_pareto_filter


@dataclass
class SearchState:
    remaining: Dict[float, int]
    over: Dict[float, int] = field(default_factory=dict)
    picks: List[int] = field(default_factory=list)
    bars_used: int = 0
    waste: float = 0.0

    def extend(self, index: int, pattern: Pattern) -> "SearchState":
        """Copy-on-extend: the receiver is left untouched."""
        remaining = dict(self.remaining)
        over = dict(self.over)
        for ln, c in pattern.cuts:
            need = remaining.get(ln, 0)
            if c > need:
                over[ln] = over.get(ln, 0) + (c - need)
            remaining[ln] = max(0, need - c)
        return SearchState(
            remaining=remaining,
            over=over,
            picks=self.picks + [index],
            bars_used=self.bars_used + 1,
            waste=self.waste + pattern.waste,
        )

    def done(self) -> bool:
        return all(v <= 0 for v in self.remaining.values())


@dataclass(frozen=True)
class SolverSolution:
    produced: Dict[float, int]
    total_bars: int
    total_waste: float
    picks: Tuple[int, ...]
    states_explored: int = 0
    fallback_picks: int = 0

    def pattern_counts(self) -> List[Tuple[int, int]]:
        """(pattern index, count) in first-use order."""
        counts: Dict[int, int] = {}
        for i in self.picks:
            counts[i] = counts.get(i, 0) + 1
        return list(counts.items())


def _contribution(pattern: Pattern, state: SearchState) -> Tuple[int, int, int]:
    """(useful, over-produced, worst excess over tolerance budget used so far)."""
    useful = 0
    over = 0
    worst = 0
    for ln, c in pattern.cuts:
        need = state.remaining.get(ln, 0)
        useful += min(c, need)
        extra = max(0, c - need)
        over += extra
        worst = max(worst, extra + state.over.get(ln, 0))
    return useful, over, worst


class PrioritySearchSolver:
    def __init__(self, settings: Optional[SolverSettings] = None, logger: Optional[Logger] = None):
        self.settings = settings or SolverSettings()
        self.logger = or_null(logger)

    def score(self, pattern: Pattern, useful: int, over: int, remaining_total: int) -> float:
        s = self.settings
        coverage = (useful - over) / remaining_total if remaining_total > 0 else 0.0
        return s.coverage_weight * coverage - pattern.waste / s.waste_normalization

    def solve(self, patterns: Sequence[Pattern], demand: Mapping[float, int]) -> Optional[SolverSolution]:
        s = self.settings
        state = SearchState(remaining={ln: int(q) for ln, q in demand.items() if q > 0})
        explored = 0
        fallbacks = 0

        while not state.done():
            remaining_total = sum(state.remaining.values())
            best_idx: Optional[int] = None
            best_score = 0.0
            fb_idx: Optional[int] = None
            fb_key: Tuple[int, int, float] = (0, 0, 0.0)

            for idx, p in enumerate(patterns):
                useful, over, worst = _contribution(p, state)
                if useful == 0:
                    continue
                explored += 1
                if explored > s.max_states:
                    self.logger.warn(
                        "Priority search exceeded state budget",
                        max_states=s.max_states,
                        bars=state.bars_used,
                        remaining=remaining_total,
                    )
                    return None

                if worst > s.over_production_tolerance:
                    key = (over, -useful, p.waste)
                    if fb_idx is None or key < fb_key:
                        fb_idx, fb_key = idx, key
                    continue

                sc = self.score(p, useful, over, remaining_total)
                if best_idx is None or sc > best_score + s.score_tie_epsilon:
                    best_idx, best_score = idx, sc
                elif abs(sc - best_score) <= s.score_tie_epsilon and p.stock_length > patterns[best_idx].stock_length:
                    best_idx, best_score = idx, sc

            if best_idx is None:
                if fb_idx is None:
                    self.logger.warn("No pattern covers remaining demand", remaining=remaining_total)
                    return None
                self.logger.warn(
                    "No pattern within over-production tolerance, applying fallback",
                    pattern=patterns[fb_idx].label(),
                    over=fb_key[0],
                )
                best_idx = fb_idx
                fallbacks += 1

            state = state.extend(best_idx, patterns[best_idx])

        produced: Dict[float, int] = {}
        for idx in state.picks:
            for ln, c in patterns[idx].cuts:
                produced[ln] = produced.get(ln, 0) + c

        self.logger.debug(
            "Priority search solved",
            bars=state.bars_used,
            waste=state.waste,
            states=explored,
            fallbacks=fallbacks,
        )
        return SolverSolution(
            produced=produced,
            total_bars=state.bars_used,
            total_waste=state.waste,
            picks=tuple(state.picks),
            states_explored=explored,
            fallback_picks=fallbacks,
        )
