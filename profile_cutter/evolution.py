# profile_cutter/evolution.py
# Shared evolutionary primitives for the GA and NSGA-II runners:
# - Lcg: deterministic RNG context (linear congruential), created fresh for every run
# - EvolutionOperators: population init, order crossover, swap/inversion mutation,
#   tournament selection and sequence evaluation
#
# Individuals are sequences of arena piece indices (see arena.py), never Item objects.
# Sequence evaluation:
# - kerf > 0: look-ahead packer over the sequence
# - kerf == 0: pattern evaluator (patterns + priority search) on the aggregated demand,
#   falling back to the look-ahead packer when the instance is too large or the solver fails.
#   Its result does not depend on the order, so it is computed once per run.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .arena import ItemArena
from .config import DEFAULTS
from .logger import Logger, or_null
from .metrics import build_result
from .packing import cuts_from_solution, pack_look_ahead
from .pareto_filter import ParetoFilter
from .patterns import PatternConfig, generate_patterns
from .solver_priority import PrioritySearchSolver, SolverSettings
from .types import Constraints, CostModel, OptimizationResult, StockDef, TimeModel


# ----------------------------
# RNG
# ----------------------------

def lcg_next(state: int) -> Tuple[int, float]:
    """One LCG step: (new state, value in [0, 1))."""
    state = (state * DEFAULTS.lcg_multiplier + DEFAULTS.lcg_increment) % DEFAULTS.lcg_modulus
    return state, state / DEFAULTS.lcg_modulus


class Lcg:
    """RNG context threaded explicitly through every operator call."""

    def __init__(self, seed: int = DEFAULTS.seed):
        self.state = int(seed) % DEFAULTS.lcg_modulus
        self.draws = 0

    def random(self) -> float:
        self.state, value = lcg_next(self.state)
        self.draws += 1
        return value

    def below(self, n: int) -> int:
        """Integer in [0, n)."""
        return min(n - 1, int(math.floor(self.random() * n)))

    def shuffle(self, seq: List[int]) -> None:
        """In-place Fisher-Yates."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.below(i + 1)
            seq[i], seq[j] = seq[j], seq[i]


def cluster_shuffle(sequence: Sequence[int], lengths: Sequence[float], seed: int) -> List[int]:
    """
    Length-descending order with local shuffles: clusters of max(2, n // 10) neighbours are
    shuffled with a small independent LCG seeded at seed + cluster index.
    """
    ordered = sorted(sequence, key=lambda i: (-lengths[i], i))
    n = len(ordered)
    size = max(2, n // 10)
    out: List[int] = []
    for ci, start in enumerate(range(0, n, size)):
        cluster = ordered[start:start + size]
        s = seed + ci
        for k in range(len(cluster) - 1, 0, -1):
            s = (s * 9301 + 49297) % 233280
            j = int(s / 233280 * (k + 1))
            cluster[k], cluster[j] = cluster[j], cluster[k]
        out.extend(cluster)
    return out


# ----------------------------
# Operators
# ----------------------------

@dataclass(frozen=True)
class EvaluationSettings:
    solver: SolverSettings = SolverSettings()
    dp_max_distinct_lengths: int = DEFAULTS.dp_max_distinct_lengths
    dp_max_total_pieces: int = DEFAULTS.dp_max_total_pieces
    max_pieces_per_stock: int = DEFAULTS.max_pieces_per_stock
    cache_size: int = 20000


class EvolutionOperators:
    """
    Owned by one run. Holds the arena, the evaluation cache and the pattern-evaluator result.
    """

    def __init__(
        self,
        arena: ItemArena,
        stocks: Sequence[StockDef],
        constraints: Constraints,
        algorithm: str,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
        settings: Optional[EvaluationSettings] = None,
        logger: Optional[Logger] = None,
    ):
        self.arena = arena
        self.stocks = list(stocks)
        self.constraints = constraints
        self.algorithm = algorithm
        self.cost_model = cost_model
        self.time_model = time_model
        self.settings = settings or EvaluationSettings()
        self.logger = or_null(logger)
        self.keys: Tuple[str, ...] = tuple(p.key for p in arena.pieces)

        self._cache: Dict[Tuple[int, ...], OptimizationResult] = {}
        self._pattern_result: Optional[OptimizationResult] = None
        self._pattern_tried = False
        self.evaluations = 0
        self.crossover_repairs = 0

    # ---- population ----

    def initial_population(self, size: int, rng: Lcg) -> List[List[int]]:
        """
        Structured seeds first (length descending, profile groups, round robin over lengths,
        greedy), the rest cluster-shuffled.
        """
        arena = self.arena
        base = arena.indices()
        lengths = arena.lengths
        demand = arena.demand()

        seeds: List[List[int]] = []
        seeds.append(sorted(base, key=lambda i: (-lengths[i], i)))

        groups: Dict[str, List[int]] = {}
        for i in base:
            groups.setdefault(arena[i].profile_type, []).append(i)
        shuffled = []
        for g in groups.values():
            g = list(g)
            rng.shuffle(g)
            shuffled.append(g)
        seeds.append(_interleave(shuffled))

        by_length: Dict[float, List[int]] = {}
        for i in sorted(base, key=lambda i: (-lengths[i], i)):
            by_length.setdefault(lengths[i], []).append(i)
        seeds.append(_interleave(list(by_length.values())))

        seeds.append(sorted(base, key=lambda i: (-lengths[i], -demand[lengths[i]], i)))

        population = seeds[:size]
        while len(population) < size:
            seed = int(rng.random() * 233280)
            population.append(cluster_shuffle(base, lengths, seed))
        return population

    # ---- selection ----

    def tournament(self, fitness: Sequence[float], rng: Lcg, size: int = DEFAULTS.tournament_size) -> int:
        """Index of the fittest among `size` distinct sampled competitors."""
        n = len(fitness)
        k = min(size, n)
        picked: List[int] = []
        attempts = 0
        while len(picked) < k and attempts < k * 10:
            attempts += 1
            i = rng.below(n)
            if i not in picked:
                picked.append(i)
        best = picked[0]
        for i in picked[1:]:
            if fitness[i] > fitness[best]:
                best = i
        return best

    # ---- crossover / mutation ----

    def order_crossover(self, parent1: Sequence[int], parent2: Sequence[int], rng: Lcg) -> List[int]:
        """
        OX: a slice of parent1 is kept in place, the rest is filled in parent2 order.
        Piece identity is the arena key.
        """
        size = len(parent1)
        if size < 2:
            return list(parent1)
        start = int(math.floor(rng.random() * size))
        end = int(math.floor(rng.random() * (size - start))) + start

        child: List[Optional[int]] = [None] * size
        taken = set()
        for i in range(start, end + 1):
            child[i] = parent1[i]
            taken.add(self.keys[parent1[i]])

        fill = (idx for idx in parent2 if self.keys[idx] not in taken)
        for i in range(size):
            if child[i] is None:
                nxt = next(fill, None)
                if nxt is None:
                    break
                child[i] = nxt
                taken.add(self.keys[nxt])

        out = [c for c in child if c is not None]
        if len(out) < size:
            self.crossover_repairs += 1
            self.logger.error(
                "Order crossover produced a short offspring, backfilling from parent 1",
                expected=size,
                got=len(out),
            )
            have = {self.keys[i] for i in out}
            for idx in parent1:
                if self.keys[idx] not in have:
                    out.append(idx)
                    have.add(self.keys[idx])
        return out

    def swap_mutation(self, sequence: Sequence[int], rng: Lcg) -> List[int]:
        out = list(sequence)
        n = len(out)
        if n < 2:
            return out
        i = rng.below(n)
        j = rng.below(n)
        while j == i:
            j = rng.below(n)
        out[i], out[j] = out[j], out[i]
        return out

    def inversion_mutation(self, sequence: Sequence[int], rng: Lcg) -> List[int]:
        out = list(sequence)
        n = len(out)
        if n < 3:
            return out
        a = rng.below(n)
        b = rng.below(n)
        lo, hi = min(a, b), max(a, b)
        if hi - lo < 2:
            return out
        out[lo:hi + 1] = reversed(out[lo:hi + 1])
        return out

    # ---- evaluation ----

    def evaluate(self, sequence: Sequence[int]) -> OptimizationResult:
        if self.constraints.kerf_width == 0:
            res = self._evaluate_patterns()
            if res is not None:
                return res

        key = tuple(sequence)
        hit = self._cache.get(key)
        if hit is not None:
            return hit

        self.evaluations += 1
        cuts = pack_look_ahead(self.arena, sequence, self.stocks, self.constraints)
        res = build_result(self.algorithm, cuts, self.constraints, self.cost_model, self.time_model)
        if len(self._cache) < self.settings.cache_size:
            self._cache[key] = res
        return res

    def _evaluate_patterns(self) -> Optional[OptimizationResult]:
        """Pattern evaluator for kerf == 0. None means: use the look-ahead packer."""
        if self._pattern_tried:
            return self._pattern_result
        self._pattern_tried = True

        s = self.settings
        demand = self.arena.demand()
        total = sum(demand.values())
        if len(demand) > s.dp_max_distinct_lengths or total > s.dp_max_total_pieces:
            self.logger.warn(
                "Pattern evaluator skipped, instance too large",
                distinct_lengths=len(demand),
                pieces=total,
            )
            return None

        config = PatternConfig(
            kerf_width=0.0,
            max_pieces_per_stock=min(self.constraints.max_cuts_per_stock, s.max_pieces_per_stock),
        )
        patterns = generate_patterns(self.stocks, demand, config, self.logger)
        if not s.solver.skip_pattern_pareto_filter:
            patterns = ParetoFilter(self.logger).filter(patterns)
        if not patterns:
            self.logger.warn("Pattern evaluator produced no patterns, using look-ahead packer")
            return None

        solution = PrioritySearchSolver(s.solver, self.logger).solve(patterns, demand)
        if solution is None:
            self.logger.warn("Pattern solver found no solution, using look-ahead packer")
            return None

        for ln, q in demand.items():
            if solution.produced.get(ln, 0) < q:
                self.logger.warn(
                    "Pattern solution short on demand, using look-ahead packer",
                    length=ln,
                    required=q,
                    produced=solution.produced.get(ln, 0),
                )
                return None

        cuts = cuts_from_solution(patterns, solution, self.constraints, self.arena)
        self._pattern_result = build_result(
            self.algorithm,
            cuts,
            self.constraints,
            self.cost_model,
            self.time_model,
            metadata={"evaluator": "pattern", "patterns": len(patterns)},
        )
        self.logger.debug(
            "Pattern evaluator solved",
            bars=solution.total_bars,
            waste=solution.total_waste,
            patterns=len(patterns),
        )
        return self._pattern_result

    @property
    def uses_pattern_evaluator(self) -> bool:
        return self._pattern_result is not None


def _interleave(groups: List[List[int]]) -> List[int]:
    """Round robin over groups."""
    out: List[int] = []
    longest = max((len(g) for g in groups), default=0)
    for k in range(longest):
        for g in groups:
            if k < len(g):
                out.append(g[k])
    return out
