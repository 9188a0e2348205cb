# profile_cutter/genetic.py
# Single-objective genetic algorithm over piece sequences.
#
# - individuals: sequences of arena indices, evaluated by EvolutionOperators.evaluate
# - fitness: weighted sum of efficiency, 1 - waste ratio, 1 - cost and 1 - time, each
#   min/max normalized against population statistics (refreshed every few generations),
#   minus a quadratic penalty for bars above the theoretical minimum
# - elitism + tournament selection + order crossover + swap (inversion when stagnating)
# - early stop on fitness convergence (CV + improvement) or long stagnation
#
# Deterministic: the RNG is re-seeded at the start of every optimize() call.

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .arena import ItemArena
from .config import DEFAULTS
from .errors import EmptyResultError
from .evolution import EvaluationSettings, EvolutionOperators, Lcg
from .logger import Logger, or_null
from .normalize import normalize_input
from .theoretical import calculate_minimum_stock
from .types import (
    Constraints,
    CostModel,
    Item,
    Objective,
    OptimizationResult,
    PerformanceConfig,
    TimeModel,
)


@dataclass(frozen=True)
class GAParameters:
    population_size: int
    generations: int
    mutation_rate: float
    crossover_rate: float


def adaptive_parameters(piece_count: int, performance: Optional[PerformanceConfig] = None) -> GAParameters:
    """Smaller instances get relatively more search; explicit overrides win."""
    if piece_count < 10:
        p = GAParameters(10, 20, 0.2, 0.7)
    elif piece_count < 30:
        p = GAParameters(20, 50, 0.15, 0.8)
    elif piece_count < 100:
        p = GAParameters(30, 75, 0.12, 0.85)
    elif piece_count < 500:
        p = GAParameters(30, 50, 0.12, 0.85)
    else:
        p = GAParameters(25, 30, 0.15, 0.8)

    if performance is not None:
        if performance.population_size:
            p = dataclasses.replace(p, population_size=int(performance.population_size))
        if performance.generations:
            p = dataclasses.replace(p, generations=int(performance.generations))
    return p


@dataclass(frozen=True)
class PopulationStats:
    waste_min: float
    waste_max: float
    cost_min: float
    cost_max: float
    time_min: float
    time_max: float

    @classmethod
    def from_results(cls, results: Sequence[OptimizationResult]) -> "PopulationStats":
        wastes = [waste_ratio(r) for r in results]
        costs = [r.total_cost for r in results]
        times = [r.total_time for r in results]
        return cls(min(wastes), max(wastes), min(costs), max(costs), min(times), max(times))


def waste_ratio(result: OptimizationResult) -> float:
    return result.waste_percentage / 100.0


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def normalize01(value: float, lo: float, hi: float) -> float:
    rng = hi - lo
    if rng < 1e-6:
        mid = (lo + hi) / 2.0
        if mid < 1e-9:
            return 0.5
        return _clamp01(value / mid)
    return _clamp01((value - lo) / rng)


def objective_weights(objectives: Sequence[Objective]) -> Dict[str, float]:
    w = {t: 0.0 for t in ("minimize-waste", "minimize-cost", "minimize-time", "maximize-efficiency")}
    for o in objectives:
        w[o.type] += o.weight
    return w


def fitness(
    result: OptimizationResult,
    weights: Dict[str, float],
    stats: Optional[PopulationStats],
    target_stock_count: int,
) -> float:
    eff = result.efficiency / 100.0
    if stats is not None:
        waste_n = normalize01(waste_ratio(result), stats.waste_min, stats.waste_max)
        cost_n = normalize01(result.total_cost, stats.cost_min, stats.cost_max)
        time_n = normalize01(result.total_time, stats.time_min, stats.time_max)
    else:
        waste_n = _clamp01(waste_ratio(result))
        cost_n = _clamp01(result.total_cost / DEFAULTS.cost_baseline)
        time_n = _clamp01(result.total_time / DEFAULTS.time_baseline)

    score = (
        weights["maximize-efficiency"] * eff
        + weights["minimize-waste"] * (1.0 - waste_n)
        + weights["minimize-cost"] * (1.0 - cost_n)
        + weights["minimize-time"] * (1.0 - time_n)
    )
    if target_stock_count > 0 and result.stock_count > target_stock_count + DEFAULTS.stock_penalty_slack:
        score -= (result.stock_count - target_stock_count) ** 2 * DEFAULTS.stock_penalty_factor
    return _clamp01(score)


def _coefficient_of_variation(values: Sequence[float]) -> float:
    n = len(values)
    if n == 0:
        return 0.0
    mean = sum(values) / n
    if abs(mean) < 1e-12:
        return 0.0
    var = sum((v - mean) ** 2 for v in values) / n
    return math.sqrt(var) / abs(mean)


class GeneticAlgorithm:
    name = "genetic"

    def __init__(self, logger: Optional[Logger] = None, evaluation: Optional[EvaluationSettings] = None):
        self.logger = or_null(logger)
        self.evaluation = evaluation or EvaluationSettings()

    def optimize(
        self,
        items: Sequence[Item],
        stock_lengths: Sequence[float],
        constraints: Constraints,
        objectives: Optional[Sequence[Objective]] = None,
        performance: Optional[PerformanceConfig] = None,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
    ) -> OptimizationResult:
        log = self.logger
        norm = normalize_input(items, stock_lengths, constraints, objectives, log)
        arena = ItemArena(items)
        params = adaptive_parameters(len(arena), performance)
        seed = performance.seed if performance is not None else DEFAULTS.seed
        rng = Lcg(seed)

        ops = EvolutionOperators(
            arena,
            norm.stocks,
            constraints,
            self.name,
            cost_model,
            time_model,
            self.evaluation,
            log,
        )
        weights = objective_weights(norm.objectives)
        target = calculate_minimum_stock(norm.demand, norm.stocks, constraints).min_stock_count

        log.info(
            "GA start",
            pieces=len(arena),
            population=params.population_size,
            generations=params.generations,
            target_bars=target,
        )

        population = ops.initial_population(params.population_size, rng)
        results = [ops.evaluate(s) for s in population]
        stats = PopulationStats.from_results(results) if results else None
        scores = [fitness(r, weights, stats, target) for r in results]

        best_seq: Optional[List[int]] = None
        best_res: Optional[OptimizationResult] = None
        best_fit = -math.inf
        prev_best = -math.inf
        stagnation = 0
        reason = "max-generations"
        gens_run = 0
        elites = max(1, int(math.floor(params.population_size * DEFAULTS.elite_ratio)))
        stop_after = min(15, int(math.floor(0.2 * params.generations)))

        for gen in range(params.generations):
            gens_run = gen + 1
            order = sorted(range(len(population)), key=lambda i: -scores[i])
            population = [population[i] for i in order]
            results = [results[i] for i in order]
            scores = [scores[i] for i in order]
            if not population:
                break

            if scores[0] > best_fit + 1e-12:
                best_fit, best_seq, best_res = scores[0], list(population[0]), results[0]
                stagnation = 0
            else:
                stagnation += 1

            if gen > DEFAULTS.min_convergence_generation:
                improvement = best_fit - prev_best
                if (
                    _coefficient_of_variation(scores) < DEFAULTS.convergence_cv_threshold
                    and abs(improvement) < DEFAULTS.fitness_improvement_threshold
                ):
                    reason = "converged"
                    break
                if stagnation > stop_after:
                    reason = "stagnation"
                    break
            prev_best = best_fit

            mutation = params.mutation_rate
            if stagnation > DEFAULTS.mutation_boost_stagnation:
                mutation = min(params.mutation_rate * 1.5, 0.3)

            offspring: List[List[int]] = [list(s) for s in population[:elites]]
            attempts = 0
            while len(offspring) < params.population_size and attempts < params.population_size * 3:
                attempts += 1
                p1 = population[ops.tournament(scores, rng)]
                p2 = population[ops.tournament(scores, rng)]
                if rng.random() < params.crossover_rate:
                    child = ops.order_crossover(p1, p2, rng)
                else:
                    child = list(p1)
                if rng.random() < mutation:
                    if stagnation > DEFAULTS.inversion_stagnation:
                        child = ops.inversion_mutation(child, rng)
                    else:
                        child = ops.swap_mutation(child, rng)
                offspring.append(child)

            population = offspring
            results = [ops.evaluate(s) for s in population]
            if gen > 0 and gen % DEFAULTS.stats_update_interval == 0:
                stats = PopulationStats.from_results(results)
            scores = [fitness(r, weights, stats, target) for r in results]

        # last offspring generation
        for i, r in enumerate(results):
            if scores[i] > best_fit + 1e-12:
                best_fit, best_seq, best_res = scores[i], list(population[i]), r

        if best_res is None or best_seq is None:
            raise EmptyResultError("Genetic algorithm produced no individual")

        log.info(
            "GA done",
            generations=gens_run,
            reason=reason,
            fitness=best_fit,
            bars=best_res.stock_count,
            waste=best_res.total_waste,
        )
        metadata = dict(best_res.metadata)
        metadata.update(
            {
                "generations": gens_run,
                "convergence_reason": reason,
                "best_fitness": best_fit,
                "population_size": params.population_size,
                "mutation_rate": params.mutation_rate,
                "crossover_rate": params.crossover_rate,
                "seed": seed,
                "rng_draws": rng.draws,
                "evaluations": ops.evaluations,
                "sequence": best_seq,
            }
        )
        return dataclasses.replace(best_res, algorithm=self.name, metadata=metadata)
