# profile_cutter/nsga2.py
# NSGA-II over piece sequences, built from the shared EvolutionOperators:
# - fronts + crowding distance, crowded binary tournament
# - one child per parent pair (order crossover, then swap mutation)
# - elitist environmental selection over parents + offspring
# - tracking hypervolume (frozen reference) for early stopping
# - final front with hypervolume / spacing / spread and a knee-point recommendation
#
# The evolution loop itself runs through an EvolutionBackend (CPU by default).

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

from .arena import ItemArena
from .backend import EvolutionJob, EvolutionOutcome, select_backend
from .config import DEFAULTS
from .costing import estimate_time
from .errors import EmptyResultError
from .evolution import EvaluationSettings, EvolutionOperators, Lcg
from .logger import Logger, or_null
from .normalize import normalize_input
from .pareto_metrics import (
    TrackingHypervolume,
    crowding_distance,
    dominance_relations,
    final_hypervolume,
    fronts_from_relations,
    knee_point,
    spacing,
    spread,
)
from .types import (
    Constraints,
    CostModel,
    Item,
    Objective,
    ObjectiveValues,
    OptimizationResult,
    ParetoResult,
    PerformanceConfig,
    TimeModel,
)


@dataclass(frozen=True)
class NsgaParams:
    population_size: int = DEFAULTS.nsga_population_size
    generations: int = DEFAULTS.nsga_generations
    crossover_rate: float = DEFAULTS.nsga_crossover_rate
    mutation_rate: float = DEFAULTS.nsga_mutation_rate
    convergence_window: int = DEFAULTS.nsga_convergence_window
    convergence_threshold: float = DEFAULTS.nsga_convergence_threshold
    gpu_threshold: int = DEFAULTS.gpu_threshold

    def with_performance(self, performance: Optional[PerformanceConfig]) -> "NsgaParams":
        p = self
        if performance is not None:
            if performance.population_size:
                p = dataclasses.replace(p, population_size=int(performance.population_size))
            if performance.generations:
                p = dataclasses.replace(p, generations=int(performance.generations))
        return p


@dataclass
class ParetoIndividual:
    sequence: List[int]
    result: OptimizationResult
    objectives: ObjectiveValues
    rank: int = 0
    crowding_distance: float = 0.0
    dominated_count: int = 0
    domination_set: Set[int] = field(default_factory=set)


def objective_values(result: OptimizationResult, time_model: Optional[TimeModel] = None) -> ObjectiveValues:
    """Result objectives; a missing time is estimated from bars and segments."""
    t = result.total_time
    if t <= 0 and result.cuts:
        t = estimate_time(len(result.cuts), sum(c.segment_count for c in result.cuts), time_model).total_time
    return ObjectiveValues(
        waste=result.total_waste,
        cost=result.total_cost,
        efficiency=result.efficiency,
        time=t,
    )


class NSGAIIAlgorithm:
    name = "nsga-ii"

    def __init__(
        self,
        logger: Optional[Logger] = None,
        params: Optional[NsgaParams] = None,
        device: Any = None,
        evaluation: Optional[EvaluationSettings] = None,
    ):
        self.logger = or_null(logger)
        self.params = params or NsgaParams()
        self.device = device
        self.evaluation = evaluation or EvaluationSettings()

    # ---- individuals ----

    def _individual(self, ops: EvolutionOperators, sequence: List[int], time_model) -> ParetoIndividual:
        res = ops.evaluate(sequence)
        return ParetoIndividual(sequence=list(sequence), result=res, objectives=objective_values(res, time_model))

    @staticmethod
    def _rank(population: List[ParetoIndividual]) -> List[List[int]]:
        objs = [ind.objectives.as_tuple() for ind in population]
        counts, sets = dominance_relations(objs)
        for i, ind in enumerate(population):
            ind.dominated_count = counts[i]
            ind.domination_set = set(sets[i])
        fronts = fronts_from_relations(counts, sets)
        for r, front in enumerate(fronts):
            dist = crowding_distance(objs, front)
            for i in front:
                population[i].rank = r
                population[i].crowding_distance = dist[i]
        return fronts

    @staticmethod
    def _crowded_tournament(population: List[ParetoIndividual], rng: Lcg) -> ParetoIndividual:
        n = len(population)
        i1 = rng.below(n)
        i2 = rng.below(n)
        if i1 == i2:
            i2 = (i2 + 1) % n
        a, b = population[i1], population[i2]
        if a.rank != b.rank:
            return a if a.rank < b.rank else b
        if abs(a.crowding_distance - b.crowding_distance) > 1e-12:
            return a if a.crowding_distance > b.crowding_distance else b
        return a if rng.random() < 0.5 else b

    def _environmental_selection(
        self, combined: List[ParetoIndividual], size: int, rng: Lcg
    ) -> List[ParetoIndividual]:
        fronts = self._rank(combined)
        out: List[ParetoIndividual] = []
        for front in fronts:
            if len(out) + len(front) <= size:
                out.extend(combined[i] for i in front)
                continue
            keys = {i: rng.random() for i in front}
            ordered = sorted(front, key=lambda i: (-combined[i].crowding_distance, keys[i]))
            out.extend(combined[i] for i in ordered[: size - len(out)])
            break
        # domination sets index into `combined`; re-rank on the survivors
        self._rank(out)
        return out

    def _make_offspring(
        self,
        ops: EvolutionOperators,
        parents: List[ParetoIndividual],
        job: EvolutionJob,
        rng: Lcg,
        time_model: Optional[TimeModel],
    ) -> List[ParetoIndividual]:
        """One child per parent pair; an odd last parent is paired with itself."""
        offspring: List[ParetoIndividual] = []
        for i in range(0, len(parents), 2):
            p1 = parents[i]
            p2 = parents[i + 1] if i + 1 < len(parents) else p1
            if rng.random() < job.crossover_rate:
                child = ops.order_crossover(p1.sequence, p2.sequence, rng)
            else:
                child = list(p1.sequence)
            if rng.random() < job.mutation_rate:
                child = ops.swap_mutation(child, rng)
            offspring.append(self._individual(ops, child, time_model))
        return offspring

    # ---- evolution loop (CPU) ----

    def _cpu_loop(
        self,
        ops: EvolutionOperators,
        params: NsgaParams,
        time_model: Optional[TimeModel],
        initial: List[ParetoIndividual],
    ):
        def loop(job: EvolutionJob) -> EvolutionOutcome:
            # job.seed is the RNG state left by population init, so the stream continues
            rng = Lcg(job.seed)
            population = list(initial)
            tracker = TrackingHypervolume([ind.objectives.as_tuple() for ind in population])
            history: List[float] = []
            reason = "max-generations"
            gens_run = 0

            for gen in range(job.generations):
                gens_run = gen + 1
                self._rank(population)
                parents = [self._crowded_tournament(population, rng) for _ in range(len(population))]

                offspring = self._make_offspring(ops, parents, job, rng, time_model)

                population = self._environmental_selection(population + offspring, len(population), rng)
                front0 = [ind.objectives.as_tuple() for ind in population if ind.rank == 0]
                history.append(tracker.update(front0))

                w = params.convergence_window
                if (
                    gen > DEFAULTS.nsga_min_convergence_generation
                    and len(history) >= w
                    and abs(history[-1] - history[-w]) < params.convergence_threshold
                ):
                    reason = "hypervolume-converged"
                    break

            return EvolutionOutcome(
                population=[ind.sequence for ind in population],
                generations_run=gens_run,
                convergence_reason=reason,
                hypervolume_history=history,
            )

        return loop

    # ---- public API ----

    def optimize_multi_objective(
        self,
        items: Sequence[Item],
        stock_lengths: Sequence[float],
        constraints: Constraints,
        objectives: Optional[Sequence[Objective]] = None,
        performance: Optional[PerformanceConfig] = None,
        cost_model: Optional[CostModel] = None,
        time_model: Optional[TimeModel] = None,
    ) -> ParetoResult:
        log = self.logger
        norm = normalize_input(items, stock_lengths, constraints, objectives, log)
        arena = ItemArena(items)
        params = self.params.with_performance(performance)
        seed = performance.seed if performance is not None else DEFAULTS.seed
        rng = Lcg(seed)

        ops = EvolutionOperators(
            arena, norm.stocks, constraints, self.name, cost_model, time_model, self.evaluation, log
        )
        start_seqs = ops.initial_population(params.population_size, rng)
        initial = [self._individual(ops, s, time_model) for s in start_seqs]
        if not initial:
            raise EmptyResultError("NSGA-II initial population is empty")

        job = EvolutionJob(
            population=start_seqs,
            generations=params.generations,
            crossover_rate=params.crossover_rate,
            mutation_rate=params.mutation_rate,
            seed=rng.state,
        )
        backend = select_backend(len(arena), self.device, params.gpu_threshold, log)
        log.info(
            "NSGA-II start",
            pieces=len(arena),
            population=params.population_size,
            generations=params.generations,
            backend=backend.name,
        )
        outcome = backend.run(job, self._cpu_loop(ops, params, time_model, initial))

        # metrics are always recomputed here from the final sequences
        population = [self._individual(ops, s, time_model) for s in outcome.population]
        if not population:
            raise EmptyResultError("NSGA-II finished with an empty population")
        fronts = self._rank(population)
        front = [population[i] for i in fronts[0]] if fronts else []
        if not front:
            log.warn("Empty Pareto front, using the whole population")
            front = list(population)

        front = self._unique_front(front)
        front.sort(key=lambda ind: (ind.objectives.waste, ind.objectives.cost, ind.objectives.time))
        objs = [ind.objectives.as_tuple() for ind in front]
        hv = final_hypervolume(objs)
        sp = spacing(objs)
        sd = spread(objs)
        knee = knee_point(objs)
        recommended = front[knee if knee is not None else 0]

        meta: Dict[str, Any] = {
            "generations": outcome.generations_run,
            "convergence_reason": outcome.convergence_reason,
            "hypervolume_history": list(outcome.hypervolume_history),
            "backend": outcome.backend,
            "population_size": params.population_size,
            "seed": seed,
            "evaluations": ops.evaluations,
        }
        pareto = [self._tagged(ind, {"rank": 0, "sequence": ind.sequence}) for ind in front]
        rec = self._tagged(recommended, {"knee_point": True, "sequence": recommended.sequence, **meta})

        log.info(
            "NSGA-II done",
            generations=outcome.generations_run,
            reason=outcome.convergence_reason,
            front=len(front),
            hypervolume=hv,
        )
        return ParetoResult(
            algorithm=self.name,
            pareto_front=pareto,
            hypervolume=hv,
            spacing=sp,
            spread=sd,
            front_size=len(pareto),
            recommended_solution=rec,
            metadata=meta,
        )

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
        """Knee point only."""
        res = self.optimize_multi_objective(
            items, stock_lengths, constraints, objectives, performance, cost_model, time_model
        )
        rec = res.recommended_solution
        rec.metadata.update(
            {"hypervolume": res.hypervolume, "spacing": res.spacing, "spread": res.spread, "front_size": res.front_size}
        )
        return rec

    # ---- helpers ----

    @staticmethod
    def _unique_front(front: List[ParetoIndividual]) -> List[ParetoIndividual]:
        """One individual per distinct objective vector (first occurrence kept)."""
        seen: List[tuple] = []
        out: List[ParetoIndividual] = []
        for ind in front:
            v = ind.objectives.as_tuple()
            if any(all(abs(a - b) <= 1e-9 for a, b in zip(v, s)) for s in seen):
                continue
            seen.append(v)
            out.append(ind)
        return out

    def _tagged(self, ind: ParetoIndividual, extra: Dict[str, Any]) -> OptimizationResult:
        meta = dict(ind.result.metadata)
        meta.update(extra)
        meta["crowding_distance"] = ind.crowding_distance
        return dataclasses.replace(ind.result, algorithm=self.name, metadata=meta)
