# profile_cutter/backend.py
# Where the NSGA-II evolution loop runs.
#
# - CpuBackend: runs the loop in-process (reference implementation, deterministic)
# - AcceleratorBackend: hands the job to an injected compute device. Any unavailability,
#   exception or empty answer falls back to the CPU loop with the same EvolutionJob.
#
# A device is any object with:
#   available() -> bool
#   run_evolution(job: EvolutionJob) -> EvolutionOutcome
#   deterministic: bool (optional, default True)
# Devices must reproduce the CPU RNG semantics (seeded LCG); one that cannot reports
# deterministic = False and its runs are exempt from the bit-identical guarantee.
# Pareto metrics are always recomputed on the CPU from the returned population.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .config import DEFAULTS
from .logger import Logger, or_null


@dataclass(frozen=True)
class EvolutionJob:
    population: List[List[int]]
    generations: int
    crossover_rate: float
    mutation_rate: float
    seed: int


@dataclass
class EvolutionOutcome:
    population: List[List[int]]
    generations_run: int
    convergence_reason: str = "max-generations"
    hypervolume_history: List[float] = field(default_factory=list)
    backend: str = "cpu"


CpuLoop = Callable[[EvolutionJob], EvolutionOutcome]


class CpuBackend:
    name = "cpu"
    deterministic = True

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)

    def run(self, job: EvolutionJob, cpu_loop: CpuLoop) -> EvolutionOutcome:
        return cpu_loop(job)


class AcceleratorBackend:
    name = "accelerator"

    def __init__(self, device: Any, logger: Optional[Logger] = None):
        self.device = device
        self.logger = or_null(logger)
        self.fell_back = False

    @property
    def deterministic(self) -> bool:
        return bool(getattr(self.device, "deterministic", True))

    def _fallback(self, job: EvolutionJob, cpu_loop: CpuLoop) -> EvolutionOutcome:
        self.fell_back = True
        return cpu_loop(job)

    def run(self, job: EvolutionJob, cpu_loop: CpuLoop) -> EvolutionOutcome:
        if self.device is None or not self.device.available():
            self.logger.info("Accelerator unavailable, running evolution on CPU")
            return self._fallback(job, cpu_loop)
        try:
            outcome = self.device.run_evolution(job)
        except Exception as exc:  # device failures of any kind fall back to CPU
            self.logger.warn("Accelerator evolution failed, falling back to CPU", error=repr(exc))
            return self._fallback(job, cpu_loop)
        if outcome is None or not outcome.population:
            self.logger.warn("Accelerator returned no population, falling back to CPU")
            return self._fallback(job, cpu_loop)
        outcome.backend = self.name
        return outcome


def select_backend(
    item_count: int,
    device: Any = None,
    threshold: int = DEFAULTS.gpu_threshold,
    logger: Optional[Logger] = None,
):
    """Accelerator only for a provided device and at least `threshold` pieces."""
    if device is not None and item_count >= threshold:
        return AcceleratorBackend(device, logger)
    return CpuBackend(logger)
