# profile_cutter/tests/test_backend.py
# Accelerator backend with fake devices.

from __future__ import annotations

from profile_cutter.backend import AcceleratorBackend, CpuBackend, EvolutionOutcome, select_backend
from profile_cutter.nsga2 import NSGAIIAlgorithm, NsgaParams
from profile_cutter.types import Constraints, Item, PerformanceConfig

CONS = Constraints(kerf_width=3.0)
PARAMS = NsgaParams(population_size=10, generations=5, gpu_threshold=5)
PERF = PerformanceConfig(seed=7)


class UnavailableDevice:
    def available(self):
        return False

    def run_evolution(self, job):
        raise AssertionError("must not be called")


class FailingDevice:
    def available(self):
        return True

    def run_evolution(self, job):
        raise RuntimeError("device lost")


class EchoDevice:
    """Returns the starting population untouched."""

    deterministic = False

    def __init__(self):
        self.jobs = []

    def available(self):
        return True

    def run_evolution(self, job):
        self.jobs.append(job)
        return EvolutionOutcome(population=[list(s) for s in job.population], generations_run=0)


def _items():
    return [Item("P40", 1500.0, 4), Item("P40", 900.0, 4)]


def _run(device):
    return NSGAIIAlgorithm(params=PARAMS, device=device).optimize_multi_objective(
        _items(), [6000], CONS, performance=PERF
    )


def test_select_backend() -> None:
    assert isinstance(select_backend(10, None), CpuBackend)
    assert isinstance(select_backend(10, EchoDevice(), threshold=20), CpuBackend)
    assert isinstance(select_backend(20, EchoDevice(), threshold=20), AcceleratorBackend)


def test_failures_fall_back_to_cpu_result() -> None:
    cpu = _run(None)
    for device in (UnavailableDevice(), FailingDevice()):
        res = _run(device)
        assert res.metadata["backend"] == "cpu"
        assert [r.objectives() for r in res.pareto_front] == [r.objectives() for r in cpu.pareto_front]
        assert res.recommended_solution.cuts == cpu.recommended_solution.cuts


def test_fallback_flag() -> None:
    backend = AcceleratorBackend(FailingDevice())
    outcome = backend.run(None, lambda job: EvolutionOutcome(population=[[0]], generations_run=1))
    assert backend.fell_back
    assert outcome.backend == "cpu"


def test_empty_population_falls_back() -> None:
    class EmptyDevice(EchoDevice):
        def run_evolution(self, job):
            return EvolutionOutcome(population=[], generations_run=0)

    backend = AcceleratorBackend(EmptyDevice())
    outcome = backend.run(None, lambda job: EvolutionOutcome(population=[[0]], generations_run=1))
    assert backend.fell_back
    assert outcome.population == [[0]]


def test_working_device_is_used() -> None:
    device = EchoDevice()
    res = _run(device)
    assert res.metadata["backend"] == "accelerator"
    assert len(device.jobs) == 1
    assert device.jobs[0].generations == PARAMS.generations
    assert len(device.jobs[0].population) == PARAMS.population_size
    assert res.front_size >= 1
    assert not AcceleratorBackend(device).deterministic
