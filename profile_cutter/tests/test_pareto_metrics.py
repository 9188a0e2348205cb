# profile_cutter/tests/test_pareto_metrics.py
# Objective vectors are (waste, cost, efficiency, time); efficiency is maximized.

from __future__ import annotations

import math

import pytest

from profile_cutter.pareto_metrics import (
    TrackingHypervolume,
    crowding_distance,
    dominates,
    fast_non_dominated_sort,
    hypervolume,
    knee_point,
    spacing,
    spread,
    wfg_hypervolume,
)


def test_dominance() -> None:
    assert dominates((10, 10, 90, 5), (12, 10, 90, 5))
    assert not dominates((12, 10, 90, 5), (10, 10, 90, 5))
    assert not dominates((10, 10, 90, 5), (10, 10, 90, 5))
    # efficiency is maximized
    assert dominates((10, 10, 95, 5), (10, 10, 90, 5))
    assert not dominates((10, 10, 90, 5), (10, 10, 95, 5))


def test_non_dominated_sort() -> None:
    objs = [(1, 1, 90, 1), (2, 2, 80, 2), (1, 3, 95, 1)]
    assert fast_non_dominated_sort(objs) == [[0, 2], [1]]


def test_crowding_distance_boundaries() -> None:
    objs = [(0, 2, 90, 1), (1, 1, 90, 1), (2, 0, 90, 1)]
    assert all(math.isinf(d) for d in crowding_distance(objs, [0, 1]).values())
    dist = crowding_distance(objs, [0, 1, 2])
    assert math.isinf(dist[0]) and math.isinf(dist[2])
    assert dist[1] == pytest.approx(2.0)


def test_hypervolume_slicing() -> None:
    assert wfg_hypervolume([(0.5, 0.5)], (1.0, 1.0)) == pytest.approx(0.25)
    assert wfg_hypervolume([(0.2, 0.6), (0.6, 0.2)], (1.0, 1.0)) == pytest.approx(0.48)
    assert wfg_hypervolume([(0.5, 0.5, 0.5)], (1.0, 1.0, 1.0)) == pytest.approx(0.125)
    assert hypervolume([(0.2, 0.6), (0.6, 0.2)], 1.0) == pytest.approx(0.48)
    assert hypervolume([(1.5, 0.1)], 1.2) == 0.0


def test_tracking_hypervolume_never_decreases() -> None:
    good = (10, 10, 90, 5)
    bad = (20, 20, 80, 10)
    tracker = TrackingHypervolume([good, bad])
    h1 = tracker.update([bad])
    h2 = tracker.update([good])
    h3 = tracker.update([bad])
    assert h1 == pytest.approx(0.2 ** 4)
    assert h2 == pytest.approx(1.2 ** 4)
    assert h3 == h2


def test_even_front_has_zero_spacing_and_spread() -> None:
    objs = [(0, 2, 90, 1), (1, 1, 90, 1), (2, 0, 90, 1)]
    assert spacing(objs) == pytest.approx(0.0, abs=1e-12)
    assert spread(objs) == pytest.approx(0.0, abs=1e-12)
    assert spacing(objs[:1]) == 0.0


def test_knee_point() -> None:
    assert knee_point([]) is None
    assert knee_point([(5, 5, 90, 1)]) == 0
    assert knee_point([(0, 0, 90, 1), (10, 10, 80, 2)]) == 0
    assert knee_point([(0, 10, 90, 1), (1, 1, 90, 1), (10, 0, 90, 1)]) == 1
