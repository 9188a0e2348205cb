# profile_cutter/pareto_metrics.py
# Multi-objective helpers on objective 4-vectors (waste, cost, efficiency, time):
# - dominance with epsilon, fast non-dominated sorting, crowding distance
# - normalization into a minimization space [0, 1]^4 (efficiency is flipped)
# - WFG-style slicing hypervolume, tracking hypervolume with a frozen reference
# - spacing, spread (delta) and knee point selection
#
# waste, cost and time are minimized, efficiency is maximized.

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULTS

Vector = Tuple[float, ...]

# True for maximized objectives, in ObjectiveValues.as_tuple() order
MAXIMIZE: Tuple[bool, ...] = (False, False, True, False)


# ----------------------------
# Dominance / sorting / crowding
# ----------------------------

def dominates(a: Sequence[float], b: Sequence[float], eps: float = DEFAULTS.dom_eps) -> bool:
    better = False
    for k, is_max in enumerate(MAXIMIZE):
        da = a[k] - b[k]
        if is_max:
            da = -da
        # da < 0: a better on axis k
        if da > eps:
            return False
        if da < -eps:
            better = True
    return better


def dominance_relations(objs: Sequence[Sequence[float]]) -> Tuple[List[int], List[List[int]]]:
    """(dominated count, domination set) per index. Pairwise comparisons over i < j only."""
    n = len(objs)
    dominated_count = [0] * n
    domination_set: List[List[int]] = [[] for _ in range(n)]
    for i in range(n):
        for j in range(i + 1, n):
            if dominates(objs[i], objs[j]):
                domination_set[i].append(j)
                dominated_count[j] += 1
            elif dominates(objs[j], objs[i]):
                domination_set[j].append(i)
                dominated_count[i] += 1
    return dominated_count, domination_set


def fronts_from_relations(dominated_count: Sequence[int], domination_set: Sequence[Sequence[int]]) -> List[List[int]]:
    """Peel fronts of indices with no remaining dominator, best first."""
    dominated_count = list(dominated_count)
    fronts: List[List[int]] = []
    current = [i for i in range(len(dominated_count)) if dominated_count[i] == 0]
    while current:
        fronts.append(current)
        nxt: List[int] = []
        for i in current:
            for j in domination_set[i]:
                dominated_count[j] -= 1
                if dominated_count[j] == 0:
                    nxt.append(j)
        current = sorted(nxt)
    return fronts


def fast_non_dominated_sort(objs: Sequence[Sequence[float]]) -> List[List[int]]:
    return fronts_from_relations(*dominance_relations(objs))


def crowding_distance(objs: Sequence[Sequence[float]], front: Sequence[int]) -> Dict[int, float]:
    dist = {i: 0.0 for i in front}
    if len(front) <= 2:
        return {i: math.inf for i in front}
    for k in range(len(MAXIMIZE)):
        ordered = sorted(front, key=lambda i: objs[i][k])
        lo = objs[ordered[0]][k]
        hi = objs[ordered[-1]][k]
        dist[ordered[0]] = math.inf
        dist[ordered[-1]] = math.inf
        if hi - lo <= 0:
            continue
        for pos in range(1, len(ordered) - 1):
            i = ordered[pos]
            if math.isinf(dist[i]):
                continue
            dist[i] += (objs[ordered[pos + 1]][k] - objs[ordered[pos - 1]][k]) / (hi - lo)
    return dist


# ----------------------------
# Normalization
# ----------------------------

Bounds = Tuple[Tuple[float, ...], Tuple[float, ...]]  # (per-axis min, per-axis max), raw values


def bounds_of(objs: Sequence[Sequence[float]]) -> Bounds:
    d = len(MAXIMIZE)
    lo = tuple(min(o[k] for o in objs) for k in range(d))
    hi = tuple(max(o[k] for o in objs) for k in range(d))
    return lo, hi


def bump_degenerate(bounds: Bounds) -> Bounds:
    """Give zero-width axes a tiny range so they do not collapse."""
    lo, hi = bounds
    new_hi = []
    for a, b in zip(lo, hi):
        if b - a < 1e-12:
            b = a + max(1e-6, abs(a) * 1e-6)
        new_hi.append(b)
    return lo, tuple(new_hi)


def normalize_value(v: float, lo: float, hi: float) -> float:
    rng = hi - lo
    if rng < DEFAULTS.normalize_eps:
        return 0.0
    return (v - lo) / rng


def to_min_normalized(obj: Sequence[float], bounds: Bounds) -> Vector:
    """Raw objectives -> minimization space where 0 is the ideal value on every axis."""
    lo, hi = bounds
    out = []
    for k, is_max in enumerate(MAXIMIZE):
        if is_max:
            out.append(normalize_value(hi[k] - obj[k] + lo[k], lo[k], hi[k]))
        else:
            out.append(normalize_value(obj[k], lo[k], hi[k]))
    return tuple(out)


def dedup(points: Sequence[Vector], eps: float = 1e-6) -> List[Vector]:
    out: List[Vector] = []
    for p in points:
        if not any(all(abs(a - b) <= eps for a, b in zip(p, q)) for q in out):
            out.append(tuple(p))
    return out


# ----------------------------
# Hypervolume
# ----------------------------

def _weakly_dominates_min(a: Vector, b: Vector, eps: float = 1e-12) -> bool:
    return all(x <= y + eps for x, y in zip(a, b)) and any(x < y - eps for x, y in zip(a, b))


def _non_dominated_min(points: Sequence[Vector]) -> List[Vector]:
    return [p for p in points if not any(_weakly_dominates_min(q, p) for q in points if q is not p)]


def wfg_hypervolume(points: Sequence[Vector], ref: Vector) -> float:
    """
    Volume dominated by `points` (minimization) and bounded by `ref`. Points must be
    deduplicated and lie inside the reference box.
    """
    if not points:
        return 0.0
    if len(ref) == 1:
        return max(0.0, ref[0] - min(p[0] for p in points))
    pts = _non_dominated_min(points)
    if len(pts) == 1:
        vol = 1.0
        for x, r in zip(pts[0], ref):
            vol *= max(0.0, r - x)
        return vol

    # slice along the first axis
    pts = sorted(pts, key=lambda p: p[0])
    total = 0.0
    upper = ref[0]
    for i in range(len(pts) - 1, -1, -1):
        width = upper - pts[i][0]
        if width > 0:
            projected = dedup([p[1:] for p in pts[: i + 1]], eps=1e-12)
            total += width * wfg_hypervolume(projected, ref[1:])
        upper = pts[i][0]
    return total


def hypervolume(points: Sequence[Vector], ref_value: float) -> float:
    """HV of normalized points against the cube corner (ref_value, ..., ref_value)."""
    if not points:
        return 0.0
    d = len(points[0])
    ref = tuple([ref_value] * d)
    inside = [tuple(p) for p in points if all(x <= ref_value + 1e-12 for x in p)]
    inside = dedup(inside, eps=max(1e-6, 1e-8))
    if not inside:
        return 0.0
    return wfg_hypervolume(inside, ref)


def final_hypervolume(objs: Sequence[Sequence[float]], ref_value: float = DEFAULTS.hv_final_reference) -> float:
    """Front-adaptive normalization (reporting)."""
    if not objs:
        return 0.0
    b = bounds_of(objs)
    pts = [to_min_normalized(o, b) for o in objs]
    worst = max(max(p) for p in pts)
    if worst > ref_value:
        ref_value = max(ref_value, worst * 1.2)
    return hypervolume(pts, ref_value)


class TrackingHypervolume:
    """
    Convergence signal: bounds frozen from the initial population, HV of the archive of
    every non-dominated normalized vector seen so far. Non-decreasing by construction.
    """

    def __init__(self, initial_objs: Sequence[Sequence[float]], ref_value: float = DEFAULTS.hv_tracking_reference):
        self.bounds = bump_degenerate(bounds_of(initial_objs))
        self.ref_value = ref_value
        self.archive: List[Vector] = []
        self.last = 0.0

    def update(self, front_objs: Sequence[Sequence[float]]) -> float:
        pts = [to_min_normalized(o, self.bounds) for o in front_objs]
        pts = [p for p in pts if all(x <= self.ref_value + 1e-12 for x in p)]
        if not pts:
            return self.last
        merged = dedup(self.archive + pts, eps=max(1e-6, 1e-8))
        self.archive = _non_dominated_min(merged)
        value = hypervolume(self.archive, self.ref_value)
        self.last = max(self.last, value)
        return self.last


# ----------------------------
# Spacing / spread / knee
# ----------------------------

def _normalized_front(objs: Sequence[Sequence[float]]) -> List[Vector]:
    if not objs:
        return []
    b = bounds_of(objs)
    return dedup([to_min_normalized(o, b) for o in objs], eps=1e-9)


def _dist(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def spacing(objs: Sequence[Sequence[float]]) -> float:
    """Std-dev of nearest-neighbour distances (0 for fewer than 2 distinct points)."""
    pts = _normalized_front(objs)
    n = len(pts)
    if n < 2:
        return 0.0
    nearest = [min(_dist(p, q) for j, q in enumerate(pts) if j != i) for i, p in enumerate(pts)]
    mean = sum(nearest) / n
    return math.sqrt(sum((d - mean) ** 2 for d in nearest) / (n - 1))


def _max_variance_axis(pts: Sequence[Vector]) -> int:
    best_axis, best_var = 0, -1.0
    for k in range(len(pts[0])):
        vals = [p[k] for p in pts]
        mean = sum(vals) / len(vals)
        var = sum((v - mean) ** 2 for v in vals) / len(vals)
        if var > best_var + 1e-15:
            best_axis, best_var = k, var
    return best_axis


def spread(objs: Sequence[Sequence[float]]) -> float:
    """
    Delta = (dF + dL + sum|d_i - mean d|) / (dF + dL + (N - 1) * mean d), with the front
    ordered along its max-variance axis.
    """
    pts = _normalized_front(objs)
    n = len(pts)
    if n < 2:
        return 0.0

    # boundary gaps to the ideal (0) and nadir (1) of each non-degenerate axis
    d_first = 0.0
    d_last = 0.0
    for k in range(len(pts[0])):
        vals = [p[k] for p in pts]
        lo, hi = min(vals), max(vals)
        if hi - lo < DEFAULTS.normalize_eps:
            continue
        d_first += abs(lo - 0.0)
        d_last += abs(hi - 1.0)

    axis = _max_variance_axis(pts)
    ordered = sorted(pts, key=lambda p: p[axis])
    gaps = [_dist(ordered[i], ordered[i + 1]) for i in range(n - 1)]
    mean = sum(gaps) / len(gaps)
    denom = d_first + d_last + (n - 1) * mean
    if denom < DEFAULTS.normalize_eps:
        return 0.0
    return (d_first + d_last + sum(abs(g - mean) for g in gaps)) / denom


def _segment_distance(p: Vector, a: Vector, b: Vector) -> float:
    ab = [y - x for x, y in zip(a, b)]
    denom = sum(v * v for v in ab)
    if denom < 1e-18:
        return _dist(p, a)
    t = sum((pi - ai) * v for pi, ai, v in zip(p, a, ab)) / denom
    t = max(0.0, min(1.0, t))
    proj = [ai + t * v for ai, v in zip(a, ab)]
    return _dist(p, proj)


def knee_point(objs: Sequence[Sequence[float]]) -> Optional[int]:
    """
    Index (into objs) of the best trade-off point: sharpest bend along the front plus
    distance from the chord between the front ends.
    """
    n = len(objs)
    if n == 0:
        return None
    if n == 1:
        return 0
    b = bounds_of(objs)
    pts = [to_min_normalized(o, b) for o in objs]
    ideal = tuple([0.0] * len(pts[0]))
    if n == 2:
        return 0 if _dist(pts[0], ideal) <= _dist(pts[1], ideal) else 1

    axis = _max_variance_axis(pts)
    order = sorted(range(n), key=lambda i: (pts[i][axis], i))
    start, end = pts[order[0]], pts[order[-1]]
    w = DEFAULTS.knee_angle_weight

    best_i, best_score = order[0], -math.inf
    for pos in range(1, n - 1):
        prev, cur, nxt = pts[order[pos - 1]], pts[order[pos]], pts[order[pos + 1]]
        v1 = [c - p for p, c in zip(prev, cur)]
        v2 = [q - c for c, q in zip(cur, nxt)]
        n1 = math.sqrt(sum(x * x for x in v1))
        n2 = math.sqrt(sum(x * x for x in v2))
        if n1 < 1e-12 or n2 < 1e-12:
            angle = 0.0
        else:
            cos = sum(x * y for x, y in zip(v1, v2)) / (n1 * n2)
            angle = math.acos(max(-1.0, min(1.0, cos)))
        score = w * angle / math.pi + (1.0 - w) * _segment_distance(cur, start, end)
        if score > best_score:
            best_i, best_score = order[pos], score
    return best_i
