# profile_cutter/pareto_filter.py
# Removes dominated cutting patterns before they reach a solver.
#
# Within one stock length, pattern A dominates B when A has at least as many pieces of
# every length as B and strictly less waste. Dominance is a strict partial order, so the
# surviving set is a fixed point: filtering it again changes nothing.

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from .logger import Logger, or_null
from .types import Pattern

_WASTE_EPS = 1e-9


def pattern_dominates(a: Pattern, b: Pattern) -> bool:
    if a.stock_length != b.stock_length:
        return False
    if not (a.waste < b.waste - _WASTE_EPS):
        return False
    for ln, c in b.cuts:
        if a.count(ln) < c:
            return False
    return True


class ParetoFilter:
    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)

    def filter(self, patterns: Sequence[Pattern]) -> List[Pattern]:
        """Keep non-dominated patterns, original order preserved."""
        groups: "OrderedDict[float, List[int]]" = OrderedDict()
        for i, p in enumerate(patterns):
            groups.setdefault(p.stock_length, []).append(i)

        keep: Dict[int, bool] = {}
        for idxs in groups.values():
            # only strictly lower waste can dominate, so scan in ascending waste and stop early
            ordered = sorted(idxs, key=lambda i: (patterns[i].waste, -patterns[i].piece_count))
            for i in idxs:
                p = patterns[i]
                dominated = False
                for j in ordered:
                    q = patterns[j]
                    if q.waste >= p.waste - _WASTE_EPS:
                        break
                    if pattern_dominates(q, p):
                        dominated = True
                        break
                keep[i] = not dominated

        out = [p for i, p in enumerate(patterns) if keep[i]]
        if len(out) != len(patterns):
            self.logger.debug(
                "Pareto filter removed dominated patterns",
                before=len(patterns),
                after=len(out),
            )
        return out
