# profile_cutter/patterns.py
# Cutting pattern enumeration for one bar (stock definition).
#
# Two strategies, picked by the number of distinct demand lengths:
# - brute force (<= brute_force_threshold lengths): explicit 1-, 2- and 3-length
#   combinations with nested count loops (3-length only for <= 5 lengths)
# - bounded recursion (above the threshold): per length try count 0..max, where max is
#   limited by remaining space, demand and max_pieces_per_stock
#
# Kerf is charged between consecutive segments: (segments - 1) * kerf.
# Count per length never exceeds its demand, total segments never exceed max_pieces_per_stock.
# Enumeration is exponential in the number of lengths; max_patterns_per_stock caps the output
# and logs a warning when hit.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULTS
from .logger import Logger, or_null
from .types import Pattern, StockDef

_EPS = 1e-9

Combo = Tuple[Tuple[float, int], ...]


@dataclass(frozen=True)
class PatternConfig:
    kerf_width: float = 0.0
    max_pieces_per_stock: int = DEFAULTS.max_pieces_per_stock
    max_patterns_per_stock: int = DEFAULTS.max_patterns_per_stock
    brute_force_threshold: int = DEFAULTS.brute_force_threshold
    triple_combination_threshold: int = DEFAULTS.triple_combination_threshold


def used_length(cuts: Iterable[Tuple[float, int]], kerf: float) -> float:
    """Pieces + kerf between consecutive segments."""
    total = 0.0
    segments = 0
    for ln, c in cuts:
        total += ln * c
        segments += c
    if segments == 0:
        return 0.0
    return total + (segments - 1) * kerf


def max_count(length: float, used: float, segments: int, usable: float, kerf: float) -> int:
    """How many more pieces of `length` fit after `segments` pieces occupying `used`."""
    if segments == 0:
        room = usable + kerf
    else:
        room = usable - used
    if room <= 0:
        return 0
    return max(0, int(math.floor((room + _EPS) / (length + kerf))))


def make_pattern(stock: StockDef, combo: Combo, kerf: float) -> Pattern:
    return Pattern(
        stock_id=stock.id,
        stock_length=stock.raw_length,
        usable_length=stock.usable_length,
        cuts=combo,
        used_length=used_length(combo, kerf),
    )


def _sorted_lengths(demand: Mapping[float, int]) -> List[float]:
    return sorted((ln for ln, q in demand.items() if q > 0), reverse=True)


class BruteForcePatternGenerator:
    """1-, 2- and (few lengths only) 3-length combinations."""

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)

    def combinations(self, stock: StockDef, demand: Mapping[float, int], config: PatternConfig) -> Iterator[Combo]:
        usable = stock.usable_length
        kerf = config.kerf_width
        max_pieces = config.max_pieces_per_stock
        lengths = _sorted_lengths(demand)
        caps = {ln: min(demand[ln], max_pieces) for ln in lengths}

        # single length
        for ln in lengths:
            top = min(caps[ln], max_count(ln, 0.0, 0, usable, kerf))
            for c in range(1, top + 1):
                yield ((ln, c),)

        # two lengths
        for i, l1 in enumerate(lengths):
            top1 = min(caps[l1], max_count(l1, 0.0, 0, usable, kerf))
            for c1 in range(1, top1 + 1):
                used1 = used_length(((l1, c1),), kerf)
                for l2 in lengths[i + 1:]:
                    top2 = min(caps[l2], max_pieces - c1, max_count(l2, used1, c1, usable, kerf))
                    for c2 in range(1, top2 + 1):
                        yield ((l1, c1), (l2, c2))

        if len(lengths) > config.triple_combination_threshold:
            return

        # three lengths
        for i, l1 in enumerate(lengths):
            top1 = min(caps[l1], max_count(l1, 0.0, 0, usable, kerf))
            for c1 in range(1, top1 + 1):
                used1 = used_length(((l1, c1),), kerf)
                for j in range(i + 1, len(lengths)):
                    l2 = lengths[j]
                    top2 = min(caps[l2], max_pieces - c1, max_count(l2, used1, c1, usable, kerf))
                    for c2 in range(1, top2 + 1):
                        used2 = used_length(((l1, c1), (l2, c2)), kerf)
                        for l3 in lengths[j + 1:]:
                            top3 = min(
                                caps[l3],
                                max_pieces - c1 - c2,
                                max_count(l3, used2, c1 + c2, usable, kerf),
                            )
                            for c3 in range(1, top3 + 1):
                                yield ((l1, c1), (l2, c2), (l3, c3))


class BoundedPatternGenerator:
    """Recursive enumerator over all lengths (count 0..max per length)."""

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)

    def combinations(self, stock: StockDef, demand: Mapping[float, int], config: PatternConfig) -> Iterator[Combo]:
        lengths = _sorted_lengths(demand)
        caps = {ln: min(demand[ln], config.max_pieces_per_stock) for ln in lengths}
        chosen: List[Tuple[float, int]] = []
        yield from self._recurse(
            lengths, caps, 0, chosen, 0.0, 0, stock.usable_length, config.kerf_width, config.max_pieces_per_stock
        )

    def _recurse(
        self,
        lengths: Sequence[float],
        caps: Dict[float, int],
        idx: int,
        chosen: List[Tuple[float, int]],
        used: float,
        segments: int,
        usable: float,
        kerf: float,
        max_pieces: int,
    ) -> Iterator[Combo]:
        if idx == len(lengths):
            if chosen:
                yield tuple(chosen)
            return

        ln = lengths[idx]
        top = min(caps[ln], max_pieces - segments, max_count(ln, used, segments, usable, kerf))

        yield from self._recurse(lengths, caps, idx + 1, chosen, used, segments, usable, kerf, max_pieces)
        for c in range(1, top + 1):
            added = ln * c + (c if segments > 0 else c - 1) * kerf
            chosen.append((ln, c))
            yield from self._recurse(
                lengths, caps, idx + 1, chosen, used + added, segments + c, usable, kerf, max_pieces
            )
            chosen.pop()


class HybridPatternGenerator:
    """Brute force for few distinct lengths, bounded recursion otherwise."""

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = or_null(logger)
        self.brute_force = BruteForcePatternGenerator(logger)
        self.bounded = BoundedPatternGenerator(logger)

    def strategy_for(self, demand: Mapping[float, int], config: PatternConfig):
        if len(_sorted_lengths(demand)) <= config.brute_force_threshold:
            return self.brute_force
        return self.bounded

    def generate(self, stock: StockDef, demand: Mapping[float, int], config: PatternConfig) -> List[Pattern]:
        strategy = self.strategy_for(demand, config)
        out: List[Pattern] = []
        for combo in strategy.combinations(stock, demand, config):
            if len(out) >= config.max_patterns_per_stock:
                self.logger.warn(
                    "Pattern enumeration capped",
                    stock=stock.id,
                    cap=config.max_patterns_per_stock,
                    distinct_lengths=len(demand),
                )
                break
            pattern = make_pattern(stock, combo, config.kerf_width)
            if pattern.used_length <= stock.usable_length + _EPS:
                out.append(pattern)
        self.logger.debug(
            "Generated patterns",
            stock=stock.id,
            strategy=type(strategy).__name__,
            patterns=len(out),
        )
        return out


def generate_patterns(
    stocks: Iterable[StockDef],
    demand: Mapping[float, int],
    config: PatternConfig,
    logger: Optional[Logger] = None,
) -> List[Pattern]:
    """All patterns for all stocks. Empty list means no single piece fits anywhere."""
    gen = HybridPatternGenerator(logger)
    out: List[Pattern] = []
    for stock in stocks:
        out.extend(gen.generate(stock, demand, config))
    return out
