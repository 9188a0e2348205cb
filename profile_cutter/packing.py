# profile_cutter/packing.py
# Building physical bars (Cuts) out of pieces:
# - open_cut / add_segment / finalize_cuts (kerf + safety margin accounting)
# - stock length choice when a new bar is opened (two rules, see below)
# - look-ahead packer used to evaluate GA sequences
# - conversion of a pattern solution (picks) into Cuts
#
# Bar accounting (mm, measured from the raw bar start):
#   open:      used = start margin, remaining = stock - used - end margin
#   add piece: kerf is charged only between consecutive segments
#   finalize:  used += end margin, remaining = max(0, stock - used)
# After finalize, used + remaining must equal the stock length within 0.01.

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .arena import ItemArena, Piece
from .config import DEFAULTS
from .errors import AccountingError
from .logger import Logger, or_null
from .metrics import is_reclaimable, waste_category
from .solver_priority import SolverSolution
from .types import Constraints, Cut, CuttingSegment, Pattern, StockDef

ACCOUNTING_TOLERANCE = 0.01
_EPS = 1e-9


# ----------------------------
# Single bar operations
# ----------------------------

def open_cut(index: int, stock_length: float, constraints: Constraints) -> Cut:
    used = constraints.start_margin
    return Cut(
        index=index,
        stock_length=stock_length,
        used_length=used,
        remaining_length=stock_length - used - constraints.end_safety,
        safety_margin=constraints.total_margin,
    )


def kerf_needed(cut: Cut, kerf: float) -> float:
    return kerf if cut.segments else 0.0


def can_fit(cut: Cut, length: float, constraints: Constraints) -> bool:
    if cut.finalized or cut.segment_count >= constraints.max_cuts_per_stock:
        return False
    return cut.remaining_length + _EPS >= length + kerf_needed(cut, constraints.kerf_width)


def add_segment(
    cut: Cut,
    length: float,
    constraints: Constraints,
    piece: Optional[Piece] = None,
) -> CuttingSegment:
    """Append one piece. Caller checks can_fit first."""
    kn = kerf_needed(cut, constraints.kerf_width)
    position = cut.used_length + kn
    seg = CuttingSegment(
        length=length,
        position=position,
        end_position=position + length,
        profile_type=piece.profile_type if piece else "",
        work_order_id=piece.work_order_id if piece else "",
        quantity=1,
        piece_index=piece.index if piece else None,
    )
    cut.segments.append(seg)
    cut.used_length += length + kn
    cut.remaining_length -= length + kn
    cut.kerf_loss += kn
    return seg


def plan_label(cut: Cut) -> str:
    return " + ".join(f"{c} × {ln:g} mm" for ln, c in cut.plan())


def finalize_cuts(cuts: List[Cut], constraints: Constraints) -> List[Cut]:
    """
    Charge the end margin, classify waste and check accounting.
    Raises AccountingError when used + remaining drifts from the stock length.
    """
    for cut in cuts:
        if cut.finalized:
            continue
        cut.used_length += constraints.end_safety
        # running remaining already excludes the end margin
        expected = cut.stock_length - cut.used_length
        if abs(cut.remaining_length - expected) > ACCOUNTING_TOLERANCE or expected < -ACCOUNTING_TOLERANCE:
            raise AccountingError(cut.index, cut.used_length, cut.remaining_length, cut.stock_length)
        cut.remaining_length = max(0.0, expected)
        cut.waste_category = waste_category(cut.remaining_length)
        cut.is_reclaimable = is_reclaimable(cut.remaining_length, constraints.min_scrap_length)
        cut.plan_label = plan_label(cut)
        cut.finalized = True
    return cuts


# ----------------------------
# Stock length choice
# ----------------------------

def max_pieces_on(stock: StockDef, length: float, kerf: float) -> int:
    return max(0, int(math.floor((stock.usable_length + kerf + _EPS) / (length + kerf))))


def select_stock_length(
    length: float,
    stocks: Sequence[StockDef],
    usage: Mapping[float, int],
    kerf: float,
) -> StockDef:
    """
    Sequence packer rule: balance usage across lengths.
    Among stocks that hold the piece, prefer the least used ones, then the smallest
    single-piece waste. Nothing holds it -> largest stock.
    """
    viable = [s for s in stocks if max_pieces_on(s, length, kerf) > 0]
    if not viable:
        return max(stocks, key=lambda s: s.raw_length)

    counts = [usage.get(s.raw_length, 0) for s in viable]
    floor_count = min(counts) + 1
    underused = [s for s, c in zip(viable, counts) if c < floor_count]
    pool = underused or viable
    return min(pool, key=lambda s: (s.usable_length - length, s.raw_length))


def best_stock_for_piece(length: float, stocks: Sequence[StockDef], kerf: float) -> StockDef:
    """
    FFD/BFD rule: the stock whose repeated use for this length wastes least per piece.
    """
    best: Optional[StockDef] = None
    best_key = None
    for s in stocks:
        n = max_pieces_on(s, length, kerf)
        if n <= 0:
            continue
        waste = s.usable_length - n * length - (n - 1) * kerf
        key = (waste / n, s.raw_length)
        if best is None or key < best_key:
            best, best_key = s, key
    if best is None:
        return max(stocks, key=lambda s: s.raw_length)
    return best


# ----------------------------
# Look-ahead packer (GA sequence evaluation)
# ----------------------------

def _fill_remaining_space(
    cut: Cut,
    arena: ItemArena,
    sequence: Sequence[int],
    start: int,
    used: List[bool],
    constraints: Constraints,
) -> int:
    """Try the next look_ahead_limit unplaced pieces on `cut`. Returns number added."""
    if cut.remaining_length < DEFAULTS.look_ahead_min_remaining:
        return 0
    added = 0
    end = min(len(sequence), start + 1 + DEFAULTS.look_ahead_limit)
    for pos in range(start + 1, end):
        if used[pos]:
            continue
        piece = arena[sequence[pos]]
        if can_fit(cut, piece.length, constraints):
            add_segment(cut, piece.length, constraints, piece)
            used[pos] = True
            added += 1
            if added >= DEFAULTS.look_ahead_max_additions:
                break
            if cut.remaining_length < DEFAULTS.look_ahead_min_remaining:
                break
    return added


def pack_look_ahead(
    arena: ItemArena,
    sequence: Sequence[int],
    stocks: Sequence[StockDef],
    constraints: Constraints,
    logger: Optional[Logger] = None,
) -> List[Cut]:
    """
    Pack pieces in sequence order. Each piece goes to the open bar it fills tightest,
    otherwise a new bar is opened. After every placement a bounded look-ahead tries to put
    more upcoming pieces on the same bar. Returns finalized cuts.
    """
    log = or_null(logger)
    kerf = constraints.kerf_width
    cuts: List[Cut] = []
    usage: Dict[float, int] = {}
    used = [False] * len(sequence)

    for pos, idx in enumerate(sequence):
        if used[pos]:
            continue
        piece = arena[idx]

        target: Optional[Cut] = None
        best_left = None
        for cut in cuts:
            if not can_fit(cut, piece.length, constraints):
                continue
            left = cut.remaining_length - piece.length - kerf_needed(cut, kerf)
            if best_left is None or left < best_left - _EPS:
                target, best_left = cut, left

        if target is None:
            stock = select_stock_length(piece.length, stocks, usage, kerf)
            target = open_cut(len(cuts), stock.raw_length, constraints)
            cuts.append(target)
            usage[stock.raw_length] = usage.get(stock.raw_length, 0) + 1
            if not can_fit(target, piece.length, constraints):
                raise ValueError(
                    f"Piece {piece.key} ({piece.length:g} mm) does not fit stock {stock.raw_length:g} mm"
                )

        add_segment(target, piece.length, constraints, piece)
        used[pos] = True
        _fill_remaining_space(target, arena, sequence, pos, used, constraints)

    log.debug("Look-ahead packing", pieces=len(sequence), bars=len(cuts))
    return finalize_cuts(cuts, constraints)


# ----------------------------
# Greedy decreasing packers (FFD / BFD)
# ----------------------------

def pack_decreasing(
    arena: ItemArena,
    indices: Iterable[int],
    stocks: Sequence[StockDef],
    constraints: Constraints,
    best_fit: bool,
    first_index: int = 0,
) -> List[Cut]:
    """First-fit (best_fit=False) or best-fit decreasing over arena pieces. Returns open cuts."""
    kerf = constraints.kerf_width
    ordered = sorted(indices, key=lambda i: (-arena.lengths[i], i))
    cuts: List[Cut] = []
    for idx in ordered:
        piece = arena[idx]
        target: Optional[Cut] = None
        best_left = None
        for cut in cuts:
            if not can_fit(cut, piece.length, constraints):
                continue
            if not best_fit:
                target = cut
                break
            left = cut.remaining_length - piece.length - kerf_needed(cut, kerf)
            if best_left is None or left < best_left - _EPS:
                target, best_left = cut, left
        if target is None:
            stock = best_stock_for_piece(piece.length, stocks, kerf)
            target = open_cut(first_index + len(cuts), stock.raw_length, constraints)
            cuts.append(target)
        add_segment(target, piece.length, constraints, piece)
    return cuts


# ----------------------------
# Pattern solution -> cuts
# ----------------------------

def cuts_from_solution(
    patterns: Sequence[Pattern],
    solution: SolverSolution,
    constraints: Constraints,
    arena: Optional[ItemArena] = None,
) -> List[Cut]:
    """
    One Cut per pick, pieces laid out longest first. With an arena, segments are bound to
    concrete pieces (profile type, work order); over-produced segments stay unbound.
    """
    pools: Dict[float, List[Piece]] = {}
    if arena is not None:
        for p in arena.pieces:
            pools.setdefault(p.length, []).append(p)
        for pool in pools.values():
            pool.reverse()

    cuts: List[Cut] = []
    for idx in solution.picks:
        pattern = patterns[idx]
        cut = open_cut(len(cuts), pattern.stock_length, constraints)
        for ln, c in pattern.cuts:
            for _ in range(c):
                pool = pools.get(ln)
                piece = pool.pop() if pool else None
                add_segment(cut, ln, constraints, piece)
        cuts.append(cut)
    return finalize_cuts(cuts, constraints)
