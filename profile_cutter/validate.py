# profile_cutter/validate.py
# Validation utilities:
# - per bar accounting (used + remaining == stock length), segment bounds and cut limit
# - demand coverage (shortage is fatal, over-production beyond tolerance is a warning)
#
# Useful both during development and to sanity-check every algorithm's output.

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .config import DEFAULTS
from .errors import AccountingError, DemandShortageError, OptimizationError
from .packing import ACCOUNTING_TOLERANCE
from .types import Cut


@dataclass(frozen=True)
class ValidationIssue:
    level: str   # "ERROR" or "WARN"
    message: str
    kind: str = "general"   # "accounting", "shortage", "overproduction", "bounds", "general"
    cut_index: Optional[int] = None
    length: Optional[float] = None
    required: Optional[int] = None
    actual: Optional[float] = None
    used: Optional[float] = None
    remaining: Optional[float] = None
    stock_length: Optional[float] = None


def validate_cuts(cuts: Iterable[Cut], max_cuts_per_stock: Optional[int] = None) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for c in cuts:
        if max_cuts_per_stock is not None and c.segment_count > max_cuts_per_stock:
            issues.append(
                ValidationIssue(
                    level="ERROR",
                    kind="bounds",
                    message=f"{c.segment_count} segments on one bar, limit is {max_cuts_per_stock}",
                    cut_index=c.index,
                    actual=c.segment_count,
                    required=max_cuts_per_stock,
                )
            )
        total = c.used_length + c.remaining_length
        if abs(total - c.stock_length) > ACCOUNTING_TOLERANCE:
            issues.append(
                ValidationIssue(
                    level="ERROR",
                    kind="accounting",
                    message=(
                        f"used {c.used_length:g} + remaining {c.remaining_length:g} = {total:g} "
                        f"!= stock length {c.stock_length:g}"
                    ),
                    cut_index=c.index,
                    used=c.used_length,
                    remaining=c.remaining_length,
                    stock_length=c.stock_length,
                )
            )
        if c.remaining_length < -ACCOUNTING_TOLERANCE:
            issues.append(
                ValidationIssue(
                    level="ERROR",
                    kind="bounds",
                    message=f"Negative remaining length {c.remaining_length:g}",
                    cut_index=c.index,
                )
            )
        for s in c.segments:
            if s.end_position > c.stock_length + ACCOUNTING_TOLERANCE or s.position < 0:
                issues.append(
                    ValidationIssue(
                        level="ERROR",
                        kind="bounds",
                        message=f"Segment [{s.position:g}, {s.end_position:g}] outside bar of {c.stock_length:g}",
                        cut_index=c.index,
                        length=s.length,
                    )
                )
    return issues


def produced_counts(cuts: Iterable[Cut]) -> dict:
    out: dict = {}
    for c in cuts:
        for s in c.segments:
            out[s.length] = out.get(s.length, 0) + s.quantity
    return out


def validate_demand(
    cuts: Iterable[Cut],
    demand: Mapping[float, int],
    tolerance: int = DEFAULTS.over_production_tolerance,
) -> List[ValidationIssue]:
    produced = produced_counts(cuts)
    issues: List[ValidationIssue] = []
    for ln, q in demand.items():
        got = produced.get(ln, 0)
        if got < q:
            issues.append(
                ValidationIssue(
                    level="ERROR",
                    kind="shortage",
                    message=f"Demand shortage for {ln:g} mm: required {q}, produced {got}",
                    length=ln,
                    required=q,
                    actual=got,
                )
            )
        elif got > q + tolerance:
            issues.append(
                ValidationIssue(
                    level="WARN",
                    kind="overproduction",
                    message=f"Over-production for {ln:g} mm: required {q}, produced {got} (tolerance {tolerance})",
                    length=ln,
                    required=q,
                    actual=got,
                )
            )
    for ln, got in produced.items():
        if ln not in demand:
            issues.append(
                ValidationIssue(
                    level="WARN",
                    kind="overproduction",
                    message=f"Produced {got} pieces of {ln:g} mm that were not requested",
                    length=ln,
                    required=0,
                    actual=got,
                )
            )
    if not demand:
        issues.append(ValidationIssue(level="WARN", message="Empty demand."))
    return issues


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    """
    One error for all ERROR issues. The type follows the first fatal issue
    (DemandShortageError / AccountingError), the message lists every issue.
    """
    errs = [i for i in issues if i.level.upper() == "ERROR"]
    if not errs:
        return
    msg = "Validation failed:\n" + "\n".join(
        f"[{e.level}] {e.kind} bar={e.cut_index} length={e.length} :: {e.message}" for e in errs
    )
    first = errs[0]
    if first.kind == "shortage":
        err: OptimizationError = DemandShortageError(first.length, first.required, int(first.actual))
    elif first.kind == "accounting":
        err = AccountingError(first.cut_index, first.used, first.remaining, first.stock_length)
    else:
        raise OptimizationError(msg)
    err.args = (msg,)
    raise err
