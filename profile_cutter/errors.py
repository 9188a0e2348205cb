# profile_cutter/errors.py
# Fatal optimizer errors. All of them are ValueErrors so callers that only
# catch ValueError (like the validation helpers) keep working.

from __future__ import annotations


class OptimizationError(ValueError):
    """Base class for conditions that abort a run."""


class DemandShortageError(OptimizationError):
    def __init__(self, length: float, required: int, actual: int):
        self.length = length
        self.required = required
        self.actual = actual
        super().__init__(
            f"Demand shortage for {length:g} mm: required {required}, produced {actual}"
        )


class AccountingError(OptimizationError):
    def __init__(self, cut_index: int, used: float, remaining: float, stock_length: float):
        self.cut_index = cut_index
        self.used = used
        self.remaining = remaining
        self.stock_length = stock_length
        super().__init__(
            f"Accounting violation on bar {cut_index}: used {used:g} + remaining {remaining:g} "
            f"!= stock length {stock_length:g}"
        )


class UnknownAlgorithmError(OptimizationError):
    def __init__(self, name: str, known):
        self.name = name
        super().__init__(f"Unknown algorithm '{name}' (registered: {', '.join(sorted(known))})")


class EmptyResultError(OptimizationError):
    """No population member / front member to build a result from."""


class NoSolutionError(OptimizationError):
    """A solver could not cover the demand."""
