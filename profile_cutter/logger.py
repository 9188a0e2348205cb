# profile_cutter/logger.py
# Lightweight logging utilities for the optimizer.
# Engine components take an optional logger; without one they stay silent.

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, Optional


def _format_fields(fields: dict) -> str:
    if not fields:
        return ""
    parts = []
    for k, v in fields.items():
        if isinstance(v, float):
            v = f"{v:.4g}"
        parts.append(f"{k}={v}")
    return " " + " ".join(parts)


@dataclass
class Logger:
    enabled: bool = True
    prefix: str = "[CUT]"
    verbose: bool = False

    def debug(self, msg: str, **fields: Any) -> None:
        if self.enabled and self.verbose:
            print(f"{self.prefix} DEBUG: {msg}{_format_fields(fields)}", file=sys.stdout)

    def info(self, msg: str, **fields: Any) -> None:
        if self.enabled:
            print(f"{self.prefix} {msg}{_format_fields(fields)}", file=sys.stdout)

    def warn(self, msg: str, **fields: Any) -> None:
        if self.enabled:
            print(f"{self.prefix} WARNING: {msg}{_format_fields(fields)}", file=sys.stderr)

    def error(self, msg: str, **fields: Any) -> None:
        if self.enabled:
            print(f"{self.prefix} ERROR: {msg}{_format_fields(fields)}", file=sys.stderr)


# Global CLI logger
LOGGER = Logger(enabled=True)

# Default for engine components
NULL_LOGGER = Logger(enabled=False)


def set_enabled(flag: bool) -> None:
    LOGGER.enabled = bool(flag)


def set_verbose(flag: bool) -> None:
    LOGGER.verbose = bool(flag)


def get_logger() -> Logger:
    return LOGGER


def or_null(logger: Optional[Logger]) -> Logger:
    return logger if logger is not None else NULL_LOGGER
