# profile_cutter/io_json.py
# Load a cutting job from JSON.
#
# Expected JSON shape:
# {
#   "items": [{"profileType": "P-40", "length": 992, "quantity": 7, "workOrderId": "WO-1"}, ...],
#   "stockLengths": [6100, 6500],
#   "constraints": {"kerfWidth": 3.5, "startSafety": 2, "endSafety": 2, "minScrapLength": 300},
#   "objectives": [{"type": "minimize-waste", "weight": 0.6}, ...],
#   "algorithm": "genetic",
#   "performance": {"populationSize": 20, "generations": 30, "seed": 12345},
#   "context": {"workOrderId": "WO-1", "profileType": "P-40", "weekNumber": 12, "year": 2025}
# }
# snake_case keys are accepted too.

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .run import ProfileContext
from .types import Constraints, Item, Objective, PerformanceConfig

_CONSTRAINT_KEYS = {
    "kerfWidth": "kerf_width",
    "startSafety": "start_safety",
    "endSafety": "end_safety",
    "minScrapLength": "min_scrap_length",
    "maxWastePercentage": "max_waste_percentage",
    "maxCutsPerStock": "max_cuts_per_stock",
    "safetyMargin": "safety_margin",
}


@dataclass(frozen=True)
class JobSpec:
    items: List[Item]
    stock_lengths: List[float]
    constraints: Constraints
    objectives: List[Objective]
    algorithm: str = "genetic"
    performance: Optional[PerformanceConfig] = None
    context: Optional[ProfileContext] = None


def _get(d: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in d:
        return d[camel]
    return d.get(snake, default)


def parse_item(it: Dict[str, Any]) -> Item:
    profile = str(_get(it, "profileType", "profile_type", "") or "").strip()
    if "length" not in it:
        raise ValueError(f"Item missing length: {it}")
    return Item(
        profile_type=profile or "default",
        length=float(it["length"]),
        quantity=int(it.get("quantity", it.get("qty", 1))),
        work_order_id=str(_get(it, "workOrderId", "work_order_id", "") or ""),
    )


def parse_constraints(data: Dict[str, Any]) -> Constraints:
    values: Dict[str, Any] = {}
    for camel, snake in _CONSTRAINT_KEYS.items():
        v = _get(data, camel, snake)
        if v is None:
            continue
        values[snake] = int(v) if snake == "max_cuts_per_stock" else float(v)
    return Constraints(**values)


def parse_job(data: Dict[str, Any]) -> JobSpec:
    """Dict (decoded JSON) -> JobSpec. Raises ValueError on missing/invalid parts."""
    raw_items = data.get("items") or []
    if not raw_items:
        raise ValueError("JSON missing 'items'.")
    items = [parse_item(it) for it in raw_items]

    stock_lengths = [float(x) for x in (_get(data, "stockLengths", "stock_lengths") or [])]
    constraints = parse_constraints(data.get("constraints") or {})
    objectives = [Objective(str(o["type"]), float(o.get("weight", 0.0))) for o in data.get("objectives") or []]

    perf = data.get("performance")
    performance = None
    if perf:
        performance = PerformanceConfig(
            population_size=_get(perf, "populationSize", "population_size"),
            generations=_get(perf, "generations", "generations"),
            seed=int(perf.get("seed", PerformanceConfig().seed)),
        )

    ctx = data.get("context")
    context = None
    if ctx:
        context = ProfileContext(
            work_order_id=str(_get(ctx, "workOrderId", "work_order_id", "") or ""),
            profile_type=str(_get(ctx, "profileType", "profile_type", "") or ""),
            week_number=_get(ctx, "weekNumber", "week_number"),
            year=ctx.get("year"),
        )

    return JobSpec(
        items=items,
        stock_lengths=stock_lengths,
        constraints=constraints,
        objectives=objectives,
        algorithm=str(data.get("algorithm") or "genetic"),
        performance=performance,
        context=context,
    )


def load_job_json(path: Union[str, Path]) -> JobSpec:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return parse_job(data)
