# profile_cutter/utils.py
# Small utilities used across the project:
# - timing context manager
# - result -> JSON-friendly dict (cuts + segments + metrics)
# - simple JSON export for results and Pareto results
#
# Keeps dependencies minimal (stdlib only).

from __future__ import annotations

import json
import math
import time
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Union

from .types import Cut, OptimizationResult, ParetoResult


@contextmanager
def timer(label: str = "timer") -> Iterator[Dict[str, float]]:
    """
    Usage:
      with timer("solve") as t:
          ...
      print(t["seconds"])
    """
    t0 = time.perf_counter()
    payload: Dict[str, float] = {}
    try:
        yield payload
    finally:
        payload["seconds"] = time.perf_counter() - t0


def _to_jsonable(obj: Any) -> Any:
    """Convert dataclasses and other objects to JSON-serializable structures."""
    if is_dataclass(obj):
        return _to_jsonable(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_to_jsonable(x) for x in obj]
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, float) and math.isinf(obj):
        return None
    return obj


def cut_to_dict(cut: Cut) -> Dict[str, Any]:
    return {
        "index": cut.index,
        "stock_length": cut.stock_length,
        "plan": cut.plan_label,
        "used_length": cut.used_length,
        "remaining_length": cut.remaining_length,
        "kerf_loss": cut.kerf_loss,
        "safety_margin": cut.safety_margin,
        "waste_category": cut.waste_category.value,
        "is_reclaimable": cut.is_reclaimable,
        "segments": [
            {
                "length": s.length,
                "quantity": s.quantity,
                "position": s.position,
                "end_position": s.end_position,
                "profile_type": s.profile_type,
                "work_order_id": s.work_order_id,
            }
            for s in cut.segments
        ],
    }


def result_to_dict(res: OptimizationResult) -> Dict[str, Any]:
    """
    Convert an OptimizationResult to a JSON-friendly dict.
    """
    return {
        "algorithm": res.algorithm,
        "cuts": [cut_to_dict(c) for c in res.cuts],
        "totals": {
            "efficiency": res.efficiency,
            "efficiency_category": res.efficiency_category,
            "total_waste": res.total_waste,
            "waste_percentage": res.waste_percentage,
            "total_cost": res.total_cost,
            "stock_count": res.stock_count,
            "total_length": res.total_length,
            "total_segments": res.total_segments,
            "total_kerf_loss": res.total_kerf_loss,
            "total_safety_reserve": res.total_safety_reserve,
            "setup_time": res.setup_time,
            "cutting_time": res.cutting_time,
            "total_time": res.total_time,
            "execution_time_ms": res.execution_time_ms,
        },
        "cost_breakdown": asdict(res.cost_breakdown),
        "waste_distribution": dict(res.waste_distribution),
        "stock_summary": list(res.stock_summary),
        "metadata": _to_jsonable({k: v for k, v in res.metadata.items() if k != "sequence"}),
    }


def pareto_to_dict(res: ParetoResult) -> Dict[str, Any]:
    return {
        "algorithm": res.algorithm,
        "hypervolume": res.hypervolume,
        "spacing": res.spacing,
        "spread": res.spread,
        "front_size": res.front_size,
        "recommended_solution": result_to_dict(res.recommended_solution),
        "pareto_front": [result_to_dict(r) for r in res.pareto_front],
        "metadata": _to_jsonable(res.metadata),
    }


def save_result_json(
    res: Union[OptimizationResult, ParetoResult],
    path: Union[str, Path],
    *,
    indent: int = 2,
) -> None:
    """Save a result (cuts + metrics) into JSON for integration."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = pareto_to_dict(res) if isinstance(res, ParetoResult) else result_to_dict(res)
    with path.open("w", encoding="utf-8") as f:
        json.dump(_to_jsonable(payload), f, ensure_ascii=False, indent=indent)
