# profile_cutter/io_csv.py
# CSV import/export helpers:
# - read items (profileType,length,quantity,workOrderId)
# - export cut list (one row per segment) and per-bar summary
#
# (No PDF export; plotting is handled in plotting.py.)

from __future__ import annotations

import csv
from pathlib import Path
from typing import List, Union

from .types import Item, OptimizationResult


def read_items_csv(path: Union[str, Path]) -> List[Item]:
    """
    Header required. Accepts camelCase or snake_case column names; quantity defaults to 1.
    """
    path = Path(path)
    items: List[Item] = []
    with path.open("r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        fields = set(reader.fieldnames or [])
        if "length" not in fields:
            raise ValueError("CSV must contain at least a 'length' column")
        for row in reader:
            raw_len = (row.get("length") or "").strip()
            if not raw_len:
                continue
            profile = (row.get("profileType") or row.get("profile_type") or "").strip()
            qty = (row.get("quantity") or row.get("qty") or "1").strip() or "1"
            wo = (row.get("workOrderId") or row.get("work_order_id") or "").strip()
            items.append(
                Item(
                    profile_type=profile or "default",
                    length=float(raw_len),
                    quantity=int(float(qty)),
                    work_order_id=wo,
                )
            )
    return items


def export_cut_list_csv(result: OptimizationResult, path: Union[str, Path]) -> None:
    """
    One row per segment. Positions are measured from the raw bar start (mm).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "bar",
        "stock_length",
        "segment",
        "length",
        "position",
        "end_position",
        "profile_type",
        "work_order_id",
    ]

    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for cut in result.cuts:
            for k, s in enumerate(cut.segments):
                w.writerow(
                    {
                        "bar": cut.index + 1,
                        "stock_length": cut.stock_length,
                        "segment": k + 1,
                        "length": s.length,
                        "position": round(s.position, 3),
                        "end_position": round(s.end_position, 3),
                        "profile_type": s.profile_type,
                        "work_order_id": s.work_order_id,
                    }
                )


def export_summary_csv(result: OptimizationResult, path: Union[str, Path]) -> None:
    """
    One-row-per-bar summary (useful for quick costing).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "bar",
        "stock_length",
        "plan",
        "segments",
        "used_length",
        "remaining_length",
        "kerf_loss",
        "waste_category",
        "reclaimable",
    ]

    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for cut in result.cuts:
            w.writerow(
                {
                    "bar": cut.index + 1,
                    "stock_length": cut.stock_length,
                    "plan": cut.plan_label,
                    "segments": cut.segment_count,
                    "used_length": round(cut.used_length, 3),
                    "remaining_length": round(cut.remaining_length, 3),
                    "kerf_loss": round(cut.kerf_loss, 3),
                    "waste_category": cut.waste_category.value,
                    "reclaimable": int(bool(cut.is_reclaimable)),
                }
            )


def export_all(result: OptimizationResult, out_dir: Union[str, Path], prefix: str = "plan") -> None:
    """
    Export cut list and per-bar summary into out_dir.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    export_cut_list_csv(result, out_dir / f"{prefix}_cuts.csv")
    export_summary_csv(result, out_dir / f"{prefix}_summary.csv")
