# profile_cutter/tests/test_io.py

from __future__ import annotations

import csv
import json

import pytest

from profile_cutter.io_csv import export_all, read_items_csv
from profile_cutter.io_json import load_job_json, parse_constraints
from profile_cutter.run import optimize
from profile_cutter.types import Constraints, Item
from profile_cutter.utils import save_result_json


def test_load_job_json(tmp_path) -> None:
    job = {
        "items": [
            {"profileType": "P-40", "length": 992, "quantity": 7, "workOrderId": "WO-1"},
            {"profile_type": "P-40", "length": 687, "quantity": 2},
        ],
        "stockLengths": [6100, 6500],
        "constraints": {"kerfWidth": 3.5, "startSafety": 2, "endSafety": 2, "minScrapLength": 300},
        "objectives": [{"type": "minimize-waste", "weight": 0.7}, {"type": "minimize-cost", "weight": 0.3}],
        "algorithm": "bfd",
        "performance": {"populationSize": 20, "generations": 30, "seed": 7},
        "context": {"workOrderId": "WO-1", "profileType": "P-40", "weekNumber": 12, "year": 2025},
    }
    path = tmp_path / "job.json"
    path.write_text(json.dumps(job), encoding="utf-8")

    spec = load_job_json(path)
    assert len(spec.items) == 2
    assert spec.items[0].work_order_id == "WO-1"
    assert spec.items[1].quantity == 2
    assert spec.stock_lengths == [6100.0, 6500.0]
    assert spec.constraints.kerf_width == 3.5
    assert spec.constraints.min_scrap_length == 300.0
    assert spec.algorithm == "bfd"
    assert spec.performance.population_size == 20
    assert spec.performance.seed == 7
    assert spec.context.week_number == 12


def test_job_without_items_is_rejected(tmp_path) -> None:
    path = tmp_path / "job.json"
    path.write_text(json.dumps({"stockLengths": [6000]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_job_json(path)


def test_snake_case_constraints() -> None:
    c = parse_constraints({"kerf_width": 4, "max_cuts_per_stock": 10})
    assert c == Constraints(kerf_width=4.0, max_cuts_per_stock=10)


def test_read_items_csv(tmp_path) -> None:
    path = tmp_path / "items.csv"
    path.write_text(
        "profileType,length,quantity,workOrderId\nP40,1200,3,WO-1\n,800,,\n",
        encoding="utf-8",
    )
    items = read_items_csv(path)
    assert items == [Item("P40", 1200.0, 3, "WO-1"), Item("default", 800.0, 1, "")]


def test_csv_without_length_column(tmp_path) -> None:
    path = tmp_path / "items.csv"
    path.write_text("profileType,quantity\nP40,3\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_items_csv(path)


def test_exports(tmp_path) -> None:
    res = optimize([Item("P40", 1000.0, 5, "WO-1")], [6000], Constraints(), algorithm="bfd")
    export_all(res, tmp_path)
    save_result_json(res, tmp_path / "plan.json")

    with (tmp_path / "plan_cuts.csv").open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 5
    assert rows[0]["work_order_id"] == "WO-1"

    with (tmp_path / "plan_summary.csv").open(newline="", encoding="utf-8") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 1
    assert summary[0]["plan"] == "5 × 1000 mm"

    data = json.loads((tmp_path / "plan.json").read_text(encoding="utf-8"))
    assert data["algorithm"] == "bfd"
    assert data["totals"]["stock_count"] == 1
    assert len(data["cuts"][0]["segments"]) == 5
