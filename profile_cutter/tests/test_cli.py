# profile_cutter/tests/test_cli.py

from __future__ import annotations

import json

from profile_cutter.cli import main


def _items_csv(tmp_path):
    path = tmp_path / "items.csv"
    path.write_text("profileType,length,quantity,workOrderId\nP40,1000,5,WO-1\n", encoding="utf-8")
    return str(path)


def test_items_run_with_exports(tmp_path, capsys) -> None:
    out = tmp_path / "out"
    main(
        [
            "--items", _items_csv(tmp_path),
            "--stock", "6000",
            "--kerf", "0",
            "--start_safety", "0",
            "--end_safety", "0",
            "--algorithm", "bfd",
            "--quiet",
            "--out", str(out),
        ]
    )
    text = capsys.readouterr().out
    assert "Algorithm: bfd" in text
    assert "Bars used: 1" in text
    assert "5 × 1000 mm" in text
    assert (out / "plan_cuts.csv").exists()
    assert (out / "plan_summary.csv").exists()
    assert (out / "plan.json").exists()


def test_job_run(tmp_path, capsys) -> None:
    path = tmp_path / "job.json"
    path.write_text(
        json.dumps(
            {
                "items": [{"profileType": "P40", "length": 1500, "quantity": 4}],
                "stockLengths": [6000],
                "constraints": {"kerfWidth": 3},
                "algorithm": "ffd",
            }
        ),
        encoding="utf-8",
    )
    main(["--job", str(path), "--quiet"])
    text = capsys.readouterr().out
    assert "Algorithm: ffd" in text
    # 4 x 1500 + 3 kerfs > 6000
    assert "Bars used: 2" in text


def test_pareto_run(tmp_path, capsys) -> None:
    out = tmp_path / "out"
    main(
        [
            "--items", _items_csv(tmp_path),
            "--stock", "6000,6500",
            "--kerf", "3",
            "--pareto",
            "--population", "10",
            "--generations", "3",
            "--quiet",
            "--out", str(out),
        ]
    )
    text = capsys.readouterr().out
    assert "Pareto front:" in text
    assert "Recommended (knee point):" in text
    data = json.loads((out / "pareto.json").read_text(encoding="utf-8"))
    assert data["front_size"] == len(data["pareto_front"]) >= 1
