# profile_cutter/tests/test_plotting.py

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from profile_cutter.heuristics import best_fit_decreasing  # noqa: E402
from profile_cutter.plotting import plot_result, save_result_png  # noqa: E402
from profile_cutter.types import Constraints, Item  # noqa: E402


def _result():
    cons = Constraints(kerf_width=3.0, start_safety=2.0, end_safety=2.0)
    return best_fit_decreasing().optimize([Item("P", 1500.0, 5), Item("P", 700.0, 3)], [6000], cons)


def test_plot_result_draws_one_row_per_bar() -> None:
    res = _result()
    fig = plot_result(res)
    ax = fig.axes[0]
    assert len(ax.get_yticks()) == res.stock_count
    assert "bars" in ax.get_title()
    plt.close(fig)


def test_save_png(tmp_path) -> None:
    path = tmp_path / "plan.png"
    save_result_png(_result(), str(path))
    assert path.exists() and path.stat().st_size > 0
