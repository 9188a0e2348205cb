# profile_cutter/tests/test_smoke.py
# Very small smoke tests you can run with:
#   python -m profile_cutter.tests.test_smoke
#
# These are not full unit tests, but they quickly tell you if
# the packers, solvers, metrics and validation are wired correctly.

from __future__ import annotations

from profile_cutter.types import Constraints, Item
from profile_cutter.run import optimize
from profile_cutter.validate import raise_on_errors, validate_cuts, validate_demand


def test_basic_plan() -> None:
    items = [
        Item("P-40", 992, 7, "WO-1"),
        Item("P-40", 687, 2, "WO-1"),
    ]
    cons = Constraints(kerf_width=3.5, start_safety=2, end_safety=2)

    res = optimize(items, [6100, 6500], cons, algorithm="bfd")

    issues = validate_cuts(res.cuts) + validate_demand(res.cuts, {992.0: 7, 687.0: 2})
    raise_on_errors(issues)

    assert res.stock_count >= 2
    assert res.total_waste > 0
    assert 0 < res.efficiency <= 100


def test_exact_single_bar() -> None:
    # 5 x 1000 mm on one 6000 mm bar, no kerf, no margins
    res = optimize([Item("A", 1000, 5)], [6000], Constraints(), algorithm="pattern-exact")

    assert res.stock_count == 1
    assert abs(res.total_waste - 1000) < 1e-6


def main() -> None:
    print("Running smoke tests...")
    test_basic_plan()
    test_exact_single_bar()
    print("OK")


if __name__ == "__main__":
    main()
