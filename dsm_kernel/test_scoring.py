# file: dsm_kernel/test_scoring.py
"""
DSM Clustering Kernel — Coordination Cost Scorer Tests

Hand-computed costs on a 3-item matrix:
  A(1) — B(2) weight 2, B(2) — C(3) weight 1, no A — C.

Run:  py -3 -m dsm_kernel.test_scoring
"""

from __future__ import annotations

import math
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dsm_kernel.domain_types import DSMConnection, DSMItem, MatrixView
from dsm_kernel.invariants import MatrixViewError
from dsm_kernel.parameters import ConfigurationError
from dsm_kernel.scoring import get_coordination_score


# ══════════════════════════════════════════════════════════════
# Test Fixtures
# ══════════════════════════════════════════════════════════════

def _abc(groups=("X", "X", "Y")) -> MatrixView:
    return MatrixView(
        items=(
            DSMItem(id=1, name="A", sort_index=1.0, group=groups[0]),
            DSMItem(id=2, name="B", sort_index=2.0, group=groups[1]),
            DSMItem(id=3, name="C", sort_index=3.0, group=groups[2]),
        ),
        connections=(
            DSMConnection(row_id=1, col_id=2, weight=2.0),
            DSMConnection(row_id=2, col_id=3, weight=1.0),
        ),
        title="abc",
    )


_pass = 0
_fail = 0


def _test(name, fn):
    global _pass, _fail
    try:
        fn()
        print(f"  [PASS] {name}")
        _pass += 1
    except Exception as exc:
        print(f"  [FAIL] {name}: {exc}")
        _fail += 1


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------

def test_cost_by_weight():
    report = get_coordination_score(_abc(), 2.0, 1.0, True)
    # X = |X|^1 * 2 = 4, Y = 1 * 0, extra = 1 * 3 items
    assert report.per_cluster_intra_cost == {"X": 4.0, "Y": 0.0}
    assert report.total_intra_cost == 4.0
    assert report.total_extra_cost == 3.0
    assert report.total_cost == 7.0


def test_cost_by_occurrence():
    report = get_coordination_score(_abc(), 2.0, 1.0, False)
    assert report.per_cluster_intra_cost["X"] == 2.0
    assert report.total_extra_cost == 3.0
    assert report.total_cost == 5.0


def test_powcc_penalizes_cluster_size():
    report = get_coordination_score(_abc(), 2.0, 2.0, True)
    assert report.per_cluster_intra_cost["X"] == 8.0  # 2^2 * 2
    # extra cost does not depend on powcc
    assert report.total_extra_cost == 3.0


def test_single_cluster_has_no_extra_cost():
    report = get_coordination_score(_abc(("Z", "Z", "Z")), 2.0, 1.0, True)
    assert report.total_intra_cost == 9.0  # 3 * (2 + 1)
    assert report.total_extra_cost == 0.0


def test_optimal_cluster_size_does_not_change_cost():
    a = get_coordination_score(_abc(), 2.0, 1.0, True)
    b = get_coordination_score(_abc(), 17.0, 1.0, True)
    assert a == b


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

def test_additivity():
    for groups in [("X", "X", "Y"), ("X", "Y", "Y"), ("X", "Y", "Z"), ("Q", "Q", "Q")]:
        for by_weight in (True, False):
            r = get_coordination_score(_abc(groups), 4.5, 1.3, by_weight)
            assert r.total_cost == r.total_intra_cost + r.total_extra_cost
            assert math.isclose(r.total_intra_cost, sum(r.per_cluster_intra_cost.values()))


def test_ungrouped_items_never_share_a_cluster():
    report = get_coordination_score(_abc((None, None, None)), 2.0, 1.0, True)
    assert report.per_cluster_intra_cost == {}
    assert report.total_intra_cost == 0.0
    assert report.total_extra_cost == 9.0  # (2 + 1) * 3


def test_mirrored_connections_count_once():
    base = _abc()
    mirrored = MatrixView(
        items=base.items,
        connections=base.connections + (
            DSMConnection(row_id=2, col_id=1, weight=2.0),
            DSMConnection(row_id=3, col_id=2, weight=1.0),
        ),
    )
    assert get_coordination_score(mirrored, 2.0, 1.0, True) == \
        get_coordination_score(base, 2.0, 1.0, True)


def test_empty_matrix_scores_zero():
    report = get_coordination_score(MatrixView(), 2.0, 1.0, True)
    assert report.total_cost == 0.0
    assert report.per_cluster_intra_cost == {}


def test_single_item_scores_zero():
    matrix = MatrixView(items=(DSMItem(id=7, name="solo", group="S"),))
    report = get_coordination_score(matrix, 2.0, 1.0, True)
    assert report.total_cost == 0.0
    assert report.per_cluster_intra_cost == {"S": 0.0}


def test_idempotent_and_no_mutation():
    matrix = _abc()
    before = matrix.to_dict()
    first = get_coordination_score(matrix, 4.5, 1.0, True)
    second = get_coordination_score(matrix, 4.5, 1.0, True)
    assert first == second
    assert matrix.to_dict() == before


# ---------------------------------------------------------------------------
# Float range
# ---------------------------------------------------------------------------

def _one_big_group(n: int, connected: bool) -> MatrixView:
    items = tuple(DSMItem(id=i, name=f"i{i}", group="big") for i in range(n))
    conns = (DSMConnection(row_id=0, col_id=1),) if connected else ()
    return MatrixView(items=items, connections=conns)


def test_oversized_cluster_cost_saturates():
    # 200 ** 200 leaves the float range
    report = get_coordination_score(_one_big_group(200, True), 4.5, 200.0, False)
    assert math.isinf(report.total_cost)
    assert math.isinf(report.per_cluster_intra_cost["big"])
    assert report.total_extra_cost == 0.0


def test_unconnected_oversized_cluster_costs_zero():
    report = get_coordination_score(_one_big_group(200, False), 4.5, 200.0, False)
    assert report.per_cluster_intra_cost == {"big": 0.0}
    assert report.total_cost == 0.0


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def test_invalid_parameters_rejected():
    for size, powcc in [(0.0, 1.0), (-2.0, 1.0), (2.0, 0.0), (2.0, -1.0), (float("nan"), 1.0)]:
        try:
            get_coordination_score(_abc(), size, powcc, True)
            raise AssertionError(f"Expected ConfigurationError for {size}, {powcc}")
        except ConfigurationError:
            pass  # expected


def test_dangling_connection_rejected():
    matrix = MatrixView(
        items=(DSMItem(id=1, name="A"),),
        connections=(DSMConnection(row_id=1, col_id=9),),
    )
    try:
        get_coordination_score(matrix, 2.0, 1.0, True)
        raise AssertionError("Expected MatrixViewError for dangling id")
    except MatrixViewError as exc:
        assert exc.rule == "connection_refs"


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def main():
    tests = [
        ("Cost: by weight", test_cost_by_weight),
        ("Cost: by occurrence", test_cost_by_occurrence),
        ("Cost: powcc", test_powcc_penalizes_cluster_size),
        ("Cost: single cluster", test_single_cluster_has_no_extra_cost),
        ("Cost: optimal size unused", test_optimal_cluster_size_does_not_change_cost),
        ("Invariant: additivity", test_additivity),
        ("Invariant: ungrouped items", test_ungrouped_items_never_share_a_cluster),
        ("Invariant: mirrored connections", test_mirrored_connections_count_once),
        ("Edge: empty matrix", test_empty_matrix_scores_zero),
        ("Edge: single item", test_single_item_scores_zero),
        ("Idempotence", test_idempotent_and_no_mutation),
        ("Float range: saturated cost", test_oversized_cluster_cost_saturates),
        ("Float range: empty big cluster", test_unconnected_oversized_cluster_costs_zero),
        ("Errors: parameters", test_invalid_parameters_rejected),
        ("Errors: dangling connection", test_dangling_connection_rejected),
    ]

    print(f"\nRunning {len(tests)} tests...\n")
    for name, fn in tests:
        _test(name, fn)

    print(f"\n{'='*60}")
    print(f"  {_pass} passed, {_fail} failed out of {_pass + _fail}")
    print(f"{'='*60}")

    if _fail > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
