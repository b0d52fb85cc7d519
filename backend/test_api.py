# file: backend/test_api.py
"""
DSM Clustering API — endpoint tests via FastAPI's TestClient.

Run:  py -3 -m backend.test_api
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from backend.main import MAX_NUM_LEVELS, app

client = TestClient(app)


def _matrix(groups=("X", "X", "Y")) -> dict:
    return {
        "title": "abc",
        "items": [
            {"id": 1, "name": "A", "sort_index": 1, "group": groups[0]},
            {"id": 2, "name": "B", "sort_index": 2, "group": groups[1]},
            {"id": 3, "name": "C", "sort_index": 3, "group": groups[2]},
        ],
        "connections": [
            {"row_id": 1, "col_id": 2, "weight": 2.0},
            {"row_id": 2, "col_id": 3, "weight": 1.0},
        ],
    }


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
# Meta
# ---------------------------------------------------------------------------

def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_defaults():
    body = client.get("/defaults").json()
    assert body["optimal_cluster_size"] == 4.5
    assert body["powdep"] == 4.0
    assert body["rand_bid"] == 122.0
    assert body["num_levels"] == 1000
    assert body["rand_seed"] == 30
    assert body["max_num_levels"] == MAX_NUM_LEVELS


# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------

def test_cluster_is_deterministic():
    payload = {
        "matrix": _matrix(),
        "optimal_cluster_size": 2.0,
        "powdep": 1.0,
        "count_by_weight": True,
        "num_levels": 30,
        "rand_seed": 17,
    }
    first = client.post("/cluster", json=payload)
    second = client.post("/cluster", json=payload)
    assert first.status_code == 200, first.text
    assert first.json() == second.json()

    body = first.json()
    assert set(body["assignment"]) == {"1", "2", "3"}
    assert len(body["matrix"]["items"]) == 3
    assert body["parameters"]["rand_seed"] == 17
    assert len(body["cost_history"]) == 30
    assert len(body["clustering_hash"]) == 64


def test_cluster_rejects_bad_parameters():
    resp = client.post("/cluster", json={"matrix": _matrix(), "optimal_cluster_size": 0})
    assert resp.status_code == 422
    assert "[CONFIG:optimal_cluster_size]" in resp.json()["detail"]


def test_cluster_rejects_malformed_matrix():
    matrix = _matrix()
    matrix["connections"].append({"row_id": 1, "col_id": 9})
    resp = client.post("/cluster", json={"matrix": matrix, "num_levels": 1})
    assert resp.status_code == 422
    assert "[MATRIX:connection_refs]" in resp.json()["detail"]


def test_cluster_caps_num_levels():
    resp = client.post(
        "/cluster", json={"matrix": _matrix(), "num_levels": MAX_NUM_LEVELS + 1},
    )
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def test_coordination_score():
    resp = client.post("/coordination-score", json={
        "matrix": _matrix(), "powcc": 1.0, "count_by_weight": True,
    })
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["per_cluster_intra_cost"] == {"X": 4.0, "Y": 0.0}
    assert body["total_extra_cost"] == 3.0
    assert body["total_cost"] == 7.0


def test_cluster_bids():
    resp = client.post("/cluster-bids", json={
        "matrix": _matrix(), "cluster": "Y",
        "optimal_cluster_size": 2.0, "powdep": 1.0, "powbid": 1.0,
        "count_by_weight": True,
    })
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"cluster": "Y", "bids": {"1": 0.0, "2": 1.0, "3": 0.0}}


def test_cluster_bids_requires_cluster():
    resp = client.post("/cluster-bids", json={"matrix": _matrix()})
    assert resp.status_code == 400


def test_saturated_bids_serialise_as_null():
    matrix = _matrix()
    matrix["connections"][0]["weight"] = 1e100
    resp = client.post("/cluster-bids", json={
        "matrix": matrix, "cluster": "X", "powdep": 4.0, "count_by_weight": True,
    })
    assert resp.status_code == 200, resp.text
    bids = resp.json()["bids"]
    assert bids["1"] is None and bids["2"] is None
    assert bids["3"] is not None


def test_bid_analysis():
    resp = client.post("/bid-analysis", json={
        "matrix": _matrix(), "optimal_cluster_size": 2.0, "powdep": 1.0,
        "count_by_weight": True,
    })
    assert resp.status_code == 200, resp.text
    rows = resp.json()["rows"]
    assert [r["item_name"] for r in rows] == ["A", "B", "C"]
    assert rows[2]["highest_group"] == "X"
    assert rows[2]["in_highest_group"] is False


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def main():
    tests = [
        ("GET /health", test_health),
        ("GET /defaults", test_defaults),
        ("POST /cluster deterministic", test_cluster_is_deterministic),
        ("POST /cluster bad parameters", test_cluster_rejects_bad_parameters),
        ("POST /cluster malformed matrix", test_cluster_rejects_malformed_matrix),
        ("POST /cluster level cap", test_cluster_caps_num_levels),
        ("POST /coordination-score", test_coordination_score),
        ("POST /cluster-bids", test_cluster_bids),
        ("POST /cluster-bids without cluster", test_cluster_bids_requires_cluster),
        ("POST /cluster-bids saturated", test_saturated_bids_serialise_as_null),
        ("POST /bid-analysis", test_bid_analysis),
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
