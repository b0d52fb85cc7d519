# file: dsm_kernel/test_rng.py
"""
DSM Clustering Kernel — Deterministic RNG Tests

Run:  py -3 -m dsm_kernel.test_rng
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dsm_kernel.deterministic_rng import DeterministicRNG


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


def test_rng_reproducible():
    a = DeterministicRNG(30)
    b = DeterministicRNG(30)
    seq_a = [a.uniform(122.0) for _ in range(20)] + [a.rand_index(7) for _ in range(20)]
    seq_b = [b.uniform(122.0) for _ in range(20)] + [b.rand_index(7) for _ in range(20)]
    assert seq_a == seq_b


def test_rng_ranges():
    rng = DeterministicRNG(1)
    for _ in range(500):
        assert 0.0 <= rng.uniform(3.0) < 3.0
        assert 0 <= rng.rand_index(4) < 4
    try:
        rng.rand_index(0)
        raise AssertionError("Expected ValueError")
    except ValueError:
        pass  # expected


def test_rng_seeds_differ():
    a = DeterministicRNG(1)
    b = DeterministicRNG(2)
    assert [a.uniform(1.0) for _ in range(5)] != [b.uniform(1.0) for _ in range(5)]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def main():
    tests = [
        ("RNG: reproducible", test_rng_reproducible),
        ("RNG: ranges", test_rng_ranges),
        ("RNG: seeds differ", test_rng_seeds_differ),
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
