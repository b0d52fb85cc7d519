"""
Deterministic RNG — Seeded random wrapper.

All randomness in an optimizer run passes through a single DeterministicRNG
instance. Identical (seed) → identical call sequence → identical results.
"""

from __future__ import annotations

import random


class DeterministicRNG:
    """Local seeded RNG. No global random state touched."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(seed)

    def uniform(self, high: float) -> float:
        """Return random float in [0, high)."""
        return self._rng.random() * high

    def rand_index(self, n: int) -> int:
        """Return random index in [0, n). n must be positive."""
        if n <= 0:
            raise ValueError(f"rand_index needs n > 0, got {n}")
        return self._rng.randrange(n)
