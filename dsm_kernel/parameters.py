"""
Cluster Parameters — Frozen dataclass defining one optimizer run.

Validation is explicit: validate() hard-fails with ConfigurationError
before any iteration starts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from . import constants
from .invariants import DSMKernelError


class ConfigurationError(DSMKernelError):
    """Raised when an algorithm parameter is out of its valid range."""

    def __init__(self, parameter: str, detail: str) -> None:
        self.parameter = parameter
        self.detail = detail
        super().__init__(f"[CONFIG:{parameter}] {detail}")


@dataclass(frozen=True)
class ClusterParameters:
    """Immutable parameter set for the Thebeau clustering algorithm."""

    optimal_cluster_size: float = constants.OPTIMAL_CLUSTER_SIZE
    powdep: float = constants.POWDEP
    powbid: float = constants.POWBID
    powcc: float = constants.POWCC
    rand_bid: float = constants.RAND_BID
    rand_accept: float = constants.RAND_ACCEPT
    count_by_weight: bool = constants.COUNT_BY_WEIGHT
    num_levels: int = constants.NUM_LEVELS
    rand_seed: int = constants.RAND_SEED
    debug: bool = False
    exclusions: Tuple[int, ...] = ()
    initial_grouping: str = constants.INITIAL_SINGLETONS
    keep_best: bool = False
    record_moves: bool = False

    def validate(self) -> None:
        """Raise ConfigurationError on the first invalid field."""
        _require_positive("optimal_cluster_size", self.optimal_cluster_size)
        _require_positive("powdep", self.powdep)
        _require_positive("powbid", self.powbid)
        _require_positive("powcc", self.powcc)
        _require_at_least_one("rand_bid", self.rand_bid)
        _require_at_least_one("rand_accept", self.rand_accept)

        if isinstance(self.num_levels, bool) or not isinstance(self.num_levels, int):
            raise ConfigurationError(
                "num_levels", f"must be an integer, got {self.num_levels!r}"
            )
        if self.num_levels < 0:
            raise ConfigurationError(
                "num_levels", f"must be >= 0, got {self.num_levels}"
            )
        if isinstance(self.rand_seed, bool) or not isinstance(self.rand_seed, int):
            raise ConfigurationError(
                "rand_seed", f"must be an integer, got {self.rand_seed!r}"
            )
        if self.initial_grouping not in constants.INITIAL_GROUPINGS:
            raise ConfigurationError(
                "initial_grouping",
                f"must be one of {list(constants.INITIAL_GROUPINGS)}, "
                f"got {self.initial_grouping!r}"
            )

    def to_dict(self) -> dict:
        """Serialise to plain dict for JSON export."""
        return {
            "optimal_cluster_size": self.optimal_cluster_size,
            "powdep": self.powdep,
            "powbid": self.powbid,
            "powcc": self.powcc,
            "rand_bid": self.rand_bid,
            "rand_accept": self.rand_accept,
            "count_by_weight": self.count_by_weight,
            "num_levels": self.num_levels,
            "rand_seed": self.rand_seed,
            "debug": self.debug,
            "exclusions": list(self.exclusions),
            "initial_grouping": self.initial_grouping,
            "keep_best": self.keep_best,
            "record_moves": self.record_moves,
        }


# ---------------------------------------------------------------------------
# Checks shared with the standalone queries
# ---------------------------------------------------------------------------

def validate_bid_parameters(
    optimal_cluster_size: float, powdep: float, powbid: float,
) -> None:
    _require_positive("optimal_cluster_size", optimal_cluster_size)
    _require_positive("powdep", powdep)
    _require_positive("powbid", powbid)


def validate_cost_parameters(optimal_cluster_size: float, powcc: float) -> None:
    _require_positive("optimal_cluster_size", optimal_cluster_size)
    _require_positive("powcc", powcc)


def _require_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(name, f"must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(name, f"must be finite, got {value!r}")


def _require_positive(name: str, value: float) -> None:
    _require_finite(name, value)
    if value <= 0:
        raise ConfigurationError(name, f"must be > 0, got {value!r}")


def _require_at_least_one(name: str, value: float) -> None:
    _require_finite(name, value)
    if value < 1:
        raise ConfigurationError(name, f"must be >= 1, got {value!r}")
