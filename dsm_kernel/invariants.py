"""
DSM Clustering Kernel — Matrix Invariant Checks v1.0

Hard-fail validation. Every check raises MatrixViewError on failure.
A malformed matrix is a programmer error: cost accounting on it would be
silently wrong, so nothing here tries to repair input.
"""

from __future__ import annotations

import math
from typing import Dict, Tuple

from .domain_types import MatrixView


class DSMKernelError(Exception):
    """Base for every error raised by the kernel."""


class MatrixViewError(DSMKernelError):
    """Raised when a MatrixView violates a structural invariant."""

    def __init__(self, rule: str, detail: str) -> None:
        self.rule = rule
        self.detail = detail
        super().__init__(f"[MATRIX:{rule}] {detail}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_matrix(matrix: MatrixView) -> None:
    """
    Run all matrix checks. Raises MatrixViewError on the first failure.
    """
    _check_duplicate_item_ids(matrix)
    _check_connection_refs(matrix)
    _check_no_self_connections(matrix)
    _check_weights(matrix)
    _check_conflicting_pairs(matrix)


def validate_assignment(matrix: MatrixView, assignment: Dict[int, str]) -> None:
    """Every item must carry exactly one group; no unknown ids."""
    ids = set(matrix.item_ids())
    missing = sorted(ids - set(assignment))
    if missing:
        raise MatrixViewError(
            "unassigned_items",
            f"Items without a cluster: {missing}"
        )
    unknown = sorted(set(assignment) - ids)
    if unknown:
        raise MatrixViewError(
            "unknown_items",
            f"Assignment names items not in the matrix: {unknown}"
        )


# ---------------------------------------------------------------------------
# Individual checks (private)
# ---------------------------------------------------------------------------

def _check_duplicate_item_ids(matrix: MatrixView) -> None:
    ids = [item.id for item in matrix.items]
    if len(ids) != len(set(ids)):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise MatrixViewError(
            "duplicate_item_ids",
            f"Duplicate item ids detected: {dupes}"
        )


def _check_connection_refs(matrix: MatrixView) -> None:
    ids = {item.id for item in matrix.items}
    for conn in matrix.connections:
        if conn.row_id not in ids:
            raise MatrixViewError(
                "connection_refs",
                f"Connection row_id={conn.row_id!r} does not exist in items"
            )
        if conn.col_id not in ids:
            raise MatrixViewError(
                "connection_refs",
                f"Connection col_id={conn.col_id!r} does not exist in items"
            )


def _check_no_self_connections(matrix: MatrixView) -> None:
    for conn in matrix.connections:
        if conn.row_id == conn.col_id:
            raise MatrixViewError(
                "self_connection",
                f"Item {conn.row_id} is connected to itself"
            )


def _check_weights(matrix: MatrixView) -> None:
    for conn in matrix.connections:
        if not math.isfinite(conn.weight) or conn.weight <= 0:
            raise MatrixViewError(
                "connection_weight",
                f"Connection {conn.row_id}-{conn.col_id} has weight "
                f"{conn.weight!r}; weights must be positive and finite"
            )


def _check_conflicting_pairs(matrix: MatrixView) -> None:
    """(a, b) and (b, a) are the same pair; repeats must agree on weight."""
    seen: Dict[Tuple[int, int], float] = {}
    for conn in matrix.connections:
        key = conn.pair()
        if key in seen and seen[key] != conn.weight:
            raise MatrixViewError(
                "conflicting_pair",
                f"Pair {key} appears with weights {seen[key]!r} "
                f"and {conn.weight!r}"
            )
        seen[key] = conn.weight
