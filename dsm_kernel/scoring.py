"""
Coordination Cost Scorer v1.0

    intra(C) = |C| ** powcc * Σ strength(a, b)   over pairs with a, b in C
    extra    = Σ strength(a, b) * item_count     over pairs crossing clusters
    total    = Σ intra(C) + extra

Lower is better. Pairs are visited in canonical (low_id, high_id) order and
per-cluster totals are summed in ascending cluster id order, so results are
bit-identical between the optimizer and get_coordination_score().

optimal_cluster_size is validated but does not enter the cost formula.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .clustering import Clustering
from .domain_types import CoordinationReport, MatrixView
from .graph import MatrixIndex, bounded_power, connection_strength, index_matrix
from .parameters import validate_cost_parameters


@dataclass(frozen=True)
class CostBreakdown:
    """Cost keyed by internal cluster id (optimizer bookkeeping)."""

    per_cluster: Dict[int, float]
    total_intra: float
    total_extra: float
    total: float


# ── Core formula ──────────────────────────────────────────────

def coordination_score(
    index: MatrixIndex,
    clustering: Clustering,
    powcc: float,
    count_by_weight: bool,
) -> CostBreakdown:
    """Full coordination cost of a clustering. Empty matrix scores 0."""
    n = index.item_count
    strength_sum: Dict[int, float] = {cid: 0.0 for cid in clustering.cluster_ids()}
    total_extra = 0.0

    for a, b, weight in index.pairs:
        strength = connection_strength(weight, count_by_weight)
        ca = clustering.cluster_of(a)
        if ca == clustering.cluster_of(b):
            strength_sum[ca] += strength
        else:
            total_extra += strength * n

    per_cluster: Dict[int, float] = {}
    total_intra = 0.0
    for cid in sorted(strength_sum):
        # no internal connections: 0 even when size ** powcc saturates
        if strength_sum[cid] == 0:
            cost = 0.0
        else:
            cost = bounded_power(clustering.size(cid), powcc) * strength_sum[cid]
        per_cluster[cid] = cost
        total_intra += cost

    return CostBreakdown(
        per_cluster=per_cluster,
        total_intra=total_intra,
        total_extra=total_extra,
        total=total_intra + total_extra,
    )


def total_cost(
    index: MatrixIndex,
    clustering: Clustering,
    powcc: float,
    count_by_weight: bool,
) -> float:
    return coordination_score(index, clustering, powcc, count_by_weight).total


def to_report(breakdown: CostBreakdown, clustering: Clustering) -> CoordinationReport:
    """
    Name the breakdown by group. Anonymous clusters (ungrouped items)
    always cost 0 and are left out of the per-cluster map.
    """
    per_cluster = {
        clustering.name_of(cid): cost
        for cid, cost in breakdown.per_cluster.items()
        if not clustering.is_anonymous(cid)
    }
    return CoordinationReport(
        per_cluster_intra_cost=per_cluster,
        total_intra_cost=breakdown.total_intra,
        total_extra_cost=breakdown.total_extra,
        total_cost=breakdown.total,
    )


# ── Standalone query ──────────────────────────────────────────

def get_coordination_score(
    matrix: MatrixView,
    optimal_cluster_size: float,
    powcc: float,
    count_by_weight: bool,
) -> CoordinationReport:
    """
    Coordination cost of the matrix's current grouping.

    Ungrouped items never share a cluster: their connections always
    count as extra cost. Read-only: the matrix is never mutated.
    """
    validate_cost_parameters(optimal_cluster_size, powcc)
    index = index_matrix(matrix)
    clustering = Clustering.from_groups(matrix.group_assignment())
    breakdown = coordination_score(index, clustering, powcc, count_by_weight)
    return to_report(breakdown, clustering)
