"""
Bid Calculator — item-to-cluster affinity after Thebeau.

    raw_affinity = Σ strength(item, j) ** powdep   for j in C, j != item
    penalty      = (size_after / optimal_cluster_size) ** powbid
    bid          = raw_affinity / penalty          (0 when raw_affinity == 0)

size_after counts the cluster's members once the item has joined it, so an
item's bid for its own cluster uses the current size.

Pure functions. The optimizer and calculate_cluster_bids() share
cluster_bid(), so standalone numbers match the optimizer exactly.

Powers that leave the float range saturate to +inf instead of raising;
NaN bids (inf / inf) rank last through bid_rank_key().
"""

from __future__ import annotations

import math
from typing import Dict

from .clustering import Clustering
from .domain_types import MatrixView
from .graph import MatrixIndex, bounded_power, connection_strength, index_matrix
from .parameters import validate_bid_parameters


# ── Core formula ──────────────────────────────────────────────

def raw_affinity(
    item_id: int,
    cluster_id: int,
    clustering: Clustering,
    index: MatrixIndex,
    powdep: float,
    count_by_weight: bool,
) -> float:
    """Sum of powdep-emphasised strengths into the cluster, neighbours ascending."""
    total = 0.0
    for nbr, weight in index.adjacency[item_id]:
        if clustering.cluster_of(nbr) == cluster_id:
            total += bounded_power(connection_strength(weight, count_by_weight), powdep)
    return total


def size_penalty(size_after: int, optimal_cluster_size: float, powbid: float) -> float:
    return bounded_power(size_after / optimal_cluster_size, powbid)


def cluster_bid(
    item_id: int,
    cluster_id: int,
    clustering: Clustering,
    index: MatrixIndex,
    optimal_cluster_size: float,
    powdep: float,
    powbid: float,
    count_by_weight: bool,
) -> float:
    """Bid of one item for one existing (possibly empty) cluster."""
    affinity = raw_affinity(
        item_id, cluster_id, clustering, index, powdep, count_by_weight,
    )
    if affinity == 0:
        return 0.0
    size_after = clustering.size(cluster_id)
    if clustering.cluster_of(item_id) != cluster_id:
        size_after += 1
    penalty = size_penalty(size_after, optimal_cluster_size, powbid)
    if penalty == 0:
        # (size_after / opt) ** powbid underflowed
        return float("inf")
    return affinity / penalty


# A fresh singleton holds no other item: affinity 0, so its bid is 0.
SINGLETON_BID: float = 0.0


def bid_rank_key(bid: float) -> float:
    """NaN bids rank below every real bid."""
    return float("-inf") if math.isnan(bid) else bid


# ── Standalone query ──────────────────────────────────────────

def calculate_cluster_bids(
    matrix: MatrixView,
    cluster: str,
    optimal_cluster_size: float,
    powdep: float,
    powbid: float,
    count_by_weight: bool,
) -> Dict[int, float]:
    """
    Bid of every item in the matrix for one named group of its current
    grouping. An unknown group name has no members, so every bid is 0.

    Read-only: the matrix is never mutated.
    """
    validate_bid_parameters(optimal_cluster_size, powdep, powbid)
    index = index_matrix(matrix)
    clustering = Clustering.from_groups(matrix.group_assignment())
    return bids_for_cluster(
        index, clustering, cluster,
        optimal_cluster_size, powdep, powbid, count_by_weight,
    )


def bids_for_cluster(
    index: MatrixIndex,
    clustering: Clustering,
    cluster: str,
    optimal_cluster_size: float,
    powdep: float,
    powbid: float,
    count_by_weight: bool,
) -> Dict[int, float]:
    """calculate_cluster_bids() over an already indexed matrix."""
    cluster_id = clustering.cluster_id_of_name(cluster)
    if cluster_id is None or clustering.is_anonymous(cluster_id):
        return {iid: 0.0 for iid in index.item_ids}
    return {
        iid: cluster_bid(
            iid, cluster_id, clustering, index,
            optimal_cluster_size, powdep, powbid, count_by_weight,
        )
        for iid in index.item_ids
    }
