"""
DSM Clustering Kernel — Graph Utilities v1.0

Pure dict-based views over a MatrixView's connections.
Every iteration order here is explicit (ascending ids) so that float
sums are reproducible bit-for-bit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .domain_types import MatrixView
from .invariants import validate_matrix


# ---------------------------------------------------------------------------
# Indexed matrix
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatrixIndex:
    """
    Validated, lookup-friendly form of a MatrixView.

    item_ids: ascending.
    pairs: unique (low_id, high_id, weight), ascending by (low_id, high_id).
    adjacency: id -> [(neighbour_id, weight)], neighbours ascending.
    """

    item_ids: Tuple[int, ...]
    pairs: Tuple[Tuple[int, int, float], ...]
    adjacency: Dict[int, Tuple[Tuple[int, float], ...]]

    @property
    def item_count(self) -> int:
        return len(self.item_ids)


def index_matrix(matrix: MatrixView) -> MatrixIndex:
    """Validate the matrix and build its symmetric index."""
    validate_matrix(matrix)
    pairs = connection_pairs(matrix)
    return MatrixIndex(
        item_ids=tuple(matrix.item_ids()),
        pairs=tuple(pairs),
        adjacency=build_symmetric_adjacency(matrix.item_ids(), pairs),
    )


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

def connection_pairs(matrix: MatrixView) -> List[Tuple[int, int, float]]:
    """
    Collapse (a, b) / (b, a) duplicates into one canonical pair.
    Assumes validate_matrix() passed, so repeats agree on weight.
    """
    weights: Dict[Tuple[int, int], float] = {}
    for conn in matrix.connections:
        weights[conn.pair()] = conn.weight
    return [(a, b, w) for (a, b), w in sorted(weights.items())]


def build_symmetric_adjacency(
    item_ids: List[int],
    pairs: List[Tuple[int, int, float]],
) -> Dict[int, Tuple[Tuple[int, float], ...]]:
    """Undirected adjacency: every item present, neighbours ascending."""
    adj: Dict[int, List[Tuple[int, float]]] = {iid: [] for iid in item_ids}
    for a, b, w in pairs:
        adj[a].append((b, w))
        adj[b].append((a, w))
    return {iid: tuple(sorted(nbrs)) for iid, nbrs in adj.items()}


def connection_strength(weight: float, count_by_weight: bool) -> float:
    """Weight when counting by weight, else 1.0 per existing connection."""
    return weight if count_by_weight else 1.0


def find_isolated_items(index: MatrixIndex) -> List[int]:
    """Return item ids with no connection at all."""
    return [iid for iid in index.item_ids if not index.adjacency[iid]]


def bounded_power(base: float, exponent: float) -> float:
    """base ** exponent, saturating to +inf where the float range overflows."""
    try:
        return float(base) ** exponent
    except OverflowError:
        return float("inf")
