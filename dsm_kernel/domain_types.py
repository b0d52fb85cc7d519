"""
DSM Clustering Kernel — Core Domain Types v1.0

Pure data. No clustering logic.

A MatrixView is an immutable snapshot of a symmetric Design Structure
Matrix: one canonical item per row/column pair, plus the sparse list of
connections between them. The engine never mutates a MatrixView; every
change produces a new value.

────────────────────────────────────────────────
DOMAIN GLOSSARY
────────────────────────────────────────────────

DSM:
    Square matrix recording pairwise dependencies between system elements.

Cluster / Group:
    Subset of items treated as cohesive for coordination-cost accounting.

Bid:
    Score expressing how strongly an item "wants" to join a cluster.

Coordination cost:
    Intra-cluster plus extra-cluster connection cost. Lower is better.

────────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple


# ── Core Domain Types ─────────────────────────────────────────

@dataclass(frozen=True)
class DSMItem:
    """One canonical item of a symmetric matrix (row and column alias)."""

    id: int
    name: str
    sort_index: float = 0.0
    group: Optional[str] = None  # None = ungrouped


@dataclass(frozen=True)
class DSMConnection:
    """Unordered connection between two items. Absent pair = weight 0."""

    row_id: int
    col_id: int
    weight: float = 1.0
    name: str = ""

    def pair(self) -> Tuple[int, int]:
        """Canonical (low_id, high_id) key for the unordered pair."""
        if self.row_id <= self.col_id:
            return (self.row_id, self.col_id)
        return (self.col_id, self.row_id)


@dataclass(frozen=True)
class MatrixView:
    """
    Read-only snapshot consumed by the engine.

    items: canonical items, one per symmetric row/column pair.
    connections: sparse connections; (a, b) and (b, a) denote the same pair.
    title: free-form metadata, carried through untouched.
    """

    items: Tuple[DSMItem, ...] = ()
    connections: Tuple[DSMConnection, ...] = ()
    title: str = ""

    def item_ids(self) -> List[int]:
        """All item ids in ascending order."""
        return sorted(item.id for item in self.items)

    def groups(self) -> List[str]:
        """Distinct group names currently in use, alphabetical."""
        return sorted({item.group for item in self.items if item.group is not None})

    def group_assignment(self) -> Dict[int, Optional[str]]:
        """item id -> current group name (None when ungrouped)."""
        return {item.id: item.group for item in self.items}

    def with_items(self, items: List[DSMItem]) -> "MatrixView":
        """New view with the given items; connections and title unchanged."""
        return replace(self, items=tuple(items))

    def to_dict(self) -> dict:
        """Serialise to a plain dict (for JSON responses / logging)."""
        return {
            "title": self.title,
            "items": [
                {
                    "id": i.id,
                    "name": i.name,
                    "sort_index": i.sort_index,
                    "group": i.group,
                }
                for i in self.items
            ],
            "connections": [
                {
                    "row_id": c.row_id,
                    "col_id": c.col_id,
                    "weight": c.weight,
                    "name": c.name,
                }
                for c in self.connections
            ],
        }


# ── Result Types ──────────────────────────────────────────────

@dataclass(frozen=True)
class CoordinationReport:
    """
    Coordination cost of one clustering.

    per_cluster_intra_cost: group name -> intra-cluster cost.
    Invariant: total_intra_cost == sum(per_cluster_intra_cost.values())
               total_cost == total_intra_cost + total_extra_cost
    """

    per_cluster_intra_cost: Dict[str, float]
    total_intra_cost: float
    total_extra_cost: float
    total_cost: float

    def to_dict(self) -> dict:
        return {
            "per_cluster_intra_cost": dict(sorted(self.per_cluster_intra_cost.items())),
            "total_intra_cost": self.total_intra_cost,
            "total_extra_cost": self.total_extra_cost,
            "total_cost": self.total_cost,
        }


@dataclass(frozen=True)
class MoveDecision:
    """
    One tentative move evaluated by the optimizer.

    randomized_bid: target came from the suboptimal-bid branch.
    randomized_accept: move was accepted although cost did not decrease.
    """

    level: int
    item_id: int
    from_cluster: int
    to_cluster: int
    cost_before: float
    cost_after: float
    accepted: bool
    randomized_bid: bool = False
    randomized_accept: bool = False


@dataclass(frozen=True)
class OptimizationResult:
    """
    Structured, immutable outcome of one optimizer run.

    matrix: the materialized output (groups set, sort indices renumbered).
    assignment: item id -> final group name.
    cost_history: total cost after each level, in order.
    """

    matrix: MatrixView
    assignment: Dict[int, str]
    initial_cost: float
    final_cost: float
    best_cost: float
    best_level: int
    levels_run: int
    accepted_moves: int
    rejected_moves: int
    cost_history: List[float] = field(default_factory=list)
    moves: List[MoveDecision] = field(default_factory=list)
    clustering_hash: str = ""

    @property
    def cluster_count(self) -> int:
        return len(set(self.assignment.values()))

    def to_dict(self) -> dict:
        return {
            "matrix": self.matrix.to_dict(),
            "assignment": {str(k): v for k, v in sorted(self.assignment.items())},
            "initial_cost": self.initial_cost,
            "final_cost": self.final_cost,
            "best_cost": self.best_cost,
            "best_level": self.best_level,
            "levels_run": self.levels_run,
            "accepted_moves": self.accepted_moves,
            "rejected_moves": self.rejected_moves,
            "cluster_count": self.cluster_count,
            "cost_history": list(self.cost_history),
            "clustering_hash": self.clustering_hash,
        }
