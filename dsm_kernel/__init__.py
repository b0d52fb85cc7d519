"""
DSM Clustering Kernel v1.0
Deterministic, in-memory Thebeau clustering of symmetric Design Structure
Matrices, plus the coordination-cost scorer used to judge the result.
No I/O. No global state.
"""

from .domain_types import (
    DSMItem, DSMConnection, MatrixView, CoordinationReport,
    MoveDecision, OptimizationResult,
)
from .invariants import DSMKernelError, MatrixViewError, validate_matrix
from .parameters import ClusterParameters, ConfigurationError
from .deterministic_rng import DeterministicRNG
from .bids import calculate_cluster_bids
from .scoring import get_coordination_score
from .optimizer import ThebeauOptimizer, run_optimization
from .materializer import materialize, redistribute_sort_indices_by_group
from .analysis import BidAnalysisRow, bid_analysis
from .hashing import canonical_serialize, canonical_hash, clustering_hash

__all__ = [
    "DSMItem",
    "DSMConnection",
    "MatrixView",
    "CoordinationReport",
    "MoveDecision",
    "OptimizationResult",
    "DSMKernelError",
    "MatrixViewError",
    "validate_matrix",
    "ClusterParameters",
    "ConfigurationError",
    "DeterministicRNG",
    "calculate_cluster_bids",
    "get_coordination_score",
    "ThebeauOptimizer",
    "run_optimization",
    "materialize",
    "redistribute_sort_indices_by_group",
    "BidAnalysisRow",
    "bid_analysis",
    "canonical_serialize",
    "canonical_hash",
    "clustering_hash",
]
