"""
DSM Clustering Kernel — Cluster Optimizer v1.0

Bid-based, annealing-style clustering after Thebeau (2001).

Each level visits every movable item in ascending id order:
  1. Selection: bid from every live cluster plus a "new singleton"
     option. The highest bid wins. A draw r in [0, rand_bid) with r < 1
     swaps the winner for a uniformly chosen non-maximal candidate; when
     every candidate ties at the top the winner stands.
  2. Acceptance: move tentatively and rescore the whole matrix. Lower
     cost is kept. Otherwise a draw r in [0, rand_accept) with r < 1
     keeps it anyway; else the move is rolled back.
  3. Cleanup: after the level, empty clusters are dropped.

Ties at the top bid are drawn uniformly over the tied candidates (in
ascending cluster id) rather than going to the lowest cluster id, so an
item with no connections is equally likely to land in any cluster.

Exactly num_levels levels run; there is no convergence exit. All
randomness comes from one DeterministicRNG owned by the run, so
(matrix, parameters, seed) fully determines the result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .bids import SINGLETON_BID, bid_rank_key, cluster_bid
from .clustering import Clustering
from .constants import INITIAL_EXISTING, INITIAL_SINGLETONS
from .deterministic_rng import DeterministicRNG
from .domain_types import MatrixView, MoveDecision, OptimizationResult
from .graph import MatrixIndex, find_isolated_items, index_matrix
from .hashing import clustering_hash
from .materializer import materialize
from .parameters import ClusterParameters, ConfigurationError
from .scoring import total_cost

logger = logging.getLogger(__name__)


@dataclass
class _RunState:
    """Everything one run mutates. Never shared between runs."""

    clustering: Clustering
    rng: DeterministicRNG
    cost: float
    best_cost: float
    best_level: int = 0
    best_clustering: Optional[Clustering] = None
    level: int = 0
    accepted: int = 0
    rejected: int = 0
    moves: List[MoveDecision] = field(default_factory=list)


class ThebeauOptimizer:
    """
    Runs the Thebeau clustering algorithm for one parameter set.

    Parameters are validated at construction; run() may be called any
    number of times, each call owning a fresh PRNG and clustering.
    """

    def __init__(self, params: ClusterParameters) -> None:
        params.validate()
        self._params = params

    @property
    def params(self) -> ClusterParameters:
        return self._params

    # -- Public API ---------------------------------------------------------

    def run(self, matrix: MatrixView) -> OptimizationResult:
        """
        Cluster the matrix and return a new, materialized result.
        The input matrix is never mutated.
        """
        p = self._params
        index = index_matrix(matrix)
        self._check_exclusions(index)

        if index.item_count == 0:
            return _empty_result(matrix)

        clustering = self._initial_clustering(matrix, index)
        initial_cost = self._score(index, clustering)
        state = _RunState(
            clustering=clustering,
            rng=DeterministicRNG(p.rand_seed),
            cost=initial_cost,
            best_cost=initial_cost,
            best_clustering=clustering.copy() if p.keep_best else None,
        )

        excluded = set(p.exclusions)
        movable = [iid for iid in index.item_ids if iid not in excluded]

        if p.debug:
            isolated = find_isolated_items(index)
            logger.debug(
                "start: items=%d connections=%d movable=%d isolated=%d cost=%r seed=%d",
                index.item_count, len(index.pairs), len(movable),
                len(isolated), initial_cost, p.rand_seed,
            )

        history: List[float] = []
        run_start = time.perf_counter()
        for level in range(1, p.num_levels + 1):
            state.level = level
            level_start = time.perf_counter()
            for item_id in movable:
                self._visit_item(state, index, item_id)
            removed = state.clustering.remove_empty()
            history.append(state.cost)

            if p.debug:
                logger.debug(
                    "level=%d cost=%r clusters=%d removed=%d accepted=%d "
                    "rejected=%d elapsed_ms=%.2f",
                    level, state.cost, len(state.clustering.cluster_ids()),
                    len(removed), state.accepted, state.rejected,
                    (time.perf_counter() - level_start) * 1000.0,
                )

        if p.debug:
            logger.info(
                "done: levels=%d initial=%r final=%r best=%r (level %d) "
                "accepted=%d rejected=%d elapsed_ms=%.2f",
                p.num_levels, initial_cost, state.cost, state.best_cost,
                state.best_level, state.accepted, state.rejected,
                (time.perf_counter() - run_start) * 1000.0,
            )

        chosen = state.clustering
        if p.keep_best and state.best_clustering is not None:
            chosen = state.best_clustering
        assignment = chosen.assignment_by_name()

        return OptimizationResult(
            matrix=materialize(matrix, assignment),
            assignment=assignment,
            initial_cost=initial_cost,
            final_cost=state.cost,
            best_cost=state.best_cost,
            best_level=state.best_level,
            levels_run=p.num_levels,
            accepted_moves=state.accepted,
            rejected_moves=state.rejected,
            cost_history=history,
            moves=state.moves,
            clustering_hash=clustering_hash(assignment),
        )

    # -- Phases -------------------------------------------------------------

    def _visit_item(self, state: _RunState, index: MatrixIndex, item_id: int) -> None:
        """Selection + tentative move + acceptance for one item."""
        p = self._params
        clustering = state.clustering
        current = clustering.cluster_of(item_id)
        target, randomized_bid = self._select_target(state, index, item_id)
        if target == current:
            return

        created = target == clustering.peek_next_id()
        if created:
            clustering.create_cluster()

        before = state.cost
        clustering.move(item_id, target)
        after = self._score(index, clustering)

        randomized_accept = False
        if after < before:
            accepted = True
        elif state.rng.uniform(p.rand_accept) < 1:
            accepted = True
            randomized_accept = True
        else:
            accepted = False

        if accepted:
            state.cost = after
            state.accepted += 1
            if after < state.best_cost:
                state.best_cost = after
                state.best_level = state.level
                if p.keep_best:
                    state.best_clustering = clustering.copy()
        else:
            clustering.move(item_id, current)
            if created:
                clustering.discard_cluster(target)
            state.rejected += 1

        decision = MoveDecision(
            level=state.level,
            item_id=item_id,
            from_cluster=current,
            to_cluster=target,
            cost_before=before,
            cost_after=after,
            accepted=accepted,
            randomized_bid=randomized_bid,
            randomized_accept=randomized_accept,
        )
        if p.record_moves:
            state.moves.append(decision)
        if p.debug:
            logger.debug(
                "level=%d item=%d %d->%d cost %r -> %r %s%s%s",
                decision.level, item_id, current, target, before, after,
                "accepted" if accepted else "rejected",
                " (random bid)" if randomized_bid else "",
                " (random accept)" if randomized_accept else "",
            )

    def _select_target(
        self, state: _RunState, index: MatrixIndex, item_id: int,
    ) -> Tuple[int, bool]:
        """Return (target cluster id, chosen via the suboptimal-bid branch)."""
        p = self._params
        clustering = state.clustering
        candidates = self._collect_bids(clustering, index, item_id)

        top = max(bid_rank_key(bid) for _, bid in candidates)
        tied = [cid for cid, bid in candidates if bid_rank_key(bid) == top]
        if len(tied) == 1:
            best = tied[0]
        else:
            best = tied[state.rng.rand_index(len(tied))]

        if state.rng.uniform(p.rand_bid) < 1:
            alternatives = [
                cid for cid, bid in candidates if bid_rank_key(bid) < top
            ]
            if alternatives:
                return alternatives[state.rng.rand_index(len(alternatives))], True
        return best, False

    def _collect_bids(
        self, clustering: Clustering, index: MatrixIndex, item_id: int,
    ) -> List[Tuple[int, float]]:
        """Bids from every live cluster (ascending id), then the singleton option."""
        p = self._params
        candidates = [
            (
                cid,
                cluster_bid(
                    item_id, cid, clustering, index,
                    p.optimal_cluster_size, p.powdep, p.powbid, p.count_by_weight,
                ),
            )
            for cid in clustering.cluster_ids()
        ]
        # an item already alone is its own singleton option
        if clustering.size(clustering.cluster_of(item_id)) > 1:
            candidates.append((clustering.peek_next_id(), SINGLETON_BID))
        return candidates

    # -- Helpers ------------------------------------------------------------

    def _score(self, index: MatrixIndex, clustering: Clustering) -> float:
        p = self._params
        return total_cost(index, clustering, p.powcc, p.count_by_weight)

    def _initial_clustering(self, matrix: MatrixView, index: MatrixIndex) -> Clustering:
        if self._params.initial_grouping == INITIAL_EXISTING:
            return Clustering.from_groups(matrix.group_assignment())
        return Clustering.singletons(list(index.item_ids))

    def _check_exclusions(self, index: MatrixIndex) -> None:
        unknown = sorted(set(self._params.exclusions) - set(index.item_ids))
        if unknown:
            raise ConfigurationError(
                "exclusions", f"unknown item ids: {unknown}"
            )


def _empty_result(matrix: MatrixView) -> OptimizationResult:
    assignment: Dict[int, str] = {}
    return OptimizationResult(
        matrix=materialize(matrix, assignment),
        assignment=assignment,
        initial_cost=0.0,
        final_cost=0.0,
        best_cost=0.0,
        best_level=0,
        levels_run=0,
        accepted_moves=0,
        rejected_moves=0,
        clustering_hash=clustering_hash(assignment),
    )


# ---------------------------------------------------------------------------
# Functional entry point
# ---------------------------------------------------------------------------

def run_optimization(
    matrix: MatrixView,
    optimal_cluster_size: float,
    powdep: float,
    powbid: float,
    powcc: float,
    rand_bid: float,
    rand_accept: float,
    count_by_weight: bool,
    num_levels: int,
    rand_seed: int,
    debug: bool = False,
    *,
    exclusions: Sequence[int] = (),
    initial_grouping: str = INITIAL_SINGLETONS,
    keep_best: bool = False,
    record_moves: bool = False,
) -> OptimizationResult:
    """
    Pure function: (matrix snapshot, parameters, seed) -> OptimizationResult.

    Raises ConfigurationError for invalid parameters and MatrixViewError
    for a malformed matrix, both before any iteration starts.
    """
    params = ClusterParameters(
        optimal_cluster_size=optimal_cluster_size,
        powdep=powdep,
        powbid=powbid,
        powcc=powcc,
        rand_bid=rand_bid,
        rand_accept=rand_accept,
        count_by_weight=count_by_weight,
        num_levels=num_levels,
        rand_seed=rand_seed,
        debug=debug,
        exclusions=tuple(exclusions),
        initial_grouping=initial_grouping,
        keep_best=keep_best,
        record_moves=record_moves,
    )
    return ThebeauOptimizer(params).run(matrix)
