"""
Cluster Analysis — bid table over a matrix's current grouping.

For every item (ordered by sort index, then id) reports its bid for every
group, which group bids highest and lowest, and whether the item already
sits in its highest-bidding group. Read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from .bids import bid_rank_key, bids_for_cluster
from .clustering import Clustering
from .domain_types import MatrixView
from .graph import index_matrix
from .parameters import validate_bid_parameters


@dataclass(frozen=True)
class BidAnalysisRow:
    item_id: int
    item_name: str
    current_group: Optional[str]
    bids: Dict[str, float]            # group name -> bid, alphabetical
    highest_group: Optional[str]
    lowest_group: Optional[str]

    @property
    def in_highest_group(self) -> bool:
        return self.current_group is not None and self.current_group == self.highest_group

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "current_group": self.current_group,
            "bids": dict(self.bids),
            "highest_group": self.highest_group,
            "lowest_group": self.lowest_group,
            "in_highest_group": self.in_highest_group,
        }


def bid_analysis(
    matrix: MatrixView,
    optimal_cluster_size: float,
    powdep: float,
    powbid: float,
    count_by_weight: bool,
) -> List[BidAnalysisRow]:
    """
    One row per item. Ties for highest/lowest go to the alphabetically
    first group. A matrix without groups yields rows with empty bids.
    """
    validate_bid_parameters(optimal_cluster_size, powdep, powbid)
    index = index_matrix(matrix)
    clustering = Clustering.from_groups(matrix.group_assignment())
    groups = matrix.groups()

    table: Dict[str, Dict[int, float]] = {
        g: bids_for_cluster(
            index, clustering, g,
            optimal_cluster_size, powdep, powbid, count_by_weight,
        )
        for g in groups
    }

    rows: List[BidAnalysisRow] = []
    for item in sorted(matrix.items, key=lambda i: (i.sort_index, i.id)):
        bids = {g: table[g][item.id] for g in groups}
        highest: Optional[str] = None
        lowest: Optional[str] = None
        for g in groups:
            key = bid_rank_key(bids[g])
            if highest is None or key > bid_rank_key(bids[highest]):
                highest = g
            if lowest is None or key < bid_rank_key(bids[lowest]):
                lowest = g
        rows.append(BidAnalysisRow(
            item_id=item.id,
            item_name=item.name,
            current_group=item.group,
            bids=bids,
            highest_group=highest,
            lowest_group=lowest,
        ))
    return rows

