"""
Clustering — mutable item → cluster map owned by a single optimizer run.

Cluster ids are local integers allocated from a per-instance counter
(no global uid state). Display names are kept alongside so the final
assignment can be frozen back into group names.

Invariant: every item id has exactly one cluster at all times.
Empty clusters may exist until remove_empty() runs.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from .constants import CLUSTER_NAME_PREFIX


class Clustering:

    def __init__(
        self,
        assignment: Dict[int, int],
        names: Dict[int, str],
        anonymous: Optional[Set[int]] = None,
    ) -> None:
        self._cluster_of: Dict[int, int] = dict(assignment)
        self._names: Dict[int, str] = dict(names)
        # clusters standing in for ungrouped items; hidden from reports
        self._anonymous: Set[int] = set(anonymous or ())
        self._members: Dict[int, Set[int]] = {cid: set() for cid in self._names}
        for item_id, cid in self._cluster_of.items():
            self._members[cid].add(item_id)
        self._next_id = max(self._names, default=-1) + 1

    # -- Construction -------------------------------------------------------

    @classmethod
    def singletons(cls, item_ids: List[int]) -> "Clustering":
        """Every item alone, clusters named G0..Gn-1 in ascending item order."""
        ordered = sorted(item_ids)
        return cls(
            assignment={iid: n for n, iid in enumerate(ordered)},
            names={n: f"{CLUSTER_NAME_PREFIX}{n}" for n in range(len(ordered))},
        )

    @classmethod
    def from_groups(cls, groups: Dict[int, Optional[str]]) -> "Clustering":
        """
        Start from existing group names. Named groups get ids in
        alphabetical order; each ungrouped item gets its own anonymous
        cluster after them.
        """
        group_names = sorted({g for g in groups.values() if g is not None})
        cid_of_name = {name: n for n, name in enumerate(group_names)}
        names = {n: name for name, n in cid_of_name.items()}

        assignment: Dict[int, int] = {}
        anonymous: Set[int] = set()
        next_id = len(group_names)
        for item_id in sorted(groups):
            name = groups[item_id]
            if name is None:
                assignment[item_id] = next_id
                names[next_id] = _unique_name(next_id, set(names.values()))
                anonymous.add(next_id)
                next_id += 1
            else:
                assignment[item_id] = cid_of_name[name]
        return cls(assignment, names, anonymous)

    def copy(self) -> "Clustering":
        clone = Clustering(self._cluster_of, self._names, self._anonymous)
        clone._next_id = self._next_id
        return clone

    # -- Queries ------------------------------------------------------------

    def cluster_of(self, item_id: int) -> int:
        return self._cluster_of[item_id]

    def size(self, cluster_id: int) -> int:
        return len(self._members.get(cluster_id, ()))

    def cluster_ids(self) -> List[int]:
        """All live cluster ids (including empty ones), ascending."""
        return sorted(self._members)

    def name_of(self, cluster_id: int) -> str:
        return self._names[cluster_id]

    def cluster_id_of_name(self, name: str) -> Optional[int]:
        for cid, n in self._names.items():
            if n == name:
                return cid
        return None

    def is_anonymous(self, cluster_id: int) -> bool:
        return cluster_id in self._anonymous

    def peek_next_id(self) -> int:
        """Id the next create_cluster() call will return."""
        return self._next_id

    def assignment_by_name(self) -> Dict[int, str]:
        """item id -> cluster display name, ascending item order."""
        return {
            iid: self._names[cid]
            for iid, cid in sorted(self._cluster_of.items())
        }

    # -- Mutation -----------------------------------------------------------

    def create_cluster(self) -> int:
        """Allocate a new empty cluster and return its id."""
        cid = self._next_id
        self._next_id += 1
        self._names[cid] = _unique_name(cid, set(self._names.values()))
        self._members[cid] = set()
        return cid

    def move(self, item_id: int, cluster_id: int) -> None:
        if cluster_id not in self._members:
            raise KeyError(f"Unknown cluster id {cluster_id}")
        old = self._cluster_of[item_id]
        self._members[old].discard(item_id)
        self._members[cluster_id].add(item_id)
        self._cluster_of[item_id] = cluster_id

    def discard_cluster(self, cluster_id: int) -> None:
        """Drop an empty cluster. Hard fail if it still has members."""
        if self._members.get(cluster_id):
            raise ValueError(f"Cluster {cluster_id} is not empty")
        self._members.pop(cluster_id, None)
        self._names.pop(cluster_id, None)
        self._anonymous.discard(cluster_id)

    def remove_empty(self) -> List[int]:
        """Drop every empty cluster. Returns removed ids, ascending."""
        removed = [cid for cid in sorted(self._members) if not self._members[cid]]
        for cid in removed:
            self.discard_cluster(cid)
        return removed


def _unique_name(cluster_id: int, taken: Set[str]) -> str:
    name = f"{CLUSTER_NAME_PREFIX}{cluster_id}"
    suffix = 1
    while name in taken:
        name = f"{CLUSTER_NAME_PREFIX}{cluster_id}_{suffix}"
        suffix += 1
    return name
