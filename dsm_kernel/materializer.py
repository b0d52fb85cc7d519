"""
Result Materializer — freezes a final clustering into a new MatrixView.

The only step that builds an output matrix. It sets every item's group,
then renumbers sort indices 1..n contiguously per group:
  - groups in alphabetical order of name
  - within a group, items by name, then id

Names, connections, weights and the title are copied untouched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict

from .domain_types import MatrixView
from .invariants import MatrixViewError, validate_assignment


def materialize(matrix: MatrixView, assignment: Dict[int, str]) -> MatrixView:
    """Apply the item -> group assignment and renumber sort indices."""
    validate_assignment(matrix, assignment)
    grouped = matrix.with_items([
        replace(item, group=assignment[item.id]) for item in matrix.items
    ])
    return redistribute_sort_indices_by_group(grouped)


def redistribute_sort_indices_by_group(matrix: MatrixView) -> MatrixView:
    """
    Reorder items by (group, name, id) and number them 1.0 .. n.
    Every item must carry a group.
    """
    for item in matrix.items:
        if item.group is None:
            raise MatrixViewError(
                "unassigned_items",
                f"Item {item.id} has no group; cannot renumber by group"
            )
    ordered = sorted(matrix.items, key=lambda i: (i.group, i.name, i.id))
    return matrix.with_items([
        replace(item, sort_index=float(n)) for n, item in enumerate(ordered, 1)
    ])
