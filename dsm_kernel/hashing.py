"""
DSM Clustering Kernel — Canonical Hashing v1.0

Deterministic canonical serialization + SHA-256 hashing.
Produces byte-identical output for identical inputs.

Rules:
  - Items sorted by id
  - Connections collapsed to canonical (low_id, high_id) pairs, sorted
  - Floats serialised with repr() (shortest round-trip form)
  - UTF-8 JSON, no whitespace
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

from .domain_types import MatrixView


def canonical_serialize(matrix: MatrixView) -> bytes:
    """Canonical serialization of a MatrixView to UTF-8 JSON bytes."""
    obj = _build_canonical_dict(matrix)
    return json.dumps(obj, ensure_ascii=True, separators=(",", ":"), sort_keys=False).encode("utf-8")


def canonical_hash(matrix: MatrixView) -> str:
    """SHA-256 of canonical serialization. Lowercase hex string."""
    return hashlib.sha256(canonical_serialize(matrix)).hexdigest()


def clustering_hash(assignment: Dict[int, str]) -> str:
    """SHA-256 of an item -> group assignment, items ascending."""
    raw = json.dumps(
        [[iid, assignment[iid]] for iid in sorted(assignment)],
        ensure_ascii=True, separators=(",", ":"),
    ).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def _build_canonical_dict(matrix: MatrixView) -> Dict[str, Any]:
    """Build the canonical dict in strict field order."""
    items = [
        {
            "id": i.id,
            "name": i.name,
            "sort_index": repr(float(i.sort_index)),
            "group": i.group,
        }
        for i in sorted(matrix.items, key=lambda i: i.id)
    ]

    pairs: Dict[tuple, Dict[str, Any]] = {}
    for c in matrix.connections:
        pairs[c.pair()] = {
            "a": c.pair()[0],
            "b": c.pair()[1],
            "weight": repr(float(c.weight)),
            "name": c.name,
        }

    return {
        "kernel_version": 1,
        "title": matrix.title,
        "items": items,
        "connections": [pairs[k] for k in sorted(pairs)],
    }
