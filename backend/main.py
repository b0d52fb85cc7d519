# file: backend/main.py
"""
FastAPI Backend — DSM Clustering API v1.

Stateless: every request carries its own matrix snapshot.
No in-memory state between requests.

Handlers are plain `def` functions, so FastAPI runs them on its worker
threadpool; long clustering runs never block the event loop.

Endpoints:
  GET  /health              — liveness
  GET  /defaults            — default algorithm parameters
  POST /cluster             — run the Thebeau optimizer
  POST /coordination-score  — cost of the matrix's current grouping
  POST /cluster-bids        — every item's bid for one group
  POST /bid-analysis        — bid table for every item and group
"""
from __future__ import annotations

import logging
import math
import os
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add project root to path for kernel imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dsm_kernel import constants
from dsm_kernel.analysis import bid_analysis
from dsm_kernel.bids import calculate_cluster_bids
from dsm_kernel.domain_types import DSMConnection, DSMItem, MatrixView
from dsm_kernel.invariants import MatrixViewError
from dsm_kernel.optimizer import ThebeauOptimizer
from dsm_kernel.parameters import ClusterParameters, ConfigurationError
from dsm_kernel.scoring import get_coordination_score

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
MAX_NUM_LEVELS = int(os.environ.get("DSM_MAX_NUM_LEVELS", "100000"))
LOG_LEVEL = os.environ.get("DSM_LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="DSM Clustering API",
    version="1.0.0",
    description="Deterministic Thebeau clustering of Design Structure Matrices",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------


class ItemModel(BaseModel):
    id: int
    name: str
    sort_index: float = 0.0
    group: Optional[str] = None


class ConnectionModel(BaseModel):
    row_id: int
    col_id: int
    weight: float = 1.0
    name: str = ""


class MatrixModel(BaseModel):
    title: str = ""
    items: List[ItemModel] = []
    connections: List[ConnectionModel] = []


class ClusterRequest(BaseModel):
    matrix: MatrixModel
    optimal_cluster_size: float = constants.OPTIMAL_CLUSTER_SIZE
    powdep: float = constants.POWDEP
    powbid: float = constants.POWBID
    powcc: float = constants.POWCC
    rand_bid: float = constants.RAND_BID
    rand_accept: float = constants.RAND_ACCEPT
    count_by_weight: bool = constants.COUNT_BY_WEIGHT
    num_levels: int = constants.NUM_LEVELS
    rand_seed: int = constants.RAND_SEED
    debug: bool = False
    exclusions: List[int] = []
    initial_grouping: str = constants.INITIAL_SINGLETONS
    keep_best: bool = False


class ScoreRequest(BaseModel):
    matrix: MatrixModel
    optimal_cluster_size: float = constants.OPTIMAL_CLUSTER_SIZE
    powcc: float = constants.POWCC
    count_by_weight: bool = constants.COUNT_BY_WEIGHT


class BidsRequest(BaseModel):
    matrix: MatrixModel
    cluster: Optional[str] = Field(
        default=None, description="Group name; omit on /bid-analysis",
    )
    optimal_cluster_size: float = constants.OPTIMAL_CLUSTER_SIZE
    powdep: float = constants.POWDEP
    powbid: float = constants.POWBID
    count_by_weight: bool = constants.COUNT_BY_WEIGHT


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _to_view(model: MatrixModel) -> MatrixView:
    """Build the immutable kernel snapshot from a request body."""
    return MatrixView(
        items=tuple(
            DSMItem(id=i.id, name=i.name, sort_index=i.sort_index, group=i.group)
            for i in model.items
        ),
        connections=tuple(
            DSMConnection(row_id=c.row_id, col_id=c.col_id, weight=c.weight, name=c.name)
            for c in model.connections
        ),
        title=model.title,
    )


def _kernel_error(exc: Exception) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


def _json_safe(value: Any) -> Any:
    """JSON has no inf/NaN: saturated bids and costs go out as null."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/defaults")
def defaults():
    """Default algorithm parameters, as used by the desktop tool."""
    return {
        **ClusterParameters().to_dict(),
        "max_num_levels": MAX_NUM_LEVELS,
    }


@app.post("/cluster")
def cluster(req: ClusterRequest):
    """
    Run the optimizer on the submitted snapshot and return the clustered
    matrix with cost bookkeeping. Same request + seed → same response.
    """
    if req.num_levels > MAX_NUM_LEVELS:
        raise HTTPException(
            status_code=400,
            detail=f"num_levels={req.num_levels} exceeds the configured "
                   f"maximum of {MAX_NUM_LEVELS}",
        )

    params = ClusterParameters(
        optimal_cluster_size=req.optimal_cluster_size,
        powdep=req.powdep,
        powbid=req.powbid,
        powcc=req.powcc,
        rand_bid=req.rand_bid,
        rand_accept=req.rand_accept,
        count_by_weight=req.count_by_weight,
        num_levels=req.num_levels,
        rand_seed=req.rand_seed,
        debug=req.debug,
        exclusions=tuple(req.exclusions),
        initial_grouping=req.initial_grouping,
        keep_best=req.keep_best,
    )
    try:
        result = ThebeauOptimizer(params).run(_to_view(req.matrix))
    except (ConfigurationError, MatrixViewError) as exc:
        raise _kernel_error(exc)

    logger.info(
        "cluster: items=%d levels=%d seed=%d cost %r -> %r clusters=%d",
        len(req.matrix.items), req.num_levels, req.rand_seed,
        result.initial_cost, result.final_cost, result.cluster_count,
    )
    return _json_safe({
        "parameters": params.to_dict(),
        **result.to_dict(),
    })


@app.post("/coordination-score")
def coordination_score(req: ScoreRequest):
    """Coordination cost of the matrix's current grouping. No mutation."""
    try:
        report = get_coordination_score(
            _to_view(req.matrix),
            req.optimal_cluster_size,
            req.powcc,
            req.count_by_weight,
        )
    except (ConfigurationError, MatrixViewError) as exc:
        raise _kernel_error(exc)
    return _json_safe(report.to_dict())


@app.post("/cluster-bids")
def cluster_bids(req: BidsRequest):
    """Every item's bid for one group of the current grouping."""
    if not req.cluster:
        raise HTTPException(status_code=400, detail="cluster is required")
    try:
        bids: Dict[int, float] = calculate_cluster_bids(
            _to_view(req.matrix),
            req.cluster,
            req.optimal_cluster_size,
            req.powdep,
            req.powbid,
            req.count_by_weight,
        )
    except (ConfigurationError, MatrixViewError) as exc:
        raise _kernel_error(exc)
    return _json_safe({
        "cluster": req.cluster,
        "bids": {str(iid): bid for iid, bid in sorted(bids.items())},
    })


@app.post("/bid-analysis")
def analyse_bids(req: BidsRequest):
    """Bid table: every item against every group, with best/worst group."""
    try:
        rows = bid_analysis(
            _to_view(req.matrix),
            req.optimal_cluster_size,
            req.powdep,
            req.powbid,
            req.count_by_weight,
        )
    except (ConfigurationError, MatrixViewError) as exc:
        raise _kernel_error(exc)
    return _json_safe({"rows": [row.to_dict() for row in rows]})
