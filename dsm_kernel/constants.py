"""
DSM Clustering Kernel — Default Algorithm Parameters

All magic numbers live here as module-level defaults.
Per-run values are carried by ClusterParameters.
"""

# --- Bidding ---
OPTIMAL_CLUSTER_SIZE: float = 4.5
POWDEP: float = 4.0
POWBID: float = 1.0

# --- Coordination cost ---
POWCC: float = 1.0
COUNT_BY_WEIGHT: bool = False

# --- Randomization ---
# A draw in [0, RAND_*) below 1 triggers the suboptimal branch.
RAND_BID: float = 122.0
RAND_ACCEPT: float = 122.0
RAND_SEED: int = 30

# --- Compute budget ---
NUM_LEVELS: int = 1000

# --- Initial grouping strategies ---
INITIAL_SINGLETONS: str = "singletons"
INITIAL_EXISTING: str = "existing"
INITIAL_GROUPINGS = (INITIAL_SINGLETONS, INITIAL_EXISTING)

# Prefix for clusters created by the optimizer: G0, G1, ...
CLUSTER_NAME_PREFIX: str = "G"
