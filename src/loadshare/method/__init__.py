r"""
Dynamic Load Management

Allocation of a quantized capacity pool (power modules of a fixed block
size) among a fixed set of consumers such as EV charging stalls.

Main components:
- pool: capacity modes and the block count they imply
- registry: consumers with their request, priority and connection state
- allocation: the pure recompute producing an allocation snapshot
- snapshot: immutable snapshots, snapshot diffs and block transfers
- engine: state object that recomputes after every mutation
- demand: injectable request generators
"""

from .errors import (
    LoadShareError,
    NotFoundError,
    InvalidArgumentError,
)

from .pool import (
    CapacityMode,
    CapacityPool,
    parse_capacity_mode,
)

from .config import SiteConfig

from .registry import (
    Consumer,
    ConsumerRegistry,
    round_to_block,
)

from .snapshot import (
    AllocationSnapshot,
    BlockTransfer,
    diff_snapshots,
    block_transfers,
)

from .allocation import (
    AllocationPolicy,
    create_tiered_policy,
    create_round_robin_policy,
    compute_desired_blocks,
    sort_candidates,
    recompute,
    check_invariants,
)

from .demand import (
    DemandGenerator,
    setup_rng,
    create_random_demand,
    create_fixed_demand,
)

from .results import (
    SimulationStep,
    SimulationHistory,
    snapshot_to_dataframe,
    summary_dataframe,
    history_to_dataframe,
)

from .engine import AllocationEngine


__all__ = [
    # Errors
    "LoadShareError",
    "NotFoundError",
    "InvalidArgumentError",
    # Pool
    "CapacityMode",
    "CapacityPool",
    "parse_capacity_mode",
    # Config
    "SiteConfig",
    # Registry
    "Consumer",
    "ConsumerRegistry",
    "round_to_block",
    # Snapshot
    "AllocationSnapshot",
    "BlockTransfer",
    "diff_snapshots",
    "block_transfers",
    # Allocation
    "AllocationPolicy",
    "create_tiered_policy",
    "create_round_robin_policy",
    "compute_desired_blocks",
    "sort_candidates",
    "recompute",
    "check_invariants",
    # Demand
    "DemandGenerator",
    "setup_rng",
    "create_random_demand",
    "create_fixed_demand",
    # Results
    "SimulationStep",
    "SimulationHistory",
    "snapshot_to_dataframe",
    "summary_dataframe",
    "history_to_dataframe",
    # Engine
    "AllocationEngine",
]
