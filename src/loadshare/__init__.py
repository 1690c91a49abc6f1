"""
loadshare package - re-exports from loadshare.method
"""

from .method import (
    # Errors
    LoadShareError,
    NotFoundError,
    InvalidArgumentError,
    # Pool
    CapacityMode,
    CapacityPool,
    # Config
    SiteConfig,
    # Registry
    Consumer,
    ConsumerRegistry,
    # Snapshot
    AllocationSnapshot,
    BlockTransfer,
    diff_snapshots,
    block_transfers,
    # Allocation
    AllocationPolicy,
    create_tiered_policy,
    create_round_robin_policy,
    recompute,
    check_invariants,
    # Demand
    DemandGenerator,
    create_random_demand,
    create_fixed_demand,
    # Results
    SimulationHistory,
    history_to_dataframe,
    # Engine
    AllocationEngine,
)


__all__ = [
    # Errors
    "LoadShareError",
    "NotFoundError",
    "InvalidArgumentError",
    # Pool
    "CapacityMode",
    "CapacityPool",
    # Config
    "SiteConfig",
    # Registry
    "Consumer",
    "ConsumerRegistry",
    # Snapshot
    "AllocationSnapshot",
    "BlockTransfer",
    "diff_snapshots",
    "block_transfers",
    # Allocation
    "AllocationPolicy",
    "create_tiered_policy",
    "create_round_robin_policy",
    "recompute",
    "check_invariants",
    # Demand
    "DemandGenerator",
    "create_random_demand",
    "create_fixed_demand",
    # Results
    "SimulationHistory",
    "history_to_dataframe",
    # Engine
    "AllocationEngine",
]
