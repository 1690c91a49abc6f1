r"""
Allocation Snapshots and Snapshot Diffs

An ``AllocationSnapshot`` is the immutable result of one recompute. A
presentation layer compares consecutive snapshots with
``diff_snapshots`` / ``block_transfers`` to decide how many block tokens to
animate and in which direction; nothing in the engine depends on the diff.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Tuple

import polars as pl

from .pool import CapacityMode


@dataclass(frozen=True)
class AllocationSnapshot:
    r"""
    Immutable allocation result.

    Attributes
    ----------
    allocations : Mapping[int, int]
        Consumer id to allocated capacity in kW (read-only view)
    total_blocks : int
        Blocks available under the active ceiling
    free_blocks : int
        Blocks left unallocated
    block_size : int
        Size of one block in kW
    mode : CapacityMode
        Capacity mode the snapshot was computed under
    """
    allocations: Mapping[int, int]
    total_blocks: int
    free_blocks: int
    block_size: int
    mode: CapacityMode = CapacityMode.NORMAL

    def __post_init__(self):
        # Read-only copy of the caller's mapping
        frozen = MappingProxyType(dict(sorted(self.allocations.items())))
        object.__setattr__(self, "allocations", frozen)

    def __eq__(self, other):
        if not isinstance(other, AllocationSnapshot):
            return NotImplemented
        return (
            dict(self.allocations) == dict(other.allocations)
            and self.total_blocks == other.total_blocks
            and self.free_blocks == other.free_blocks
            and self.block_size == other.block_size
            and self.mode == other.mode
        )

    def __hash__(self):
        return hash((tuple(self.allocations.items()), self.total_blocks,
                     self.free_blocks, self.block_size, self.mode))

    def allocated(self, consumer_id: int) -> int:
        r"""Allocated capacity in kW; 0 for ids absent from the snapshot."""
        return self.allocations.get(consumer_id, 0)

    def allocated_blocks(self, consumer_id: int) -> int:
        return self.allocated(consumer_id) // self.block_size

    @property
    def allocated_total(self) -> int:
        r"""Sum of allocated capacity in kW."""
        return sum(self.allocations.values())

    @property
    def allocated_total_blocks(self) -> int:
        return self.allocated_total // self.block_size

    @property
    def ceiling(self) -> int:
        return self.total_blocks * self.block_size

    def pool_layout(self) -> Tuple[bool, ...]:
        r"""
        Occupancy of each block in the pool, free blocks first.

        Returns
        -------
        Tuple[bool, ...]
            ``total_blocks`` entries; ``True`` marks an allocated block
        """
        return tuple(i >= self.free_blocks for i in range(self.total_blocks))

    def to_polars(self) -> pl.DataFrame:
        r"""One row per consumer: consumer_id, allocated_capacity, allocated_blocks."""
        ids = list(self.allocations.keys())
        return pl.DataFrame(
            {
                "consumer_id": ids,
                "allocated_capacity": [self.allocations[i] for i in ids],
                "allocated_blocks": [self.allocations[i] // self.block_size for i in ids],
            },
            schema={
                "consumer_id": pl.Int64,
                "allocated_capacity": pl.Int64,
                "allocated_blocks": pl.Int64,
            },
        )


@dataclass(frozen=True)
class BlockTransfer:
    r"""
    Movement of blocks between the pool and one consumer.

    Attributes
    ----------
    consumer_id : int
        Consumer whose allocation changed
    blocks : int
        Number of blocks moved (always positive)
    direction : str
        ``"to_consumer"`` for pool to consumer, ``"to_pool"`` for the reverse
    """
    consumer_id: int
    blocks: int
    direction: Literal["to_consumer", "to_pool"]


def diff_snapshots(prev: AllocationSnapshot, current: AllocationSnapshot) -> Dict[int, int]:
    r"""
    Per-consumer change in allocated capacity (kW), ``current - prev``.

    Ids missing from one side count as zero allocation there. Values may be
    negative.
    """
    ids = sorted(set(prev.allocations) | set(current.allocations))
    return {i: current.allocated(i) - prev.allocated(i) for i in ids}


def block_transfers(prev: AllocationSnapshot, current: AllocationSnapshot) -> List[BlockTransfer]:
    r"""
    Translate a snapshot diff into block movements, in consumer id order.

    Consumers whose allocation did not change produce no entry.
    """
    transfers = []
    for consumer_id, delta in diff_snapshots(prev, current).items():
        if delta == 0:
            continue
        transfers.append(BlockTransfer(
            consumer_id=consumer_id,
            blocks=abs(delta) // current.block_size,
            direction="to_consumer" if delta > 0 else "to_pool",
        ))
    return transfers
