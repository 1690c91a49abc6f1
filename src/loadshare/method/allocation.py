r"""
Block Allocation

Distributes the blocks implied by the active capacity ceiling among the
connected consumers of a registry.

For each connected consumer $c$:

$\text{desired}(c) = \min(\lfloor \text{request}(c) / b \rfloor, \text{total\_blocks})$

Candidates are ordered by priority (descending), then id (ascending). Blocks
are handed out one at a time in passes over the candidates. The
``AllocationPolicy`` decides how passes relate to priority tiers:

- tiered (default): a priority tier is served to completion, round-robin
  within the tier, before the next lower tier receives anything. This is
  max-min fair inside a tier and strict across tiers.
- round robin: passes run over the whole candidate list, so every connected
  consumer gains at most one block per pass regardless of tier.

Properties of every result:
- each allocation is a whole number of blocks and never exceeds desired(c)
- the total never exceeds total_blocks
- disconnected consumers receive nothing
- identical inputs give identical results
"""

import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Callable, Dict, List, Optional

from .pool import CapacityPool
from .registry import Consumer, ConsumerRegistry
from .snapshot import AllocationSnapshot


logger = logging.getLogger(__name__)


@dataclass
class AllocationPolicy:
    r"""
    Strategy mapping (sorted candidates, desired blocks, supply) to granted blocks.

    Parameters
    ----------
    distribute : Callable[[List[Consumer], Dict[int, int], int], Dict[int, int]]
        Takes candidates sorted by priority then id, desired blocks per
        consumer id, and the number of blocks available. Returns granted
        blocks per candidate id.
    name : str
        Descriptive name for the policy
    """
    distribute: Callable[[List[Consumer], Dict[int, int], int], Dict[int, int]]
    name: str = "Generic"

    def __call__(self, candidates, desired, supply):
        return self.distribute(candidates, desired, supply)


def round_robin_passes(
    candidates: List[Consumer],
    desired: Dict[int, int],
    granted: Dict[int, int],
    remaining: int,
) -> int:
    r"""
    Grant one block per unmet candidate per pass until a pass grants nothing.

    ``granted`` is updated in place. A pass that grants nothing means every
    candidate is satisfied or supply is exhausted.

    Returns
    -------
    int
        Blocks still unallocated
    """
    while remaining > 0:
        gave = False
        for consumer in candidates:
            if granted[consumer.id] < desired[consumer.id] and remaining > 0:
                granted[consumer.id] += 1
                remaining -= 1
                gave = True
        if not gave:
            break
    return remaining


def sort_candidates(consumers: List[Consumer]) -> List[Consumer]:
    r"""Order consumers by priority descending, ties broken by id ascending."""
    return sorted(consumers, key=lambda c: (-c.priority, c.id))


def create_tiered_policy() -> AllocationPolicy:
    r"""
    Serve priority tiers in order, round-robin within each tier.

    With 8 blocks, a priority-5 consumer wanting 6 and a priority-3 consumer
    wanting 6 receive 6 and 2 blocks.

    Returns
    -------
    AllocationPolicy
        The tiered allocation policy
    """
    def distribute(candidates, desired, supply):
        granted = {c.id: 0 for c in candidates}
        remaining = supply
        for _, tier in groupby(candidates, key=lambda c: c.priority):
            if remaining == 0:
                break
            remaining = round_robin_passes(list(tier), desired, granted, remaining)
        return granted

    return AllocationPolicy(distribute=distribute, name="Tiered round robin")


def create_round_robin_policy() -> AllocationPolicy:
    r"""
    One block per unmet candidate per pass over the whole priority-sorted list.

    Priority only decides who is served first within a pass, so the last
    blocks of a scarce pool go to higher-priority consumers.

    Returns
    -------
    AllocationPolicy
        The flat round-robin allocation policy
    """
    def distribute(candidates, desired, supply):
        granted = {c.id: 0 for c in candidates}
        round_robin_passes(candidates, desired, granted, supply)
        return granted

    return AllocationPolicy(distribute=distribute, name="Round robin")


def compute_desired_blocks(
    consumers: List[Consumer], block_size: int, total_blocks: int
) -> Dict[int, int]:
    r"""Demand in blocks per consumer, capped at the site ceiling."""
    return {
        c.id: min(c.requested_capacity // block_size, total_blocks)
        for c in consumers
    }


def recompute(
    pool: CapacityPool,
    registry: ConsumerRegistry,
    policy: Optional[AllocationPolicy] = None,
) -> AllocationSnapshot:
    r"""
    Recompute the allocation for the current pool and registry state.

    The granted capacity is written back to each consumer's
    ``allocated_capacity``; nothing else in the registry or pool changes.

    Parameters
    ----------
    pool : CapacityPool
        Supplies the active ceiling
    registry : ConsumerRegistry
        Supplies consumers, their requests and priorities
    policy : Optional[AllocationPolicy]
        Distribution strategy; tiered round robin when None

    Returns
    -------
    AllocationSnapshot
        A new snapshot covering every consumer in the registry
    """
    if policy is None:
        policy = create_tiered_policy()

    block_size = pool.block_size
    total_blocks = pool.total_blocks()

    connected = registry.connected()
    desired = compute_desired_blocks(connected, block_size, total_blocks)
    candidates = sort_candidates(connected)
    granted = policy(candidates, desired, total_blocks)

    allocations = {}
    for consumer in registry:
        blocks = granted.get(consumer.id, 0) if consumer.connected else 0
        consumer.allocated_capacity = blocks * block_size
        allocations[consumer.id] = consumer.allocated_capacity

    used = sum(allocations.values()) // block_size
    snapshot = AllocationSnapshot(
        allocations=allocations,
        total_blocks=total_blocks,
        free_blocks=pool.free_blocks(used),
        block_size=block_size,
        mode=pool.mode,
    )
    logger.debug("Recomputed allocation (%s): %d/%d blocks allocated across %d connected",
                 policy.name, used, total_blocks, len(connected))
    return snapshot


def check_invariants(snapshot: AllocationSnapshot, registry: ConsumerRegistry) -> List[str]:
    r"""
    List every invariant the snapshot violates against ``registry``.

    Returns
    -------
    List[str]
        Human-readable violations; empty when the snapshot is consistent
    """
    violations = []
    block_size = snapshot.block_size
    if snapshot.allocated_total > snapshot.total_blocks * block_size:
        violations.append(
            f"total allocated {snapshot.allocated_total} kW exceeds ceiling {snapshot.ceiling} kW"
        )
    if snapshot.free_blocks != snapshot.total_blocks - snapshot.allocated_total_blocks:
        violations.append("free_blocks does not match total_blocks minus allocated blocks")
    for consumer in registry:
        allocated = snapshot.allocated(consumer.id)
        if allocated % block_size != 0:
            violations.append(f"consumer {consumer.id}: {allocated} kW is not block aligned")
        desired_cap = min(consumer.requested_capacity // block_size, snapshot.total_blocks) * block_size
        if allocated > desired_cap:
            violations.append(
                f"consumer {consumer.id}: allocated {allocated} kW exceeds desired {desired_cap} kW"
            )
        if not consumer.connected and (consumer.requested_capacity != 0 or allocated != 0):
            violations.append(f"consumer {consumer.id}: disconnected but holds request or allocation")
    return violations
