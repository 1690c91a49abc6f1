r"""
Tabular views of allocation state.

Polars frames for the per-consumer summary table and for simulation
histories (one row per consumer per step).
"""

from dataclasses import dataclass, field
from typing import Dict, List

import polars as pl

from .registry import ConsumerRegistry
from .snapshot import AllocationSnapshot


SUMMARY_SCHEMA = {
    "consumer_id": pl.Int64,
    "connected": pl.Boolean,
    "requested_capacity": pl.Int64,
    "allocated_capacity": pl.Int64,
    "priority": pl.Int64,
}

HISTORY_SCHEMA = {
    "step": pl.Int64,
    "event": pl.Utf8,
    "mode": pl.Utf8,
    "consumer_id": pl.Int64,
    "connected": pl.Boolean,
    "requested_capacity": pl.Int64,
    "priority": pl.Int64,
    "allocated_capacity": pl.Int64,
    "free_blocks": pl.Int64,
    "total_blocks": pl.Int64,
    "ceiling": pl.Int64,
}


def snapshot_to_dataframe(snapshot: AllocationSnapshot) -> pl.DataFrame:
    return snapshot.to_polars()


def summary_dataframe(registry: ConsumerRegistry, snapshot: AllocationSnapshot) -> pl.DataFrame:
    r"""
    Summary table with one row per consumer.

    Columns: consumer_id, connected, requested_capacity, allocated_capacity,
    priority. Allocations come from ``snapshot``, everything else from
    ``registry``.
    """
    consumers = list(registry)
    return pl.DataFrame(
        {
            "consumer_id": [c.id for c in consumers],
            "connected": [c.connected for c in consumers],
            "requested_capacity": [c.requested_capacity for c in consumers],
            "allocated_capacity": [snapshot.allocated(c.id) for c in consumers],
            "priority": [c.priority for c in consumers],
        },
        schema=SUMMARY_SCHEMA,
    )


@dataclass
class SimulationStep:
    r"""
    State recorded after one simulated event.

    Attributes
    ----------
    step : int
        Step index (0 is the initial state)
    event : str
        Name of the event applied at this step
    snapshot : AllocationSnapshot
        Snapshot after the event
    requests : Dict[int, int]
        Requested capacity per consumer after the event
    priorities : Dict[int, int]
        Priority per consumer after the event
    connected : Dict[int, bool]
        Connection state per consumer after the event
    """
    step: int
    event: str
    snapshot: AllocationSnapshot
    requests: Dict[int, int]
    priorities: Dict[int, int]
    connected: Dict[int, bool]

    @classmethod
    def record(cls, step: int, event: str, registry: ConsumerRegistry,
               snapshot: AllocationSnapshot) -> "SimulationStep":
        consumers = list(registry)
        return cls(
            step=step,
            event=event,
            snapshot=snapshot,
            requests={c.id: c.requested_capacity for c in consumers},
            priorities={c.id: c.priority for c in consumers},
            connected={c.id: c.connected for c in consumers},
        )


@dataclass
class SimulationHistory:
    r"""
    Ordered record of a simulation run.

    Attributes
    ----------
    steps : List[SimulationStep]
        Recorded steps in order
    policy_name : str
        Name of the allocation policy used
    violations : List[str]
        Invariant violations observed during the run, prefixed by step
    """
    steps: List[SimulationStep] = field(default_factory=list)
    policy_name: str = "Generic"
    violations: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def snapshots(self) -> List[AllocationSnapshot]:
        return [s.snapshot for s in self.steps]

    def to_polars(self) -> pl.DataFrame:
        return history_to_dataframe(self)


def history_to_dataframe(history: SimulationHistory) -> pl.DataFrame:
    r"""
    Long-format frame with one row per consumer per step.

    Returns
    -------
    pl.DataFrame
        Columns: step, event, mode, consumer_id, connected,
        requested_capacity, priority, allocated_capacity, free_blocks,
        total_blocks, ceiling
    """
    rows = {name: [] for name in HISTORY_SCHEMA}
    for step in history.steps:
        snapshot = step.snapshot
        for consumer_id in sorted(step.requests):
            rows["step"].append(step.step)
            rows["event"].append(step.event)
            rows["mode"].append(snapshot.mode.value)
            rows["consumer_id"].append(consumer_id)
            rows["connected"].append(step.connected[consumer_id])
            rows["requested_capacity"].append(step.requests[consumer_id])
            rows["priority"].append(step.priorities[consumer_id])
            rows["allocated_capacity"].append(snapshot.allocated(consumer_id))
            rows["free_blocks"].append(snapshot.free_blocks)
            rows["total_blocks"].append(snapshot.total_blocks)
            rows["ceiling"].append(snapshot.ceiling)
    return pl.DataFrame(rows, schema=HISTORY_SCHEMA)
