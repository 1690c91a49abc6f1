r"""
Allocation Engine

Explicit state object tying a ``CapacityPool`` and a ``ConsumerRegistry``
together. Every successful mutation triggers a synchronous full recompute;
observers are then called with the previous and the new snapshot.

The engine is single-threaded. Callers that share an engine between threads
must serialise access themselves.
"""

import logging
from typing import Callable, List, Optional, Union

import polars as pl

from .allocation import AllocationPolicy, create_tiered_policy, recompute
from .config import SiteConfig
from .demand import DemandGenerator, create_random_demand
from .errors import LoadShareError
from .pool import CapacityMode, CapacityPool
from .registry import ConsumerRegistry
from .results import summary_dataframe
from .snapshot import AllocationSnapshot


logger = logging.getLogger(__name__)

SnapshotObserver = Callable[[AllocationSnapshot, AllocationSnapshot], None]


class AllocationEngine:
    r"""
    Capacity allocation engine for one site.

    Parameters
    ----------
    config : Optional[SiteConfig]
        Site parameters; defaults to ``SiteConfig()``
    policy : Optional[AllocationPolicy]
        Block distribution policy; tiered round robin by default
    demand : Optional[DemandGenerator]
        Request source for ``add_consumer``, ``toggle_connection`` and
        ``randomize_requests``; uniform random by default
    mode : CapacityMode
        Initial capacity mode
    """

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        policy: Optional[AllocationPolicy] = None,
        demand: Optional[DemandGenerator] = None,
        mode: CapacityMode = CapacityMode.NORMAL,
    ):
        self.config = config if config is not None else SiteConfig()
        self.policy = policy if policy is not None else create_tiered_policy()
        self.demand = demand if demand is not None else create_random_demand(self.config)
        self.pool = CapacityPool(self.config, mode)
        self.registry = ConsumerRegistry(self.config)
        self._observers: List[SnapshotObserver] = []
        self._snapshot = recompute(self.pool, self.registry, self.policy)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, observer: SnapshotObserver) -> None:
        r"""Call ``observer(previous, current)`` after every recompute."""
        self._observers.append(observer)

    def unsubscribe(self, observer: SnapshotObserver) -> None:
        self._observers.remove(observer)

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def get_snapshot(self) -> AllocationSnapshot:
        return self._snapshot

    def recompute(self) -> AllocationSnapshot:
        r"""Recompute from current state, notify observers and return the new snapshot."""
        previous = self._snapshot
        self._snapshot = recompute(self.pool, self.registry, self.policy)
        for observer in list(self._observers):
            observer(previous, self._snapshot)
        return self._snapshot

    def _apply(self, operation: Callable[[], object], description: str) -> AllocationSnapshot:
        try:
            operation()
        except LoadShareError as exc:
            logger.warning("Rejected %s: %s", description, exc)
            raise
        return self.recompute()

    def connect(self, consumer_id: int, requested_capacity: float) -> AllocationSnapshot:
        return self._apply(
            lambda: self.registry.connect(consumer_id, requested_capacity),
            f"connect({consumer_id!r}, {requested_capacity!r})",
        )

    def disconnect(self, consumer_id: int) -> AllocationSnapshot:
        return self._apply(
            lambda: self.registry.disconnect(consumer_id),
            f"disconnect({consumer_id!r})",
        )

    def set_priority(self, consumer_id: int, priority: float) -> AllocationSnapshot:
        return self._apply(
            lambda: self.registry.set_priority(consumer_id, priority),
            f"set_priority({consumer_id!r}, {priority!r})",
        )

    def set_request(self, consumer_id: int, capacity: float) -> AllocationSnapshot:
        return self._apply(
            lambda: self.registry.set_request(consumer_id, capacity),
            f"set_request({consumer_id!r}, {capacity!r})",
        )

    def set_capacity_mode(self, mode: Union[CapacityMode, str]) -> AllocationSnapshot:
        return self._apply(
            lambda: self.pool.set_mode(mode),
            f"set_capacity_mode({mode!r})",
        )

    # -------------------------------------------------------------------------
    # Site controls
    # -------------------------------------------------------------------------

    def add_consumer(self) -> Optional[int]:
        r"""
        Plug a new consumer into the lowest-id idle slot.

        Returns
        -------
        Optional[int]
            The connected consumer's id, or None when no slot is idle
        """
        idle = self.registry.first_idle()
        if idle is None:
            return None
        self.connect(idle.id, self.demand(idle.id))
        return idle.id

    def remove_consumer(self) -> Optional[int]:
        r"""Unplug the highest-id connected consumer; return its id, or None if none is connected."""
        last = self.registry.last_connected()
        if last is None:
            return None
        self.disconnect(last.id)
        return last.id

    def toggle_connection(self, consumer_id: int) -> AllocationSnapshot:
        r"""Unplug a connected consumer, or plug an idle one in with a generated request."""
        consumer = self.registry.get(consumer_id)
        if consumer.connected:
            return self.disconnect(consumer_id)
        return self.connect(consumer_id, self.demand(consumer_id))

    def randomize_requests(self) -> AllocationSnapshot:
        r"""Draw a new request for every connected consumer, then recompute once."""
        for consumer in self.registry.connected():
            self.registry.set_request(consumer.id, self.demand(consumer.id))
        return self.recompute()

    def summary(self) -> pl.DataFrame:
        r"""Per-consumer table of connection, request, allocation and priority."""
        return summary_dataframe(self.registry, self._snapshot)
