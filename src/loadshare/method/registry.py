r"""
Consumer Registry

Holds the fixed set of consumers (charging stalls) and their demand,
priority and connection attributes. The registry only stores and
normalises values; allocation is left to ``allocation.recompute``.

Normalisation rules:
- requests are rounded to the nearest block multiple (halves round up)
  and clamped into $[0, \text{max\_per\_consumer}]$
- priorities are clamped into $[\text{min\_priority}, \text{max\_priority}]$
- a consumer is connected exactly when its request is positive
- infinite inputs clamp to the matching bound; NaN is rejected with
  ``InvalidArgumentError``
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .config import SiteConfig
from .errors import InvalidArgumentError, NotFoundError


@dataclass
class Consumer:
    r"""
    A single consumer of pool capacity.

    Attributes
    ----------
    id : int
        Stable identifier in 1..N
    connected : bool
        Whether the consumer currently competes for capacity
    requested_capacity : int
        Requested capacity in kW, a multiple of the block size
    priority : int
        Priority weight; higher is served first
    allocated_capacity : int
        Capacity granted by the last recompute, in kW
    """
    id: int
    connected: bool = False
    requested_capacity: int = 0
    priority: int = 3
    allocated_capacity: int = 0


def round_to_block(capacity: float, block_size: int) -> int:
    r"""Round ``capacity`` to the nearest multiple of ``block_size``, halves up."""
    return int(math.floor(capacity / block_size + 0.5)) * block_size


def clamp(value, lower, upper):
    return max(lower, min(upper, value))


def clamp_number(value: float, lower: int, upper: int) -> float:
    r"""
    Clamp a numeric input into $[\text{lower}, \text{upper}]$.

    Infinities clamp to the matching bound.

    Raises
    ------
    InvalidArgumentError
        If ``value`` is NaN
    """
    if math.isnan(value):
        raise InvalidArgumentError(value, f"Expected a number, got {value!r}")
    return clamp(value, lower, upper)


class ConsumerRegistry:
    r"""
    Registry of consumers with ids ``1..config.consumer_count``.

    Every mutating operation raises ``NotFoundError`` for an unknown id and
    leaves the registry untouched in that case.
    """

    def __init__(self, config: SiteConfig):
        self.config = config
        self._consumers: Dict[int, Consumer] = {
            i: Consumer(id=i, priority=config.default_priority)
            for i in range(1, config.consumer_count + 1)
        }

    def __len__(self) -> int:
        return len(self._consumers)

    def __iter__(self) -> Iterator[Consumer]:
        return iter(self._consumers[i] for i in sorted(self._consumers))

    def __contains__(self, consumer_id) -> bool:
        return consumer_id in self._consumers

    def get(self, consumer_id: int) -> Consumer:
        try:
            return self._consumers[consumer_id]
        except (KeyError, TypeError):
            raise NotFoundError(consumer_id) from None

    def ids(self) -> List[int]:
        return sorted(self._consumers)

    def connected(self) -> List[Consumer]:
        r"""Connected consumers in id order."""
        return [c for c in self if c.connected]

    def first_idle(self) -> Optional[Consumer]:
        r"""Lowest-id consumer that is not connected, or None."""
        return next((c for c in self if not c.connected), None)

    def last_connected(self) -> Optional[Consumer]:
        r"""Highest-id connected consumer, or None."""
        connected = self.connected()
        return connected[-1] if connected else None

    def normalize_request(self, capacity: float) -> int:
        r"""Round ``capacity`` to a block multiple and clamp it to the per-consumer maximum."""
        bounded = clamp_number(capacity, 0, self.config.max_per_consumer)
        rounded = round_to_block(bounded, self.config.block_size)
        return clamp(rounded, 0, self.config.max_per_consumer)

    def normalize_priority(self, priority: float) -> int:
        return int(clamp_number(priority, self.config.min_priority, self.config.max_priority))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def connect(self, consumer_id: int, requested_capacity: float) -> Consumer:
        r"""
        Connect a consumer with the given request.

        The request is normalised as in ``set_request``; a request that
        normalises to zero leaves the consumer disconnected.
        """
        return self.set_request(consumer_id, requested_capacity)

    def disconnect(self, consumer_id: int) -> Consumer:
        r"""Disconnect a consumer, zero its request and restore the default priority."""
        consumer = self.get(consumer_id)
        consumer.connected = False
        consumer.requested_capacity = 0
        consumer.priority = self.config.default_priority
        return consumer

    def set_priority(self, consumer_id: int, priority: float) -> Consumer:
        consumer = self.get(consumer_id)
        consumer.priority = self.normalize_priority(priority)
        return consumer

    def set_request(self, consumer_id: int, capacity: float) -> Consumer:
        r"""
        Set a consumer's request in kW.

        A request of zero (after rounding) disconnects the consumer.
        """
        consumer = self.get(consumer_id)
        request = self.normalize_request(capacity)
        if request > 0:
            consumer.connected = True
            consumer.requested_capacity = request
            return consumer
        return self.disconnect(consumer_id)
