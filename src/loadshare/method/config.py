r"""
Site Configuration

The site is a pool of identical power modules ("blocks") shared by a fixed
number of stalls. All capacities are expressed in kW and must be multiples
of the block size.
"""

from dataclasses import dataclass

from .pool import CapacityMode


@dataclass(frozen=True)
class SiteConfig:
    r"""
    Static parameters of a charging site.

    Attributes
    ----------
    block_size : int
        Size of one block in kW
    normal_capacity : int
        Site ceiling in kW for ``CapacityMode.NORMAL``
    constrained_capacity : int
        Reduced site ceiling in kW for ``CapacityMode.CONSTRAINED`` (peak shaving)
    max_per_consumer : int
        Largest request a single consumer may hold, in kW
    consumer_count : int
        Number of consumers; ids run from 1 to consumer_count
    default_priority : int
        Priority assigned at start and after a disconnect
    min_priority, max_priority : int
        Inclusive priority bounds
    """
    block_size: int = 50
    normal_capacity: int = 400
    constrained_capacity: int = 300
    max_per_consumer: int = 300
    consumer_count: int = 6
    default_priority: int = 3
    min_priority: int = 1
    max_priority: int = 5

    def __post_init__(self):
        if self.block_size <= 0:
            raise ValueError(f"block_size must be positive, got {self.block_size}")
        for name in ("normal_capacity", "constrained_capacity", "max_per_consumer"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            if value % self.block_size != 0:
                raise ValueError(
                    f"{name} ({value}) must be a multiple of block_size ({self.block_size})"
                )
        if self.constrained_capacity > self.normal_capacity:
            raise ValueError(
                f"constrained_capacity ({self.constrained_capacity}) must be <= "
                f"normal_capacity ({self.normal_capacity})"
            )
        if self.consumer_count < 1:
            raise ValueError("consumer_count must be at least 1")
        if self.min_priority > self.max_priority:
            raise ValueError("min_priority must be <= max_priority")
        if not self.min_priority <= self.default_priority <= self.max_priority:
            raise ValueError(
                f"default_priority ({self.default_priority}) must lie in "
                f"[{self.min_priority}, {self.max_priority}]"
            )

    @property
    def max_blocks_per_consumer(self) -> int:
        r"""Largest request in blocks."""
        return self.max_per_consumer // self.block_size

    def ceiling_for(self, mode: CapacityMode) -> int:
        r"""Return the site ceiling in kW for ``mode``."""
        if mode is CapacityMode.CONSTRAINED:
            return self.constrained_capacity
        return self.normal_capacity
