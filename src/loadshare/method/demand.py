r"""
Demand Generation

A demand generator maps a consumer id to a requested capacity in kW. The
engine calls it whenever a consumer plugs in without an explicit request or
when requests are re-drawn. Random generators draw a whole number of blocks,
$k \sim \text{Uniform}\{1, \dots, \lfloor \text{max\_per\_consumer} / b \rfloor\}$,
so every generated request is a valid block multiple.
"""

from dataclasses import dataclass
from itertools import cycle
from typing import Callable, Iterable, Optional

import numpy as np

from .config import SiteConfig


def setup_rng(
    rng: Optional[np.random.Generator], seed: Optional[int]
) -> np.random.Generator:
    r"""Return ``rng`` unchanged, or a new generator seeded with ``seed``."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


@dataclass
class DemandGenerator:
    r"""
    Source of requested capacity for consumers.

    Parameters
    ----------
    draw : Callable[[int], int]
        Maps a consumer id to a requested capacity in kW
    name : str
        Descriptive name
    """
    draw: Callable[[int], int]
    name: str = "Generic"

    def __call__(self, consumer_id: int) -> int:
        return self.draw(consumer_id)


def create_random_demand(
    config: SiteConfig,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> DemandGenerator:
    r"""
    Uniform random demand between one block and the per-consumer maximum.

    Parameters
    ----------
    config : SiteConfig
        Supplies block size and per-consumer maximum
    rng : Optional[np.random.Generator]
        Generator to draw from; takes precedence over ``seed``
    seed : Optional[int]
        Seed for a new generator when ``rng`` is None

    Returns
    -------
    DemandGenerator
        The random demand generator
    """
    rng = setup_rng(rng, seed)
    max_blocks = config.max_blocks_per_consumer
    if max_blocks < 1:
        raise ValueError("max_per_consumer must allow at least one block")

    def draw(consumer_id: int) -> int:
        return int(rng.integers(1, max_blocks, endpoint=True)) * config.block_size

    return DemandGenerator(draw=draw, name=f"Uniform (1-{max_blocks} blocks)")


def create_fixed_demand(values: Iterable[int]) -> DemandGenerator:
    r"""
    Replay a fixed sequence of requests, cycling when exhausted.

    Useful for tests that need deterministic plug-in events.
    """
    values = list(values)
    if not values:
        raise ValueError("Fixed demand needs at least one value")
    source = cycle(values)

    def draw(consumer_id: int) -> int:
        return next(source)

    return DemandGenerator(draw=draw, name=f"Fixed {values}")
