r"""
Capacity Pool

Tracks the active capacity mode and the number of blocks it implies.

$\text{total\_blocks} = \lfloor \text{ceiling} / \text{block\_size} \rfloor$

$\text{free\_blocks}(a) = \max(0, \text{total\_blocks} - a)$
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Union

from .errors import InvalidArgumentError

if TYPE_CHECKING:
    from .config import SiteConfig


logger = logging.getLogger(__name__)


class CapacityMode(str, Enum):
    r"""Named ceiling configuration of the site."""
    NORMAL = "normal"
    CONSTRAINED = "constrained"


def parse_capacity_mode(mode: Union[CapacityMode, str]) -> CapacityMode:
    r"""
    Interpret ``mode`` as a ``CapacityMode``.

    Accepts enum members and their string values, case-insensitively.

    Raises
    ------
    InvalidArgumentError
        If ``mode`` names no known capacity mode
    """
    if isinstance(mode, CapacityMode):
        return mode
    if isinstance(mode, str):
        try:
            return CapacityMode(mode.strip().lower())
        except ValueError:
            pass
    raise InvalidArgumentError(mode, f"Unsupported capacity mode: {mode!r}")


class CapacityPool:
    r"""
    Site-wide pool of capacity blocks.

    Parameters
    ----------
    config : SiteConfig
        Site parameters supplying block size and per-mode ceilings
    mode : CapacityMode
        Initial capacity mode
    """

    def __init__(self, config: "SiteConfig", mode: CapacityMode = CapacityMode.NORMAL):
        self.config = config
        self._mode = parse_capacity_mode(mode)

    @property
    def mode(self) -> CapacityMode:
        return self._mode

    @property
    def block_size(self) -> int:
        return self.config.block_size

    @property
    def ceiling(self) -> int:
        r"""Active ceiling in kW."""
        return self.config.ceiling_for(self._mode)

    def set_mode(self, mode: Union[CapacityMode, str]) -> None:
        r"""
        Switch the active ceiling.

        Raises
        ------
        InvalidArgumentError
            If ``mode`` is not a recognised capacity mode. The stored mode is
            left unchanged.
        """
        new_mode = parse_capacity_mode(mode)
        if new_mode is not self._mode:
            logger.info("Capacity mode %s -> %s (%d kW)",
                        self._mode.value, new_mode.value, self.config.ceiling_for(new_mode))
        self._mode = new_mode

    def total_blocks(self) -> int:
        return self.ceiling // self.block_size

    def free_blocks(self, allocated_total: int) -> int:
        r"""Blocks left over once ``allocated_total`` blocks are handed out."""
        return max(0, self.total_blocks() - allocated_total)
