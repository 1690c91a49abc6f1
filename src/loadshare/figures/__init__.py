from .allocation_history import allocation_history_plot
from .pool_utilization import pool_utilization_figure

__all__ = [
    "allocation_history_plot",
    "pool_utilization_figure",
]
