from .random_site_activity import (
    DEFAULT_EVENT_WEIGHTS,
    run_site_simulation,
)

__all__ = [
    "DEFAULT_EVENT_WEIGHTS",
    "run_site_simulation",
]
