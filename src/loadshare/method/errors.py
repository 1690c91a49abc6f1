r"""
Errors raised by the allocation engine.

Both errors are non-fatal: the failing operation leaves registry and pool
state untouched and no recompute takes place.
"""


class LoadShareError(Exception):
    """Base class for engine errors."""


class NotFoundError(LoadShareError, LookupError):
    """An operation referenced a consumer id the registry does not hold."""

    def __init__(self, consumer_id):
        self.consumer_id = consumer_id
        super().__init__(f"Unknown consumer id: {consumer_id!r}")


class InvalidArgumentError(LoadShareError, ValueError):
    """An operation received a value it cannot interpret, e.g. an unknown capacity mode."""

    def __init__(self, value, message: str | None = None):
        self.value = value
        super().__init__(message or f"Invalid argument: {value!r}")
