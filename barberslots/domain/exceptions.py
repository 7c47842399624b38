"""
Domain-specific exception hierarchy for the slot engine.
"""


class SlotEngineError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(SlotEngineError, ValueError):
    """Raised when a business is misconfigured (bad hours, interval, timezone)."""


class PreconditionError(SlotEngineError):
    """Raised when the engine is invoked with missing or invalid inputs."""


class DataSourceError(SlotEngineError):
    """Raised when shop data cannot be loaded or parsed."""
