"""
Domain-specific exception hierarchy for the availability engine.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidIntervalError(AvailabilityError, ValueError):
    """Raised when a time window or date range does not start before it ends."""


class InvalidParameterError(AvailabilityError, ValueError):
    """Raised when discretization parameters or record fields are out of range."""


class AvailabilityDataError(AvailabilityError):
    """Raised when availability records cannot be loaded or parsed."""


class TutorNotFoundError(AvailabilityDataError):
    """Raised when the store has no records for the requested tutor."""
