"""Incident engine exceptions.

Lookups of unknown incidents are not errors: the store returns ``None``.
"""

from typing import Optional


class IncidentError(Exception):
    """Base class for incident engine failures."""


class ValidationError(IncidentError):
    """A required field is missing or a field may not change in the current state."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(IncidentError):
    """Requested status change is not in the transition table."""

    def __init__(self, current: str, target: str, allowed: list[str]):
        self.current = current
        self.target = target
        self.allowed = allowed
        super().__init__(
            f"Cannot transition from {current} to {target}. Allowed: {allowed}"
        )


class DuplicateIncidentError(IncidentError):
    """An incident with the same id already exists in the store."""


class DataSourceError(Exception):
    """The seed file or REST backend could not supply incident data."""
