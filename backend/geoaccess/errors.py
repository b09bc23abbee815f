# Overview: Exception taxonomy shared by the location services and routes.

"""
GeoAccess error classes.

Routes map these to HTTP status codes:
- ValidationError   -> 400 (malformed input, never persisted)
- NotFoundError     -> 404 (unknown request / allowed location / organization)
- InvalidStateError -> 409 (transition not allowed from the current status)

A DENY from the geofence evaluator is a normal outcome, not an error.
"""


class GeoAccessError(ValueError):
    """Base class for expected, caller-visible failures."""


class ValidationError(GeoAccessError):
    """400-level input problem."""


class NotFoundError(GeoAccessError):
    """Unknown id for a request, allowed location or organization."""


class InvalidStateError(GeoAccessError):
    """Raised when a workflow transition is not permitted from the current status."""

    def __init__(self, message: str, *, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status
