"""
Error taxonomy for talking to the remote source of truth.
Read paths swallow these into empty results; write paths surface them.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for dashboard-side failures."""

    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.path = path


class EndpointUnavailable(DashboardError):
    """The backend route answered with the not-found sentinel (404)."""

    default_message = "Endpoint not found"


class ServerRejected(DashboardError):
    """A non-2xx, non-404 response."""

    default_message = "Server rejected the request"

    def __init__(self, message: Optional[str] = None, path: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, path)
        self.status_code = status_code


class NetworkFailure(DashboardError):
    """The request never completed (connection error, timeout)."""

    default_message = "Network request failed"


class SchemaMismatch(DashboardError):
    """The response body does not match the endpoint's envelope."""

    default_message = "Unexpected response shape"


class OrphanDataInconsistency(DashboardError):
    """A notification points at a parent entity that no longer exists."""

    default_message = "Parent entity missing"
