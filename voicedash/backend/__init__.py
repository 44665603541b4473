"""Auth/storage platform access.

This package wraps the platform REST endpoints used for identities,
credential rows, clone/job tables, sample storage, and edge functions.
"""

from .client import BackendError, FunctionResponse, PlatformBackend, to_dashboard_error

__all__ = ["BackendError", "FunctionResponse", "PlatformBackend", "to_dashboard_error"]
