"""Domain exceptions shown to dashboard users.

Every failure of an external call is converted to one of these kinds at the
call site, so commands only ever render `DashboardError` subclasses.
"""

from __future__ import annotations


class DashboardError(RuntimeError):
    """Base error carrying a stable kind, a user-facing detail, and a hint."""

    kind = "error"

    def __init__(self, detail: str, *, hint: str | None = None) -> None:
        """Initialize a dashboard error with optional remediation hint."""

        super().__init__(detail)
        self.detail = detail
        self.hint = hint


class MissingCredentialError(DashboardError):
    """Raised when no API key is stored for the requested provider."""

    kind = "missing_credential"

    def __init__(
        self,
        detail: str,
        *,
        provider_id: str,
        hint: str | None = None,
    ) -> None:
        """Initialize with the provider whose credential is missing."""

        super().__init__(detail, hint=hint)
        self.provider_id = provider_id


class InvalidCredentialError(DashboardError):
    """Raised when a provider rejects the stored API key."""

    kind = "invalid_credential"


class UnauthenticatedError(DashboardError):
    """Raised when an operation requires a signed-in identity."""

    kind = "unauthenticated"


class TransportError(DashboardError):
    """Raised for network failures, non-success responses, and malformed bodies."""

    kind = "transport"

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize with the HTTP status code when one was received."""

        super().__init__(detail, hint=hint)
        self.status_code = status_code


class ValidationError(DashboardError):
    """Raised when form fields, files, or config values fail local checks."""

    kind = "validation"

    def __init__(
        self,
        detail: str,
        *,
        field: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize with the offending field name, when known."""

        super().__init__(detail, hint=hint)
        self.field = field


class ConflictError(DashboardError):
    """Raised when a resource already exists or cannot change state."""

    kind = "conflict"
