"""Domain error kinds raised by services and rendered by the API layer.

Each error carries the HTTP status it maps to, so routers can let them
propagate and the application-wide handler in ``main`` turns them into
JSON responses.
"""

from typing import Any

from fastapi import status


class BillingError(Exception):
    """Base exception for all application errors; unclassified failures are Internal (500)."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a JSON-serialisable body."""
        body: dict[str, Any] = {"detail": self.message, "error": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class UnauthenticatedError(BillingError):
    """Missing, malformed, or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthenticated"


class UnauthorizedError(BillingError):
    """Authenticated principal lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "unauthorized"


class InvalidInputError(BillingError):
    """Malformed request body or missing required fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_input"


class NotFoundError(BillingError):
    """Requested plan, user, or subscription does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class FailedPreconditionError(BillingError):
    """Operation is valid but the system is not in a state to perform it."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "failed_precondition"


class ConflictError(BillingError):
    """Attempt to create a resource that already exists."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "conflict"


class UpstreamFailureError(BillingError):
    """The payment provider returned an error or timed out."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "upstream_failure"
