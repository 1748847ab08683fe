"""
Application exception hierarchy and the DRF exception handler.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    ├── ConflictError - State conflicts and integrity violations
    └── ExternalServiceError - Collaborator/store failures

Services return core.services.ServiceResult for expected failures and raise
these exceptions for unexpected ones. Anything that escapes a view is turned
into an {"error", "error_code", "details"} payload by api_exception_handler.

Usage:
    from core.exceptions import ConflictError

    raise ConflictError(
        "Two rooms exist for one engagement",
        error_code="DATA_INTEGRITY_ERROR",
        details={"engagement_id": str(engagement_id)},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
        http_status: Status code used when the error reaches the API layer
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Room not found",
                "error_code": "NOT_FOUND",
                "details": {"engagement_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class NotFoundError(BaseApplicationError):
    """Raised when a single resource that is expected to exist is missing."""

    default_error_code: str = "NOT_FOUND"
    http_status: int = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when a caller lacks permission for an operation.

    Note:
        Authentication failures (missing/invalid token) are handled by DRF.
        This is for authorization failures only.
    """

    default_error_code: str = "ACCESS_DENIED"
    http_status: int = status.HTTP_403_FORBIDDEN


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Unique constraint violations that cannot be recovered
    - Concurrent modification conflicts
    - Invalid state transitions
    """

    default_error_code: str = "CONFLICT"
    http_status: int = status.HTTP_409_CONFLICT


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service or the backing store fails.

    Note:
        Log the original error for debugging but don't expose internal
        details to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = status.HTTP_503_SERVICE_UNAVAILABLE


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    DRF exception handler that understands BaseApplicationError.

    Application errors are rendered with their own status and payload.
    Everything else falls through to DRF's default handler.
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        view_name = view.__class__.__name__ if view is not None else "unknown"
        if exc.http_status >= 500:
            logger.error(f"{view_name} failed: {exc}", exc_info=exc)
        else:
            logger.info(f"{view_name} rejected request: {exc}")
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
