"""
Chat-specific exceptions for failures that are not expected outcomes.

Expected outcomes (access denied, missing room, closed room, unpaid
engagement, invalid input) are returned as ServiceResult failures. The
errors below are raised because callers cannot do anything sensible with
them except report the failure.

Exception Hierarchy:
    DataIntegrityError - Stored state violates an invariant (inherits ConflictError)
    DownstreamError - Store or collaborator unavailable (inherits ExternalServiceError)

Usage:
    from chat.exceptions import DataIntegrityError

    if len(rooms) > 1:
        raise DataIntegrityError(
            f"Engagement {engagement_id} has {len(rooms)} rooms",
            details={"engagement_id": str(engagement_id)},
        )
"""

from __future__ import annotations

from rest_framework import status

from chat.constants import ChatErrorCode
from core.exceptions import ConflictError, ExternalServiceError


class DataIntegrityError(ConflictError):
    """
    Raised when stored chat data contradicts its invariants.

    Examples: two rooms for one engagement, or a duplicate
    (room, sequence_number) pair. Never resolved automatically.
    """

    default_error_code: str = ChatErrorCode.DATA_INTEGRITY_ERROR
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR


class DownstreamError(ExternalServiceError):
    """
    Raised when the database or an external collaborator is unavailable.

    Details carry the collaborator name so logs show which dependency failed.
    Nothing has been committed when this is raised.
    """

    default_error_code: str = ChatErrorCode.DOWNSTREAM_ERROR
