"""
Service layer primitives shared by every app.

- ServiceResult: outcome wrapper for expected, business-level failures
- BaseService: logging and transaction helpers for classmethod services

Expected failures (access denied, missing records, closed rooms) are returned
as ServiceResult.failure with a machine-readable error_code. Unexpected
failures (corrupted data, unavailable collaborators) are raised as
core.exceptions.BaseApplicationError subclasses.

Usage:
    from core.services import BaseService, ServiceResult

    class RoomService(BaseService):
        @classmethod
        def close_room(cls, engagement_id) -> ServiceResult[Room]:
            room = Room.objects.filter(engagement_id=engagement_id).first()
            if room is None:
                return ServiceResult.failure("Room not found", "NOT_FOUND")

            with cls.atomic():
                ...

            cls.get_logger().info(f"Closed room {room.id}")
            return ServiceResult.success(room)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed, or for no-op successes)
        error: Human-readable error message if failed
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        result = MessageService.send_message(sender_id, engagement_id, "hi")
        if result.success:
            message = result.data
        else:
            logger.info(f"Send rejected: {result.error_code}")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T | None = None) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data. May be None for operations that
                succeed without producing anything (idempotent no-ops).
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert a failed result to the API error payload.

        Returns:
            Dict with error, error_code and (when present) field errors
        """
        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless collections of classmethods. They log through a
    logger named after the concrete service class and make transaction
    boundaries explicit through atomic().
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the service class, e.g. chat.services.RoomService."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute the enclosed block in a database transaction.

        Thin wrapper around django.db.transaction.atomic() so service code
        reads the same everywhere. Nested use creates a savepoint.
        """
        with transaction.atomic():
            yield

    @classmethod
    def on_commit(cls, func: Callable[[], Any]) -> None:
        """
        Schedule a side effect to run after the current transaction commits.

        Outside of a transaction the callback runs immediately. If the
        transaction rolls back the callback is discarded.
        """
        transaction.on_commit(func)

    @classmethod
    def validate_required(cls, **kwargs: Any) -> ServiceResult | None:
        """
        Validate that required fields are provided.

        Returns:
            ServiceResult.failure with VALIDATION_ERROR if any value is None
            or a blank string, otherwise None.

        Example:
            invalid = cls.validate_required(content=content)
            if invalid is not None:
                return invalid
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            return ServiceResult.failure(
                "Required fields missing",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
