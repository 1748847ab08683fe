"""
Tests for the error plumbing shared by all apps.

- ServiceResult payloads
- translate_errors re-raising low-level errors as application errors
- api_exception_handler rendering application errors
"""

from __future__ import annotations

import pytest
from django.db import OperationalError
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.decorators import translate_errors
from core.exceptions import (
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    api_exception_handler,
)
from core.services import BaseService, ServiceResult


class TestServiceResult:
    def test_failure_is_falsy_and_renders_payload(self):
        result = ServiceResult.failure(
            "Required fields missing",
            error_code="VALIDATION_ERROR",
            errors={"content": ["This field is required."]},
        )

        assert not result
        assert result.to_response() == {
            "error": "Required fields missing",
            "error_code": "VALIDATION_ERROR",
            "errors": {"content": ["This field is required."]},
        }

    def test_success_without_data_is_truthy(self):
        """
        A no-op success carries no data but is still a success.

        Why it matters: Marking your own message read succeeds with data=None.
        """
        result = ServiceResult.success()

        assert result
        assert result.data is None


class TestValidateRequired:
    def test_blank_string_is_missing(self):
        result = BaseService.validate_required(content="   ", sender_id="abc")

        assert result is not None
        assert result.error_code == "VALIDATION_ERROR"
        assert list(result.errors) == ["content"]

    def test_present_values_return_none(self):
        assert BaseService.validate_required(content="hi") is None


class TestTranslateErrors:
    def test_translates_listed_errors_and_chains_cause(self):
        @translate_errors(OperationalError, into=ExternalServiceError, source="database")
        def query():
            raise OperationalError("connection refused")

        with pytest.raises(ExternalServiceError) as exc_info:
            query()

        assert exc_info.value.details == {"source": "database"}
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_other_errors_propagate_unchanged(self):
        @translate_errors(OperationalError, into=ExternalServiceError, source="database")
        def query():
            raise KeyError("x")

        with pytest.raises(KeyError):
            query()

    def test_preserves_function_metadata(self):
        @translate_errors(OperationalError, into=ExternalServiceError, source="database")
        def fetch_rows():
            """Docstring."""

        assert fetch_rows.__name__ == "fetch_rows"
        assert fetch_rows.__doc__ == "Docstring."


class TestApiExceptionHandler:
    @pytest.mark.parametrize(
        "exc, expected_status, expected_code",
        [
            (NotFoundError("Room not found"), status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
            (
                PermissionDeniedError("Not a participant"),
                status.HTTP_403_FORBIDDEN,
                "ACCESS_DENIED",
            ),
            (
                ExternalServiceError("database unavailable", details={"source": "database"}),
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "EXTERNAL_SERVICE_ERROR",
            ),
        ],
    )
    def test_renders_application_errors(self, exc, expected_status, expected_code):
        response = api_exception_handler(exc, {"view": None})

        assert response.status_code == expected_status
        assert response.data["error_code"] == expected_code
        assert response.data["error"] == exc.message

    def test_details_included_only_when_present(self):
        response = api_exception_handler(
            ExternalServiceError("down", details={"source": "database"}), {}
        )
        assert response.data["details"] == {"source": "database"}

        response = api_exception_handler(NotFoundError("gone"), {})
        assert "details" not in response.data

    def test_falls_back_to_drf_handler(self):
        response = api_exception_handler(NotAuthenticated(), {})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_errors_are_not_handled(self):
        assert api_exception_handler(RuntimeError("bug"), {}) is None
