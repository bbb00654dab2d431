"""Tests for standardized error handling."""

from typing import Optional

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field


class TestAPIErrors:
    """Test custom API error classes."""

    def test_not_found_error_defaults(self):
        from when2tz.errors import NotFoundError

        error = NotFoundError()
        assert error.status_code == 404
        assert error.error == "not_found"
        assert error.detail == "Resource not found"

    def test_not_found_error_with_context(self):
        """Test NotFoundError with custom context."""
        from when2tz.errors import NotFoundError

        error = NotFoundError(detail="Slot not found", error_code="SLOT_NOT_FOUND", index=12)
        assert error.detail == "Slot not found"
        assert error.error_code == "SLOT_NOT_FOUND"
        assert error.context == {"index": 12}

    def test_validation_error(self):
        from when2tz.errors import ValidationError

        error = ValidationError(detail="endHour must be after startHour")
        assert error.status_code == 422
        assert error.error == "validation_error"

    def test_malformed_input_error(self):
        from when2tz.errors import MalformedInputError

        error = MalformedInputError()
        assert error.status_code == 400
        assert error.error == "malformed_input"
        assert error.detail == "Invalid JSON"

    def test_persistence_error(self):
        from when2tz.errors import PersistenceError

        error = PersistenceError(detail="disk full")
        assert error.status_code == 500
        assert error.error == "persistence_error"

    def test_service_unavailable_error(self):
        from when2tz.errors import ServiceUnavailableError

        error = ServiceUnavailableError(detail="Schedule store not initialized")
        assert error.status_code == 503
        assert error.error == "service_unavailable"


class TestErrorResponse:
    """Test error response model."""

    def test_error_response_minimal(self):
        from when2tz.errors import ErrorResponse

        data = ErrorResponse(error="internal_error").model_dump(exclude_none=True)

        assert data == {"error": "internal_error"}

    def test_api_error_to_response(self):
        """Test converting APIError to ErrorResponse."""
        from when2tz.errors import NotFoundError

        response = NotFoundError(detail="Not found", schedule_id="abc").to_response()

        assert response.error == "not_found"
        assert response.detail == "Not found"
        assert response.context == {"schedule_id": "abc"}


class Payload(BaseModel):
    count: int = Field(ge=0)
    label: Optional[str] = None


@pytest.fixture
def error_client():
    from when2tz.errors import PersistenceError, register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/echo")
    async def echo(payload: Payload):
        return payload

    @app.get("/broken")
    async def broken():
        raise PersistenceError(detail="Failed to persist participant")

    return TestClient(app, raise_server_exceptions=False)


class TestExceptionHandlers:
    """Test exception handlers integration."""

    def test_api_error_handler(self, error_client):
        response = error_client.get("/broken")

        assert response.status_code == 500
        assert response.json() == {"error": "persistence_error", "detail": "Failed to persist participant"}

    def test_invalid_json_is_malformed_input(self, error_client):
        response = error_client.post(
            "/echo", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "malformed_input"

    def test_field_errors_are_validation_errors(self, error_client):
        response = error_client.post("/echo", json={"count": -1})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"].startswith("count:")
        assert body["context"]["errors"][0]["loc"] == ["body", "count"]

    def test_missing_field(self, error_client):
        response = error_client.post("/echo", json={})

        assert response.status_code == 422
        assert "count" in response.json()["detail"]


class TestStatusToErrorType:
    """Test status code to error type mapping."""

    def test_common_status_codes(self):
        from when2tz.errors import _status_to_error_type

        assert _status_to_error_type(400) == "malformed_input"
        assert _status_to_error_type(404) == "not_found"
        assert _status_to_error_type(422) == "validation_error"
        assert _status_to_error_type(500) == "internal_error"
        assert _status_to_error_type(503) == "service_unavailable"

    def test_unknown_status_code(self):
        from when2tz.errors import _status_to_error_type

        assert _status_to_error_type(418) == "error"
