"""
Tests for exception handlers in main.py, the health check and the root
endpoint.
"""
from unittest.mock import patch

from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError
from httpx import ASGITransport, AsyncClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.db_error_handling import DatabaseOperationError
from app.core.exceptions import (
    ConflictError,
    InsufficientQuestionsError,
    PlacementError,
    ValidationError,
)
from app.main import app


class TestHandlersRegistered:
    """Tests that every handler is registered."""

    def test_placement_error_handler_exists(self):
        assert PlacementError in app.exception_handlers

    def test_http_exception_handler_exists(self):
        assert StarletteHTTPException in app.exception_handlers

    def test_validation_exception_handler_exists(self):
        assert RequestValidationError in app.exception_handlers

    def test_generic_exception_handler_exists(self):
        assert Exception in app.exception_handlers


class TestErrorBodies:
    """Tests for the JSON bodies of domain errors."""

    def test_validation_error_body(self):
        error = ValidationError("Bad payload.", fields={"points": "Must be positive."})

        assert error.to_dict() == {
            "detail": "Bad payload.",
            "fields": {"points": "Must be positive."},
        }

    def test_conflict_without_session_id(self):
        assert ConflictError("Busy.").to_dict() == {"detail": "Busy."}

    def test_insufficient_questions_body(self):
        error = InsufficientQuestionsError("Too few.", requested=25, available=3)

        assert error.to_dict() == {"detail": "Too few.", "requested": 25, "available": 3}


class TestHandlerResponses:
    """Tests that raised errors reach the client with the right status."""

    async def test_server_errors_are_reported(self):
        router = APIRouter()

        @router.get("/_boom")
        async def boom():
            raise DatabaseOperationError("complete placement test", RuntimeError("x"))

        app.include_router(router)
        try:
            with patch("app.main.capture_error") as mock_capture:
                transport = ASGITransport(app=app)
                async with AsyncClient(
                    transport=transport, base_url="http://test"
                ) as client:
                    response = await client.get("/_boom")
        finally:
            app.router.routes[:] = [
                route
                for route in app.router.routes
                if getattr(route, "path", None) != "/_boom"
            ]

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to complete placement test."}
        mock_capture.assert_called_once()

    async def test_unknown_route_returns_404(self, async_client):
        response = await async_client.get("/v1/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"detail": "Not Found"}


class TestHealthAndRoot:
    """Tests for the health check and root endpoints."""

    async def test_health(self, async_client):
        response = await async_client.get("/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "ok"

    async def test_root(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/v1/docs"
