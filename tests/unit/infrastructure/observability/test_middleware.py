"""Unit tests for RequestLoggingMiddleware."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient

from pixum.infrastructure.observability.middleware import RequestLoggingMiddleware


class TestRequestLoggingMiddleware:
    """Test suite for RequestLoggingMiddleware."""

    @pytest.fixture
    def app(self) -> FastAPI:
        """Create a FastAPI app with middleware for testing."""
        app = FastAPI()
        app.add_middleware(RequestLoggingMiddleware)

        @app.get("/123/1")
        async def image_endpoint():
            return {"message": "test"}

        @app.get("/missing")
        async def missing_endpoint():
            return PlainTextResponse("nope", status_code=404)

        @app.get("/error")
        async def error_endpoint():
            raise ValueError("Test error")

        return app

    @pytest.fixture
    def client(self, app: FastAPI) -> TestClient:
        """Create a test client."""
        return TestClient(app)

    def test_successful_request_logs_completion(self, client: TestClient):
        """Test that successful requests log one line with status and duration."""
        with patch(
            "pixum.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            response = client.get("/123/1")

            assert response.status_code == 200
            assert mock_logger.info.call_count == 1

            # "✓ GET /123/1 → 200 (Xms)"
            log_message = mock_logger.info.call_args_list[0][0][0]
            assert log_message.startswith("✓ GET /123/1 → 200")
            assert "ms" in log_message

    def test_failed_status_gets_cross_marker(self, client: TestClient):
        with patch(
            "pixum.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            client.get("/missing")

            log_message = mock_logger.info.call_args_list[0][0][0]
            assert log_message.startswith("✗ GET /missing → 404")

    def test_request_with_correlation_id_header(self, client: TestClient):
        """The caller's correlation ID is echoed back."""
        response = client.get("/123/1", headers={"X-Correlation-ID": "custom-id"})

        assert response.headers["X-Correlation-ID"] == "custom-id"

    def test_request_without_correlation_id_header(self, client: TestClient):
        """Without a header one is generated."""
        with patch(
            "pixum.infrastructure.observability.middleware.set_correlation_id"
        ) as mock_set_correlation_id:
            client.get("/123/1")

            mock_set_correlation_id.assert_called_once_with(None)

    def test_generated_correlation_ids_differ(self, client: TestClient):
        first = client.get("/123/1").headers["X-Correlation-ID"]
        second = client.get("/123/1").headers["X-Correlation-ID"]

        assert first
        assert first != second

    def test_error_request_logs_exception(self, client: TestClient):
        """Test that failed requests log exception details and re-raise."""
        with patch(
            "pixum.infrastructure.observability.middleware.logger"
        ) as mock_logger:
            with pytest.raises(ValueError):
                client.get("/error")

            assert mock_logger.exception.call_count == 1
            log_message = mock_logger.exception.call_args[0][0]
            assert "GET" in log_message
            assert "/error" in log_message
            assert mock_logger.exception.call_args[1]["extra"]["error_type"] == "ValueError"
