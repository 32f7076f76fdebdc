"""
Tests for comprehensive error handling implementation
"""
import asyncio
import json
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

from main import app
from utils.exceptions import (
    JuriException, ErrorCode, FileHandlingError, TextExtractionError, PDFGenerationError,
    TemplateMismatchError, TemplateNotAvailableError, ChatBackendError, ValidationError,
    InvalidActionError, create_file_too_large_error, create_invalid_file_type_error, create_not_found_error
)
from utils.error_handlers import (
    ErrorHandlingMiddleware, create_error_response, get_status_code_for_error_code, handle_service_degradation
)


def make_request(path="/test"):
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [(b"user-agent", b"pytest")],
        "client": ("127.0.0.1", 5000),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class TestCustomExceptions:
    """Test custom exception classes"""

    def test_juri_exception_creation(self):
        """Test basic JuriException creation"""
        exc = JuriException(
            message="Test error",
            error_code=ErrorCode.VALIDATION_ERROR,
            details={"field": "test"}
        )

        assert exc.message == "Test error"
        assert exc.error_code == ErrorCode.VALIDATION_ERROR
        assert exc.details == {"field": "test"}
        assert exc.timestamp is not None
        assert str(exc) == "VALIDATION_ERROR: Test error"

    def test_juri_exception_to_dict(self):
        """Test JuriException to_dict conversion"""
        exc = JuriException(
            message="Test error",
            error_code=ErrorCode.VALIDATION_ERROR,
            details={"field": "test"}
        )

        result = exc.to_dict()

        assert result["error"]["code"] == ErrorCode.VALIDATION_ERROR.value
        assert result["error"]["message"] == "Test error"
        assert result["error"]["details"] == {"field": "test"}
        assert "timestamp" in result["error"]

    def test_to_dict_omits_empty_details(self):
        result = JuriException("Boom").to_dict()

        assert result["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "details" not in result["error"]

    def test_file_handling_error(self):
        exc = create_file_too_large_error("test.pdf", 2000, 1000)

        assert exc.error_code == ErrorCode.FILE_TOO_LARGE
        assert exc.details == {"filename": "test.pdf", "file_size": 2000}
        assert "1000 bytes" in exc.message

    def test_invalid_file_type_error(self):
        exc = create_invalid_file_type_error("notes.docx", [".pdf"])

        assert isinstance(exc, FileHandlingError)
        assert exc.error_code == ErrorCode.INVALID_FILE_TYPE

    def test_text_extraction_error(self):
        exc = TextExtractionError("No text", filename="scan.pdf", page_number=3)
        assert exc.details == {"filename": "scan.pdf", "page_number": 3}

    def test_pdf_generation_error_is_retryable(self):
        exc = PDFGenerationError("Failed", document_type="yc-safe", stage="render")

        assert exc.details["retryable"] is True
        assert exc.details["stage"] == "render"

    def test_template_mismatch_error(self):
        exc = TemplateMismatchError(
            "Wrong layout",
            template_id="yc-safe-post-money",
            version="1.2",
            expected={"page_count": 6},
            actual={"page_count": 2}
        )

        assert exc.error_code == ErrorCode.TEMPLATE_MISMATCH
        assert exc.details["actual"] == {"page_count": 2}

    def test_template_not_available_error(self):
        exc = TemplateNotAvailableError("nda", "Non-Disclosure Agreement")
        assert exc.message == "Non-Disclosure Agreement generator is currently being developed"

    def test_chat_backend_error(self):
        exc = ChatBackendError("Timed out", provider="primary", error_code=ErrorCode.CHAT_BACKEND_TIMEOUT)
        assert exc.details == {"provider": "primary"}

    def test_validation_error_truncates_value(self):
        exc = ValidationError("Too long", field_name="question", field_value="x" * 150)

        assert exc.details["field_value"] == "x" * 100 + "..."
        assert exc.error_code == ErrorCode.VALIDATION_ERROR

    def test_not_found_error(self):
        exc = create_not_found_error("document", "doc-1")

        assert exc.message == "Document 'doc-1' was not found"
        assert exc.details == {"resource": "document", "resource_id": "doc-1"}


class TestStatusCodes:
    """Test the error code to HTTP status mapping"""

    @pytest.mark.parametrize("error_code, expected", [
        (ErrorCode.VALIDATION_ERROR, 400),
        (ErrorCode.INVALID_ACTION, 400),
        (ErrorCode.INVALID_FILE_TYPE, 400),
        (ErrorCode.EMPTY_FILE, 400),
        (ErrorCode.NOT_FOUND, 404),
        (ErrorCode.FILE_TOO_LARGE, 413),
        (ErrorCode.TEXT_EXTRACTION_FAILED, 422),
        (ErrorCode.TEMPLATE_MISMATCH, 422),
        (ErrorCode.PDF_GENERATION_FAILED, 500),
        (ErrorCode.PDF_FILL_FAILED, 500),
        (ErrorCode.INTERNAL_SERVER_ERROR, 500),
        (ErrorCode.TEMPLATE_NOT_AVAILABLE, 501),
        (ErrorCode.CHAT_BACKEND_ERROR, 502),
        (ErrorCode.CHAT_BACKEND_UNAVAILABLE, 503),
        (ErrorCode.SERVICE_UNAVAILABLE, 503),
        (ErrorCode.CHAT_BACKEND_TIMEOUT, 504),
    ])
    def test_status_code_mapping(self, error_code, expected):
        assert get_status_code_for_error_code(error_code) == expected

    def test_create_error_response(self):
        response = create_error_response(ErrorCode.NOT_FOUND, "Missing", details={"id": "x"})
        body = json.loads(response.body)

        assert response.status_code == 404
        assert body["error"]["code"] == "NOT_FOUND"
        assert body["error"]["details"] == {"id": "x"}

    def test_create_error_response_explicit_status(self):
        response = create_error_response(ErrorCode.VALIDATION_ERROR, "Bad", status_code=422)
        assert response.status_code == 422
        assert "details" not in json.loads(response.body)["error"]

    def test_service_degradation(self):
        info = handle_service_degradation("chat_primary", RuntimeError("down"))

        assert info["status"] == "degraded"
        assert info["fallback_available"] is True
        assert info["error"] == "down"


class TestErrorHandlingMiddleware:
    """Test the middleware's conversion of exceptions"""

    @pytest.fixture
    def middleware(self):
        return ErrorHandlingMiddleware(app=None)

    def test_juri_exception(self, middleware):
        response = asyncio.run(middleware.handle_error(make_request(), InvalidActionError("Unknown action")))

        assert response.status_code == 400
        assert json.loads(response.body)["error"]["code"] == "INVALID_ACTION"

    def test_http_exception(self, middleware):
        response = asyncio.run(middleware.handle_error(make_request(), HTTPException(status_code=404, detail="Nope")))
        assert response.status_code == 404

    def test_unexpected_exception(self, middleware):
        response = asyncio.run(middleware.handle_error(make_request(), KeyError("boom")))
        body = json.loads(response.body)

        assert response.status_code == 500
        assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert body["error"]["details"] == {"error_type": "KeyError"}


class TestAPIErrorHandling:
    """Test error handling in API endpoints"""

    @pytest.fixture
    def client(self):
        return TestClient(app)

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_validation_error(self, client):
        response = client.post("/qa", json={})
        body = response.json()

        assert response.status_code == 422
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"]["field_errors"][0]["field"] == "body -> question"

    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404


class TestLoggingIntegration:
    """Test logging integration with error handling"""

    def test_structured_logging_format(self):
        from utils.logging import setup_logging

        logger = setup_logging(log_format="structured")
        assert logger is not None

    def test_security_logger(self):
        from utils.logging import get_security_logger, log_security_event

        security_logger = get_security_logger()
        assert security_logger.name == "security"

        # Should not raise
        log_security_event(
            event_type="test_event",
            description="Test security event",
            severity="low"
        )


if __name__ == "__main__":
    pytest.main([__file__])
