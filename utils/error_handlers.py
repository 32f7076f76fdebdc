"""
Error handling middleware and utilities for the Juri legal assistant

This module provides the error handling middleware, the mapping from error
codes to HTTP status codes, and logging helpers shared by the services.
"""
import logging
import time
import traceback
from typing import Dict, Any, Optional
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import openai

from utils.exceptions import JuriException, ErrorCode

logger = logging.getLogger(__name__)


STATUS_CODE_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ACTION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_FILE_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_FILE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FILE_TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.TEXT_EXTRACTION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.TEMPLATE_MISMATCH: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.PDF_GENERATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.PDF_FILL_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.TEMPLATE_NOT_AVAILABLE: status.HTTP_501_NOT_IMPLEMENTED,
    ErrorCode.CHAT_BACKEND_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.CHAT_BACKEND_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.CHAT_BACKEND_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def get_status_code_for_error_code(error_code: ErrorCode) -> int:
    """Map error codes to HTTP status codes"""
    return STATUS_CODE_MAP.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ErrorHandlingMiddleware:
    """
    Middleware for handling errors and providing consistent error responses
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        """ASGI middleware implementation"""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)

        try:
            await self.app(scope, receive, send)
        except Exception as e:
            response = await self.handle_error(request, e)
            await response(scope, receive, send)

    async def handle_error(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Handle different types of exceptions and return appropriate responses

        Args:
            request: The FastAPI request object
            exc: The exception that occurred

        Returns:
            JSONResponse with error details
        """
        self._log_error(request, exc)

        if isinstance(exc, JuriException):
            return self._handle_juri_exception(exc)
        elif isinstance(exc, HTTPException):
            return self._handle_http_exception(exc)
        elif isinstance(exc, RequestValidationError):
            return self._handle_validation_exception(exc)
        elif isinstance(exc, openai.OpenAIError):
            return self._handle_openai_exception(exc)
        else:
            return self._handle_generic_exception(exc)

    def _log_error(self, request: Request, exc: Exception) -> None:
        """Log error with request context"""
        error_id = f"error_{int(time.time() * 1000)}"

        context = {
            "error_id": error_id,
            "method": request.method,
            "url": str(request.url),
            "user_agent": request.headers.get("user-agent", "unknown"),
            "exception_type": type(exc).__name__,
            "exception_message": str(exc)
        }

        client_ip = request.client.host if request.client else "unknown"
        context["client_ip"] = client_ip

        if isinstance(exc, (JuriException, HTTPException)):
            logger.warning(f"Handled exception: {context}")
        else:
            logger.error(f"Unhandled exception: {context}")
            logger.error(f"Traceback: {traceback.format_exc()}")

    def _handle_juri_exception(self, exc: JuriException) -> JSONResponse:
        """Handle custom Juri exceptions"""
        return JSONResponse(
            status_code=get_status_code_for_error_code(exc.error_code),
            content=exc.to_dict()
        )

    def _handle_http_exception(self, exc: HTTPException) -> JSONResponse:
        """Handle FastAPI HTTP exceptions"""
        # If detail is already a dict (our custom format), return as-is
        if isinstance(exc.detail, dict):
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.detail
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": "HTTP_ERROR",
                    "message": str(exc.detail),
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )

    def _handle_validation_exception(self, exc: RequestValidationError) -> JSONResponse:
        """Handle Pydantic validation errors"""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "code": ErrorCode.VALIDATION_ERROR.value,
                    "message": "Request validation failed",
                    "details": {
                        "validation_errors": exc.errors()
                    },
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )

    def _handle_openai_exception(self, exc: openai.OpenAIError) -> JSONResponse:
        """Handle hosted completion API exceptions that escaped the chat fallback"""
        if isinstance(exc, openai.APITimeoutError):
            error_code = ErrorCode.CHAT_BACKEND_TIMEOUT
            message = "Hosted completion request timed out. Please try again."
        elif isinstance(exc, openai.AuthenticationError):
            error_code = ErrorCode.CHAT_BACKEND_UNAVAILABLE
            message = "Hosted completion authentication failed. Please check configuration."
        else:
            error_code = ErrorCode.CHAT_BACKEND_ERROR
            message = f"Hosted completion error: {str(exc)}"

        return JSONResponse(
            status_code=get_status_code_for_error_code(error_code),
            content={
                "error": {
                    "code": error_code.value,
                    "message": message,
                    "details": {
                        "service": "hosted_completion",
                        "error_type": type(exc).__name__
                    },
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )

    def _handle_generic_exception(self, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions"""
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_SERVER_ERROR.value,
                    "message": "An unexpected error occurred",
                    "details": {
                        "error_type": type(exc).__name__
                    },
                    "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
                }
            }
        )


# Utility functions for error handling

def log_processing_step(step_name: str, details: Optional[Dict[str, Any]] = None):
    """
    Log a processing step with optional details

    Args:
        step_name: Name of the processing step
        details: Optional dictionary with step details
    """
    log_message = f"Processing step: {step_name}"
    if details:
        log_message += f" - {details}"

    logger.info(log_message)


def log_performance_metric(operation: str, duration_ms: int, details: Optional[Dict[str, Any]] = None):
    """
    Log performance metrics for operations

    Args:
        operation: Name of the operation
        duration_ms: Duration in milliseconds
        details: Optional dictionary with additional details
    """
    log_message = f"Performance: {operation} completed in {duration_ms}ms"
    if details:
        log_message += f" - {details}"

    logger.info(log_message)


def create_error_response(
    error_code: ErrorCode,
    message: str,
    status_code: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """
    Create a standardized error response

    Args:
        error_code: The error code
        message: Error message
        status_code: HTTP status code (derived from the error code when omitted)
        details: Optional error details

    Returns:
        JSONResponse with error information
    """
    error_dict = {
        "error": {
            "code": error_code.value,
            "message": message,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        }
    }

    if details:
        error_dict["error"]["details"] = details

    return JSONResponse(
        status_code=status_code or get_status_code_for_error_code(error_code),
        content=error_dict
    )


def handle_service_degradation(service_name: str, error: Exception) -> Dict[str, Any]:
    """
    Handle graceful service degradation

    Args:
        service_name: Name of the failing service
        error: The error that occurred

    Returns:
        Dictionary with degradation information
    """
    logger.warning(f"Service degradation detected for {service_name}: {error}")

    return {
        "service": service_name,
        "status": "degraded",
        "error": str(error),
        "fallback_available": True,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }
