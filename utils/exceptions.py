"""
Custom exception classes for the Juri legal assistant

This module defines all custom exceptions used throughout the application,
providing structured error handling with proper error codes and messages.
"""
import time
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(Enum):
    """Enumeration of error codes for consistent error handling"""

    # General errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # File handling errors
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    EMPTY_FILE = "EMPTY_FILE"
    TEXT_EXTRACTION_FAILED = "TEXT_EXTRACTION_FAILED"

    # Document generation errors
    PDF_GENERATION_FAILED = "PDF_GENERATION_FAILED"
    PDF_FILL_FAILED = "PDF_FILL_FAILED"
    TEMPLATE_MISMATCH = "TEMPLATE_MISMATCH"
    TEMPLATE_NOT_AVAILABLE = "TEMPLATE_NOT_AVAILABLE"

    # Chat backend errors
    CHAT_BACKEND_ERROR = "CHAT_BACKEND_ERROR"
    CHAT_BACKEND_TIMEOUT = "CHAT_BACKEND_TIMEOUT"
    CHAT_BACKEND_UNAVAILABLE = "CHAT_BACKEND_UNAVAILABLE"

    # State store errors
    INVALID_ACTION = "INVALID_ACTION"


class JuriException(Exception):
    """
    Base exception class for all Juri legal assistant errors

    Provides structured error information with error codes, messages,
    and optional details for debugging and user feedback.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the exception

        Args:
            message: Human-readable error message
            error_code: Structured error code for programmatic handling
            details: Optional dictionary with additional error details
            original_exception: Original exception that caused this error (if any)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format for API responses

        Returns:
            Dictionary representation of the error
        """
        error_dict = {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict

    def __str__(self) -> str:
        """String representation of the exception"""
        return f"{self.error_code.value}: {self.message}"


class FileHandlingError(JuriException):
    """Exception for file handling operations"""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        file_size: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.INVALID_FILE_TYPE,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if filename:
            details["filename"] = filename
        if file_size is not None:
            details["file_size"] = file_size

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class TextExtractionError(JuriException):
    """Exception for text extraction from uploaded files"""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        page_number: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if filename:
            details["filename"] = filename
        if page_number is not None:
            details["page_number"] = page_number

        super().__init__(
            message=message,
            error_code=ErrorCode.TEXT_EXTRACTION_FAILED,
            details=details,
            original_exception=original_exception
        )


class PDFGenerationError(JuriException):
    """
    Exception for document generation and template filling.

    These are the failures shown to the user, who can retry the request,
    so the details always carry ``retryable``.
    """

    def __init__(
        self,
        message: str,
        document_type: Optional[str] = None,
        stage: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.PDF_GENERATION_FAILED,
        original_exception: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {"retryable": True}
        if document_type:
            details["document_type"] = document_type
        if stage:
            details["stage"] = stage

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class TemplateMismatchError(JuriException):
    """Raised when a PDF template does not match its recorded field mapping"""

    def __init__(
        self,
        message: str,
        template_id: Optional[str] = None,
        version: Optional[str] = None,
        expected: Optional[Dict[str, Any]] = None,
        actual: Optional[Dict[str, Any]] = None
    ):
        details: Dict[str, Any] = {}
        if template_id:
            details["template_id"] = template_id
        if version:
            details["version"] = version
        if expected is not None:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual

        super().__init__(
            message=message,
            error_code=ErrorCode.TEMPLATE_MISMATCH,
            details=details
        )


class TemplateNotAvailableError(JuriException):
    """Raised for catalog templates that have no generator yet"""

    def __init__(self, template_id: str, title: Optional[str] = None):
        super().__init__(
            message=f"{title or template_id} generator is currently being developed",
            error_code=ErrorCode.TEMPLATE_NOT_AVAILABLE,
            details={"template_id": template_id}
        )


class ChatBackendError(JuriException):
    """Exception for chat completion backend calls"""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.CHAT_BACKEND_ERROR,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class NotFoundError(JuriException):
    """Exception for lookups of unknown entities"""

    def __init__(self, message: str, resource: Optional[str] = None, resource_id: Optional[str] = None):
        details = {}
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            error_code=ErrorCode.NOT_FOUND,
            details=details
        )


class ValidationError(JuriException):
    """Exception for input validation errors"""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        validation_rule: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            # Convert to string and truncate for safety
            value_str = str(field_value)
            details["field_value"] = value_str[:100] + "..." if len(value_str) > 100 else value_str
        if validation_rule:
            details["validation_rule"] = validation_rule

        super().__init__(
            message=message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details=details,
            original_exception=original_exception
        )


class InvalidActionError(JuriException):
    """Exception for malformed state store actions"""

    def __init__(self, message: str, action_type: Optional[str] = None, original_exception: Optional[Exception] = None):
        details = {}
        if action_type:
            details["action_type"] = action_type

        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_ACTION,
            details=details,
            original_exception=original_exception
        )


# Convenience functions for creating common exceptions

def create_file_too_large_error(filename: str, file_size: int, max_size: int) -> FileHandlingError:
    """Create a file too large error"""
    return FileHandlingError(
        message=f"File '{filename}' exceeds maximum size limit of {max_size} bytes",
        filename=filename,
        file_size=file_size,
        error_code=ErrorCode.FILE_TOO_LARGE
    )


def create_invalid_file_type_error(filename: str, supported_types: list) -> FileHandlingError:
    """Create an invalid file type error"""
    return FileHandlingError(
        message=f"File '{filename}' is not supported. Supported types: {', '.join(supported_types)}",
        filename=filename,
        error_code=ErrorCode.INVALID_FILE_TYPE
    )


def create_not_found_error(resource: str, resource_id: str) -> NotFoundError:
    """Create a not found error for a resource lookup"""
    return NotFoundError(
        message=f"{resource.capitalize()} '{resource_id}' was not found",
        resource=resource,
        resource_id=resource_id
    )
