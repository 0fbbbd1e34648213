"""
Error Definitions

Defines custom exception classes used by the gateway for unified error handling.
"""

from typing import Any, Optional


class AppError(Exception):
    """
    Application Base Exception

    Base class for all custom exceptions, containing error message, type, and code.
    """

    def __init__(
        self,
        message: str,
        error_type: str = "app_error",
        code: str = "internal_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 500,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            error_type: Error type
            code: Error code
            details: Extra error details
            status_code: HTTP status code
        """
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.code = code
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Args:
            include_details: Whether to attach the details payload

        Returns:
            dict: Error information dictionary
        """
        result = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if include_details and self.details:
            result["error"]["details"] = self.details
        return result


class InvalidInputError(AppError):
    """
    Invalid Input Error

    Raised when the request shape cannot be converted: unsupported input,
    message ordering violations, unknown tool or tool-choice shapes.
    """

    def __init__(
        self,
        message: str = "Invalid request",
        code: str = "invalid_request",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request",
            code=code,
            details=details,
            status_code=400,
        )


class TooManyToolCallsError(AppError):
    """
    Tool Call Limit Error

    Raised when a conversation accumulates more function calls than allowed.
    """

    def __init__(
        self,
        message: str = "Too many tool calls. Increase the limit by setting MAX_TOOL_CALLS environment variable.",
        code: str = "too_many_tool_calls",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="invalid_request",
            code=code,
            details=details,
            status_code=400,
        )


class RequestTimeoutError(AppError):
    """
    Request Timeout Error

    Raised when a non-streaming request exceeds its overall time budget.
    """

    def __init__(
        self,
        message: str = "Request timed out",
        code: str = "timeout",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="timeout_error",
            code=code,
            details=details,
            status_code=408,
        )


class NotFoundError(AppError):
    """
    Resource Not Found Error

    Raised when a stored response does not exist.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        code: str = "not_found",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="not_found",
            code=code,
            details=details,
            status_code=404,
        )


class UpstreamError(AppError):
    """
    Upstream Service Error

    Raised when the model provider returns an error or cannot be reached.
    The provider status code is kept so callers see the original failure.
    """

    def __init__(
        self,
        message: str = "Upstream service error",
        code: str = "upstream_error",
        details: Optional[dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            error_type="upstream_error",
            code=code,
            details=details,
            status_code=status_code,
        )


class ResponseProcessingError(AppError):
    """
    Response Processing Error

    Wraps unexpected failures of the non-streaming path.
    """

    def __init__(
        self,
        message: str = "Error processing response",
        code: str = "processing_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="processing_error",
            code=code,
            details=details,
            status_code=500,
        )


class StreamingError(AppError):
    """
    Streaming Error

    Raised after an error event has been sent to a streaming client.
    """

    def __init__(
        self,
        message: str = "Error in streaming response",
        code: str = "stream_error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            error_type="streaming_error",
            code=code,
            details=details,
            status_code=500,
        )


class ToolExecutionError(Exception):
    """Raised by a tool backend when a tool call cannot be completed."""
