"""
Exception classes for esclient.

This module provides the ClientError class and convenience factory
functions for creating library exceptions with proper error codes and
status codes.
"""

from typing import Any, Optional

from esclient.errors.codes import ErrorCode, get_default_status_code


class ClientError(Exception):
    """
    Base exception class for all esclient errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The status code returned by the cluster, or the error
      code's default when the cluster gave none
    - details: Optional additional context (e.g., the response body)

    Example:
        raise ClientError(
            error_code=ErrorCode.UNEXPECTED_STATUS_CODE,
            message="unexpected status code from api",
            status_code=503,
            details={"url": "http://localhost:9200/_cluster/health"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize a ClientError.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The status code (defaults to the error code's default).
                Zero is kept as-is and means no response was received.
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = (
            status_code if status_code is not None else get_default_status_code(error_code)
        )
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, status_code and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
            "status_code": self.status_code,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"ClientError(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


# Convenience factory functions for common error types

def transport_error(
    message: str,
    status_code: Optional[int] = None,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create a transport error exception."""
    return ClientError(
        error_code=ErrorCode.TRANSPORT_ERROR,
        message=message,
        status_code=status_code,
        details=details
    )


def unexpected_status_code(
    status_code: int,
    message: str = "unexpected status code from api",
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create an unexpected status code exception."""
    return ClientError(
        error_code=ErrorCode.UNEXPECTED_STATUS_CODE,
        message=message,
        status_code=status_code,
        details=details
    )


def elasticsearch_error(
    message: str,
    status_code: int = 0,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create an error wrapping a failed Elasticsearch SDK call."""
    return ClientError(
        error_code=ErrorCode.ELASTICSEARCH_ERROR,
        message=message,
        status_code=status_code,
        details=details
    )


def unsupported_operation(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create an unsupported operation exception."""
    return ClientError(
        error_code=ErrorCode.UNSUPPORTED_OPERATION,
        message=message,
        details=details
    )


def invalid_configuration(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create an invalid configuration exception."""
    return ClientError(
        error_code=ErrorCode.INVALID_CONFIGURATION,
        message=message,
        details=details
    )


def signing_error(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create a request signing exception."""
    return ClientError(
        error_code=ErrorCode.SIGNING_ERROR,
        message=message,
        details=details
    )


def invalid_health_state(
    message: str,
    details: Optional[dict[str, Any]] = None
) -> ClientError:
    """Create an invalid health state exception."""
    return ClientError(
        error_code=ErrorCode.INVALID_HEALTH_STATE,
        message=message,
        details=details
    )
