"""
Error handling module for esclient.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- ClientError class for library-specific exceptions
- Factory functions for the common error types
"""

from esclient.errors.codes import ErrorCode, get_default_status_code
from esclient.errors.exceptions import (
    ClientError,
    elasticsearch_error,
    invalid_configuration,
    invalid_health_state,
    signing_error,
    transport_error,
    unexpected_status_code,
    unsupported_operation,
)

__all__ = [
    "ErrorCode",
    "ClientError",
    "get_default_status_code",
    "elasticsearch_error",
    "invalid_configuration",
    "invalid_health_state",
    "signing_error",
    "transport_error",
    "unexpected_status_code",
    "unsupported_operation",
]
