"""
Error code catalog for esclient.

This module defines all error codes used throughout the library, covering
transport failures, unexpected responses from the cluster, health
classification outcomes and client misuse.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used in the library.

    Each error code maps to a default HTTP-like status code:
    - Transport and response errors (5xx): the cluster could not be used
    - Health classification errors: outcome of a health check
    - Client errors (4xx/5xx): misconfiguration or unsupported operations
    """

    # Transport and response errors
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Network or connection failure reaching the backend (HTTP 500)"""

    UNEXPECTED_STATUS_CODE = "UNEXPECTED_STATUS_CODE"
    """Backend responded outside the expected 2xx range (HTTP 500)"""

    PARSING_ERROR = "PARSING_ERROR"
    """Response body could not be decoded (HTTP 500)"""

    ELASTICSEARCH_ERROR = "ELASTICSEARCH_ERROR"
    """Error response returned by the Elasticsearch SDK (HTTP 500)"""

    # Health classification errors
    CLUSTER_AT_RISK = "CLUSTER_AT_RISK"
    """Cluster status yellow, still functional (HTTP 200)"""

    CLUSTER_UNHEALTHY = "CLUSTER_UNHEALTHY"
    """Cluster status red (HTTP 500)"""

    INVALID_HEALTH_STATUS = "INVALID_HEALTH_STATUS"
    """Cluster returned an unknown health status (HTTP 500)"""

    INDEX_MISSING = "INDEX_MISSING"
    """A required index does not exist (HTTP 404)"""

    INVALID_HEALTH_STATE = "INVALID_HEALTH_STATE"
    """Attempt to record an unknown check status (HTTP 500)"""

    # Client errors
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    """Operation not supported by the selected client (HTTP 501)"""

    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    """Client configuration is invalid (HTTP 400)"""

    SIGNING_ERROR = "SIGNING_ERROR"
    """Request could not be signed (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.TRANSPORT_ERROR: 500,
    ErrorCode.UNEXPECTED_STATUS_CODE: 500,
    ErrorCode.PARSING_ERROR: 500,
    ErrorCode.ELASTICSEARCH_ERROR: 500,
    ErrorCode.CLUSTER_AT_RISK: 200,
    ErrorCode.CLUSTER_UNHEALTHY: 500,
    ErrorCode.INVALID_HEALTH_STATUS: 500,
    ErrorCode.INDEX_MISSING: 404,
    ErrorCode.INVALID_HEALTH_STATE: 500,
    ErrorCode.UNSUPPORTED_OPERATION: 501,
    ErrorCode.INVALID_CONFIGURATION: 400,
    ErrorCode.SIGNING_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
