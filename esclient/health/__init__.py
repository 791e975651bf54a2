"""
Health check module for esclient.

This module classifies the health of an Elasticsearch backend, including the
existence of required indexes, into OK, WARNING or CRITICAL.
"""

from esclient.health.checker import (
    MSG_CLUSTER_AT_RISK,
    MSG_CLUSTER_UNHEALTHY,
    MSG_HEALTHY,
    MSG_INDEX_DOES_NOT_EXIST,
    MSG_INVALID_HEALTH_STATUS,
    MSG_PARSING_BODY,
    MSG_UNEXPECTED_STATUS_CODE,
    SERVICE_NAME,
    CheckResult,
    ClusterHealth,
    ClusterHealthStatus,
    HealthChecker,
)
from esclient.health.probes import (
    PATH_HEALTH,
    HTTPHealthProbe,
    HealthProbe,
    ProbeResponse,
    SDKHealthProbe,
)
from esclient.health.state import CheckState, HealthStatus

__all__ = [
    "MSG_CLUSTER_AT_RISK",
    "MSG_CLUSTER_UNHEALTHY",
    "MSG_HEALTHY",
    "MSG_INDEX_DOES_NOT_EXIST",
    "MSG_INVALID_HEALTH_STATUS",
    "MSG_PARSING_BODY",
    "MSG_UNEXPECTED_STATUS_CODE",
    "PATH_HEALTH",
    "SERVICE_NAME",
    "CheckResult",
    "CheckState",
    "ClusterHealth",
    "ClusterHealthStatus",
    "HTTPHealthProbe",
    "HealthChecker",
    "HealthProbe",
    "HealthStatus",
    "ProbeResponse",
    "SDKHealthProbe",
]
