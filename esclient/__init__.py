"""
esclient - Elasticsearch client library with health checking.
"""

from esclient.client import ClientConfig, new_client
from esclient.config.settings import Library
from esclient.errors import ClientError, ErrorCode
from esclient.health import CheckState, HealthChecker, HealthStatus

__version__ = "1.0.0"

__all__ = [
    "CheckState",
    "ClientConfig",
    "ClientError",
    "ErrorCode",
    "HealthChecker",
    "HealthStatus",
    "Library",
    "__version__",
    "new_client",
]
