"""
HTTP transport for esclient.
"""

from esclient.transport.http import HTTPClient

__all__ = [
    "HTTPClient",
]
