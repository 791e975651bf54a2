"""
Elasticsearch clients.

new_client() builds the client generation named in ClientConfig: the legacy
direct HTTP client or the client backed by the official SDK.
"""

from esclient.client.base import (
    AddDocumentOptions,
    BulkIndexerAction,
    BulkIndexerItem,
    Client,
    Count,
    Header,
    QueryParams,
    Search,
    convert_to_multiline_searches,
)
from esclient.client.bulk_indexer import BulkIndexer, BulkIndexerStats
from esclient.client.factory import ClientConfig, new_client
from esclient.client.legacy import LegacyClient
from esclient.client.v710 import ESClient

__all__ = [
    "AddDocumentOptions",
    "BulkIndexer",
    "BulkIndexerAction",
    "BulkIndexerItem",
    "BulkIndexerStats",
    "Client",
    "ClientConfig",
    "Count",
    "ESClient",
    "Header",
    "LegacyClient",
    "QueryParams",
    "Search",
    "convert_to_multiline_searches",
    "new_client",
]
