"""
Client interface shared by every Elasticsearch client generation.

Each generation (legacy direct HTTP, SDK-backed) implements the same async
capability interface and raises ClientError for failed or unsupported
operations.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from esclient.health.state import CheckState


class BulkIndexerAction(str, Enum):
    """Actions accepted by the bulk indexer."""
    CREATE = "create"
    DELETE = "delete"
    INDEX = "index"
    UPDATE = "update"


@dataclass
class AddDocumentOptions:
    """
    Options for adding a document.

    Attributes:
        document_type: Mapping type, only used by clusters that still have types
        upsert: Update the document when it already exists
    """
    document_type: str = ""
    upsert: bool = False


@dataclass
class Header:
    """Multi-search header line."""
    index: str


@dataclass
class Search:
    """A search request: the target header and the request body."""
    header: Header
    query: dict


@dataclass
class Count:
    """A count request with its request body."""
    query: dict


@dataclass
class QueryParams:
    """Optional query parameters for multi-search."""
    enable_total_hits_counter: Optional[bool] = None


@dataclass
class BulkIndexerItem:
    """An item queued on the bulk indexer."""
    action: BulkIndexerAction
    index: str
    document_id: str
    document: Optional[dict] = None


# Callback signatures for the outcome of bulk indexer items
SuccessFunc = Callable[[BulkIndexerItem, dict], Optional[Awaitable[None]]]
FailureFunc = Callable[[BulkIndexerItem, dict, Optional[Exception]], Optional[Awaitable[None]]]


def convert_to_multiline_searches(searches: Sequence[Search]) -> bytes:
    """Build the NDJSON body of a multi-search request."""
    body = bytearray()
    for search in searches:
        body += json.dumps(asdict(search.header), separators=(",", ":")).encode()
        body += b"\n"
        body += json.dumps(search.query, separators=(",", ":")).encode()
        body += b"\n"
    return bytes(body)


class Client(ABC):
    """Operations every Elasticsearch client generation exposes."""

    @abstractmethod
    async def add_document(
        self,
        index_name: str,
        document_id: str,
        document: dict,
        options: Optional[AddDocumentOptions] = None,
    ) -> None: ...

    @abstractmethod
    async def bulk_update(self, index_name: str, url: str, payload: bytes) -> dict: ...

    @abstractmethod
    async def bulk_index_add(
        self,
        action: BulkIndexerAction,
        index: str,
        document_id: str,
        document: Optional[dict],
        on_success: Optional[SuccessFunc] = None,
        on_failure: Optional[FailureFunc] = None,
    ) -> None: ...

    @abstractmethod
    async def bulk_index_close(self) -> None: ...

    @abstractmethod
    async def checker(self, state: Optional[CheckState] = None) -> CheckState: ...

    @abstractmethod
    async def create_index(self, index_name: str, index_settings: Optional[dict] = None) -> None: ...

    @abstractmethod
    async def delete_document(self, index_name: str, document_id: str) -> None: ...

    @abstractmethod
    async def delete_document_by_query(self, search: Search) -> None: ...

    @abstractmethod
    async def delete_index(self, index_name: str) -> None: ...

    @abstractmethod
    async def delete_indices(self, indices: List[str]) -> None: ...

    @abstractmethod
    async def get_alias(self) -> dict: ...

    @abstractmethod
    async def get_indices(self, index_patterns: List[str]) -> dict: ...

    @abstractmethod
    async def new_bulk_indexer(self) -> None: ...

    @abstractmethod
    async def update_aliases(
        self, alias: str, remove_indices: List[str], add_indices: List[str]
    ) -> None: ...

    @abstractmethod
    async def multi_search(
        self, searches: List[Search], query_params: Optional[QueryParams] = None
    ) -> dict: ...

    @abstractmethod
    async def search(self, search: Search) -> dict: ...

    @abstractmethod
    async def count_indices(self, indices: List[str]) -> dict: ...

    @abstractmethod
    async def count(self, count: Count) -> dict: ...

    @abstractmethod
    async def explain(self, document_id: str, search: Search) -> dict: ...

    async def close(self) -> None:
        """Release network resources held by the client."""

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
