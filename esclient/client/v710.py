"""
Elasticsearch client backed by the official ``elasticsearch`` package.

ESClient implements the full client interface on top of AsyncElasticsearch.
Every SDK failure is re-raised as a ClientError carrying the status code of
the response, or 0 when no response was received.
"""

import logging
from typing import Any, Awaitable, Iterable, List, Optional
from urllib.parse import urlparse

from elasticsearch import ApiError, AsyncElasticsearch, TransportError

from esclient.awsauth.node import signing_node_class
from esclient.awsauth.signer import Signer
from esclient.client.base import (
    AddDocumentOptions,
    BulkIndexerAction,
    Client,
    Count,
    FailureFunc,
    QueryParams,
    Search,
    SuccessFunc,
)
from esclient.client.bulk_indexer import BulkIndexer
from esclient.errors.exceptions import elasticsearch_error, invalid_configuration
from esclient.health.checker import HealthChecker
from esclient.health.probes import SDKHealthProbe
from esclient.health.state import CheckState

logger = logging.getLogger(__name__)

MSG_BULK_INDEXER_MISSING = "bulk indexer client should not be nil"


def _validate_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise invalid_configuration(
            "failed to specify valid elasticsearch url", details={"url": url}
        )


def _signing_options(
    es_client: Optional[AsyncElasticsearch], client_options: dict, signer: Signer
) -> dict:
    if es_client is not None:
        raise invalid_configuration("cannot sign requests of a pre-built elasticsearch client")
    if client_options.get("http_compress"):
        # The payload hash must cover the bytes sent
        raise invalid_configuration("request signing does not support http_compress")

    options = dict(client_options)
    if "node_class" in options:
        base = options["node_class"]
        if not isinstance(base, type):
            raise invalid_configuration(
                "request signing needs node_class as a class", details={"node_class": base}
            )
        options["node_class"] = signing_node_class(signer, base)
    else:
        options["node_class"] = signing_node_class(signer)
    return options


class ESClient(Client):
    """
    Elasticsearch client built on AsyncElasticsearch.

    Attributes:
        url: Base URL of the cluster
        es_client: The underlying SDK client
        indexes: Indexes the health check requires
        signer: Signs every request sent by the SDK client when set
        bulk_indexer: Created by new_bulk_indexer()
    """

    def __init__(
        self,
        url: str,
        indexes: Iterable[str] = (),
        treat_yellow_as_warning: bool = False,
        fail_fast: bool = True,
        es_client: Optional[AsyncElasticsearch] = None,
        signer: Optional[Signer] = None,
        **client_options: Any,
    ):
        """
        Args:
            url: Base URL of the cluster
            indexes: Indexes the health check requires
            treat_yellow_as_warning: Report a yellow cluster as WARNING
            fail_fast: Stop probing indexes at the first failure
            es_client: Pre-built SDK client; one is created from url if None
            signer: Signs requests of the SDK client created from url
            **client_options: Passed to AsyncElasticsearch (transport_class,
                node_class, request_timeout, ...)

        Raises:
            ClientError: INVALID_CONFIGURATION when url is not a valid
                http(s) URL, or when signing is combined with a pre-built
                client, a node class given by name or http_compress
        """
        _validate_url(url)
        self.url = url.rstrip("/")
        self.indexes = tuple(indexes)
        self.signer = signer
        if signer is not None:
            client_options = _signing_options(es_client, client_options, signer)
        self.es_client = es_client or AsyncElasticsearch(hosts=[self.url], **client_options)
        self.bulk_indexer: Optional[BulkIndexer] = None

        self._health_checker = HealthChecker(
            SDKHealthProbe(self.es_client),
            indexes=self.indexes,
            url=self.url,
            treat_yellow_as_warning=treat_yellow_as_warning,
            fail_fast=fail_fast,
        )

    @property
    def health_checker(self) -> HealthChecker:
        return self._health_checker

    async def _perform(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except ApiError as e:
            logger.error("elasticsearch api call failed", extra={
                "extra_data": {"operation": operation, "http_code": e.meta.status, "error": str(e)}
            })
            raise elasticsearch_error(
                f"failed to {operation}: {e.message}",
                status_code=e.meta.status,
                details={"body": e.body},
            ) from e
        except TransportError as e:
            logger.error("failed to call elasticsearch", extra={
                "extra_data": {"operation": operation, "error": e.message}
            })
            raise elasticsearch_error(
                f"failed to {operation}: {e.message}", status_code=0
            ) from e

    async def get_alias(self) -> dict:
        response = await self._perform("get alias", self.es_client.indices.get_alias())
        return response.body

    async def get_indices(self, index_patterns: List[str]) -> dict:
        response = await self._perform(
            "get indices", self.es_client.indices.get(index=index_patterns)
        )
        return response.body

    async def create_index(self, index_name: str, index_settings: Optional[dict] = None) -> None:
        await self._perform(
            "create index",
            self.es_client.indices.create(index=index_name, body=index_settings),
        )

    async def delete_index(self, index_name: str) -> None:
        await self.delete_indices([index_name])

    async def delete_indices(self, indices: List[str]) -> None:
        await self._perform("delete indices", self.es_client.indices.delete(index=indices))

    async def count(self, count: Count) -> dict:
        response = await self._perform("count", self.es_client.count(body=count.query))
        return response.body

    async def count_indices(self, indices: List[str]) -> dict:
        response = await self._perform("count indices", self.es_client.count(index=indices))
        return response.body

    async def add_document(
        self,
        index_name: str,
        document_id: str,
        document: dict,
        options: Optional[AddDocumentOptions] = None,
    ) -> None:
        options = options or AddDocumentOptions()
        if options.document_type:
            logger.debug("document types are ignored by elasticsearch 7.10 and later", extra={
                "extra_data": {"document_type": options.document_type}
            })

        if options.upsert:
            call = self.es_client.index(index=index_name, id=document_id, document=document)
        else:
            call = self.es_client.create(index=index_name, id=document_id, document=document)
        await self._perform("add document", call)

    async def delete_document(self, index_name: str, document_id: str) -> None:
        await self._perform(
            "delete document", self.es_client.delete(index=index_name, id=document_id)
        )

    async def delete_document_by_query(self, search: Search) -> None:
        await self._perform(
            "delete documents by query",
            self.es_client.delete_by_query(index=search.header.index, body=search.query),
        )

    async def explain(self, document_id: str, search: Search) -> dict:
        response = await self._perform(
            "explain",
            self.es_client.explain(index=search.header.index, id=document_id, body=search.query),
        )
        return response.body

    async def search(self, search: Search) -> dict:
        response = await self._perform(
            "search", self.es_client.search(index=search.header.index, body=search.query)
        )
        return response.body

    async def multi_search(
        self, searches: List[Search], query_params: Optional[QueryParams] = None
    ) -> dict:
        lines: List[dict] = []
        for search in searches:
            lines.append({"index": search.header.index})
            lines.append(search.query)

        kwargs: dict[str, Any] = {}
        if query_params is not None and query_params.enable_total_hits_counter is not None:
            kwargs["rest_total_hits_as_int"] = query_params.enable_total_hits_counter

        response = await self._perform(
            "multi search", self.es_client.msearch(searches=lines, **kwargs)
        )
        return response.body

    async def update_aliases(
        self, alias: str, remove_indices: List[str], add_indices: List[str]
    ) -> None:
        actions: List[dict] = []
        if remove_indices:
            actions.append({"remove": {"indices": remove_indices, "alias": alias}})
        if add_indices:
            actions.append({"add": {"indices": add_indices, "alias": alias}})
        if not actions:
            return

        await self._perform("update aliases", self.es_client.indices.update_aliases(actions=actions))

    async def bulk_update(self, index_name: str, url: str, payload: bytes) -> dict:
        # The bulk body is sent to the client's own cluster; url is not used
        response = await self._perform(
            "bulk update", self.es_client.bulk(index=index_name, operations=payload)
        )
        return response.body

    async def new_bulk_indexer(self, **options: Any) -> None:
        """Create the bulk indexer used by bulk_index_add and bulk_index_close."""
        self.bulk_indexer = BulkIndexer(self.es_client, **options)

    def _require_bulk_indexer(self) -> BulkIndexer:
        if self.bulk_indexer is None:
            raise elasticsearch_error(MSG_BULK_INDEXER_MISSING, status_code=500)
        return self.bulk_indexer

    async def bulk_index_add(
        self,
        action: BulkIndexerAction,
        index: str,
        document_id: str,
        document: Optional[dict],
        on_success: Optional[SuccessFunc] = None,
        on_failure: Optional[FailureFunc] = None,
    ) -> None:
        bulk_indexer = self._require_bulk_indexer()
        await bulk_indexer.add(action, index, document_id, document, on_success, on_failure)

    async def bulk_index_close(self) -> None:
        bulk_indexer = self._require_bulk_indexer()
        await bulk_indexer.close()

    async def checker(self, state: Optional[CheckState] = None) -> CheckState:
        return await self._health_checker.check(state)

    async def close(self) -> None:
        if self.bulk_indexer is not None and not self.bulk_indexer.closed:
            await self.bulk_indexer.close()
        await self.es_client.close()
