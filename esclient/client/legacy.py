"""
Legacy Elasticsearch client.

LegacyClient talks to the cluster with direct HTTP calls through the retrying
HTTPClient, optionally signing every request for AWS-hosted clusters. It
covers index management, single document writes, search and count. Alias
management, explain, delete-by-query and the bulk indexer require the SDK
client.
"""

import json
import logging
from typing import Any, Iterable, List, Optional

import httpx

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
    convert_to_multiline_searches,
)
from esclient.errors.codes import ErrorCode
from esclient.errors.exceptions import (
    ClientError,
    transport_error,
    unexpected_status_code,
    unsupported_operation,
)
from esclient.health.checker import HealthChecker
from esclient.health.probes import PATH_HEALTH, HTTPHealthProbe
from esclient.health.state import CheckState
from esclient.transport.http import DEFAULT_TIMEOUT, HTTPClient

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_NDJSON = "application/x-ndjson"
DEFAULT_DOCUMENT_TYPE = "_doc"


class LegacyClient(Client):
    """
    Elasticsearch client issuing direct HTTP calls.

    Attributes:
        url: Base URL of the cluster, without a trailing slash
        http_client: Transport used for every call
        indexes: Indexes the health check requires
        signer: Signs requests when set
    """

    def __init__(
        self,
        url: str,
        http_client: Optional[HTTPClient] = None,
        indexes: Iterable[str] = (),
        signer: Optional[Signer] = None,
        treat_yellow_as_warning: bool = False,
        fail_fast: bool = True,
        max_retries: int = 3,
        request_timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url.rstrip("/")
        self._owns_http_client = http_client is None
        self.http_client = http_client or HTTPClient(
            max_retries=max_retries, timeout=request_timeout
        )
        self.indexes = tuple(indexes)
        self.signer = signer

        # Health checks report the current state, they are never retried
        paths = self.http_client.get_paths_with_no_retries()
        if PATH_HEALTH not in paths:
            paths.append(PATH_HEALTH)
            self.http_client.set_paths_with_no_retries(paths)

        self._health_checker = HealthChecker(
            HTTPHealthProbe(self.http_client, self.url, signer),
            indexes=self.indexes,
            url=self.url,
            treat_yellow_as_warning=treat_yellow_as_warning,
            fail_fast=fail_fast,
        )

    @property
    def health_checker(self) -> HealthChecker:
        return self._health_checker

    async def _call_elastic(
        self,
        url: str,
        method: str,
        payload: Optional[bytes] = None,
        content_type: str = CONTENT_TYPE_JSON,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send one request to the cluster.

        Raises:
            ClientError: TRANSPORT_ERROR when no response was received,
                UNEXPECTED_STATUS_CODE for any non-2xx response
        """
        log_data: dict[str, Any] = {"url": url, "method": method}

        try:
            headers = {"Content-Type": content_type} if payload is not None else None
            request = httpx.Request(method, url, content=payload, headers=headers, params=params)
        except httpx.InvalidURL as e:
            logger.error("failed to create request for call to elasticsearch", extra={
                "extra_data": {**log_data, "error": str(e)}
            })
            raise transport_error(str(e), details=log_data) from e

        if self.signer is not None:
            await self.signer.sign(request)

        try:
            response = await self.http_client.do(request)
        except ClientError as e:
            logger.error("failed to call elasticsearch", extra={
                "extra_data": {**log_data, "error": e.message}
            })
            raise

        log_data["http_code"] = response.status_code
        if response.status_code < 200 or response.status_code >= 300:
            logger.error("unexpected status code returned in response", extra={
                "extra_data": log_data
            })
            raise unexpected_status_code(
                response.status_code, details={**log_data, "body": response.text}
            )

        logger.debug("elasticsearch call succeeded", extra={"extra_data": log_data})
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> dict:
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ClientError(
                ErrorCode.PARSING_ERROR,
                "error parsing elasticsearch response body",
                status_code=response.status_code,
            ) from e

    @staticmethod
    def _encode(body: Optional[dict]) -> Optional[bytes]:
        if body is None:
            return None
        return json.dumps(body).encode()

    async def get_indices(self, index_patterns: List[str]) -> dict:
        response = await self._call_elastic(f"{self.url}/{','.join(index_patterns)}", "GET")
        return self._decode(response)

    async def create_index(self, index_name: str, index_settings: Optional[dict] = None) -> None:
        response = await self._call_elastic(
            f"{self.url}/{index_name}", "PUT", self._encode(index_settings)
        )
        if response.status_code != 200:
            raise unexpected_status_code(
                response.status_code, message=f"failed to create index '{index_name}'"
            )

    async def delete_index(self, index_name: str) -> None:
        await self._call_elastic(f"{self.url}/{index_name}", "DELETE")

    async def delete_indices(self, indices: List[str]) -> None:
        for index_name in indices:
            await self.delete_index(index_name)

    async def add_document(
        self,
        index_name: str,
        document_id: str,
        document: dict,
        options: Optional[AddDocumentOptions] = None,
    ) -> None:
        options = options or AddDocumentOptions()
        document_type = options.document_type or DEFAULT_DOCUMENT_TYPE
        url = f"{self.url}/{index_name}/{document_type}/{document_id}"

        response = await self._call_elastic(url, "PUT", self._encode(document))

        # 200 means an existing document was overwritten
        accepted = (200, 201) if options.upsert else (201,)
        if response.status_code not in accepted:
            raise unexpected_status_code(
                response.status_code, message="unable to add document to elasticsearch"
            )

    async def delete_document(self, index_name: str, document_id: str) -> None:
        await self._call_elastic(
            f"{self.url}/{index_name}/{DEFAULT_DOCUMENT_TYPE}/{document_id}", "DELETE"
        )

    async def bulk_update(self, index_name: str, url: str, payload: bytes) -> dict:
        base_url = url.rstrip("/") if url else self.url
        response = await self._call_elastic(
            f"{base_url}/{index_name}/_bulk", "POST", payload, content_type=CONTENT_TYPE_NDJSON
        )
        return self._decode(response)

    async def search(self, search: Search) -> dict:
        response = await self._call_elastic(
            f"{self.url}/{search.header.index}/_search", "POST", self._encode(search.query)
        )
        return self._decode(response)

    async def multi_search(
        self, searches: List[Search], query_params: Optional[QueryParams] = None
    ) -> dict:
        params = None
        if query_params is not None and query_params.enable_total_hits_counter is not None:
            params = {
                "rest_total_hits_as_int": str(query_params.enable_total_hits_counter).lower()
            }

        response = await self._call_elastic(
            f"{self.url}/_msearch",
            "POST",
            convert_to_multiline_searches(searches),
            content_type=CONTENT_TYPE_NDJSON,
            params=params,
        )
        return self._decode(response)

    async def count(self, count: Count) -> dict:
        response = await self._call_elastic(f"{self.url}/_count", "POST", self._encode(count.query))
        return self._decode(response)

    async def count_indices(self, indices: List[str]) -> dict:
        response = await self._call_elastic(f"{self.url}/{','.join(indices)}/_count", "GET")
        return self._decode(response)

    async def get_alias(self) -> dict:
        raise unsupported_operation("get alias is not supported by the legacy client")

    async def update_aliases(
        self, alias: str, remove_indices: List[str], add_indices: List[str]
    ) -> None:
        raise unsupported_operation("update aliases is not supported by the legacy client")

    async def explain(self, document_id: str, search: Search) -> dict:
        raise unsupported_operation("explain is not supported by the legacy client")

    async def delete_document_by_query(self, search: Search) -> None:
        raise unsupported_operation(
            "delete document by query is not supported by the legacy client"
        )

    async def new_bulk_indexer(self) -> None:
        raise unsupported_operation("bulk indexer is not supported by the legacy client")

    async def bulk_index_add(
        self,
        action: BulkIndexerAction,
        index: str,
        document_id: str,
        document: Optional[dict],
        on_success: Optional[SuccessFunc] = None,
        on_failure: Optional[FailureFunc] = None,
    ) -> None:
        raise unsupported_operation("bulk index add is not supported by the legacy client")

    async def bulk_index_close(self) -> None:
        raise unsupported_operation("bulk index close is not supported by the legacy client")

    async def checker(self, state: Optional[CheckState] = None) -> CheckState:
        return await self._health_checker.check(state)

    async def close(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()
