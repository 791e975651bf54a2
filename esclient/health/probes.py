"""
Probes issue the two calls the health checker needs: the cluster health
request and the per-index existence request.

Both probes return a ProbeResponse for any HTTP response and raise a
TRANSPORT_ERROR ClientError when no response could be obtained.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx
from elasticsearch import ApiError, AsyncElasticsearch, TransportError

from esclient.awsauth.signer import Signer
from esclient.errors.exceptions import transport_error
from esclient.transport.http import HTTPClient

logger = logging.getLogger(__name__)

PATH_HEALTH = "/_cluster/health"


@dataclass
class ProbeResponse:
    """
    Response of a probe call.

    Attributes:
        status_code: HTTP status code of the response
        body: Raw body (bytes) or a body already decoded by the SDK
    """
    status_code: int
    body: Any = b""


class HealthProbe(Protocol):
    async def cluster_health(self) -> ProbeResponse: ...

    async def index_exists(self, index: str) -> ProbeResponse: ...


class HTTPHealthProbe:
    """Probe issuing direct HTTP calls through an HTTPClient."""

    def __init__(self, http_client: HTTPClient, url: str, signer: Optional[Signer] = None):
        self.http_client = http_client
        self.url = url.rstrip("/")
        self.signer = signer

    async def _call(self, method: str, path: str) -> ProbeResponse:
        url = self.url + path
        try:
            request = httpx.Request(method, url)
        except httpx.InvalidURL as e:
            logger.error("failed to create request for call to elasticsearch", extra={
                "extra_data": {"url": url, "method": method, "error": str(e)}
            })
            raise transport_error(str(e), details={"url": url}) from e

        if self.signer is not None:
            await self.signer.sign(request)

        response = await self.http_client.do(request)
        return ProbeResponse(status_code=response.status_code, body=response.content)

    async def cluster_health(self) -> ProbeResponse:
        return await self._call("GET", PATH_HEALTH)

    async def index_exists(self, index: str) -> ProbeResponse:
        return await self._call("HEAD", "/" + index)


class SDKHealthProbe:
    """Probe backed by the official Elasticsearch client."""

    def __init__(self, es_client: AsyncElasticsearch):
        self.es_client = es_client

    async def cluster_health(self) -> ProbeResponse:
        try:
            response = await self.es_client.cluster.health()
        except ApiError as e:
            return ProbeResponse(status_code=e.meta.status, body=e.body)
        except TransportError as e:
            raise transport_error(e.message or type(e).__name__) from e
        return ProbeResponse(status_code=response.meta.status, body=response.body)

    async def index_exists(self, index: str) -> ProbeResponse:
        try:
            response = await self.es_client.indices.exists(index=index)
        except ApiError as e:
            return ProbeResponse(status_code=e.meta.status, body=e.body)
        except TransportError as e:
            raise transport_error(e.message or type(e).__name__) from e
        return ProbeResponse(status_code=response.meta.status)
