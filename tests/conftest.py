"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Callable, Dict, List, Tuple
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig, ObjectApiResponse
from hypothesis import settings, Verbosity, Phase

# Configure Hypothesis profiles for different environments
# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Disable deadline for async tests
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples, no shrinking
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


ES_URL = "http://localhost:9200"

Handler = Callable[[httpx.Request], httpx.Response]


def api_meta(status: int = 200) -> ApiResponseMeta:
    """Response metadata as produced by elastic_transport."""
    return ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders({"x-elastic-product": "Elasticsearch"}),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )


def api_response(body: dict, status: int = 200) -> ObjectApiResponse:
    """An SDK response object wrapping body."""
    return ObjectApiResponse(body=body, meta=api_meta(status))


class RecordingTransport:
    """
    httpx.MockTransport handler that records requests and answers from a
    route table keyed by (method, path). Unrouted requests get a 404.
    """

    def __init__(self, routes: Dict[Tuple[str, str], object] = None):
        self.routes = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        # A fresh response per call, routes may be answered more than once
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def calls(self, method: str, path: str) -> int:
        return sum(
            1 for r in self.requests if r.method == method and r.url.path == path
        )


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def mock_elasticsearch() -> MagicMock:
    """Create a mock AsyncElasticsearch client for unit tests."""
    mock = MagicMock()
    mock.cluster.health = AsyncMock(return_value=api_response({"status": "green"}))
    mock.indices.exists = AsyncMock(return_value=api_response({}))
    mock.indices.get_alias = AsyncMock(return_value=api_response({}))
    mock.indices.get = AsyncMock(return_value=api_response({}))
    mock.indices.create = AsyncMock(return_value=api_response({"acknowledged": True}))
    mock.indices.delete = AsyncMock(return_value=api_response({"acknowledged": True}))
    mock.indices.update_aliases = AsyncMock(return_value=api_response({"acknowledged": True}))
    mock.search = AsyncMock(return_value=api_response({"hits": {"hits": [], "total": {"value": 0}}}))
    mock.msearch = AsyncMock(return_value=api_response({"responses": []}))
    mock.count = AsyncMock(return_value=api_response({"count": 0}))
    mock.explain = AsyncMock(return_value=api_response({"matched": True}))
    mock.index = AsyncMock(return_value=api_response({"result": "created"}, 201))
    mock.create = AsyncMock(return_value=api_response({"result": "created"}, 201))
    mock.delete = AsyncMock(return_value=api_response({"result": "deleted"}))
    mock.delete_by_query = AsyncMock(return_value=api_response({"deleted": 0}))
    mock.bulk = AsyncMock(return_value=api_response({"errors": False, "items": []}))
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def cluster_health_body() -> Callable[[str], bytes]:
    """Build a cluster health response body for a given status."""
    def build(status: str) -> bytes:
        return (
            '{"cluster_name":"test","status":"%s","timed_out":false,'
            '"number_of_nodes":1,"active_shards_percent_as_number":100.0}' % status
        ).encode()
    return build
