"""
Retrying HTTP transport used by the legacy client and the health probe.

HTTPClient wraps an ``httpx.AsyncClient``. Failed calls (transport errors and
5xx responses) are retried with exponential backoff up to ``max_retries``
times, except for request paths registered as "no retry".
"""

import logging
from typing import Iterable, List, Optional

import httpx

from esclient.errors.exceptions import transport_error
from esclient.resilience.retry import RetryConfig, RetryExhaustedException, retry_async

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 30.0
DEFAULT_INITIAL_DELAY = 0.02
DEFAULT_MAX_DELAY = 2.0


class _RetryableStatus(Exception):
    """Raised internally so 5xx responses go through the retry loop."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"server responded with status {response.status_code}")


def _error_text(exc: BaseException) -> str:
    text = str(exc)
    return text if text else type(exc).__name__


class HTTPClient:
    """
    HTTP client with retries and a per-path retry opt-out.

    Attributes:
        max_retries: Number of retries after the first attempt
        timeout: Timeout in seconds applied to each request
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        paths_with_no_retries: Optional[Iterable[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: Optional[float] = DEFAULT_MAX_DELAY,
    ):
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries
        self.timeout = timeout
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self._paths_with_no_retries: List[str] = list(paths_with_no_retries or [])
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def set_max_retries(self, max_retries: int) -> None:
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries

    def get_max_retries(self) -> int:
        return self.max_retries

    def get_paths_with_no_retries(self) -> List[str]:
        """Return a copy of the paths that are never retried."""
        return list(self._paths_with_no_retries)

    def set_paths_with_no_retries(self, paths: Iterable[str]) -> None:
        self._paths_with_no_retries = list(paths)

    def _should_retry(self, request: httpx.Request) -> bool:
        return self.max_retries > 0 and request.url.path not in self._paths_with_no_retries

    async def _send(self, request: httpx.Request, raise_on_server_error: bool) -> httpx.Response:
        response = await self._client.send(request)
        if raise_on_server_error and response.status_code >= 500:
            raise _RetryableStatus(response)
        return response

    async def do(self, request: httpx.Request) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Args:
            request: The request to send

        Returns:
            The response. After exhausting retries on 5xx responses, the last
            5xx response is returned rather than raised.

        Raises:
            ClientError: TRANSPORT_ERROR when no response could be obtained
        """
        operation = f"{request.method} {request.url.path}"

        if not self._should_retry(request):
            try:
                return await self._send(request, raise_on_server_error=False)
            except httpx.HTTPError as e:
                raise transport_error(_error_text(e), details={"url": str(request.url)}) from e

        config = RetryConfig(
            max_attempts=self.max_retries + 1,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            retryable_exceptions=(httpx.TransportError, _RetryableStatus),
        )
        try:
            return await retry_async(
                self._send,
                request,
                True,
                config=config,
                operation_name=operation,
            )
        except RetryExhaustedException as e:
            last = e.last_exception
            if isinstance(last, _RetryableStatus):
                return last.response
            raise transport_error(_error_text(last), details={"url": str(request.url)}) from last
        except httpx.HTTPError as e:
            raise transport_error(_error_text(e), details={"url": str(request.url)}) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
