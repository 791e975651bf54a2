"""
Buffered bulk indexer backed by the Elasticsearch bulk helpers.

Items are buffered and sent through ``async_streaming_bulk`` when the buffer
reaches ``flush_items``, every ``flush_interval`` seconds, and on close. Each
item reports its own outcome through optional success and failure callbacks.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from elasticsearch import AsyncElasticsearch
from elasticsearch.helpers import async_streaming_bulk

from esclient.client.base import BulkIndexerAction, BulkIndexerItem, FailureFunc, SuccessFunc
from esclient.errors.exceptions import elasticsearch_error

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL = 30.0
DEFAULT_FLUSH_ITEMS = 500


@dataclass
class BulkIndexerStats:
    """Counters describing the work done by a bulk indexer."""
    num_added: int = 0
    num_flushed: int = 0
    num_failed: int = 0
    num_requests: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "num_added": self.num_added,
            "num_flushed": self.num_flushed,
            "num_failed": self.num_failed,
            "num_requests": self.num_requests,
        }


_Entry = Tuple[BulkIndexerItem, Optional[SuccessFunc], Optional[FailureFunc]]


def _to_bulk_action(item: BulkIndexerItem) -> dict[str, Any]:
    action: dict[str, Any] = {
        "_op_type": item.action.value,
        "_index": item.index,
        "_id": item.document_id,
    }
    if item.action is BulkIndexerAction.DELETE:
        return action

    source = item.document or {}
    if item.action is BulkIndexerAction.UPDATE and not ({"doc", "script"} & source.keys()):
        source = {"doc": source}
    action["_source"] = source
    return action


async def _invoke(callback: Any, *args: Any) -> None:
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("bulk indexer callback failed")


class BulkIndexer:
    """
    Buffering bulk indexer.

    Attributes:
        es_client: Client the bulk requests are sent with
        flush_interval: Seconds between periodic flushes
        flush_items: Buffer size that triggers a flush
    """

    def __init__(
        self,
        es_client: AsyncElasticsearch,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        flush_items: int = DEFAULT_FLUSH_ITEMS,
    ):
        if flush_items < 1:
            raise ValueError("flush_items must be at least 1")
        self.es_client = es_client
        self.flush_interval = flush_interval
        self.flush_items = flush_items
        self.stats = BulkIndexerStats()
        self._buffer: List[_Entry] = []
        self._lock = asyncio.Lock()
        self._closed = False
        self._ticker: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def add(
        self,
        action: BulkIndexerAction,
        index: str,
        document_id: str,
        document: Optional[dict] = None,
        on_success: Optional[SuccessFunc] = None,
        on_failure: Optional[FailureFunc] = None,
    ) -> None:
        """
        Queue one item.

        Raises:
            ClientError: The indexer has been closed
        """
        if self._closed:
            raise elasticsearch_error("bulk indexer is closed", status_code=500)

        self._start_ticker()
        item = BulkIndexerItem(
            action=BulkIndexerAction(action), index=index, document_id=document_id, document=document
        )
        self._buffer.append((item, on_success, on_failure))
        self.stats.num_added += 1

        if len(self._buffer) >= self.flush_items:
            await self.flush()

    async def flush(self) -> None:
        """Send every buffered item."""
        async with self._lock:
            batch, self._buffer = self._buffer, []
            if batch:
                await self._send(batch)

    async def close(self) -> None:
        """Stop the periodic flush and send the remaining items."""
        if self._closed:
            return
        self._closed = True

        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        await self.flush()
        logger.info("bulk indexer closed", extra={"extra_data": self.stats.to_dict()})

    def _start_ticker(self) -> None:
        if self._ticker is None and self.flush_interval > 0:
            self._ticker = asyncio.create_task(self._run_ticker())

    async def _run_ticker(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            try:
                await self.flush()
            except Exception:
                logger.exception("periodic bulk flush failed")

    async def _send(self, batch: List[_Entry]) -> None:
        self.stats.num_requests += 1
        actions = [_to_bulk_action(item) for item, _, _ in batch]

        position = 0
        async for ok, result in async_streaming_bulk(
            self.es_client,
            actions,
            chunk_size=len(actions),
            raise_on_error=False,
            raise_on_exception=False,
        ):
            item, on_success, on_failure = batch[position]
            position += 1
            response_item = next(iter(result.values()), {})

            if ok:
                self.stats.num_flushed += 1
                if on_success is not None:
                    await _invoke(on_success, item, response_item)
                continue

            self.stats.num_failed += 1
            error = response_item.get("exception")
            logger.error("bulk indexer item failed", extra={
                "extra_data": {
                    "index": item.index,
                    "document_id": item.document_id,
                    "action": item.action.value,
                    "status": response_item.get("status"),
                    "error": response_item.get("error"),
                }
            })
            if on_failure is not None:
                await _invoke(on_failure, item, response_item, error)
