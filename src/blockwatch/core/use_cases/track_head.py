from __future__ import annotations

import asyncio

import structlog

from blockwatch.core.block_queue import BlockQueue
from blockwatch.core.errors import RpcError
from blockwatch.core.interfaces import INodeClient
from blockwatch.core.models import PipelineStats

log = structlog.get_logger(__name__)


async def wait_or_stop(stop: asyncio.Event, delay: float) -> None:
    """Sleep `delay` seconds, returning early when `stop` is set."""
    try:
        await asyncio.wait_for(stop.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


class ChainHeadTracker:
    """
    Poll the node head and enqueue every newly confirmed block number.

    The tracker owns the discovery cursor: the highest block number already
    handed to the queue. Each successful poll enqueues `(cursor, head]` in
    ascending order and advances the cursor one number at a time, so a
    full queue suspends the tracker without losing its place.
    """

    def __init__(
        self,
        node: INodeClient,
        queue: BlockQueue,
        *,
        start_height: int,
        poll_interval_s: float = 1.0,
        error_retry_s: float = 1.0,
        confirmations: int = 0,
        stats: PipelineStats | None = None,
    ) -> None:
        self._node = node
        self._queue = queue
        self._cursor = start_height
        self._head: int | None = None
        self._poll_interval_s = poll_interval_s
        self._error_retry_s = error_retry_s
        self._confirmations = confirmations
        self.stats = stats or PipelineStats()

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def head(self) -> int | None:
        return self._head

    async def poll_once(self) -> list[int]:
        """
        Query the head once and enqueue the pending range.

        Raises
        ------
        RpcError
            When the head query fails; the cursor is left untouched.
        """
        self.stats.polls += 1
        reported = await self._node.latest_block()
        # a lower report never reverses already-queued heights
        if self._head is None or reported > self._head:
            self._head = reported

        target = self._head - self._confirmations
        if target <= self._cursor:
            log.debug("no new blocks", reported=reported, head=self._head, cursor=self._cursor)
            return []

        enqueued: list[int] = []
        for n in range(self._cursor + 1, target + 1):
            await self._queue.put(n)
            self._cursor = n
            self.stats.discovered += 1
            enqueued.append(n)
        return enqueued

    async def run(self, stop: asyncio.Event) -> None:
        """Poll until `stop` is set. Head-query failures are logged and retried."""
        log.info("tracker started", cursor=self._cursor, poll_interval_s=self._poll_interval_s)
        while not stop.is_set():
            try:
                enqueued = await self.poll_once()
            except RpcError as e:
                self.stats.poll_failures += 1
                log.warning("head poll failed", kind=e.kind, error=str(e), cursor=self._cursor)
                delay = self._error_retry_s
            else:
                if enqueued:
                    log.debug("blocks discovered", first=enqueued[0], last=enqueued[-1], head=self._head)
                delay = self._poll_interval_s
            await wait_or_stop(stop, delay)
        log.info("tracker stopped", cursor=self._cursor)
