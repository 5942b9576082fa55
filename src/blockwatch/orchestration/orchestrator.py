"""Pipeline orchestration: tracker → queue → enricher → emitter.

This module provides two layers:

1) `BlockPipeline`:
   - Wires a `ChainHeadTracker` and a `BlockEnricher` around one bounded
     `BlockQueue` and runs them as two asyncio tasks.
   - Depends ONLY on interfaces (INodeClient, IBlockInfoProvider,
     IRecordSink); it does not open network clients.
   - `stop()` ends discovery; already-queued blocks are drained before
     `run()` returns. A block still not indexed at that point is skipped
     rather than retried.

2) `watch_blocks(...)` (convenience wrapper):
   - Builds the concrete clients (RPC, MetadataFetcher, RecordEmitter) from
     a `PipelineConfig`, installs SIGINT/SIGTERM handlers, and closes the
     clients on exit.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable

import structlog

from blockwatch.clients.metadata import MetadataFetcher
from blockwatch.clients.rpc import RPC
from blockwatch.core.block_queue import BlockQueue
from blockwatch.core.config import PipelineConfig
from blockwatch.core.interfaces import IBlockInfoProvider, INodeClient, IRecordSink
from blockwatch.core.models import PipelineStats
from blockwatch.core.use_cases.enrich_block import BlockEnricher
from blockwatch.core.use_cases.track_head import ChainHeadTracker
from blockwatch.emission.emitter import RecordEmitter

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# 1) Pipeline over interfaces
# ---------------------------------------------------------------------------


class BlockPipeline:
    """Two concurrent units joined by a bounded queue."""

    def __init__(
        self,
        *,
        config: PipelineConfig,
        node: INodeClient,
        metadata: IBlockInfoProvider,
        sink: IRecordSink,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.stats = PipelineStats()
        self.queue = BlockQueue(config.queue_capacity)
        self._stop = asyncio.Event()
        self.tracker = ChainHeadTracker(
            node,
            self.queue,
            start_height=config.start_height,
            poll_interval_s=config.poll_interval_s,
            error_retry_s=config.error_retry_s,
            confirmations=config.confirmations,
            stats=self.stats,
        )
        self.enricher = BlockEnricher(
            node,
            metadata,
            sink,
            not_ready_retry_s=config.not_ready_retry_s,
            max_not_ready_retries=config.max_not_ready_retries,
            priority_class=config.priority_class,
            stats=self.stats,
            sleep=sleep,
            stop=self._stop,
        )

    def stop(self) -> None:
        """Stop discovery; the enricher drains what is already queued and stops retrying."""
        if not self._stop.is_set():
            log.info("stop requested", cursor=self.tracker.cursor, queued=self.queue.qsize())
        self._stop.set()

    async def run(self) -> PipelineStats:
        """Run until `stop()` is called and the queue is drained."""
        enricher_task = asyncio.create_task(self.enricher.run(self.queue), name="enricher")
        try:
            await self.tracker.run(self._stop)
        finally:
            await self.queue.close()
            await enricher_task
        return self.stats


# ---------------------------------------------------------------------------
# 2) Convenience wrapper with concrete clients
# ---------------------------------------------------------------------------


def _install_signal_handlers(pipeline: BlockPipeline) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, pipeline.stop)
        except (NotImplementedError, RuntimeError):
            # platforms without loop signal support fall back to KeyboardInterrupt
            pass


async def watch_blocks(
    config: PipelineConfig,
    *,
    sink: IRecordSink | None = None,
    install_signal_handlers: bool = True,
) -> PipelineStats:
    """Build the concrete clients from `config` and run the pipeline until stopped."""
    node = RPC(config.node_url, timeout_s=config.request_timeout_s)
    metadata = MetadataFetcher(config.metadata_url, timeout_s=config.request_timeout_s)
    pipeline = BlockPipeline(
        config=config,
        node=node,
        metadata=metadata,
        sink=sink or RecordEmitter(),
    )
    if install_signal_handlers:
        _install_signal_handlers(pipeline)
    try:
        return await pipeline.run()
    finally:
        await node.aclose()
        await metadata.aclose()
