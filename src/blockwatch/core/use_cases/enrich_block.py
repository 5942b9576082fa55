"""Per-block enrichment: fetch → classify → aggregate → emit.

Each block number runs through an explicit state machine:

    FETCHING ──► CLASSIFYING ──► EMITTED
       │  ▲
       │  └── RETRYING   (metadata service has not indexed the block yet)
       └────► SKIPPED    (any other failure; the block is dropped)

Blocks are processed strictly one at a time, so a block stuck in RETRYING
holds back every later block. Once the stop event is set a block that is
still not indexed is skipped instead of retried, so draining always ends.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from blockwatch.constants import WEI_PER_GWEI
from blockwatch.core.aggregation import aggregate_transactions
from blockwatch.core.block_queue import BlockQueue
from blockwatch.core.errors import NumericParseError, RpcError
from blockwatch.core.interfaces import IBlockInfoProvider, INodeClient, IRecordSink
from blockwatch.core.models import (
    BlockBody,
    BlockHeader,
    BlockRecord,
    FetchFailure,
    FetchNotReady,
    FetchSuccess,
    PipelineStats,
)
from blockwatch.decoding.block_info import BlockInfo
from blockwatch.decoding.utils import decode_extra_data, parse_numeric

log = structlog.get_logger(__name__)


class EnrichState(enum.Enum):
    FETCHING = "fetching"
    RETRYING = "retrying"
    CLASSIFYING = "classifying"
    EMITTED = "emitted"
    SKIPPED = "skipped"


@dataclass(slots=True)
class _Fetched:
    """Everything FETCHING gathered for one block."""

    info: BlockInfo
    header: BlockHeader
    body: BlockBody


class BlockEnricher:
    """
    Build and emit one `BlockRecord` per queued block number.

    Parameters
    ----------
    node : INodeClient
        Source of headers and full blocks.
    metadata : IBlockInfoProvider
        Source of builder/proposer metadata and transaction classes.
    sink : IRecordSink
        Receives each finished record.
    not_ready_retry_s : float
        Delay before re-fetching a block the metadata service has not indexed.
    max_not_ready_retries : int | None
        Give up (skip) after this many retries; None retries forever.
    priority_class : str
        Transaction class whose ratios are reported.
    sleep : Callable[[float], Awaitable[None]]
        Delay function, injectable for tests.
    stop : asyncio.Event | None
        Pipeline stop event. It cuts a retry delay short and ends retrying.
    """

    def __init__(
        self,
        node: INodeClient,
        metadata: IBlockInfoProvider,
        sink: IRecordSink,
        *,
        not_ready_retry_s: float = 12.0,
        max_not_ready_retries: int | None = None,
        priority_class: str = "mev",
        stats: PipelineStats | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        stop: asyncio.Event | None = None,
    ) -> None:
        self._node = node
        self._metadata = metadata
        self._sink = sink
        self._retry_s = not_ready_retry_s
        self._max_retries = max_not_ready_retries
        self._priority_class = priority_class
        self._sleep = sleep
        self._stop = stop
        self.stats = stats or PipelineStats()

    async def process(self, block_number: int) -> BlockRecord | None:
        """Run one block through the state machine; None when it was skipped."""
        blog = log.bind(block_number=block_number)
        state = EnrichState.FETCHING
        retries = 0
        fetched: _Fetched | None = None
        record: BlockRecord | None = None

        while True:
            match state:
                case EnrichState.FETCHING:
                    fetched, state = await self._fetch(block_number, blog)

                case EnrichState.RETRYING:
                    if self._stop is not None and self._stop.is_set():
                        blog.warning("stop requested, abandoning block not indexed yet", retries=retries)
                        state = EnrichState.SKIPPED
                        continue
                    if self._max_retries is not None and retries >= self._max_retries:
                        blog.error("block still not indexed, giving up", retries=retries)
                        state = EnrichState.SKIPPED
                        continue
                    retries += 1
                    self.stats.not_ready_retries += 1
                    blog.info("block not indexed yet, retrying", attempt=retries, delay_s=self._retry_s)
                    await self._pause(self._retry_s)
                    state = EnrichState.FETCHING

                case EnrichState.CLASSIFYING if fetched is not None:
                    record = self._build_record(block_number, fetched, blog)
                    state = EnrichState.EMITTED

                case EnrichState.EMITTED if record is not None:
                    self._sink.emit(record)
                    self.stats.emitted += 1
                    self.stats.last_emitted = block_number
                    return record

                case EnrichState.SKIPPED:
                    self.stats.skipped += 1
                    return None

                case _:
                    raise RuntimeError(f"enricher reached {state} without its data")

    async def _pause(self, delay: float) -> None:
        """Sleep `delay` seconds, returning early once the stop event is set."""
        if self._stop is None:
            await self._sleep(delay)
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        stopper = asyncio.ensure_future(self._stop.wait())
        try:
            await asyncio.wait((sleeper, stopper), return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            stopper.cancel()

    async def run(self, queue: BlockQueue) -> None:
        """Consume `queue` sequentially until it is closed and drained."""
        log.info("enricher started")
        while True:
            block_number = await queue.get()
            if block_number is None:
                break
            try:
                await self.process(block_number)
            except Exception:
                self.stats.skipped += 1
                log.exception("block processing crashed", block_number=block_number)
            finally:
                queue.task_done()
        log.info("enricher stopped", emitted=self.stats.emitted, skipped=self.stats.skipped)

    # ------------------------------------------------------------------
    # FETCHING
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        block_number: int,
        blog: structlog.typing.FilteringBoundLogger,
    ) -> tuple[_Fetched | None, EnrichState]:
        outcome = await self._metadata.fetch_block_info(block_number)
        match outcome:
            case FetchNotReady():
                return None, EnrichState.RETRYING
            case FetchFailure(kind=kind, error=error):
                blog.error("metadata fetch failed, skipping block", kind=kind, error=error)
                return None, EnrichState.SKIPPED
            case FetchSuccess(payload=info):
                pass
            case _:
                raise TypeError(f"unexpected fetch outcome: {outcome!r}")

        try:
            header = await self._node.get_header_by_number(block_number)
            body = await self._node.get_block_by_number(block_number, full_transactions=True)
        except RpcError as e:
            blog.error("node fetch failed, skipping block", kind=e.kind, error=str(e))
            return None, EnrichState.SKIPPED
        return _Fetched(info=info, header=header, body=body), EnrichState.CLASSIFYING

    # ------------------------------------------------------------------
    # CLASSIFYING
    # ------------------------------------------------------------------

    @staticmethod
    def _number(field: str, raw: Any, blog: structlog.typing.FilteringBoundLogger) -> float:
        """Parse one numeric field; failures degrade to the sentinel and are logged."""
        res = parse_numeric(raw)
        if res.error is not None:
            blog.warning("numeric field unparsable, using sentinel", field=field, raw=repr(raw), error=res.error.reason)
        return res.value

    def _build_record(
        self,
        block_number: int,
        fetched: _Fetched,
        blog: structlog.typing.FilteringBoundLogger,
    ) -> BlockRecord:
        info, header, body = fetched.info, fetched.header, fetched.body

        if info.block_hash and info.block_hash.lower() != header.hash:
            blog.warning("metadata block hash differs from node", node_hash=header.hash, metadata_hash=info.block_hash)

        if body.transactions:
            tx_count = len(body.transactions)
        else:
            tx_count = info.tx_count if info.tx_count is not None else 0

        classified = [(tx.tx_type, self._number("tx.value", tx.value, blog)) for tx in info.txs]
        block_value = self._number("block_value", info.block_value, blog)
        metrics = aggregate_transactions(
            classified,
            total_value=block_value,
            total_tx_count=tx_count,
            priority_class=self._priority_class,
        )

        if info.priority_fee is not None:
            priority_fee = self._number("priority_fee", info.priority_fee, blog)
        else:
            priority_fee = sum(self._number("tx.tip", tx.tip, blog) for tx in info.txs)

        # base_fee is in gwei; the metadata fallback is expected in gwei already
        if header.base_fee_per_gas is not None:
            base_fee = header.base_fee_per_gas / WEI_PER_GWEI
        else:
            base_fee = self._number("base_fee", info.base_fee, blog)

        try:
            extra_data = decode_extra_data(header.extra_data)
        except NumericParseError as e:
            blog.warning("extraData not decodable, keeping raw hex", error=e.reason)
            extra_data = header.extra_data

        return BlockRecord(
            block_number=block_number,
            block_hash=header.hash,
            builder=info.builder or header.miner,
            builder_pubkey=info.builder_pubkey,
            proposer_pubkey=info.proposer_pubkey,
            tx_count=tx_count,
            gas_used=header.gas_used,
            base_fee=base_fee,
            priority_fee=priority_fee,
            payment=self._number("payment", info.payment, blog),
            payout=self._number("payout", info.payout, blog),
            block_value=block_value,
            extra_data=extra_data,
            timestamp=header.timestamp,
            metrics=metrics,
        )
