from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from blockwatch.clients.rpc import header_from_result
from blockwatch.core.errors import RpcError
from blockwatch.core.models import BlockBody, BlockHeader, BlockRecord, FetchOutcome

BEAVER_EXTRA = "0x" + b"beaverbuild.org".hex()


def make_block_json(number: int, *, tx_count: int = 2, extra_data: str = BEAVER_EXTRA) -> dict[str, Any]:
    """A JSON-RPC block object as returned by eth_getBlockByNumber(n, true)."""
    return {
        "number": hex(number),
        "hash": "0x" + f"{number:064x}",
        "miner": "0x95222290DD7278Aa3Ddd389Cc1E1d165CC4BAfe5",
        "gasUsed": hex(15_000_000),
        "baseFeePerGas": hex(25 * 10**9),
        "extraData": extra_data,
        "timestamp": hex(1_690_000_000),
        "transactions": [
            {"hash": "0x" + f"{i:064x}", "maxPriorityFeePerGas": hex(10**9)} for i in range(tx_count)
        ],
    }


def make_info_json(number: int, **overrides: Any) -> dict[str, Any]:
    """A metadata-service payload for `number`."""
    payload: dict[str, Any] = {
        "block_number": number,
        "block_hash": "0x" + f"{number:064x}",
        "builder": "beaverbuild",
        "builder_pubkey": "0x96a59d355b1f65e270b29981dd113625732539e955a1beeecbc471dd0196c4804574ff871d47ed34ff6d921061e9fc27",
        "proposer_pubkey": "0xa1d1ad0714035353258038e964ae9675dc0252ee22cea896825c01458e1807bfad2f9969338798548d9858a571f7425c",
        "payment": "0.09",
        "payout": "0.088",
        "block_value": "3.0",
        "priority_fee": "0.2",
        "tx_count": 2,
        "txs": [{"hash": "0x01", "type": "mev", "value": "1.5", "tip": "0.1"}],
    }
    payload.update(overrides)
    return payload


class FakeNode:
    """In-memory INodeClient: a scripted head sequence and per-block JSON."""

    def __init__(self, heads: list[int | Exception] | None = None) -> None:
        self.heads = list(heads or [])
        self.blocks: dict[int, dict[str, Any]] = {}
        self.failures: dict[int, RpcError] = {}
        self.head_calls = 0

    async def latest_block(self) -> int:
        self.head_calls += 1
        nxt = self.heads.pop(0) if len(self.heads) > 1 else self.heads[0]
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def _block(self, n: int) -> dict[str, Any]:
        if n in self.failures:
            raise self.failures[n]
        return self.blocks.get(n) or make_block_json(n)

    async def get_header_by_number(self, block_number: int) -> BlockHeader:
        return header_from_result(self._block(block_number), block_number)

    async def get_block_by_number(self, block_number: int, full_transactions: bool = True) -> BlockBody:
        raw = self._block(block_number)
        return BlockBody(
            header=header_from_result(raw, block_number),
            transactions=tuple(raw["transactions"]),
        )


class FakeMetadata:
    """In-memory IBlockInfoProvider replaying scripted outcomes per block."""

    def __init__(self, default: Callable[[int], FetchOutcome]) -> None:
        self.default = default
        self.scripted: dict[int, list[FetchOutcome]] = {}
        self.calls: list[int] = []

    async def fetch_block_info(self, block_number: int) -> FetchOutcome:
        self.calls.append(block_number)
        queue = self.scripted.get(block_number)
        if queue:
            return queue.pop(0)
        return self.default(block_number)


class ListSink:
    """IRecordSink collecting records, with an optional hook per record."""

    def __init__(self, on_emit: Callable[[BlockRecord], None] | None = None) -> None:
        self.records: list[BlockRecord] = []
        self.on_emit = on_emit

    def emit(self, record: BlockRecord) -> None:
        self.records.append(record)
        if self.on_emit is not None:
            self.on_emit(record)


class FakeClock:
    """Virtual time advanced only by the injected sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def mock_rpc():
    rpc = AsyncMock()
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.aclose = AsyncMock()
    return rpc


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()
