from __future__ import annotations

from typing import Protocol, runtime_checkable

from blockwatch.core.models import BlockBody, BlockHeader, BlockRecord, FetchOutcome


# ---------------------------------------------------------------------------
# INodeClient
# ---------------------------------------------------------------------------

@runtime_checkable
class INodeClient(Protocol):
    """
    Abstract provider of chain data from a JSON-RPC node.

    Domain expectations:
    - Failures surface as `RpcError` subclasses (transport/status/decode).
    - No retry is performed by the provider; retries are caller policy.
    """

    async def latest_block(self) -> int:
        """Return the current chain head height."""
        ...

    async def get_header_by_number(self, block_number: int) -> BlockHeader:
        """Return the header of one block."""
        ...

    async def get_block_by_number(self, block_number: int, full_transactions: bool = True) -> BlockBody:
        """Return one block including its transactions."""
        ...


# ---------------------------------------------------------------------------
# IBlockInfoProvider
# ---------------------------------------------------------------------------

@runtime_checkable
class IBlockInfoProvider(Protocol):
    """
    Abstract source of per-block builder/proposer metadata.

    Domain expectations:
    - It never raises for network problems: every call maps to a
      `FetchOutcome` (success, not-ready, or failure with a kind).
    """

    async def fetch_block_info(self, block_number: int) -> FetchOutcome:
        ...


# ---------------------------------------------------------------------------
# IRecordSink
# ---------------------------------------------------------------------------

@runtime_checkable
class IRecordSink(Protocol):
    """
    Final destination of finished block records.

    Implementations:
    - RecordEmitter (structured log line)
    - In-memory list for testing
    """

    def emit(self, record: BlockRecord) -> None:
        ...
