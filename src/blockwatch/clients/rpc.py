"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with per-call timeouts/connection limits
- `call`: the raw envelope round-trip, mapping every failure onto the
  `RpcError` taxonomy (transport / status / decode)
- Helpers returning `BlockHeader` / `BlockBody` records

No retry is performed here; retrying is a caller policy.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from blockwatch.constants import ETH_BLOCK_NUMBER, ETH_GET_BLOCK_BY_NUMBER, ETH_GET_HEADER_BY_NUMBER
from blockwatch.core.errors import DecodeError, NumericParseError, StatusError, TransportError
from blockwatch.core.models import BlockBody, BlockHeader
from blockwatch.decoding.utils import hex_to_int, int_to_hex


def header_from_result(result: Any, block_number: int) -> BlockHeader:
    """Map a header/block JSON-RPC result onto a `BlockHeader`."""
    if not isinstance(result, dict):
        raise DecodeError(f"block {block_number}: empty or malformed result")
    try:
        base_fee = result.get("baseFeePerGas")
        header = BlockHeader(
            number=hex_to_int(result["number"]),
            hash=str(result["hash"]).lower(),
            miner=str(result.get("miner") or "").lower(),
            gas_used=hex_to_int(result["gasUsed"]),
            base_fee_per_gas=hex_to_int(base_fee) if base_fee is not None else None,
            extra_data=str(result.get("extraData") or "0x"),
            timestamp=hex_to_int(result["timestamp"]),
        )
    except KeyError as e:
        raise DecodeError(f"block {block_number}: missing field {e}") from e
    except NumericParseError as e:
        raise DecodeError(f"block {block_number}: {e}") from e
    if header.number != block_number:
        raise DecodeError(f"asked for block {block_number}, node returned {header.number}")
    return header


class RPC:
    """Minimal async JSON-RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    timeout_s : float
        Per-call timeout in seconds (connect/read/write/pool).
    max_connections : int
        Maximum connections to keep in the pool.
    client : httpx.AsyncClient | None
        Pre-built client (e.g. with a mock transport); owned by the caller.
    """

    request_id = 1

    def __init__(
        self,
        url: str,
        *,
        timeout_s: float = 5.0,
        max_connections: int = 8,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )

    async def call(self, method: str, params: Sequence[Any] = ()) -> Any:
        """Send one JSON-RPC request and return its `result` member."""
        if not method:
            raise ValueError("method must be a non-empty string")
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": self.request_id,
        }
        try:
            r = await self.client.post(self.url, json=payload)
        except httpx.RequestError as e:
            raise TransportError(f"{method}: {type(e).__name__}: {e}") from e

        if not r.is_success:
            raise StatusError(f"{method}: HTTP {r.status_code}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise DecodeError(f"{method}: response is not JSON") from e
        if not isinstance(data, dict):
            raise DecodeError(f"{method}: response is not a JSON object")
        if data.get("error") is not None:
            err = data["error"]
            if isinstance(err, dict):
                raise DecodeError(f"RPC error: {err.get('code')} {err.get('message')}")
            raise DecodeError(f"RPC error: {err}")
        if "result" not in data:
            raise DecodeError(f"{method}: response has no result")
        return data["result"]

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        result = await self.call(ETH_BLOCK_NUMBER)
        if not isinstance(result, str):
            raise DecodeError(f"{ETH_BLOCK_NUMBER}: expected hex string, got {result!r}")
        try:
            return hex_to_int(result)
        except NumericParseError as e:
            raise DecodeError(f"{ETH_BLOCK_NUMBER}: {e}") from e

    async def get_header_by_number(self, block_number: int) -> BlockHeader:
        """Return the header of `block_number`."""
        result = await self.call(ETH_GET_HEADER_BY_NUMBER, [int_to_hex(block_number)])
        return header_from_result(result, block_number)

    async def get_block_by_number(self, block_number: int, full_transactions: bool = True) -> BlockBody:
        """Return `block_number` with its transactions (objects, or hashes when not full)."""
        result = await self.call(ETH_GET_BLOCK_BY_NUMBER, [int_to_hex(block_number), full_transactions])
        header = header_from_result(result, block_number)
        raw_txs = result.get("transactions") or []
        if not isinstance(raw_txs, list):
            raise DecodeError(f"block {block_number}: transactions is not a list")
        txs = tuple(tx if isinstance(tx, dict) else {"hash": tx} for tx in raw_txs)
        return BlockBody(header=header, transactions=txs)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
