"""Async client for the external block-metadata service.

Every call maps onto a `FetchOutcome`:
- HTTP 400 → `FetchNotReady` (the service has not indexed the block yet)
- other non-2xx → `FetchFailure("status")`
- connection/timeout problems → `FetchFailure("transport")`
- body that is not JSON or does not match `BlockInfo` → `FetchFailure("decode")`
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from blockwatch.core.models import FetchFailure, FetchNotReady, FetchOutcome, FetchSuccess
from blockwatch.decoding.block_info import BlockInfo

NOT_READY_STATUS = 400


def _unwrap(data: Any) -> Any:
    """Strip a `{"data": ...}` envelope and a single-element list."""
    if isinstance(data, dict) and "data" in data and len(data) == 1:
        data = data["data"]
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    return data


class MetadataFetcher:
    """Fetch builder/proposer metadata for one block.

    Parameters
    ----------
    url_template : str
        Service URL with a `{block}` placeholder.
    timeout_s : float
        Per-call timeout in seconds.
    client : httpx.AsyncClient | None
        Pre-built client; owned by the caller when given.
    """

    def __init__(
        self,
        url_template: str,
        *,
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url_template = url_template
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s))

    def url_for(self, block_number: int) -> str:
        return self.url_template.format(block=block_number)

    async def fetch_block_info(self, block_number: int) -> FetchOutcome:
        """Return the metadata outcome for `block_number`."""
        try:
            r = await self.client.get(self.url_for(block_number))
        except httpx.RequestError as e:
            return FetchFailure("transport", f"{type(e).__name__}: {e}")

        if r.status_code == NOT_READY_STATUS:
            return FetchNotReady(block_number)
        if not r.is_success:
            return FetchFailure("status", f"HTTP {r.status_code}")

        try:
            data = _unwrap(r.json())
        except ValueError as e:
            return FetchFailure("decode", f"response is not JSON: {e}")
        try:
            info = BlockInfo.model_validate(data)
        except ValidationError as e:
            return FetchFailure("decode", f"unexpected payload shape: {e.error_count()} error(s)")

        if info.block_number is not None and info.block_number != block_number:
            return FetchFailure("decode", f"asked for block {block_number}, got {info.block_number}")
        return FetchSuccess(info)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
