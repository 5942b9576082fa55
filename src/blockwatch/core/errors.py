"""Error taxonomy shared by the clients and the pipeline.

- `RpcError` and its subclasses describe a failed network call
  (transport, status, decode). They are never fatal to the pipeline.
- A block the metadata service has not indexed yet is not an error: the
  fetcher returns a `FetchNotReady` outcome for it.
- `NumericParseError` is carried inside a `ParseResult`, not raised through
  the pipeline.
"""

from __future__ import annotations

from typing import Literal

FailureKind = Literal["transport", "decode", "status"]


class BlockwatchError(Exception):
    """Base class for all blockwatch errors."""


class RpcError(BlockwatchError):
    """A single network call failed."""

    kind: FailureKind = "transport"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(RpcError):
    """Connection, DNS or timeout failure."""

    kind: FailureKind = "transport"


class DecodeError(RpcError):
    """Malformed body or unexpected JSON shape."""

    kind: FailureKind = "decode"


class StatusError(RpcError):
    """Non-2xx HTTP status (400 from the metadata service excepted)."""

    kind: FailureKind = "status"


class NumericParseError(BlockwatchError):
    """A hex or decimal field could not be parsed."""

    def __init__(self, raw: object, reason: str) -> None:
        super().__init__(f"cannot parse {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason
