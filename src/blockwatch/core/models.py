"""Core data models for the block-watch pipeline.

This module defines:
- `BlockHeader` / `BlockBody`: node data, minimally normalized.
- `FetchSuccess` / `FetchNotReady` / `FetchFailure`: tagged outcome of one
  metadata call (`FetchOutcome`).
- `BlockMetrics`: derived per-class counters and ratios.
- `BlockRecord`: the immutable per-block result handed to the emitter.
- `PipelineStats`: counters mutated by the tracker and the enricher.

Design notes
------------
- Quantities from the node stay as `int` until the record is built.
- Metadata figures are floats after `parse_numeric` (sentinel 0.0).
- `BlockRecord.to_event` is the only place the emitted field set is defined.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from blockwatch.constants import LOG_VERSION
from blockwatch.core.errors import FailureKind
from blockwatch.decoding.block_info import BlockInfo


# === Node records ===


@dataclass(slots=True, frozen=True)
class BlockHeader:
    """Header fields of one block as returned by the node."""

    number: int
    hash: str  # lowercased 0x...
    miner: str  # lowercased 0x...
    gas_used: int
    base_fee_per_gas: int | None  # wei; None before London
    extra_data: str  # raw "0x..." hex
    timestamp: int  # unix seconds


@dataclass(slots=True, frozen=True)
class BlockBody:
    """A full block: header plus its transaction objects."""

    header: BlockHeader
    transactions: tuple[dict[str, Any], ...] = ()


# === Metadata fetch outcome ===


@dataclass(slots=True, frozen=True)
class FetchSuccess:
    payload: BlockInfo


@dataclass(slots=True, frozen=True)
class FetchNotReady:
    block_number: int


@dataclass(slots=True, frozen=True)
class FetchFailure:
    kind: FailureKind
    error: str


FetchOutcome = FetchSuccess | FetchNotReady | FetchFailure


# === Derived metrics ===


@dataclass(slots=True, frozen=True)
class BlockMetrics:
    """Per-class transaction counts/value sums and ratios for one class."""

    priority_class: str
    class_counts: dict[str, int]
    class_values: dict[str, float]
    count_pct: float  # 100 * class count / total tx count
    value_pct: float  # 100 * class value / block value


# === Emitted record ===


@dataclass(slots=True, frozen=True)
class BlockRecord:
    """Enrichment result for one block. Built once, never updated."""

    block_number: int
    block_hash: str
    builder: str
    builder_pubkey: str | None
    proposer_pubkey: str | None
    tx_count: int
    gas_used: int
    base_fee: float  # gwei
    priority_fee: float
    payment: float
    payout: float
    block_value: float
    extra_data: str  # decoded text
    timestamp: int
    metrics: BlockMetrics

    @property
    def timestamp_iso(self) -> str:
        """Human-readable UTC timestamp."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).isoformat()

    def to_event(self) -> dict[str, Any]:
        """Return the fixed, versioned field set of the emitted event."""
        cls = self.metrics.priority_class
        return {
            "block_number": self.block_number,
            "tx_count": self.tx_count,
            "block_hash": self.block_hash,
            "builder": self.builder,
            "builder_pubkey": self.builder_pubkey,
            "proposer_pubkey": self.proposer_pubkey,
            "payment": self.payment,
            "payout": self.payout,
            "block_value": self.block_value,
            "extra_data": self.extra_data,
            "base_fee": self.base_fee,
            "priority_fee": self.priority_fee,
            f"{cls}_count_pct": self.metrics.count_pct,
            f"{cls}_value_pct": self.metrics.value_pct,
            "class_counts": dict(self.metrics.class_counts),
            "class_values": dict(self.metrics.class_values),
            "gas_used": self.gas_used,
            "timestamp": self.timestamp_iso,
            "log_version": LOG_VERSION,
        }


# === Stats ===


@dataclass(kw_only=True)
class PipelineStats:
    """
    Aggregated counters for one pipeline run.

    Mutated by the tracker (polls, discovered) and the enricher
    (emitted, skipped, retries).
    """

    polls: int = 0
    poll_failures: int = 0
    discovered: int = 0
    emitted: int = 0
    skipped: int = 0
    not_ready_retries: int = 0
    last_emitted: int | None = field(default=None)
