"""Core data models, configuration, errors and pipeline stages.

This package provides:
- Data models (BlockHeader, BlockBody, BlockRecord, FetchOutcome, PipelineStats)
- Configuration (PipelineConfig)
- Error taxonomy (RpcError and subclasses, NumericParseError)
- The bounded hand-off queue (BlockQueue)
"""

from blockwatch.core.block_queue import BlockQueue
from blockwatch.core.config import PipelineConfig
from blockwatch.core.errors import (
    BlockwatchError,
    DecodeError,
    NumericParseError,
    RpcError,
    StatusError,
    TransportError,
)
from blockwatch.core.models import (
    BlockBody,
    BlockHeader,
    BlockMetrics,
    BlockRecord,
    FetchFailure,
    FetchNotReady,
    FetchOutcome,
    FetchSuccess,
    PipelineStats,
)

__all__ = [
    "BlockQueue",
    "PipelineConfig",
    "BlockwatchError",
    "DecodeError",
    "NumericParseError",
    "RpcError",
    "StatusError",
    "TransportError",
    "BlockBody",
    "BlockHeader",
    "BlockMetrics",
    "BlockRecord",
    "FetchFailure",
    "FetchNotReady",
    "FetchOutcome",
    "FetchSuccess",
    "PipelineStats",
]
