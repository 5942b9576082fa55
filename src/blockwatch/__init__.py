from __future__ import annotations

from .core.aggregation import aggregate_transactions
from .core.config import PipelineConfig
from .core.models import BlockMetrics, BlockRecord, PipelineStats
from .orchestration.orchestrator import BlockPipeline, watch_blocks

__all__ = [
    "PipelineConfig",
    "BlockPipeline",
    "watch_blocks",
    "aggregate_transactions",
    "BlockMetrics",
    "BlockRecord",
    "PipelineStats",
]
