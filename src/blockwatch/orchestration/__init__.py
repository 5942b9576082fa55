"""Pipeline wiring and lifecycle.

This package provides:
- `BlockPipeline`: tracker and enricher joined by a bounded queue
- `watch_blocks`: builds the concrete clients from a config and runs until stopped
"""

from blockwatch.orchestration.orchestrator import BlockPipeline, watch_blocks

__all__ = ["BlockPipeline", "watch_blocks"]
