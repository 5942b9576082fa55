from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for the block-watch pipeline."""

    node_url: str
    metadata_url: str  # must contain a "{block}" placeholder
    start_height: int
    poll_interval_s: float = 1.0
    not_ready_retry_s: float = 12.0
    queue_capacity: int = 20
    error_retry_s: float = 1.0
    request_timeout_s: float = 5.0
    # None keeps retrying a not-yet-indexed block forever
    max_not_ready_retries: int | None = None
    confirmations: int = 0
    priority_class: str = "mev"

    def __post_init__(self) -> None:
        if not self.node_url:
            raise ValueError("node_url must not be empty")
        if "{block}" not in self.metadata_url:
            raise ValueError("metadata_url must contain a '{block}' placeholder")
        if self.start_height < 0:
            raise ValueError("start_height must be >= 0")
        if self.queue_capacity <= 0:
            raise ValueError("queue_capacity must be > 0")
        if self.confirmations < 0:
            raise ValueError("confirmations must be >= 0")
        if self.max_not_ready_retries is not None and self.max_not_ready_retries < 0:
            raise ValueError("max_not_ready_retries must be >= 0 or None")
        if min(self.poll_interval_s, self.not_ready_retry_s, self.error_retry_s) < 0:
            raise ValueError("delays must be >= 0")
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be > 0")
