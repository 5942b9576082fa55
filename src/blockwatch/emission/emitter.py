from __future__ import annotations

import structlog

from blockwatch.core.models import BlockRecord

RECORD_EVENT = "block"


class RecordEmitter:
    """Write each finished block record as one structured log event."""

    def __init__(self, logger: structlog.typing.FilteringBoundLogger | None = None) -> None:
        self._log = logger or structlog.get_logger("blockwatch.records")

    def emit(self, record: BlockRecord) -> None:
        self._log.info(RECORD_EVENT, **record.to_event())
