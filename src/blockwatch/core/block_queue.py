from __future__ import annotations

import asyncio

# end-of-stream marker put by `close()`
_CLOSED = None


class BlockQueue:
    """Bounded FIFO hand-off of block numbers from the tracker to the enricher.

    `put` suspends while the queue is full (the pipeline's only backpressure)
    and `get` suspends while it is empty. Numbers must be put in strictly
    ascending order. After `close()` a drained queue yields `None`.
    """

    def __init__(self, capacity: int = 20) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._q: asyncio.Queue[int | None] = asyncio.Queue(maxsize=capacity)
        self._last_put: int | None = None
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._q.maxsize

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._q.qsize()

    def full(self) -> bool:
        return self._q.full()

    async def put(self, block_number: int) -> None:
        """Enqueue one block number, waiting for free capacity."""
        if self._closed:
            raise RuntimeError("queue is closed")
        if self._last_put is not None and block_number <= self._last_put:
            raise ValueError(f"block {block_number} enqueued after {self._last_put}")
        await self._q.put(block_number)
        self._last_put = block_number

    async def get(self) -> int | None:
        """Dequeue the next block number, or None once closed and drained."""
        item = await self._q.get()
        if item is _CLOSED:
            # keep the marker visible to any other consumer
            self._q.task_done()
            self._q.put_nowait(_CLOSED)
        return item

    def task_done(self) -> None:
        self._q.task_done()

    async def close(self) -> None:
        """Signal end-of-stream; numbers already queued are still delivered."""
        if self._closed:
            return
        self._closed = True
        await self._q.put(_CLOSED)
