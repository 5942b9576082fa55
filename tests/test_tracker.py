import asyncio

import pytest
import structlog

from blockwatch.core.block_queue import BlockQueue
from blockwatch.core.errors import StatusError, TransportError
from blockwatch.core.use_cases.track_head import ChainHeadTracker
from conftest import FakeNode


async def drain(q: BlockQueue) -> list[int]:
    out = []
    while q.qsize():
        out.append(await q.get())
    return out


@pytest.mark.asyncio
async def test_enqueues_pending_range_in_order() -> None:
    q = BlockQueue(50)
    tracker = ChainHeadTracker(FakeNode([17785601]), q, start_height=17785600)

    assert await tracker.poll_once() == [17785601]
    assert tracker.cursor == 17785601
    assert await drain(q) == [17785601]


@pytest.mark.asyncio
async def test_head_sequence_enqueues_each_height_once() -> None:
    heads = [105, 105, 103, 110, 110, 111]
    q = BlockQueue(50)
    tracker = ChainHeadTracker(FakeNode(heads), q, start_height=100)

    seen: list[int] = []
    for _ in heads:
        seen.extend(await tracker.poll_once())
        # interleave some dequeues with polling
        if q.qsize():
            await q.get()

    assert seen == list(range(101, 112))
    assert tracker.cursor == 111
    assert tracker.stats.discovered == 11


@pytest.mark.asyncio
@pytest.mark.parametrize("head", [100, 99, 0])
async def test_non_increasing_head_enqueues_nothing(head: int) -> None:
    q = BlockQueue(5)
    tracker = ChainHeadTracker(FakeNode([head]), q, start_height=100)
    assert await tracker.poll_once() == []
    assert q.qsize() == 0
    assert tracker.cursor == 100


@pytest.mark.asyncio
async def test_lower_head_does_not_reverse() -> None:
    q = BlockQueue(20)
    tracker = ChainHeadTracker(FakeNode([105, 102]), q, start_height=100)
    await tracker.poll_once()
    assert await tracker.poll_once() == []
    assert tracker.head == 105
    assert tracker.cursor == 105


@pytest.mark.asyncio
async def test_failure_leaves_cursor_untouched() -> None:
    q = BlockQueue(5)
    tracker = ChainHeadTracker(FakeNode([TransportError("refused"), 102]), q, start_height=100)

    with pytest.raises(TransportError):
        await tracker.poll_once()
    assert tracker.cursor == 100
    assert q.qsize() == 0

    assert await tracker.poll_once() == [101, 102]


@pytest.mark.asyncio
async def test_confirmations_hold_back_the_tip() -> None:
    q = BlockQueue(20)
    tracker = ChainHeadTracker(FakeNode([110]), q, start_height=100, confirmations=3)
    assert await tracker.poll_once() == list(range(101, 108))


@pytest.mark.asyncio
async def test_full_queue_suspends_discovery() -> None:
    q = BlockQueue(2)
    tracker = ChainHeadTracker(FakeNode([105]), q, start_height=100)

    poll = asyncio.create_task(tracker.poll_once())
    await asyncio.sleep(0.01)
    assert not poll.done()
    assert tracker.cursor == 102

    got = []
    while len(got) < 5:
        got.append(await q.get())
    assert await asyncio.wait_for(poll, timeout=1) == [101, 102, 103, 104, 105]
    assert got == [101, 102, 103, 104, 105]


@pytest.mark.asyncio
async def test_run_logs_failures_and_keeps_polling() -> None:
    q = BlockQueue(20)
    node = FakeNode([StatusError("HTTP 502", status_code=502), 101, 101])
    tracker = ChainHeadTracker(node, q, start_height=100, poll_interval_s=0.001, error_retry_s=0.001)
    stop = asyncio.Event()

    with structlog.testing.capture_logs() as logs:
        task = asyncio.create_task(tracker.run(stop))
        assert await asyncio.wait_for(q.get(), timeout=1) == 101
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    assert tracker.stats.poll_failures == 1
    assert tracker.stats.polls >= 2
    failures = [e for e in logs if e["event"] == "head poll failed"]
    assert failures and failures[0]["kind"] == "status"
    assert failures[0]["log_level"] == "warning"
