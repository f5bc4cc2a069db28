from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List

from fakes import make_fork_event

from gabeln.core.errors import EventFetchError
from gabeln.core.models import ForkEvent
from gabeln.core.poller import ForkEventPoller

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


class ScriptedSource:
    def __init__(self, batches: List) -> None:
        self._batches = list(batches)

    async def collect(self) -> List[ForkEvent]:
        batch = self._batches.pop(0)
        if isinstance(batch, Exception):
            raise batch
        return batch


def _event(event_id: str, minutes: int) -> ForkEvent:
    return make_fork_event(event_id=event_id, created_at=BASE + timedelta(minutes=minutes))


def _drain(queue: asyncio.Queue) -> List:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


def test_first_poll_primes_without_publishing() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([[_event("1", 0)], [_event("1", 0), _event("2", 1)]])
        poller = ForkEventPoller(source, queue, interval_seconds=60)
        assert await poller.poll_once() == []
        await poller.poll_once()
        return _drain(queue)

    published = asyncio.run(scenario())

    assert [event.event_id for event in published] == ["2"]


def test_announce_backlog_publishes_oldest_first() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([[_event("b", 5), _event("a", 1)]])
        poller = ForkEventPoller(source, queue, interval_seconds=60, announce_backlog=True)
        await poller.poll_once()
        return _drain(queue)

    published = asyncio.run(scenario())

    assert [event.event_id for event in published] == ["a", "b"]


def test_collection_error_is_retried_next_tick() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([EventFetchError("alice"), [_event("1", 0)], [_event("1", 0), _event("2", 1)]])
        poller = ForkEventPoller(source, queue, interval_seconds=60)
        assert await poller.poll_once() == []
        # The failed poll did not prime, so this one does.
        assert await poller.poll_once() == []
        await poller.poll_once()
        return _drain(queue)

    published = asyncio.run(scenario())

    assert [event.event_id for event in published] == ["2"]


def test_cancelling_run_closes_the_queue() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([[]])
        poller = ForkEventPoller(source, queue, interval_seconds=3600)
        task = asyncio.create_task(poller.run())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return _drain(queue)

    assert asyncio.run(scenario()) == [None]


def test_unexpected_error_does_not_close_the_queue() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([AttributeError("boom"), [_event("1", 0)]])
        poller = ForkEventPoller(source, queue, interval_seconds=60, announce_backlog=True)
        assert await poller.poll_once() == []
        await poller.poll_once()
        return _drain(queue)

    published = asyncio.run(scenario())

    assert [event.event_id for event in published] == ["1"]


def test_run_keeps_polling_after_unexpected_error() -> None:
    async def scenario() -> List:
        queue: asyncio.Queue = asyncio.Queue()
        source = ScriptedSource([RuntimeError("boom")] + [[_event("1", 0)]] * 50)
        poller = ForkEventPoller(source, queue, interval_seconds=0, announce_backlog=True)
        task = asyncio.create_task(poller.run())
        for _ in range(5):
            await asyncio.sleep(0)
        assert not task.done()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return _drain(queue)

    published = asyncio.run(scenario())

    assert [getattr(item, "event_id", item) for item in published] == ["1", None]
