"""Periodic GitHub fork polling.

The poller re-runs the event collector on a fixed interval and publishes only
events it has not seen before onto the router's event queue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from gabeln.core.dedup import SeenEvents
from gabeln.core.errors import GabelnError
from gabeln.core.models import ForkEvent
from gabeln.core.ports import EventSourcePort

LOGGER = logging.getLogger(__name__)


class ForkEventPoller:
    """Feed new fork events into a queue consumed by the session router."""

    def __init__(
        self,
        source: EventSourcePort,
        queue: "asyncio.Queue[Optional[ForkEvent]]",
        interval_seconds: float,
        announce_backlog: bool = False,
        seen: Optional[SeenEvents] = None,
    ) -> None:
        self._source = source
        self._queue = queue
        self._interval = interval_seconds
        self._announce_backlog = announce_backlog
        self._seen = seen or SeenEvents()
        self._primed = False

    async def poll_once(self) -> List[ForkEvent]:
        """Collect once and publish new events, returning what was published.

        The first successful poll only records what already exists unless
        ``announce_backlog`` is set, so a restart does not replay history.
        """

        try:
            events = await self._source.collect()
        except GabelnError as exc:
            LOGGER.warning("Event collection failed, retrying next tick: %s", exc)
            return []
        except Exception:
            LOGGER.exception("Unexpected error while collecting events, retrying next tick")
            return []

        fresh = self._seen.select_new(events)
        if not self._primed:
            self._primed = True
            if not self._announce_backlog:
                LOGGER.info("Primed with %s existing fork events", len(fresh))
                return []

        for event in fresh:
            self._queue.put_nowait(event)
        if fresh:
            LOGGER.info("Published %s new fork events", len(fresh))
        return fresh

    async def run(self) -> None:
        """Poll forever; cancellation closes the event queue."""

        try:
            while True:
                await self.poll_once()
                await asyncio.sleep(self._interval)
        finally:
            self._queue.put_nowait(None)
