"""Deduplication helpers (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Set

from gabeln.core.models import ForkEvent


class SeenEvents:
    """Remember GitHub event ids that were already published."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def is_seen(self, event_id: str) -> bool:
        return event_id in self._seen

    def mark_seen(self, event_id: str) -> None:
        self._seen.add(event_id)

    def select_new(self, events: Iterable[ForkEvent]) -> List[ForkEvent]:
        """Return unseen events oldest first and mark them as seen."""

        fresh: List[ForkEvent] = []
        for event in sorted(events, key=lambda ev: ev.created_at):
            if self.is_seen(event.event_id):
                continue
            self.mark_seen(event.event_id)
            fresh.append(event)
        return fresh
