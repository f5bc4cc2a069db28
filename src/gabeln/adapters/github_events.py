"""GitHub public events collector.

Fetches the public event timeline of each tracked user, keeps only fork
events, and returns them oldest first.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx

from gabeln.core.errors import EventFetchError, EventParseError
from gabeln.core.models import ForkEvent

LOGGER = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
FORK_EVENT_TYPE = "ForkEvent"


def build_github_client(token: Optional[str] = None, timeout: float = 30.0) -> httpx.AsyncClient:
    """Create the shared HTTP client for GitHub API calls."""

    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "gabeln",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return httpx.AsyncClient(base_url=GITHUB_API_URL, headers=headers, timeout=timeout)


def _parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)


def parse_fork_event(item: Dict[str, Any]) -> ForkEvent:
    """Map one raw ForkEvent payload to the core model."""

    try:
        actor = item["actor"]
        forkee = item["payload"]["forkee"]
        return ForkEvent(
            event_id=str(item["id"]),
            actor_login=actor.get("display_login") or actor["login"],
            actor_avatar_url=actor.get("avatar_url", ""),
            repo_name=item["repo"]["name"],
            fork_full_name=forkee["full_name"],
            fork_url=forkee["html_url"],
            created_at=_parse_timestamp(item["created_at"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise EventParseError(f"Malformed ForkEvent {item.get('id')!r}: {exc}") from exc


class GitHubEventCollector:
    """Collect fork events for a fixed set of GitHub users."""

    def __init__(self, users: Iterable[str], client: httpx.AsyncClient, per_page: int = 100) -> None:
        self._users = list(users)
        self._client = client
        self._per_page = per_page

    async def collect(self) -> List[ForkEvent]:
        per_user = await asyncio.gather(*(self._events_of_user(user) for user in self._users))
        events = [event for user_events in per_user for event in user_events]
        events.sort(key=lambda ev: ev.created_at)
        LOGGER.debug("Collected %s fork events for %s users", len(events), len(self._users))
        return events

    async def _events_of_user(self, user: str) -> List[ForkEvent]:
        url = f"/users/{user}/events/public"
        params: Optional[Dict[str, int]] = {"page": 1, "per_page": self._per_page}
        events: List[ForkEvent] = []

        while True:
            try:
                response = await self._client.get(url, params=params)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise EventFetchError(user, str(exc)) from exc

            try:
                payload = response.json()
            except ValueError as exc:
                raise EventParseError(f"Events of {user} are not valid JSON") from exc
            if not isinstance(payload, list):
                raise EventParseError(f"Events of {user} are not a list")

            for item in payload:
                if not isinstance(item, dict) or item.get("type") != FORK_EVENT_TYPE:
                    continue
                try:
                    events.append(parse_fork_event(item))
                except EventParseError as exc:
                    LOGGER.warning("Skipping event of %s: %s", user, exc)

            # The next link already carries page and per_page.
            next_link = response.links.get("next")
            if not next_link:
                break
            url = next_link["url"]
            params = None

        return events
