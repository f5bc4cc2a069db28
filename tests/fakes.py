from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from gabeln.core.errors import NoGifAvailable
from gabeln.core.models import ChatRef, ForkEvent


@dataclass
class FakeMe:
    id: int
    username: Optional[str]


class FakePlatform:
    def __init__(
        self,
        admins: Optional[Dict[int, Iterable[int]]] = None,
        updates: Iterable = (),
        endless: bool = False,
        fail_sends_to: Iterable[int] = (),
        fail_admins: bool = False,
    ) -> None:
        self.messages: List[Tuple[int, str, Optional[str]]] = []
        self.documents: List[Tuple[int, str]] = []
        self.admin_calls: List[int] = []
        self._admins = {chat_id: frozenset(users) for chat_id, users in (admins or {}).items()}
        self._updates = list(updates)
        self._endless = endless
        self._fail_sends_to = set(fail_sends_to)
        self._fail_admins = fail_admins

    async def stream(self):
        for update in self._updates:
            yield update
        if self._endless:
            await asyncio.Event().wait()

    async def send_message(self, chat: ChatRef, text: str, parse_mode: Optional[str] = None) -> None:
        if chat.chat_id in self._fail_sends_to:
            raise ConnectionError("send failed")
        self.messages.append((chat.chat_id, text, parse_mode))

    async def send_document(self, chat: ChatRef, url: str) -> None:
        if chat.chat_id in self._fail_sends_to:
            raise ConnectionError("send failed")
        self.documents.append((chat.chat_id, url))

    async def get_admins(self, chat: ChatRef):
        self.admin_calls.append(chat.chat_id)
        # Yield once so the lookup really completes out of band.
        await asyncio.sleep(0)
        if self._fail_admins:
            raise ConnectionError("admin lookup failed")
        return self._admins.get(chat.chat_id, frozenset())

    async def get_me(self) -> FakeMe:
        return FakeMe(id=1000, username="GabelnBot")

    def texts_for(self, chat_id: int) -> List[str]:
        return [text for target, text, _ in self.messages if target == chat_id]


class FakeGifs:
    def __init__(self, urls: Iterable[str] = ("https://media.giphy.com/fork.gif",), fail: bool = False) -> None:
        self.calls = 0
        self._urls = list(urls)
        self._fail = fail

    async def fetch_gif(self) -> str:
        self.calls += 1
        if self._fail or not self._urls:
            raise NoGifAvailable("no gif")
        return self._urls[(self.calls - 1) % len(self._urls)]


def make_fork_event(
    event_id: str = "1",
    actor: str = "alice",
    repo: str = "x",
    fork: str = "alice/x",
    created_at: Optional[datetime] = None,
) -> ForkEvent:
    return ForkEvent(
        event_id=event_id,
        actor_login=actor,
        actor_avatar_url=f"https://avatars.githubusercontent.com/{actor}",
        repo_name=repo,
        fork_full_name=fork,
        fork_url=f"https://github.com/{fork}",
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
