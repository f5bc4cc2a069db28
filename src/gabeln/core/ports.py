"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the chat platform, the gif lookup and
the GitHub event source so that the core can be tested with fakes.
"""

from __future__ import annotations

from typing import AsyncIterator, FrozenSet, List, Optional, Protocol

from gabeln.core.models import ChatRef, ForkEvent, PlatformUpdate


class BotIdentity(Protocol):
    id: int
    username: Optional[str]


class PlatformPort(Protocol):
    """Chat platform operations required by the session router."""

    def stream(self) -> AsyncIterator[PlatformUpdate]:
        ...

    async def send_message(self, chat: ChatRef, text: str, parse_mode: Optional[str] = None) -> None:
        ...

    async def send_document(self, chat: ChatRef, url: str) -> None:
        ...

    async def get_admins(self, chat: ChatRef) -> FrozenSet[int]:
        ...

    async def get_me(self) -> BotIdentity:
        ...


class GifPort(Protocol):
    """Random gif lookup; raises NoGifAvailable on failure."""

    async def fetch_gif(self) -> str:
        ...


class EventSourcePort(Protocol):
    """Producer of fork events, oldest first."""

    async def collect(self) -> List[ForkEvent]:
        ...
