"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to Telethon or GitHub response types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Union


@dataclass(frozen=True)
class ChatRef:
    """Identity of a conversation.

    Only ``chat_id`` takes part in equality and hashing, so the same chat seen
    through different update kinds always maps to the same registry entry.
    """

    chat_id: int
    private: bool = field(default=False, compare=False)


class CommandKind(Enum):
    START = "start"
    STOP = "stop"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Command:
    """A slash command addressed to this bot."""

    kind: CommandKind
    name: str


@dataclass(frozen=True)
class TextMessage:
    """Incoming text message in a chat."""

    chat: ChatRef
    sender_id: Optional[int]
    text: str


@dataclass(frozen=True)
class MemberLeft:
    """A member was kicked from or left a chat."""

    chat: ChatRef
    user_id: int


@dataclass(frozen=True)
class ChatUpdate:
    """Any other update observed in a chat."""

    chat: ChatRef


PlatformUpdate = Union[TextMessage, MemberLeft, ChatUpdate]


@dataclass(frozen=True)
class ForkEvent:
    """A single GitHub fork performed by a tracked account."""

    event_id: str
    actor_login: str
    actor_avatar_url: str
    repo_name: str
    fork_full_name: str
    fork_url: str
    created_at: datetime


@dataclass(frozen=True)
class AdminsResolved:
    """Result of an administrator lookup; ``admins`` is None when it failed."""

    chat: ChatRef
    admins: Optional[FrozenSet[int]]


@dataclass(frozen=True)
class SourceClosed:
    """One of the merged input streams ended."""

    source: str
    error: Optional[BaseException] = None


BotUpdate = Union[TextMessage, MemberLeft, ChatUpdate, ForkEvent, AdminsResolved, SourceClosed]
