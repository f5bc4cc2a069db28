"""In-memory chat registry (core domain).

Holds the cached administrator sets of group-like chats and the set of chats
subscribed to fork notifications. The registry is owned by the session router
and never touched from another task, so it needs no locking.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Set, Union

from gabeln.core.models import ChatRef


class AdminState(Enum):
    AUTHORIZED = "authorized"
    PENDING = "pending"


AdminLookup = Union[AdminState, FrozenSet[int]]


class ChatRegistry:
    """Per-chat admin cache plus the active (subscribed) chat set."""

    def __init__(self) -> None:
        self._admins: Dict[ChatRef, FrozenSet[int]] = {}
        self._pending: Set[ChatRef] = set()
        self._active: Set[ChatRef] = set()

    def ensure_admins(self, chat: ChatRef) -> AdminLookup:
        """Return the cached admins, AUTHORIZED for private chats, or PENDING.

        PENDING means the caller must start a lookup unless ``is_pending`` is
        already true for the chat.
        """

        if chat.private:
            return AdminState.AUTHORIZED
        cached = self._admins.get(chat)
        if cached is not None:
            return cached
        return AdminState.PENDING

    def is_pending(self, chat: ChatRef) -> bool:
        return chat in self._pending

    def mark_pending(self, chat: ChatRef) -> None:
        self._pending.add(chat)

    def store_admins(self, chat: ChatRef, admins: Iterable[int]) -> None:
        self._pending.discard(chat)
        self._admins[chat] = frozenset(admins)

    def fail_admins(self, chat: ChatRef) -> None:
        # Leaves the chat unresolved so the next update retries the lookup.
        self._pending.discard(chat)

    def is_authorized(self, chat: ChatRef, user_id: int) -> bool:
        if chat.private:
            return True
        admins = self._admins.get(chat)
        if admins is None:
            return False
        return user_id in admins

    def set_active(self, chat: ChatRef, active: bool) -> bool:
        """Toggle membership, returning whether anything changed."""

        if active:
            if chat in self._active:
                return False
            self._active.add(chat)
            return True
        if chat not in self._active:
            return False
        self._active.discard(chat)
        return True

    def is_active(self, chat: ChatRef) -> bool:
        return chat in self._active

    def active_chats(self) -> List[ChatRef]:
        return list(self._active)

    def forget(self, chat: ChatRef) -> None:
        """Drop everything known about a chat the bot was removed from."""

        self._admins.pop(chat, None)
        self._pending.discard(chat)
        self._active.discard(chat)
