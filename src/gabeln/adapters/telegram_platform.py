"""Telethon adapter for the chat platform port.

This keeps Telethon-specific details out of the core router. Updates are
mapped to core models inside Telethon's event handlers and handed to the
router through ``stream()``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, FrozenSet, List, Optional

from telethon import TelegramClient, errors, events
from telethon.tl.types import ChannelParticipantsAdmins

from gabeln.core.errors import AdminFetchError
from gabeln.core.models import ChatRef, ChatUpdate, MemberLeft, PlatformUpdate, TextMessage

LOGGER = logging.getLogger(__name__)


def chat_ref_from_event(event) -> ChatRef:
    return ChatRef(chat_id=event.chat_id, private=bool(event.is_private))


def map_new_message(event) -> PlatformUpdate:
    """Map a Telethon NewMessage event; media without caption is a plain update."""

    chat = chat_ref_from_event(event)
    text = event.raw_text or ""
    if not text:
        return ChatUpdate(chat)
    return TextMessage(chat=chat, sender_id=event.sender_id, text=text)


def map_chat_action(event) -> List[PlatformUpdate]:
    """Map a Telethon ChatAction event, one MemberLeft per removed user."""

    chat = chat_ref_from_event(event)
    if event.user_kicked or event.user_left:
        user_ids = event.user_ids or []
        if user_ids:
            return [MemberLeft(chat=chat, user_id=user_id) for user_id in user_ids]
    return [ChatUpdate(chat)]


class TelethonPlatform:
    """PlatformPort implementation backed by a bot-authorized TelegramClient."""

    def __init__(self, client: TelegramClient) -> None:
        self._client = client
        self._updates: "asyncio.Queue[PlatformUpdate]" = asyncio.Queue()
        self._registered = False

    def register_handlers(self) -> None:
        if self._registered:
            return
        self._client.add_event_handler(self._on_new_message, events.NewMessage(incoming=True))
        self._client.add_event_handler(self._on_chat_action, events.ChatAction())
        self._registered = True

    async def _on_new_message(self, event) -> None:
        self._updates.put_nowait(map_new_message(event))

    async def _on_chat_action(self, event) -> None:
        for update in map_chat_action(event):
            self._updates.put_nowait(update)

    async def stream(self) -> AsyncIterator[PlatformUpdate]:
        """Yield mapped updates until the client disconnects.

        A disconnect caused by an error re-raises that error.
        """

        self.register_handlers()
        disconnected = self._client.disconnected
        getter: Optional[asyncio.Future] = None
        try:
            while True:
                getter = asyncio.ensure_future(self._updates.get())
                done, _ = await asyncio.wait({getter, disconnected}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                    continue
                LOGGER.warning("Telegram client disconnected")
                disconnected.result()
                return
        finally:
            if getter is not None and not getter.done():
                getter.cancel()

    async def send_message(self, chat: ChatRef, text: str, parse_mode: Optional[str] = None) -> None:
        await self._client.send_message(chat.chat_id, text, parse_mode=parse_mode, link_preview=False)

    async def send_document(self, chat: ChatRef, url: str) -> None:
        await self._client.send_file(chat.chat_id, url)

    async def get_admins(self, chat: ChatRef) -> FrozenSet[int]:
        try:
            admins = await self._client.get_participants(chat.chat_id, filter=ChannelParticipantsAdmins)
        except errors.RPCError as exc:
            raise AdminFetchError(f"Cannot list administrators of chat {chat.chat_id}: {exc}") from exc
        return frozenset(user.id for user in admins)

    async def get_me(self):
        return await self._client.get_me()
