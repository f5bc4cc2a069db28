"""Chat session and command router.

The router merges Telegram updates and GitHub fork events into a single inbox
and processes it one item at a time. It is the only owner of the
ChatRegistry: administrator lookups run as separate tasks and post their
result back into the inbox instead of touching the registry themselves.

Outbound sends are fire-and-forget tasks. Their completion order is not
relied upon, and a failed send only loses that one message.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, Set

from gabeln.core.commands import parse_command
from gabeln.core.config import RouterConfig
from gabeln.core.errors import NoGifAvailable, StreamClosedError
from gabeln.core.models import (
    AdminsResolved,
    BotUpdate,
    ChatRef,
    ChatUpdate,
    CommandKind,
    ForkEvent,
    MemberLeft,
    SourceClosed,
    TextMessage,
)
from gabeln.core.ports import GifPort, PlatformPort
from gabeln.core.registry import AdminState, ChatRegistry

LOGGER = logging.getLogger(__name__)

TELEGRAM_SOURCE = "telegram"
EVENTS_SOURCE = "github"

STARTED_NOTICE = "Fork notifications are now enabled for this chat."
ALREADY_RUNNING_NOTICE = "Fork notifications are already running in this chat."
STOPPED_NOTICE = "Fork notifications are now disabled for this chat."
NOT_RUNNING_NOTICE = "Fork notifications are not running in this chat."
UNAUTHORIZED_NOTICE = "Only chat administrators can start or stop fork notifications."
INVALID_COMMAND_NOTICE = "Invalid command: /{name}"


class SessionRouter:
    """Dispatch chat commands and broadcast fork events to active chats."""

    def __init__(
        self,
        platform: PlatformPort,
        gifs: GifPort,
        config: RouterConfig,
        formatter: Callable[[ForkEvent], str],
        bot_id: int,
        bot_username: str,
        registry: Optional[ChatRegistry] = None,
    ) -> None:
        self._platform = platform
        self._gifs = gifs
        self._config = config
        self._formatter = formatter
        self._bot_id = bot_id
        self._bot_username = bot_username
        self._registry = registry or ChatRegistry()
        self._inbox: "asyncio.Queue[BotUpdate]" = asyncio.Queue()
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def registry(self) -> ChatRegistry:
        return self._registry

    async def run(self, events: "asyncio.Queue[Optional[ForkEvent]]") -> None:
        """Process the merged streams until one of them closes.

        ``events`` is closed by putting ``None`` on it. Closing either input
        raises StreamClosedError; the caller treats that as fatal.
        """

        producers = [
            asyncio.create_task(self._pump_platform()),
            asyncio.create_task(self._pump_events(events)),
        ]
        LOGGER.info("Session router started")
        try:
            while True:
                item = await self._inbox.get()
                if isinstance(item, SourceClosed):
                    if item.error is not None:
                        LOGGER.error("Input stream %s failed: %s", item.source, item.error)
                        raise StreamClosedError(item.source) from item.error
                    raise StreamClosedError(item.source)
                await self.handle(item)
        finally:
            for producer in producers:
                producer.cancel()
            await asyncio.gather(*producers, return_exceptions=True)
            await self.drain()

    async def _pump_platform(self) -> None:
        error: Optional[BaseException] = None
        try:
            async for update in self._platform.stream():
                self._inbox.put_nowait(update)
        except Exception as exc:
            error = exc
        self._inbox.put_nowait(SourceClosed(TELEGRAM_SOURCE, error))

    async def _pump_events(self, events: "asyncio.Queue[Optional[ForkEvent]]") -> None:
        while True:
            event = await events.get()
            if event is None:
                break
            self._inbox.put_nowait(event)
        self._inbox.put_nowait(SourceClosed(EVENTS_SOURCE))

    async def handle(self, item: BotUpdate) -> None:
        """Dispatch a single stream item."""

        if isinstance(item, ForkEvent):
            self._broadcast(item)
        elif isinstance(item, AdminsResolved):
            self._apply_admins(item)
        elif isinstance(item, (TextMessage, MemberLeft, ChatUpdate)):
            self._on_platform_update(item)
        else:
            raise TypeError(f"Unsupported stream item: {item!r}")

    async def drain(self) -> None:
        """Wait until every background send and lookup has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def settle(self) -> None:
        """Drain background work and apply the results it queued.

        Lets callers drive the router with ``handle`` alone, without ``run``.
        """

        while True:
            await self.drain()
            if self._inbox.empty():
                return
            await self.handle(self._inbox.get_nowait())

    def _on_platform_update(self, update) -> None:
        chat = update.chat
        if isinstance(update, MemberLeft) and update.user_id == self._bot_id:
            LOGGER.info("Removed from chat %s, forgetting it", chat.chat_id)
            self._registry.forget(chat)
            return

        self._resolve_admins(chat)

        if isinstance(update, TextMessage):
            self._on_text(update)

    def _resolve_admins(self, chat: ChatRef) -> None:
        if self._registry.ensure_admins(chat) is not AdminState.PENDING:
            return
        if self._registry.is_pending(chat):
            return
        self._registry.mark_pending(chat)
        LOGGER.debug("Fetching administrators of chat %s", chat.chat_id)
        self._spawn(self._fetch_admins(chat))

    async def _fetch_admins(self, chat: ChatRef) -> None:
        try:
            admins = await self._platform.get_admins(chat)
        except Exception:
            LOGGER.exception("Failed to fetch administrators of chat %s", chat.chat_id)
            self._inbox.put_nowait(AdminsResolved(chat, None))
            return
        self._inbox.put_nowait(AdminsResolved(chat, frozenset(admins)))

    def _apply_admins(self, result: AdminsResolved) -> None:
        # A chat forgotten while its lookup was in flight stays forgotten.
        if not self._registry.is_pending(result.chat):
            return
        if result.admins is None:
            self._registry.fail_admins(result.chat)
            return
        self._registry.store_admins(result.chat, result.admins)
        LOGGER.info("Cached %s administrators for chat %s", len(result.admins), result.chat.chat_id)

    def _on_text(self, message: TextMessage) -> None:
        chat = message.chat
        command = parse_command(message.text, chat, self._bot_username)

        if command is None:
            trigger = self._config.trigger
            if trigger and trigger in message.text and self._registry.is_active(chat):
                self._spawn(self._send_gif([chat]))
            return

        if command.kind is CommandKind.UNKNOWN:
            self._reply(chat, INVALID_COMMAND_NOTICE.format(name=command.name))
            return

        if not self._is_authorized(chat, message.sender_id):
            LOGGER.info("Rejected /%s from user %s in chat %s", command.name, message.sender_id, chat.chat_id)
            self._reply(chat, UNAUTHORIZED_NOTICE)
            return

        if command.kind is CommandKind.START:
            if self._registry.set_active(chat, True):
                LOGGER.info("Notifications started in chat %s", chat.chat_id)
                self._reply(chat, STARTED_NOTICE)
            else:
                self._reply(chat, ALREADY_RUNNING_NOTICE)
        else:
            if self._registry.set_active(chat, False):
                LOGGER.info("Notifications stopped in chat %s", chat.chat_id)
                self._reply(chat, STOPPED_NOTICE)
            else:
                self._reply(chat, NOT_RUNNING_NOTICE)

    def _is_authorized(self, chat: ChatRef, user_id: Optional[int]) -> bool:
        if chat.private:
            return True
        if user_id is None:
            return False
        # Anonymous administrators post as the group itself.
        if user_id == chat.chat_id:
            return True
        return self._registry.is_authorized(chat, user_id)

    def _broadcast(self, event: ForkEvent) -> None:
        recipients = self._registry.active_chats()
        if not recipients:
            LOGGER.debug("No active chats for event %s", event.event_id)
            return

        text = self._formatter(event)
        for chat in recipients:
            self._spawn(self._send_text(chat, text, parse_mode="html"))
        # One lookup per round, shared by every recipient.
        self._spawn(self._send_gif(recipients))
        LOGGER.info(
            "Broadcast fork of %s by %s to %s chats",
            event.repo_name,
            event.actor_login,
            len(recipients),
        )

    def _reply(self, chat: ChatRef, text: str) -> None:
        self._spawn(self._send_text(chat, text))

    async def _send_text(self, chat: ChatRef, text: str, parse_mode: Optional[str] = None) -> None:
        try:
            await self._platform.send_message(chat, text, parse_mode=parse_mode)
        except Exception:
            LOGGER.exception("Failed to send message to chat %s", chat.chat_id)

    async def _send_gif(self, recipients: Iterable[ChatRef]) -> None:
        try:
            url = await self._gifs.fetch_gif()
        except NoGifAvailable as exc:
            LOGGER.warning("Skipping gif: %s", exc)
            return
        for chat in recipients:
            self._spawn(self._send_document(chat, url))

    async def _send_document(self, chat: ChatRef, url: str) -> None:
        try:
            await self._platform.send_document(chat, url)
        except Exception:
            LOGGER.exception("Failed to send gif to chat %s", chat.chat_id)

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Background task failed", exc_info=exc)
