"""Telegram bot session setup.

Login and identity lookup are separate steps so a failure in either aborts
startup with a StartupError before any update is processed.
"""

from __future__ import annotations

import logging

from telethon import TelegramClient

from gabeln import settings
from gabeln.core.errors import StartupError
from gabeln.core.ports import BotIdentity, PlatformPort

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create the Telethon client from the API credentials in settings."""

    if not settings.API_ID or not settings.API_HASH:
        raise StartupError("Missing API_ID or API_HASH in environment")

    try:
        api_id = int(settings.API_ID)
    except ValueError as exc:
        raise StartupError(f"API_ID must be numeric, got {settings.API_ID!r}") from exc

    LOGGER.info("Initializing Telegram client (session %s)", settings.SESSION_NAME)
    return TelegramClient(settings.SESSION_NAME, api_id, settings.API_HASH)


async def start_bot(client: TelegramClient, bot_token: str) -> None:
    """Log the client in as a bot."""

    if not bot_token:
        raise StartupError("Please provide TELEGRAM_BOT_TOKEN via environment variable")

    try:
        await client.start(bot_token=bot_token)
    except Exception as exc:
        raise StartupError(f"Could not start Telegram bot: {exc}") from exc


async def resolve_identity(platform: PlatformPort) -> BotIdentity:
    """Return the bot's own user; commands need its id and @username."""

    try:
        me = await platform.get_me()
    except Exception as exc:
        raise StartupError(f"Failed to get user of this bot: {exc}") from exc
    if me is None or not getattr(me, "username", None):
        raise StartupError("Failed to get user of this bot")

    LOGGER.info("Logged in as @%s", me.username)
    return me
