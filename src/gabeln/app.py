"""Application entry point for the gabeln bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import httpx
from art import tprint

from gabeln import settings
from gabeln.adapters.github_events import GitHubEventCollector, build_github_client
from gabeln.adapters.giphy import GiphyClient
from gabeln.adapters.notification_formatting import format_fork_notification
from gabeln.adapters.telegram_platform import TelethonPlatform
from gabeln.client import build_client, resolve_identity, start_bot
from gabeln.core.config import GiphyConfig, PollerConfig, RouterConfig
from gabeln.core.errors import StartupError, StreamClosedError
from gabeln.core.poller import ForkEventPoller
from gabeln.core.router import SessionRouter
from gabeln.logging_setup import configure_logging

NAME = "GABELN"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _build_configs() -> tuple[RouterConfig, PollerConfig, GiphyConfig]:
    if not settings.GIPHY_API_KEY:
        raise StartupError("Please provide GIPHY_API_KEY via environment variable")
    if not settings.USERS:
        raise StartupError("No GitHub users configured to track")

    router_config = RouterConfig(trigger=settings.TRIGGER)
    poller_config = PollerConfig(
        users=settings.USERS,
        interval_seconds=settings.POLL_INTERVAL_SECONDS,
        announce_backlog=settings.ANNOUNCE_BACKLOG,
    )
    giphy_config = GiphyConfig(
        api_key=settings.GIPHY_API_KEY,
        query=settings.GIPHY_QUERY,
        limit=settings.GIPHY_GIF_LIMIT,
    )
    return router_config, poller_config, giphy_config


async def _serve() -> None:
    logger = logging.getLogger(__name__)
    router_config, poller_config, giphy_config = _build_configs()

    client = build_client()
    await start_bot(client, settings.TELEGRAM_BOT_TOKEN)
    platform = TelethonPlatform(client)
    me = await resolve_identity(platform)

    github_http = build_github_client(settings.GITHUB_TOKEN)
    giphy_http = httpx.AsyncClient(timeout=30.0)
    events: asyncio.Queue = asyncio.Queue()

    platform.register_handlers()
    router = SessionRouter(
        platform=platform,
        gifs=GiphyClient(giphy_config, giphy_http),
        config=router_config,
        formatter=format_fork_notification,
        bot_id=me.id,
        bot_username=me.username,
    )
    poller = ForkEventPoller(
        source=GitHubEventCollector(poller_config.users, github_http),
        queue=events,
        interval_seconds=poller_config.interval_seconds,
        announce_backlog=poller_config.announce_backlog,
    )
    logger.info("Tracking forks of %s", ", ".join(poller_config.users))

    poller_task = asyncio.create_task(poller.run())
    try:
        await router.run(events)
    finally:
        poller_task.cancel()
        await asyncio.gather(poller_task, return_exceptions=True)
        await github_http.aclose()
        await giphy_http.aclose()
        await client.disconnect()


def _run() -> int:
    _print_banner()
    configure_logging(settings.LOGGING or {}, settings.SECRETS, settings.PROJECT_ROOT)
    logger = logging.getLogger(__name__)

    logger.info("Starting gabeln")
    try:
        asyncio.run(_serve())
    except StartupError as exc:
        logger.error("Startup failed: %s", exc)
        return 2
    except StreamClosedError as exc:
        logger.error("%s, shutting down", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="gabeln")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Start the bot")

    parser.parse_args(argv)
    sys.exit(_run())


if __name__ == "__main__":
    main()
