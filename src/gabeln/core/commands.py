"""Slash command parsing (core domain)."""

from __future__ import annotations

import re
from typing import Optional

from gabeln.core.models import ChatRef, Command, CommandKind

COMMAND_PATTERN = re.compile(r"^/(?P<name>[A-Za-z0-9_]+)(?:@(?P<bot>[A-Za-z0-9_]+))?(?:\s|$)")

_KNOWN_COMMANDS = {
    "start": CommandKind.START,
    "stop": CommandKind.STOP,
}


def parse_command(text: str, chat: ChatRef, bot_username: str) -> Optional[Command]:
    """Return the command addressed to this bot, or None for plain text.

    Directedness rules:
    - ``/name@bot`` is directed only if ``bot`` equals our username exactly.
    - ``/name`` is directed only in private chats; groups can host several
      bots, so they need the explicit mention.
    """

    match = COMMAND_PATTERN.match(text)
    if not match:
        return None

    mentioned = match.group("bot")
    if mentioned is not None:
        if mentioned != bot_username:
            return None
    elif not chat.private:
        return None

    name = match.group("name")
    kind = _KNOWN_COMMANDS.get(name, CommandKind.UNKNOWN)
    return Command(kind=kind, name=name)
