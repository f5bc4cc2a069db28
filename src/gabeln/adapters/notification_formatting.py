"""Fork notification formatting.

Keeping formatting here prevents drift between the broadcast path and any
future delivery channel.
"""

from __future__ import annotations

import html

from gabeln.core.models import ForkEvent

GITHUB_URL = "https://github.com"


def _link(url: str, label: str) -> str:
    return f"<a href=\"{html.escape(url)}\">{html.escape(label)}</a>"


def format_fork_notification(event: ForkEvent) -> str:
    """Create the Telegram HTML message announcing a fork."""

    timestamp = html.escape(event.created_at.astimezone().strftime("%H:%M %d-%m-%Y"))
    actor = _link(f"{GITHUB_URL}/{event.actor_login}", event.actor_login)
    repo = _link(f"{GITHUB_URL}/{event.repo_name}", event.repo_name)
    fork = _link(event.fork_url, event.fork_full_name)

    return "\n".join(
        [
            f"<b>{actor}</b> forked {repo} at {fork}!",
            f"<i>{timestamp}</i>",
        ]
    )
