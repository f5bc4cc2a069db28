"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class RouterConfig:
    """Session router settings."""

    trigger: str


@dataclass(frozen=True)
class PollerConfig:
    """GitHub polling settings for the fork event poller."""

    users: Tuple[str, ...]
    interval_seconds: float
    announce_backlog: bool


@dataclass(frozen=True)
class GiphyConfig:
    """Giphy search settings consumed by the gif adapter."""

    api_key: str
    query: str
    limit: int
