"""Giphy search adapter used for fork celebration gifs."""

from __future__ import annotations

import logging
import random
from typing import Optional

import httpx

from gabeln.core.config import GiphyConfig
from gabeln.core.errors import NoGifAvailable

LOGGER = logging.getLogger(__name__)

GIPHY_SEARCH_URL = "https://api.giphy.com/v1/gifs/search"


class GiphyClient:
    """Pick a random gif out of the top search results."""

    def __init__(
        self,
        config: GiphyConfig,
        client: httpx.AsyncClient,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._rng = rng or random.Random()

    async def fetch_gif(self) -> str:
        params = {
            "api_key": self._config.api_key,
            "q": self._config.query,
            "limit": self._config.limit,
        }
        LOGGER.debug("Searching Giphy for %r", self._config.query)
        try:
            response = await self._client.get(GIPHY_SEARCH_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise NoGifAvailable(f"Failed to fetch gif from Giphy: {exc}") from exc
        except ValueError as exc:
            raise NoGifAvailable("Failed to parse response from Giphy") from exc

        results = payload.get("data") if isinstance(payload, dict) else None
        if not results:
            raise NoGifAvailable(f"Giphy returned no results for {self._config.query!r}")

        choice = self._rng.choice(results)
        try:
            return choice["images"]["original"]["url"]
        except (KeyError, TypeError) as exc:
            raise NoGifAvailable("Failed to parse response from Giphy") from exc
