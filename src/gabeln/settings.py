"""Static configuration for gabeln.

User-editable settings (tracked users, polling, gifs, logging) live in a
single JSON file for quick edits without touching Python. Secrets stay in the
environment and are loaded with python-dotenv.
"""

import json
import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# config.json is optional; every key has a default below.
CONFIG_PATH = os.getenv("GABELN_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json, or an empty config when the file does not exist."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _parse_users(raw) -> tuple:
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(user.strip() for user in raw if user and user.strip())


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Tracked GitHub accounts; USERS in the environment wins over config.json.
_github = _CONFIG.get("github", {})
USERS = _parse_users(os.getenv("USERS") or _github.get("users", "fin-ger,jwuensche"))
POLL_INTERVAL_SECONDS = float(_github.get("poll_interval_seconds", 300))
# When false, events that already exist on startup are not announced.
ANNOUNCE_BACKLOG = bool(_github.get("announce_backlog", False))
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")

# Plain-text messages containing the trigger get a gif in active chats.
_telegram = _CONFIG.get("telegram", {})
TRIGGER = _telegram.get("trigger", "gabeln.jetzt")
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
API_ID = os.getenv("API_ID")
API_HASH = os.getenv("API_HASH")
SESSION_NAME = os.getenv("SESSION_NAME", "gabeln")

_giphy = _CONFIG.get("giphy", {})
GIPHY_API_KEY = os.getenv("GIPHY_API_KEY", "")
GIPHY_QUERY = _giphy.get("query", "fork food")
GIPHY_GIF_LIMIT = int(os.getenv("GIPHY_GIF_LIMIT") or _giphy.get("limit", 30))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {"enabled": True})

# Values masked in every log line, longest first so overlapping secrets
# are replaced whole.
SECRETS = tuple(
    sorted(
        {value for value in (TELEGRAM_BOT_TOKEN, API_HASH, GITHUB_TOKEN, GIPHY_API_KEY) if value},
        key=len,
        reverse=True,
    )
)
