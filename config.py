"""Configuration for the League stats bot."""
from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

load_dotenv()

# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN") or os.getenv("BOT_TOKEN", "")
GUILD_ID = os.getenv("GUILD_ID", "")  # Sync commands to this guild instantly (optional)
WEBHOOK_LOGS_URL = os.getenv("WEBHOOK_LOGS_URL", "")  # Mirror error logs to a Discord webhook (optional)

# Database
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'lolstats.db'}",
)

# Vision model used to read post-game screenshots
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Read-only stats API (web/run_api.py)
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def guild_id() -> int | None:
    """GUILD_ID as an int, or None when unset."""
    return int(GUILD_ID) if GUILD_ID.strip().isdigit() else None


def validate_config() -> list[str]:
    """Return a list of problems with required settings. Empty means OK."""
    problems = []
    if not DISCORD_TOKEN:
        problems.append("DISCORD_TOKEN is required")
    if not DATABASE_URL:
        problems.append("DATABASE_URL is required")
    else:
        try:
            make_url(DATABASE_URL)
        except ArgumentError:
            problems.append("DATABASE_URL is not a valid database URL")
    if WEBHOOK_LOGS_URL and not _is_http_url(WEBHOOK_LOGS_URL):
        problems.append("WEBHOOK_LOGS_URL must be an http(s) URL")
    if GUILD_ID and not GUILD_ID.strip().isdigit():
        problems.append("GUILD_ID must be a numeric Discord server ID")
    return problems
