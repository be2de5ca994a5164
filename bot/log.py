"""Console logging keyed by command tag and icon, plus optional Discord webhook mirroring."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
import discord

ROOT_LOGGER = "lolstats"

ICONS = {
    "info": "ℹ️",
    "success": "✓",
    "warning": "▲",
    "error": "✖︎",
    "db": "💾",
    "api": "☁️",
    "process": "⚙️",
    "debug": "🐞",
    "system": "☰",
}

_LEVEL_ICONS = {
    logging.DEBUG: ICONS["debug"],
    logging.INFO: ICONS["info"],
    logging.WARNING: ICONS["warning"],
    logging.ERROR: ICONS["error"],
    logging.CRITICAL: ICONS["error"],
}


class CommandFormatter(logging.Formatter):
    """Render records as ``<icon> [<command>] <message>``."""

    def __init__(self, show_time: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.show_time = show_time

    def format(self, record: logging.LogRecord) -> str:
        icon = getattr(record, "icon", None) or _LEVEL_ICONS.get(record.levelno, "")
        command = getattr(record, "command", None)
        parts = []
        if self.show_time:
            parts.append(self.formatTime(record, self.datefmt))
        parts.append(icon)
        if command:
            parts.append(f"[{command}]")
        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info:
            # Error detail goes on its own indented line, then the traceback
            exc = record.exc_info[1]
            line += f"\n  └─> {exc}\n" + self.formatException(record.exc_info)
        return line


class CommandLogger(logging.LoggerAdapter):
    """Logger bound to one command tag. ``db``/``api``/``step``/``success`` log at INFO with their own icon."""

    def __init__(self, command: str):
        super().__init__(logging.getLogger(f"{ROOT_LOGGER}.{command}"), {"command": command})

    def process(self, msg: Any, kwargs: dict) -> tuple[Any, dict]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def _with_icon(self, kind: str, msg: str, *args, **kwargs) -> None:
        kwargs.setdefault("extra", {})["icon"] = ICONS[kind]
        self.info(msg, *args, **kwargs)

    def success(self, msg: str, *args, **kwargs) -> None:
        self._with_icon("success", msg, *args, **kwargs)

    def db(self, msg: str, *args, **kwargs) -> None:
        self._with_icon("db", msg, *args, **kwargs)

    def api(self, msg: str, *args, **kwargs) -> None:
        self._with_icon("api", msg, *args, **kwargs)

    def step(self, msg: str, *args, **kwargs) -> None:
        self._with_icon("process", msg, *args, **kwargs)


def get_logger(command: str) -> CommandLogger:
    return CommandLogger(command)


def system(module: str, message: str, ok: bool = True) -> None:
    """One-line startup status for a module or client."""
    logger = logging.getLogger(f"{ROOT_LOGGER}.system")
    icon = ICONS["success"] if ok else ICONS["error"]
    logger.log(logging.INFO if ok else logging.ERROR, "%s: %s", module, message, extra={"icon": icon})


class DiscordWebhookHandler(logging.Handler):
    """Mirror log records to a Discord webhook. Inactive until ``attach`` binds a loop and session."""

    def __init__(self, url: str, level: int = logging.ERROR):
        super().__init__(level)
        self.url = url
        self._loop: asyncio.AbstractEventLoop | None = None
        self._session: aiohttp.ClientSession | None = None
        self._tasks: set[asyncio.Task] = set()  # strong refs until each send finishes
        self.setFormatter(CommandFormatter(show_time=False))

    def attach(self, loop: asyncio.AbstractEventLoop, session: aiohttp.ClientSession) -> None:
        self._loop = loop
        self._session = session

    def detach(self) -> None:
        self._loop = None
        self._session = None

    def emit(self, record: logging.LogRecord) -> None:
        # discord.py's own records would re-enter through the webhook call
        if record.name.startswith("discord"):
            return
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        text = self.format(record)
        if len(text) > 1900:
            text = text[:1900] + "…"
        loop.call_soon_threadsafe(self._spawn, text, record)

    def _spawn(self, text: str, record: logging.LogRecord) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._send(text, record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(self, text: str, record: logging.LogRecord) -> None:
        if self._session is None or self._session.closed:
            return
        webhook = discord.Webhook.from_url(self.url, session=self._session)
        try:
            await webhook.send(content=f"```\n{text}\n```", username="LoL Stats Logs")
        except (discord.HTTPException, aiohttp.ClientError):
            self.handleError(record)


def setup_logging(level: str = "INFO", webhook_url: str = "") -> DiscordWebhookHandler | None:
    """Configure the process-wide handlers. Returns the webhook handler when one is configured."""
    console = logging.StreamHandler()
    console.setFormatter(CommandFormatter())
    root = logging.getLogger()
    root.handlers[:] = [console]
    root.setLevel(getattr(logging, level, logging.INFO))
    webhook_handler = None
    if webhook_url:
        webhook_handler = DiscordWebhookHandler(webhook_url)
        root.addHandler(webhook_handler)
    return webhook_handler
