"""Exceptions raised by services and shown to users by the command handlers."""
from __future__ import annotations


class BotError(Exception):
    """Base error. ``str(error)`` is safe to show to the user."""


class ValidationError(BotError):
    """Bad user input or unusable extraction (nickname length, non-image attachment, too few players)."""


class ExternalServiceError(BotError):
    """Database, AI or Discord dependency failed. The message is generic; the cause is chained."""
