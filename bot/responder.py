"""Interaction reply helper that tracks whether we already deferred or replied."""
from __future__ import annotations

import enum
from typing import Optional

import discord

from bot.errors import BotError, ValidationError
from bot.log import CommandLogger


class ResponseState(enum.Enum):
    NOT_RESPONDED = "not_responded"
    DEFERRED = "deferred"
    REPLIED = "replied"


class Responder:
    """Wraps one interaction. Handlers call ``defer`` first, then ``send`` or ``fail``.

    The state is tracked here instead of asking discord.py, so error paths know
    whether to send a fresh response or edit the deferred one.
    """

    def __init__(self, interaction: discord.Interaction, logger: CommandLogger, ephemeral: bool = False):
        self.interaction = interaction
        self.logger = logger
        self.ephemeral = ephemeral
        self.state = ResponseState.NOT_RESPONDED

    async def defer(self) -> bool:
        """Defer the response. Returns False (after trying to tell the user) if Discord rejected it."""
        if self.state is not ResponseState.NOT_RESPONDED:
            return self.state is ResponseState.DEFERRED
        try:
            await self.interaction.response.defer(ephemeral=self.ephemeral, thinking=True)
        except discord.DiscordException:
            self.logger.exception("Failed to defer the response")
            await self.fail("Something went wrong while starting. Please try again.")
            return False
        self.state = ResponseState.DEFERRED
        self.logger.info("Response deferred")
        return True

    async def send(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[discord.Embed] = None,
    ) -> None:
        """Send the reply, or replace the deferred/previous one."""
        if self.state is ResponseState.NOT_RESPONDED:
            kwargs = {"ephemeral": self.ephemeral}
            if embed is not None:
                kwargs["embed"] = embed
            await self.interaction.response.send_message(content, **kwargs)
        else:
            await self.interaction.edit_original_response(
                content=content,
                embeds=[embed] if embed is not None else [],
            )
        self.state = ResponseState.REPLIED

    async def fail(self, message: str) -> None:
        """Report an error to the user. Never raises; a failed report is only logged."""
        try:
            await self.send(message)
        except discord.DiscordException:
            self.logger.exception("Failed to send the error reply")

    async def report(self, error: Exception, prefix: str = "❌ An error occurred") -> None:
        """Log error and show it to the user. Only BotError messages are shown verbatim."""
        if isinstance(error, ValidationError):
            self.logger.warning("%s", error)
        else:
            self.logger.error("Command failed", exc_info=error)
        detail = str(error) if isinstance(error, BotError) else "Unknown error."
        await self.fail(f"{prefix}: {detail}")
