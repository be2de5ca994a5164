"""Registration cog - /register links one summoner name to a Discord account."""
from __future__ import annotations

import discord
from discord import app_commands

from bot.log import get_logger
from bot.responder import Responder
from bot.services.accounts import RegisterStatus, register_account
from bot.services.discord_embeds import registered_embed

log = get_logger("register")


@app_commands.command(description="Link your League of Legends account to your Discord (max 1)")
@app_commands.describe(nickname="Your summoner name (e.g. Example Player)")
async def register(interaction: discord.Interaction, nickname: str) -> None:
    """Register a summoner name. Each Discord user gets one, and each name belongs to one user."""
    user = interaction.user
    log.info("Started by %s (%s) to register '%s'", user, user.id, nickname.strip())

    responder = Responder(interaction, log, ephemeral=True)
    if not await responder.defer():
        return

    try:
        result = await register_account(
            user.id, str(user), nickname, session_factory=interaction.client.session_factory
        )
    except Exception as e:
        await responder.report(e, prefix="❌ An error occurred")
        return

    if result.status is RegisterStatus.ALREADY_LINKED:
        if result.race:
            msg = "**Error:** You already have a registered account. An unexpected error happened during the check."
        else:
            msg = (
                f"**Error:** You already have a linked LoL account (`{result.summoner_name}`). "
                "Only one account per Discord user is allowed."
            )
        await responder.send(msg)
        return
    if result.status is RegisterStatus.NICKNAME_TAKEN:
        if result.race:
            msg = f"**Error:** The nickname `{result.summoner_name}` was just registered by someone else."
        else:
            msg = f"**Error:** The nickname `{result.summoner_name}` is already registered by another user."
        await responder.send(msg)
        return

    await responder.send(embed=registered_embed(result.summoner_name, user.id))
    log.info("Success reply sent")
