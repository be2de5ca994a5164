"""Setup cog - /setup logs configures where processed matches are announced (Manage Server only)."""
from __future__ import annotations

import discord
from discord import app_commands
from sqlalchemy.exc import SQLAlchemyError

from bot.checks import manage_guild_only
from bot.log import get_logger
from bot.responder import Responder
from bot.services.discord_embeds import log_channel_embed
from bot.services.guild_settings import set_log_channel

log = get_logger("setup")

setup_group = app_commands.Group(
    name="setup",
    description="Bot settings for this server",
    guild_only=True,
    default_permissions=discord.Permissions(manage_guild=True),
)


@setup_group.command(name="logs", description="Set the channel that receives processed-match logs")
@app_commands.describe(channel="Text channel where logs will be sent")
@manage_guild_only()
async def logs(interaction: discord.Interaction, channel: discord.TextChannel) -> None:
    """Save the log channel, then try to post a confirmation there."""
    guild_id = interaction.guild_id
    log.info(
        "'logs' started by %s in guild %s for #%s (%s)", interaction.user, guild_id, channel.name, channel.id
    )
    responder = Responder(interaction, log, ephemeral=True)
    if not await responder.defer():
        return

    log.db("Setting log channel %s for guild %s...", channel.id, guild_id)
    try:
        await set_log_channel(guild_id, channel.id, session_factory=interaction.client.session_factory)
    except SQLAlchemyError:
        log.error("Failed to save log channel for guild %s", guild_id, exc_info=True)
        await responder.fail(
            "❌ An error occurred while configuring the log channel: could not save the setting to the database."
        )
        return
    log.success("Log channel #%s (%s) configured for guild %s", channel.name, channel.id, guild_id)

    embed = log_channel_embed(channel)
    try:
        await channel.send(f"This channel was set up to receive match logs by {interaction.user.mention}.")
        log.info("Confirmation sent to #%s", channel.name)
    except discord.HTTPException as e:
        log.warning("Could not send a confirmation to #%s. Check permissions. (%s)", channel.name, e)
        embed.set_footer(text="⚠️ I couldn't send a confirmation message in that channel. Check my permissions.")

    await responder.send(embed=embed)
