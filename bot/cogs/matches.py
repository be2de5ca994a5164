"""Matches cog - /processgame reads a post-game screenshot and records the match."""
from __future__ import annotations

import io
import os

import discord
from discord import app_commands

from bot.log import get_logger
from bot.responder import Responder
from bot.services.discord_embeds import match_log_embed, match_saved_embed
from bot.services.guild_settings import get_log_channel_id
from bot.services.ingestion import IngestResult, IngestStatus, process_screenshot

log = get_logger("processgame")

LOG_CHANNEL_TYPES = (discord.TextChannel, discord.Thread)


async def _post_match_log(
    interaction: discord.Interaction,
    result: IngestResult,
    image: bytes,
    filename: str,
) -> None:
    """Relay the saved match to the guild's log channel. Failures are logged, never raised."""
    channel_id = await get_log_channel_id(interaction.guild_id, session_factory=interaction.client.session_factory)
    if not channel_id:
        log.warning("No log channel configured for guild %s", interaction.guild_id)
        return
    try:
        channel = interaction.client.get_channel(channel_id) or await interaction.client.fetch_channel(channel_id)
    except discord.DiscordException:
        log.error("Failed to fetch log channel %s", channel_id, exc_info=True)
        return
    if not isinstance(channel, LOG_CHANNEL_TYPES):
        log.warning("Log channel %s is missing or not a text channel/thread", channel_id)
        return

    log.info("Sending log to channel %s...", channel_id)
    embed = match_log_embed(result, interaction.user, f"attachment://{filename}")
    try:
        await channel.send(embed=embed, file=discord.File(io.BytesIO(image), filename=filename))
    except discord.DiscordException:
        log.error("Failed to post to log channel %s", channel_id, exc_info=True)
        return
    log.success("Log sent to channel %s", channel_id)


@app_commands.command(description="Extract and save the stats from a LoL match screenshot")
@app_commands.describe(screenshot="Screenshot of the final match scoreboard")
@app_commands.guild_only()
async def processgame(interaction: discord.Interaction, screenshot: discord.Attachment) -> None:
    """Run the ingestion pipeline on one scoreboard screenshot."""
    log.info(
        "Started by %s (%s) in guild %s", interaction.user, interaction.user.id, interaction.guild_id
    )
    responder = Responder(interaction, log)

    extractor = interaction.client.extractor
    if extractor is None:
        log.error("Run without a vision client (GEMINI_API_KEY missing)")
        await responder.fail("Internal error: the image analysis API is not configured. Contact an administrator.")
        return

    if not await responder.defer():
        return

    log.info("Attachment received: %s (%s)", screenshot.filename, screenshot.content_type)
    if not (screenshot.content_type or "").startswith("image/"):
        log.warning("Invalid attachment type received")
        await responder.send("Please send a valid image file.")
        return

    try:
        image = await screenshot.read()
        result = await process_screenshot(
            extractor,
            image,
            screenshot.content_type,
            screenshot.url,
            session_factory=interaction.client.session_factory,
        )
    except Exception as e:
        await responder.report(e)
        return

    if result.status is IngestStatus.DUPLICATE:
        await responder.send("**Error:** This match has already been registered.")
        return

    await responder.send(embed=match_saved_embed(result))
    log.info("Success reply sent")

    ext = os.path.splitext(screenshot.filename)[1] or ".png"
    await _post_match_log(interaction, result, image, f"scoreboard{ext}")
