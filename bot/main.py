"""Main bot entry point."""
import asyncio
import logging
import sys

import aiohttp
import discord
from discord import app_commands
from discord.ext import commands

import config
from bot.cogs import guild_setup, matches, registration, stats
from bot.log import DiscordWebhookHandler, setup_logging, system
from bot.models import init_db
from bot.models.base import async_session_factory
from bot.services.vision import ScoreboardExtractor

logger = logging.getLogger("lolstats")

intents = discord.Intents.default()


class LeagueStatsBot(commands.Bot):
    """League of Legends community stats bot. Holds the shared DB session factory and vision client."""

    def __init__(self, webhook_handler: DiscordWebhookHandler | None = None):
        super().__init__(command_prefix="!", intents=intents)
        self.session_factory = async_session_factory
        self.extractor: ScoreboardExtractor | None = None
        self.webhook_handler = webhook_handler
        self.webhook_session: aiohttp.ClientSession | None = None

    async def on_ready(self) -> None:
        logger.info("Bot ready: %s (ID: %s)", self.user, self.user.id if self.user else "?")

    async def setup_hook(self) -> None:
        """Create tables, clients and the command tree before connecting."""
        await init_db()
        system("Database", "tables ready.")

        if config.GEMINI_API_KEY:
            self.extractor = ScoreboardExtractor(config.GEMINI_API_KEY, config.GEMINI_MODEL)
            system("Gemini", f"client initialized ({config.GEMINI_MODEL}).")
        else:
            system("Gemini", "not initialized (GEMINI_API_KEY missing). /processgame is disabled.", ok=False)

        if self.webhook_handler:
            self.webhook_session = aiohttp.ClientSession()
            self.webhook_handler.attach(asyncio.get_running_loop(), self.webhook_session)
            system("Webhook logs", "error logs are mirrored to Discord.")

        # Add commands
        self.tree.add_command(registration.register)
        self.tree.add_command(matches.processgame)
        self.tree.add_command(stats.profile)
        self.tree.add_command(stats.history)
        self.tree.add_command(stats.ranking)
        self.tree.add_command(guild_setup.setup_group)

        # Guild sync is instant; global sync can take up to an hour to propagate
        guild_id = config.guild_id()
        if guild_id:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to guild %s", len(synced), guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

        # Global error handler: always respond so Discord doesn't show "application did not respond"
        async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError) -> None:
            msg = "Something went wrong. Check bot logs."
            if isinstance(error, app_commands.NoPrivateMessage):
                msg = "This command can only be used in a server."
            elif isinstance(error, app_commands.CheckFailure):
                msg = "You don't have permission to use this command. (Need Manage Server)"
            else:
                logger.error("Command error: %s", error, exc_info=error)
            try:
                if interaction.response.is_done():
                    await interaction.followup.send(msg, ephemeral=True)
                else:
                    await interaction.response.send_message(msg, ephemeral=True)
            except discord.DiscordException:
                logger.warning("Could not report command error to the user", exc_info=True)

        self.tree.on_error = on_app_command_error

    async def close(self) -> None:
        """Cleanup on shutdown."""
        if self.webhook_handler:
            self.webhook_handler.detach()
        if self.webhook_session:
            await self.webhook_session.close()
        await super().close()


def main() -> None:
    """Validate configuration and run the bot."""
    webhook_handler = setup_logging(config.LOG_LEVEL, config.WEBHOOK_LOGS_URL)
    problems = config.validate_config()
    if problems:
        for problem in problems:
            logger.critical("Invalid configuration: %s", problem)
        sys.exit(1)
    system("Environment variables", "loaded.")
    if not config.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set - /processgame will be unavailable")

    bot = LeagueStatsBot(webhook_handler=webhook_handler)
    bot.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
