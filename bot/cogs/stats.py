"""Stats cog - /profile, /history, /ranking."""
from __future__ import annotations

from typing import Optional

import discord
from discord import app_commands
from sqlalchemy.exc import SQLAlchemyError

from bot.log import get_logger
from bot.responder import Responder
from bot.services.accounts import get_account_for_user
from bot.services.discord_embeds import history_embed, profile_embed, ranking_embed
from bot.services.stats import RANKING_LIMIT, RANKING_MIN_GAMES, get_history, get_profile, get_ranking

RANKING_CHOICES = [
    app_commands.Choice(name="🏆 Win Rate", value="WINRATE"),
    app_commands.Choice(name="⚔️ KDA (Kills+Assists / Deaths)", value="KDA"),
]

profile_log = get_logger("profile")
history_log = get_logger("history")
ranking_log = get_logger("ranking")


def _no_account(target: discord.abc.User) -> str:
    return f"{target.name} has no registered LoL account. Use `/register`."


@app_commands.command(description="Show a user's League of Legends profile and stats")
@app_commands.describe(user="Discord user to show (default: you)")
async def profile(interaction: discord.Interaction, user: Optional[discord.User] = None) -> None:
    """Aggregate stats for the target's linked account."""
    target = user or interaction.user
    profile_log.info("Started by %s for %s", interaction.user, target)
    responder = Responder(interaction, profile_log)
    if not await responder.defer():
        return

    try:
        async with interaction.client.session_factory() as session:
            account = await get_account_for_user(session, target.id)
            if not account:
                profile_log.warning("No LoL account for %s", target)
                await responder.send(_no_account(target))
                return
            profile_log.db("Fetching stats for %s", account.summoner_name)
            stats = await get_profile(session, account.summoner_name)
    except SQLAlchemyError:
        profile_log.error("Profile lookup failed for %s", target, exc_info=True)
        await responder.fail("❌ Error while fetching the profile: could not load the match stats.")
        return

    profile_log.success("Profile for %s computed. Games: %d", account.summoner_name, stats.games)
    await responder.send(embed=profile_embed(target, stats))


@app_commands.command(description="Show a user's recent match history")
@app_commands.describe(user="Discord user to show (default: you)")
async def history(interaction: discord.Interaction, user: Optional[discord.User] = None) -> None:
    """Latest recorded matches for the target's linked account."""
    target = user or interaction.user
    history_log.info("Started by %s for %s", interaction.user, target)
    responder = Responder(interaction, history_log)
    if not await responder.defer():
        return

    try:
        async with interaction.client.session_factory() as session:
            account = await get_account_for_user(session, target.id)
            if not account:
                history_log.warning("No LoL account for %s", target)
                await responder.send(_no_account(target))
                return
            history_log.db("Fetching recent matches for %s", account.summoner_name)
            entries = await get_history(session, account.summoner_name)
    except SQLAlchemyError:
        history_log.error("History lookup failed for %s", target, exc_info=True)
        await responder.fail("❌ Error while fetching the history: could not load the match history.")
        return

    if not entries:
        await responder.send(f"No match history found for `{account.summoner_name}`.")
        return
    await responder.send(embed=history_embed(target, account.summoner_name, entries))
    history_log.success("History for %s sent (%d matches)", account.summoner_name, len(entries))


@app_commands.command(description="Show the player ranking by win rate or KDA")
@app_commands.describe(type="Ranking to show")
@app_commands.choices(type=RANKING_CHOICES)
async def ranking(interaction: discord.Interaction, type: app_commands.Choice[str]) -> None:
    """Top players among registered users."""
    ranking_type = type.value
    ranking_log.info("Started by %s, type %s", interaction.user, ranking_type)
    responder = Responder(interaction, ranking_log)
    if not await responder.defer():
        return

    try:
        async with interaction.client.session_factory() as session:
            ranked = await get_ranking(session, ranking_type)
    except SQLAlchemyError:
        ranking_log.error("Ranking query failed", exc_info=True)
        await responder.fail("❌ Error while building the ranking: could not load ranking data.")
        return

    if not ranked:
        ranking_log.warning("No qualified players")
        await responder.send(
            f"No players with {RANKING_MIN_GAMES} or more matches found to build a ranking yet."
        )
        return

    await responder.send(embed=ranking_embed(ranked[:RANKING_LIMIT], ranking_type, len(ranked)))
    ranking_log.success("Ranking %s sent (%d qualified)", ranking_type, len(ranked))
