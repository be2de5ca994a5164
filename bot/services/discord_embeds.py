"""Shared Discord embed builders for registration, match, profile, history and ranking replies."""
from __future__ import annotations

from datetime import datetime

import discord

from bot.services.ingestion import IngestResult
from bot.services.stats import (
    HISTORY_LIMIT,
    RANKING_MIN_GAMES,
    HistoryEntry,
    ProfileStats,
    RankEntry,
    format_win_rate,
)

GREEN = discord.Color.from_str("#2ECC71")
MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def _num(value: int | None) -> str:
    return f"{value:,}" if value is not None else "?"


def registered_embed(summoner_name: str, discord_id: int) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Account Registered!",
        description=f"The nickname `{summoner_name}` is now linked to your Discord account (<@{discord_id}>).",
        color=GREEN,
    )
    embed.add_field(
        name="Next Steps",
        value="Use `/processgame` with your screenshots to record matches, or `/profile` / `/history` to see your stats.",
        inline=False,
    )
    embed.timestamp = discord.utils.utcnow()
    return embed


def match_saved_embed(result: IngestResult) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Match Recorded!",
        description=f"Match `{result.fingerprint[:12]}` was analysed and saved.",
        color=GREEN,
    )
    embed.add_field(
        name="Linked Players",
        value=f"{len(result.linked_names)} of {len(result.stats)} players are linked to accounts.",
        inline=False,
    )
    embed.timestamp = discord.utils.utcnow()
    return embed


def match_log_embed(result: IngestResult, submitter: discord.abc.User, image_url: str) -> discord.Embed:
    """Log-channel summary. image_url may be an ``attachment://`` reference."""
    now = discord.utils.utcnow()
    affected = ", ".join(f"`{name}`" for name in result.linked_names) or "None"
    embed = discord.Embed(
        title="📄 New Match Processed",
        description=f"Submitted by {submitter.mention} ({submitter})",
        color=GREEN,
    )
    embed.add_field(name="Hash", value=f"`{result.fingerprint}`", inline=True)
    embed.add_field(name="Time", value=discord.utils.format_dt(now, "R"), inline=True)
    embed.add_field(name="Affected Players", value=affected[:1024], inline=False)
    embed.set_image(url=image_url)
    embed.timestamp = now
    return embed


def profile_embed(user: discord.abc.User, profile: ProfileStats) -> discord.Embed:
    embed = discord.Embed(
        title="Overall Stats - League of Legends",
        description=f"Showing data from every recorded match for `{profile.summoner_name}`.",
        color=discord.Color.from_str("#3b82f6"),
    )
    embed.set_author(
        name=f"{user.name}'s profile | Account: {profile.summoner_name}",
        icon_url=user.display_avatar.url,
    )
    embed.add_field(name="📊 Matches", value=str(profile.games), inline=True)
    embed.add_field(name="🏆 Wins", value=str(profile.wins), inline=True)
    embed.add_field(name="📈 Win Rate", value=profile.win_rate, inline=True)
    embed.add_field(name="⚔️ KDA", value=profile.kda, inline=True)
    embed.add_field(name="💥 Avg Damage", value=_num(profile.avg_damage), inline=True)
    embed.add_field(name="💰 Avg Gold", value=_num(profile.avg_gold), inline=True)
    embed.add_field(name="🎯 Total Kills", value=_num(profile.kills), inline=True)
    embed.add_field(name="💀 Total Deaths", value=_num(profile.deaths), inline=True)
    embed.add_field(name="🤝 Total Assists", value=_num(profile.assists), inline=True)
    embed.set_footer(text=f"Discord user: {user}")
    embed.timestamp = discord.utils.utcnow()
    return embed


def _relative(ts: datetime | None) -> str:
    return discord.utils.format_dt(ts, "R") if ts else "Unknown date"


def history_embed(user: discord.abc.User, summoner_name: str, entries: list[HistoryEntry]) -> discord.Embed:
    embed = discord.Embed(
        description=f"Showing the last {len(entries)} recorded matches for `{summoner_name}`.",
        color=discord.Color.from_str("#5865F2"),
    )
    embed.set_author(
        name=f"{user.name}'s match history | Account: {summoner_name}",
        icon_url=user.display_avatar.url,
    )
    for entry in entries:
        s = entry.stat
        result = "??" if s.win is None else ("Victory" if s.win else "Defeat")
        kda = f"{_num(s.kills)}/{_num(s.deaths)}/{_num(s.assists)}"
        embed.add_field(
            name=f"{s.champion_name or '?'} ({result})",
            value=(
                f"{_relative(entry.processed_at)}\n"
                f"KDA: {kda} | Damage: {_num(s.damage)} | Gold: {_num(s.gold)}\n"
                f"*Hash: `{s.match_hash[:8]}...`*"
            ),
            inline=False,
        )
    embed.set_footer(text=f"Showing {len(entries)} of up to {HISTORY_LIMIT} matches.")
    embed.timestamp = discord.utils.utcnow()
    return embed


def rank_label(entry: RankEntry) -> str:
    """Summoner name, then Discord tag, then a mention."""
    if entry.summoner_name:
        return f"**{entry.summoner_name}**"
    if entry.discord_tag:
        return f"**{entry.discord_tag}**"
    return f"<@{entry.discord_id}>"


def ranking_lines(entries: list[RankEntry], ranking_type: str) -> list[str]:
    lines = []
    for rank, e in enumerate(entries, 1):
        medal = MEDALS.get(rank, f"{rank}.")
        win_rate = format_win_rate(e.wins, e.games)
        kda = f"{e.kda_score:.2f}"
        lines.append(f"{medal} {rank_label(e)}")
        if ranking_type == "WINRATE":
            lines.append(f"   └── 🏆 WR: **{win_rate}** ({e.wins}W/{e.games - e.wins}L) | KDA: {kda}")
        else:
            lines.append(f"   └── ⚔️ KDA: **{kda}** ({e.kills}/{e.deaths}/{e.assists}) | WR: {win_rate}")
    return lines


def ranking_embed(top: list[RankEntry], ranking_type: str, qualified: int) -> discord.Embed:
    label = "Win Rate" if ranking_type == "WINRATE" else "KDA"
    color = "#FEE75C" if ranking_type == "WINRATE" else "#ED4245"
    embed = discord.Embed(
        title=f"🎖️ Player Ranking - Top {len(top)} by {label}",
        description="\n".join(ranking_lines(top, ranking_type)) or "No qualified players for this ranking.",
        color=discord.Color.from_str(color),
    )
    embed.set_footer(
        text=f"Minimum of {RANKING_MIN_GAMES} match(es) to qualify. {qualified} qualified players in total."
    )
    embed.timestamp = discord.utils.utcnow()
    return embed


def log_channel_embed(channel: discord.abc.GuildChannel) -> discord.Embed:
    embed = discord.Embed(
        title="✅ Log Channel Configured!",
        description=f"Processed-match notifications will be sent to {channel.mention}.",
        color=GREEN,
    )
    embed.timestamp = discord.utils.utcnow()
    return embed
