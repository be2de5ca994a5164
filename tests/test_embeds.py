"""Tests for reply embeds and command checks."""
from unittest.mock import MagicMock

import discord

from bot.checks import _can_manage_guild
from bot.services.discord_embeds import match_saved_embed, rank_label, ranking_embed, ranking_lines
from bot.services.ingestion import IngestResult, IngestStatus
from bot.services.stats import RankEntry


def test_rank_label_fallbacks():
    assert rank_label(RankEntry(1, "alice", "Faker")) == "**Faker**"
    assert rank_label(RankEntry(1, "alice", None)) == "**alice**"
    assert rank_label(RankEntry(1, None, None)) == "<@1>"


def test_ranking_lines_medals_and_numbers():
    entries = [RankEntry(i, f"u{i}", f"P{i}", games=4, wins=3, kills=4, deaths=2, assists=4) for i in range(1, 5)]

    lines = ranking_lines(entries, "WINRATE")

    assert lines[0] == "🥇 **P1**"
    assert lines[1] == "   └── 🏆 WR: **75.0%** (3W/1L) | KDA: 4.00"
    assert lines[2].startswith("🥈")
    assert lines[4].startswith("🥉")
    assert lines[6] == "4. **P4**"

    kda_lines = ranking_lines(entries[:1], "KDA")
    assert kda_lines[1] == "   └── ⚔️ KDA: **4.00** (4/2/4) | WR: 75.0%"


def test_ranking_embed_footer_counts_qualified():
    top = [RankEntry(1, "a", "A", games=1, wins=1)]
    embed = ranking_embed(top, "KDA", qualified=12)
    assert "Top 1 by KDA" in embed.title
    assert "12 qualified players" in embed.footer.text


def test_match_saved_embed_counts_linked_players():
    stats = [{"summoner_name_snapshot": f"P{i}", "account_id": i if i < 3 else None} for i in range(10)]
    embed = match_saved_embed(IngestResult(IngestStatus.SAVED, "f" * 64, stats))
    assert embed.fields[0].value == "3 of 10 players are linked to accounts."


def test_manage_guild_check():
    interaction = MagicMock(spec=["guild", "user"])
    interaction.guild = object()
    interaction.user = MagicMock(spec=discord.Member)
    interaction.user.guild_permissions = discord.Permissions(manage_guild=True)
    assert _can_manage_guild(interaction) is True

    interaction.user.guild_permissions = discord.Permissions.none()
    assert _can_manage_guild(interaction) is False

    interaction.guild = None
    assert _can_manage_guild(interaction) is False
