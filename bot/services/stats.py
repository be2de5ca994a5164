"""Read-side aggregation for /profile, /history and /ranking."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bot.models import LoLAccount, Match, PlayerMatchStat, User

HISTORY_LIMIT = 10
RANKING_LIMIT = 10
RANKING_MIN_GAMES = 1
RANKING_TYPES = ("WINRATE", "KDA")


def calculate_kda(kills: int, deaths: int, assists: int) -> float:
    """(kills + assists) / deaths, or kills + assists when there are no deaths."""
    if deaths == 0:
        return float(kills + assists)
    return (kills + assists) / deaths


def format_kda(kills: int, deaths: int, assists: int) -> str:
    score = calculate_kda(kills, deaths, assists)
    if deaths == 0:
        return f"{score:.1f} KDA (Perfect)"
    return f"{score:.2f}"


def format_win_rate(wins: int, games: int) -> str:
    if games == 0:
        return "N/A (0%)"
    return f"{wins / games * 100:.1f}%"


@dataclass
class ProfileStats:
    summoner_name: str
    games: int = 0
    wins: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    damage: int = 0
    gold: int = 0

    @property
    def win_rate(self) -> str:
        return format_win_rate(self.wins, self.games)

    @property
    def kda(self) -> str:
        return format_kda(self.kills, self.deaths, self.assists)

    @property
    def avg_damage(self) -> int:
        return round(self.damage / self.games) if self.games else 0

    @property
    def avg_gold(self) -> int:
        return round(self.gold / self.games) if self.games else 0


def summarize(summoner_name: str, stats: Iterable[PlayerMatchStat]) -> ProfileStats:
    profile = ProfileStats(summoner_name=summoner_name)
    for s in stats:
        profile.games += 1
        if s.win is True:
            profile.wins += 1
        profile.kills += s.kills or 0
        profile.deaths += s.deaths or 0
        profile.assists += s.assists or 0
        profile.damage += s.damage or 0
        profile.gold += s.gold or 0
    return profile


async def get_profile(session: AsyncSession, summoner_name: str) -> ProfileStats:
    """Aggregate every stat row recorded under this summoner name."""
    result = await session.execute(
        select(PlayerMatchStat).where(PlayerMatchStat.summoner_name_snapshot == summoner_name)
    )
    return summarize(summoner_name, result.scalars().all())


@dataclass
class HistoryEntry:
    stat: PlayerMatchStat
    processed_at: Optional[datetime]


async def get_history(session: AsyncSession, summoner_name: str, limit: int = HISTORY_LIMIT) -> list[HistoryEntry]:
    """Most recent stat rows for a summoner name, newest match first."""
    result = await session.execute(
        select(PlayerMatchStat, Match.processed_at)
        .join(Match, PlayerMatchStat.match_hash == Match.match_hash)
        .where(PlayerMatchStat.summoner_name_snapshot == summoner_name)
        .order_by(Match.processed_at.desc())
        .limit(limit)
    )
    entries = []
    for stat, processed_at in result.all():
        if processed_at is not None and processed_at.tzinfo is None:
            processed_at = processed_at.replace(tzinfo=timezone.utc)
        entries.append(HistoryEntry(stat=stat, processed_at=processed_at))
    return entries


@dataclass
class RankEntry:
    discord_id: int
    discord_tag: Optional[str]
    summoner_name: Optional[str]
    games: int = 0
    wins: int = 0
    kills: int = 0
    deaths: int = 0
    assists: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    @property
    def kda_score(self) -> float:
        return calculate_kda(self.kills, self.deaths, self.assists)


def aggregate_ranking(rows: Iterable[tuple]) -> list[RankEntry]:
    """Fold (discord_id, discord_tag, summoner_name, win, kills, deaths, assists) rows into one entry per user."""
    by_user: dict[int, RankEntry] = {}
    for discord_id, discord_tag, summoner_name, win, kills, deaths, assists in rows:
        entry = by_user.get(discord_id)
        if entry is None:
            entry = RankEntry(discord_id=discord_id, discord_tag=discord_tag, summoner_name=summoner_name)
            by_user[discord_id] = entry
        if summoner_name:
            entry.summoner_name = summoner_name
        if discord_tag:
            entry.discord_tag = discord_tag
        entry.games += 1
        if win is True:
            entry.wins += 1
        entry.kills += kills or 0
        entry.deaths += deaths or 0
        entry.assists += assists or 0
    return list(by_user.values())


def sort_ranking(entries: list[RankEntry], ranking_type: str, min_games: int = RANKING_MIN_GAMES) -> list[RankEntry]:
    """WINRATE: win rate, KDA, games. KDA: KDA, win rate, games. All descending."""
    if ranking_type not in RANKING_TYPES:
        raise ValueError(f"Unknown ranking type: {ranking_type}")
    qualified = [e for e in entries if e.games >= min_games]
    if ranking_type == "WINRATE":
        key = lambda e: (e.win_rate, e.kda_score, e.games)  # noqa: E731
    else:
        key = lambda e: (e.kda_score, e.win_rate, e.games)  # noqa: E731
    return sorted(qualified, key=key, reverse=True)


async def get_ranking(session: AsyncSession, ranking_type: str) -> list[RankEntry]:
    """All qualified users, sorted. Only rows linked to a registered account and user count."""
    result = await session.execute(
        select(
            User.discord_id,
            User.discord_tag,
            LoLAccount.summoner_name,
            PlayerMatchStat.win,
            PlayerMatchStat.kills,
            PlayerMatchStat.deaths,
            PlayerMatchStat.assists,
        )
        .join(LoLAccount, PlayerMatchStat.account_id == LoLAccount.account_id)
        .join(User, LoLAccount.owner_discord_id == User.discord_id)
    )
    return sort_ranking(aggregate_ranking(result.all()), ranking_type)
