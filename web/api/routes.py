"""Read-only stats API: ranking, profile and history for registered players."""
from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from bot.models.base import get_async_session
from bot.services.accounts import get_account_for_user
from bot.services.stats import HISTORY_LIMIT, RANKING_LIMIT, get_history, get_profile, get_ranking

router = APIRouter(prefix="/api", tags=["stats"])


class RankingEntryOut(BaseModel):
    rank: int
    discord_id: str  # Snowflakes overflow JS numbers
    discord_tag: Optional[str]
    summoner_name: Optional[str]
    games: int
    wins: int
    kills: int
    deaths: int
    assists: int
    win_rate: float
    kda: float


class RankingOut(BaseModel):
    type: str
    qualified: int
    players: list[RankingEntryOut]


class ProfileOut(BaseModel):
    discord_id: str
    summoner_name: str
    games: int
    wins: int
    win_rate: str
    kda: str
    kills: int
    deaths: int
    assists: int
    avg_damage: int
    avg_gold: int


class HistoryEntryOut(BaseModel):
    match_hash: str
    champion_name: str
    win: Optional[bool]
    team: int
    kills: int
    deaths: int
    assists: int
    damage: int
    gold: int
    processed_at: Optional[datetime]


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ranking", response_model=RankingOut)
async def ranking(
    type: Literal["WINRATE", "KDA"] = Query("WINRATE"),
    session: AsyncSession = Depends(get_async_session),
):
    """Top players by win rate or KDA."""
    ranked = await get_ranking(session, type)
    players = [
        RankingEntryOut(
            rank=i,
            discord_id=str(e.discord_id),
            discord_tag=e.discord_tag,
            summoner_name=e.summoner_name,
            games=e.games,
            wins=e.wins,
            kills=e.kills,
            deaths=e.deaths,
            assists=e.assists,
            win_rate=round(e.win_rate, 4),
            kda=round(e.kda_score, 2),
        )
        for i, e in enumerate(ranked[:RANKING_LIMIT], 1)
    ]
    return RankingOut(type=type, qualified=len(ranked), players=players)


@router.get("/players/{discord_id}/profile", response_model=ProfileOut)
async def player_profile(discord_id: int, session: AsyncSession = Depends(get_async_session)):
    account = await get_account_for_user(session, discord_id)
    if not account:
        raise HTTPException(status_code=404, detail="No LoL account linked to this user")
    stats = await get_profile(session, account.summoner_name)
    return ProfileOut(
        discord_id=str(discord_id),
        summoner_name=stats.summoner_name,
        games=stats.games,
        wins=stats.wins,
        win_rate=stats.win_rate,
        kda=stats.kda,
        kills=stats.kills,
        deaths=stats.deaths,
        assists=stats.assists,
        avg_damage=stats.avg_damage,
        avg_gold=stats.avg_gold,
    )


@router.get("/players/{discord_id}/history", response_model=list[HistoryEntryOut])
async def player_history(
    discord_id: int,
    limit: int = Query(HISTORY_LIMIT, ge=1, le=50),
    session: AsyncSession = Depends(get_async_session),
):
    account = await get_account_for_user(session, discord_id)
    if not account:
        raise HTTPException(status_code=404, detail="No LoL account linked to this user")
    entries = await get_history(session, account.summoner_name, limit=limit)
    return [
        HistoryEntryOut(
            match_hash=e.stat.match_hash,
            champion_name=e.stat.champion_name,
            win=e.stat.win,
            team=e.stat.team,
            kills=e.stat.kills,
            deaths=e.stat.deaths,
            assists=e.stat.assists,
            damage=e.stat.damage,
            gold=e.stat.gold,
            processed_at=e.processed_at,
        )
        for e in entries
    ]
