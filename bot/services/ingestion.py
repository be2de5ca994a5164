"""Match ingestion: parse the model's scoreboard JSON, fingerprint it, and save it with rollback.

The Match row and its Player_Match_Stats rows are written in separate commits.
Once the Match row exists, any later failure deletes it again through
``discard_match`` so a match never survives without its stats.
"""
from __future__ import annotations

import enum
import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.errors import ExternalServiceError, ValidationError
from bot.log import get_logger
from bot.models import LoLAccount, Match, PlayerMatchStat
from bot.models.base import async_session_factory

log = get_logger("processgame")

MIN_PLAYERS = 10
UNKNOWN = "Unknown"

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)
_LEADING_INT_RE = re.compile(r"[+-]?\d+")
_SEPARATOR_RE = re.compile(r"(?<=\d)[,\s_](?=\d{3})")


class Extractor(Protocol):
    async def extract(self, image: bytes, mime_type: str) -> str: ...


@dataclass
class ExtractedPlayer:
    summoner_name: Optional[str]
    champion_name: Optional[str]
    kda: Optional[str]
    damage: Any
    gold: Any
    team: int  # 1 if listed in team1_players, else 2


@dataclass
class ExtractedGame:
    result: Optional[str]
    players: list[ExtractedPlayer]


class IngestStatus(enum.Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"


@dataclass
class IngestResult:
    status: IngestStatus
    fingerprint: str
    stats: list[dict] = field(default_factory=list)

    @property
    def linked_names(self) -> list[str]:
        """Summoner names of players that matched a registered account."""
        return [s["summoner_name_snapshot"] for s in self.stats if s["account_id"] is not None]


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if the model added one."""
    return _FENCE_RE.sub("", text.strip())


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _player_from_dict(raw: Any, team: int) -> ExtractedPlayer:
    if not isinstance(raw, dict):
        raise ExternalServiceError("The AI did not return a valid data format.")
    return ExtractedPlayer(
        summoner_name=_text(raw.get("summonerName")),
        champion_name=_text(raw.get("championName")),
        kda=_text(raw.get("KDA")),
        damage=raw.get("damage"),
        gold=raw.get("gold"),
        team=team,
    )


def parse_game(text: str) -> ExtractedGame:
    """Parse the model response. Malformed JSON raises ExternalServiceError, a short roster ValidationError."""
    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        log.error("Failed to parse the AI JSON. Received: %s...", text[:200])
        raise ExternalServiceError("The AI did not return a valid data format.") from e
    if not isinstance(data, dict):
        raise ExternalServiceError("The AI did not return a valid data format.")

    team1 = data.get("team1_players") or []
    team2 = data.get("team2_players") or []
    if not isinstance(team1, list) or not isinstance(team2, list):
        raise ExternalServiceError("The AI did not return a valid data format.")
    players = [_player_from_dict(p, 1) for p in team1] + [_player_from_dict(p, 2) for p in team2]
    if len(players) < MIN_PLAYERS:
        log.warning("AI returned %d players, expected %d", len(players), MIN_PLAYERS)
        raise ValidationError(
            f"The image analysis failed to extract all {MIN_PLAYERS} players (extracted {len(players)})."
        )
    result = data.get("result")
    return ExtractedGame(result=result if isinstance(result, str) else None, players=players)


def _canonical(value: Optional[str]) -> str:
    # None renders as "null" so fingerprints match the ones already stored
    return "null" if value is None else value


def compute_fingerprint(players: list[ExtractedPlayer]) -> str:
    """sha256 hex of ``name:KDA`` pairs joined by ``;``, sorted by summoner name."""
    ordered = sorted(players, key=lambda p: (p.summoner_name or "", p.kda or ""))
    canonical = ";".join(f"{_canonical(p.summoner_name)}:{_canonical(p.kda)}" for p in ordered)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def winning_team_for(result: Optional[str]) -> Optional[int]:
    if result == "VICTORY":
        return 1
    if result == "DEFEAT":
        return 2
    return None


def _leading_int(part: str) -> int:
    m = _LEADING_INT_RE.match(part.strip())
    return int(m.group()) if m else 0


def parse_kda(kda: Optional[str]) -> tuple[int, int, int]:
    """Split "K / D / A" into ints. Missing or unreadable parts count as 0."""
    parts = (kda or "0/0/0").split("/")
    values = [_leading_int(parts[i]) if i < len(parts) else 0 for i in range(3)]
    return values[0], values[1], values[2]


def _as_int(value: Any) -> int:
    """Integer value of a damage or gold cell. Thousands separators are dropped, anything after the number is ignored."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        return _leading_int(_SEPARATOR_RE.sub("", value))
    return 0


def build_stat_rows(
    game: ExtractedGame,
    fingerprint: str,
    winning_team: Optional[int],
    account_ids: dict[str, int],
) -> list[dict]:
    """One Player_Match_Stats row per extracted player."""
    rows = []
    for player in game.players:
        kills, deaths, assists = parse_kda(player.kda)
        rows.append(
            {
                "match_hash": fingerprint,
                "account_id": account_ids.get(player.summoner_name or ""),
                "summoner_name_snapshot": player.summoner_name or UNKNOWN,
                "champion_name": player.champion_name or UNKNOWN,
                "win": player.team == winning_team if winning_team is not None else None,
                "team": player.team,
                "kills": kills,
                "deaths": deaths,
                "assists": assists,
                "damage": _as_int(player.damage),
                "gold": _as_int(player.gold),
            }
        )
    return rows


async def match_exists(session: AsyncSession, fingerprint: str) -> bool:
    result = await session.execute(select(Match.match_hash).where(Match.match_hash == fingerprint))
    return result.scalar_one_or_none() is not None


async def _insert_match(
    session_factory: async_sessionmaker,
    fingerprint: str,
    winning_team: Optional[int],
    screenshot_url: str,
) -> bool:
    """Insert the Match row. False if another submission inserted the same fingerprint first."""
    async with session_factory() as session:
        session.add(
            Match(
                match_hash=fingerprint,
                winning_team=winning_team,
                processed_at=datetime.now(timezone.utc),
                screenshot_url=screenshot_url,
            )
        )
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            return False
    return True


async def discard_match(session_factory: async_sessionmaker, fingerprint: str) -> bool:
    """Delete the Match row for fingerprint if present. Safe to call more than once."""
    log.db("Rollback: deleting match %s...", fingerprint[:12])
    try:
        async with session_factory() as session:
            await session.execute(delete(Match).where(Match.match_hash == fingerprint))
            await session.commit()
    except SQLAlchemyError:
        log.critical("Rollback failed! Match %s... may be left without stats", fingerprint[:12], exc_info=True)
        return False
    return True


async def _save_player_stats(
    session_factory: async_sessionmaker,
    game: ExtractedGame,
    fingerprint: str,
    winning_team: Optional[int],
) -> list[dict]:
    names = [p.summoner_name for p in game.players if p.summoner_name]
    if not names:
        log.error("No valid summoner names extracted")
        raise ValidationError("Could not read any valid summoner names from the screenshot.")

    async with session_factory() as session:
        log.db("Looking up %d LoL accounts...", len(names))
        try:
            result = await session.execute(
                select(LoLAccount.summoner_name, LoLAccount.account_id).where(LoLAccount.summoner_name.in_(names))
            )
        except SQLAlchemyError as e:
            raise ExternalServiceError("Failed to look up LoL accounts.") from e
        account_ids = {name: account_id for name, account_id in result.all()}
        log.db("Found %d LoL accounts", len(account_ids))

        rows = build_stat_rows(game, fingerprint, winning_team, account_ids)
        log.db("Inserting %d stat rows for %s...", len(rows), fingerprint[:12])
        try:
            await session.execute(insert(PlayerMatchStat), rows)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise ExternalServiceError("Failed to save the detailed stats.") from e
    return rows


async def ingest_game(
    game: ExtractedGame,
    screenshot_url: str,
    session_factory: async_sessionmaker = async_session_factory,
) -> IngestResult:
    """Deduplicate and save a parsed game. Duplicates are a result, not an error."""
    fingerprint = compute_fingerprint(game.players)
    log.step("Match fingerprint: %s...", fingerprint[:12])

    log.db("Checking for duplicate %s...", fingerprint[:12])
    try:
        async with session_factory() as session:
            exists = await match_exists(session, fingerprint)
    except SQLAlchemyError as e:
        raise ExternalServiceError("Could not check whether the match already exists.") from e
    if exists:
        log.warning("Duplicate match %s...", fingerprint[:12])
        return IngestResult(IngestStatus.DUPLICATE, fingerprint)

    winning_team = winning_team_for(game.result)
    if winning_team is None:
        log.warning("Result (VICTORY/DEFEAT) not found, saving with unknown winner")

    try:
        inserted = await _insert_match(session_factory, fingerprint, winning_team, screenshot_url)
    except SQLAlchemyError as e:
        raise ExternalServiceError("Failed to save the match.") from e
    if not inserted:
        log.warning("Match %s... was inserted by a concurrent submission", fingerprint[:12])
        return IngestResult(IngestStatus.DUPLICATE, fingerprint)
    log.db("Match %s... inserted", fingerprint[:12])

    try:
        stats = await _save_player_stats(session_factory, game, fingerprint, winning_team)
    except BaseException:
        # Cancellation included: the Match row must not outlive a failed stats insert
        await discard_match(session_factory, fingerprint)
        raise

    log.success("Match %s... saved with %d players", fingerprint[:12], len(stats))
    return IngestResult(IngestStatus.SAVED, fingerprint, stats)


async def process_screenshot(
    extractor: Extractor,
    image: bytes,
    mime_type: str,
    screenshot_url: str,
    session_factory: async_sessionmaker = async_session_factory,
) -> IngestResult:
    """Full pipeline: AI extraction, parsing, deduplication and save."""
    log.api("Sending image to the vision model...")
    text = await extractor.extract(image, mime_type)
    log.api("Vision model response received")
    game = parse_game(text)
    log.success("AI JSON parsed: %d players", len(game.players))
    return await ingest_game(game, screenshot_url, session_factory)
