"""Tests for match ingestion: parsing, fingerprinting, deduplication and rollback."""
import asyncio
import hashlib
import json
import random

import pytest
from sqlalchemy import func, select

from bot.errors import ExternalServiceError, ValidationError
from bot.models import Match, PlayerMatchStat
from bot.services import ingestion
from bot.services.ingestion import (
    IngestStatus,
    build_stat_rows,
    compute_fingerprint,
    ingest_game,
    parse_game,
    parse_kda,
    process_screenshot,
    strip_code_fence,
    winning_team_for,
)
from helpers import FakeExtractor, add_account, scoreboard, scoreboard_text


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def test_strip_code_fence():
    """Fenced and bare JSON both come out as plain JSON."""
    body = '{"result": "VICTORY"}'
    assert strip_code_fence(f"```json\n{body}\n```") == body
    assert strip_code_fence(f"```\n{body}\n```") == body
    assert strip_code_fence(f"  {body}  ") == body


def test_parse_game_rejects_malformed_json():
    with pytest.raises(ExternalServiceError):
        parse_game("Sorry, I can't read this image.")
    with pytest.raises(ExternalServiceError):
        parse_game("[1, 2, 3]")


def test_parse_game_requires_ten_players():
    data = scoreboard()
    data["team2_players"] = data["team2_players"][:4]
    with pytest.raises(ValidationError, match="extracted 9"):
        parse_game(json.dumps(data))


def test_parse_game_null_team_counts_as_empty():
    data = scoreboard()
    data["team2_players"] = None
    with pytest.raises(ValidationError):
        parse_game(json.dumps(data))


def test_parse_game_marks_teams():
    game = parse_game("```json\n" + scoreboard_text() + "\n```")
    assert len(game.players) == 10
    assert [p.team for p in game.players] == [1] * 5 + [2] * 5
    assert game.result == "VICTORY"


def test_fingerprint_ignores_player_order():
    """Same (name, KDA) pairs in any order give the same fingerprint."""
    game = parse_game(scoreboard_text())
    shuffled = list(game.players)
    random.Random(7).shuffle(shuffled)
    assert compute_fingerprint(shuffled) == compute_fingerprint(game.players)
    assert len(compute_fingerprint(game.players)) == 64


def test_fingerprint_changes_with_kda():
    game = parse_game(scoreboard_text())
    other = parse_game(scoreboard_text())
    other.players[0].kda = "9/9/9"
    assert compute_fingerprint(game.players) != compute_fingerprint(other.players)


def test_fingerprint_matches_stored_format():
    """Canonical string is name:KDA joined by ';', sorted by name, null for missing values."""
    game = parse_game(scoreboard_text())
    game.players[0].kda = None
    parts = sorted(f"{p.summoner_name}:{'null' if p.kda is None else p.kda}" for p in game.players)
    expected = hashlib.sha256(";".join(parts).encode()).hexdigest()
    assert compute_fingerprint(game.players) == expected


@pytest.mark.parametrize(
    "kda,expected",
    [
        ("5/2/7", (5, 2, 7)),
        (" 10 / 0 / 3 ", (10, 0, 3)),
        ("4/x/1", (4, 0, 1)),
        ("3/1", (3, 1, 0)),
        (None, (0, 0, 0)),
        ("", (0, 0, 0)),
    ],
)
def test_parse_kda(kda, expected):
    assert parse_kda(kda) == expected


def test_winning_team_for():
    assert winning_team_for("VICTORY") == 1
    assert winning_team_for("DEFEAT") == 2
    assert winning_team_for(None) is None
    assert winning_team_for("UNKNOWN") is None


def test_build_stat_rows_defaults_and_win():
    data = scoreboard(result="DEFEAT")
    data["team1_players"][0] = {"summonerName": None, "championName": None, "KDA": None, "damage": None, "gold": "12,345"}
    game = parse_game(json.dumps(data))
    rows = build_stat_rows(game, "abc", winning_team_for(game.result), {"Red1": 42})

    unknown = rows[0]
    assert unknown["summoner_name_snapshot"] == "Unknown"
    assert unknown["champion_name"] == "Unknown"
    assert (unknown["kills"], unknown["deaths"], unknown["assists"]) == (0, 0, 0)
    assert unknown["damage"] == 0
    assert unknown["gold"] == 12345
    assert unknown["account_id"] is None

    red1 = next(r for r in rows if r["summoner_name_snapshot"] == "Red1")
    assert red1["team"] == 2
    assert red1["win"] is True
    assert red1["account_id"] == 42
    assert all(r["win"] is False for r in rows if r["team"] == 1)


def test_build_stat_rows_unknown_result():
    game = parse_game(scoreboard_text(result=None))
    rows = build_stat_rows(game, "abc", winning_team_for(game.result), {})
    assert all(r["win"] is None for r in rows)


@pytest.mark.asyncio
async def test_ingest_saves_match_and_links_accounts(session_factory):
    blue1_id = await add_account(1001, "Blue1")
    game = parse_game(scoreboard_text())

    result = await ingest_game(game, "https://cdn.example/shot.png", session_factory)

    assert result.status is IngestStatus.SAVED
    assert result.linked_names == ["Blue1"]
    assert await _count(session_factory, Match) == 1
    assert await _count(session_factory, PlayerMatchStat) == 10
    async with session_factory() as session:
        match = await session.get(Match, result.fingerprint)
        assert match.winning_team == 1
        assert match.screenshot_url == "https://cdn.example/shot.png"
        stat = (
            await session.execute(select(PlayerMatchStat).where(PlayerMatchStat.summoner_name_snapshot == "Blue1"))
        ).scalar_one()
        assert stat.account_id == blue1_id
        assert stat.win is True
        assert (stat.kills, stat.deaths, stat.assists) == (1, 1, 3)


@pytest.mark.asyncio
async def test_second_submission_is_duplicate(session_factory):
    """Same screenshot twice: second is rejected and writes nothing."""
    first = await ingest_game(parse_game(scoreboard_text()), "u1", session_factory)
    assert first.status is IngestStatus.SAVED

    reordered = scoreboard()
    reordered["team1_players"].reverse()
    second = await ingest_game(parse_game(json.dumps(reordered)), "u2", session_factory)

    assert second.status is IngestStatus.DUPLICATE
    assert second.fingerprint == first.fingerprint
    assert await _count(session_factory, Match) == 1
    assert await _count(session_factory, PlayerMatchStat) == 10


@pytest.mark.asyncio
async def test_concurrent_duplicate_reported_as_duplicate(session_factory, monkeypatch):
    """If another submission inserts the fingerprint after our check, the unique key makes it a duplicate."""
    game = parse_game(scoreboard_text())
    await ingest_game(game, "u1", session_factory)

    async def _not_seen(session, fingerprint):
        return False

    monkeypatch.setattr(ingestion, "match_exists", _not_seen)
    result = await ingest_game(game, "u2", session_factory)

    assert result.status is IngestStatus.DUPLICATE
    assert await _count(session_factory, Match) == 1
    assert await _count(session_factory, PlayerMatchStat) == 10


@pytest.mark.asyncio
async def test_stats_failure_rolls_back_match(session_factory, monkeypatch):
    """Stat insert fails after the Match insert: no Match row with that fingerprint survives."""
    real_build = ingestion.build_stat_rows

    def _broken_rows(*args, **kwargs):
        rows = real_build(*args, **kwargs)
        rows[3]["champion_name"] = None  # NOT NULL violation
        return rows

    monkeypatch.setattr(ingestion, "build_stat_rows", _broken_rows)
    game = parse_game(scoreboard_text())

    with pytest.raises(ExternalServiceError, match="detailed stats"):
        await ingest_game(game, "u1", session_factory)

    async with session_factory() as session:
        assert await session.get(Match, compute_fingerprint(game.players)) is None
    assert await _count(session_factory, PlayerMatchStat) == 0


@pytest.mark.asyncio
async def test_no_summoner_names_rolls_back_match(session_factory):
    players = [{"summonerName": None, "championName": "Ahri", "KDA": f"{i}/0/0", "damage": 1, "gold": 1} for i in range(5)]
    game = parse_game(scoreboard_text(team1=players, team2=list(players)))

    with pytest.raises(ValidationError):
        await ingest_game(game, "u1", session_factory)

    assert await _count(session_factory, Match) == 0


@pytest.mark.asyncio
async def test_discard_match_is_idempotent(session_factory):
    result = await ingest_game(parse_game(scoreboard_text()), "u1", session_factory)
    assert await ingestion.discard_match(session_factory, result.fingerprint) is True
    assert await ingestion.discard_match(session_factory, result.fingerprint) is True
    assert await _count(session_factory, Match) == 0


@pytest.mark.asyncio
async def test_process_screenshot_short_roster_writes_nothing(session_factory):
    """Fewer than 10 extracted players aborts before any database write."""
    data = scoreboard()
    data["team1_players"] = data["team1_players"][:2]
    extractor = FakeExtractor(json.dumps(data))

    with pytest.raises(ValidationError):
        await process_screenshot(extractor, b"img", "image/png", "u1", session_factory)

    assert extractor.calls == [(b"img", "image/png")]
    assert await _count(session_factory, Match) == 0
    assert await _count(session_factory, PlayerMatchStat) == 0


@pytest.mark.asyncio
async def test_process_screenshot_end_to_end(session_factory):
    extractor = FakeExtractor("```json\n" + scoreboard_text(result="DEFEAT") + "\n```")
    result = await process_screenshot(extractor, b"img", "image/jpeg", "u1", session_factory)

    assert result.status is IngestStatus.SAVED
    async with session_factory() as session:
        match = await session.get(Match, result.fingerprint)
        assert match.winning_team == 2


@pytest.mark.asyncio
async def test_cancelled_stats_save_rolls_back_match(session_factory, monkeypatch):
    """Cancellation during the stats insert still removes the Match row."""

    async def _cancelled(*args, **kwargs):
        raise asyncio.CancelledError()

    monkeypatch.setattr(ingestion, "_save_player_stats", _cancelled)
    game = parse_game(scoreboard_text())

    with pytest.raises(asyncio.CancelledError):
        await ingest_game(game, "u1", session_factory)

    assert await _count(session_factory, Match) == 0


@pytest.mark.parametrize(
    "raw,expected",
    [
        (15320, 15320),
        (9876.0, 9876),
        ("12,345", 12345),
        ("12 345", 12345),
        ("12.5k", 12),
        ("-300", -300),
        ("n/a", 0),
        (None, 0),
        (True, 0),
    ],
)
def test_damage_and_gold_cells(raw, expected):
    assert ingestion._as_int(raw) == expected
