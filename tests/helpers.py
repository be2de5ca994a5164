"""Shared test data builders."""
import json

from bot.models import LoLAccount, User
from bot.models.base import async_session_factory


async def add_account(discord_id: int, summoner_name: str, discord_tag: str | None = None) -> int:
    """Insert a User and its LoL account. Returns the account_id."""
    async with async_session_factory() as session:
        session.add(User(discord_id=discord_id, discord_tag=discord_tag or f"user{discord_id}"))
        account = LoLAccount(owner_discord_id=discord_id, summoner_name=summoner_name)
        session.add(account)
        await session.commit()
        return account.account_id


def scoreboard(team1=None, team2=None, result="VICTORY") -> dict:
    """Model-style scoreboard. Defaults to 10 players named Blue1..Blue5 / Red1..Red5."""
    if team1 is None:
        team1 = [
            {"summonerName": f"Blue{i}", "championName": "Ahri", "KDA": f"{i}/1/{i + 2}", "damage": 10000 + i, "gold": 9000 + i}
            for i in range(1, 6)
        ]
    if team2 is None:
        team2 = [
            {"summonerName": f"Red{i}", "championName": "Garen", "KDA": f"1/{i}/2", "damage": 8000 + i, "gold": 7000 + i}
            for i in range(1, 6)
        ]
    return {"result": result, "team1_players": team1, "team2_players": team2}


def scoreboard_text(**kwargs) -> str:
    return json.dumps(scoreboard(**kwargs))


class FakeExtractor:
    """Stands in for the Gemini client; returns a canned response."""

    def __init__(self, text: str):
        self.text = text
        self.calls = []

    async def extract(self, image: bytes, mime_type: str) -> str:
        self.calls.append((image, mime_type))
        return self.text
