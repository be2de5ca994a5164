"""Gemini wrapper that reads a League of Legends post-game scoreboard screenshot."""
from __future__ import annotations

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from bot.errors import ExternalServiceError

SCOREBOARD_PROMPT = """
Your task is to read a League of Legends post-game scoreboard screenshot and extract the data of all 10 players. Return strictly one valid JSON object, with no text, comments or markdown formatting such as ```json before or after it.
The JSON must have exactly this structure:
{
  "result": "VICTORY" or "DEFEAT",
  "team1_players": [{"summonerName": "...", "championName": "...", "KDA": "K/D/A", "damage": 0, "gold": 0}],
  "team2_players": [{"summonerName": "...", "championName": "...", "KDA": "K/D/A", "damage": 0, "gold": 0}]
}
Follow these extraction rules precisely:
1.  **result**: Find the word "VICTORY" or "DEFEAT" in the top-left corner.
2.  **team1_players / team2_players**: Extract the 5 players of each team into the matching list.
3.  **summonerName**: Each player's summoner name.
4.  **championName**: The champion name, shown below the summonerName.
5.  **KDA**: The three numbers in the format "K / D / A".
6.  **damage**: The first of the two large numbers to the right of the KDA. Extract the integer only.
7.  **gold**: The second of the two large numbers, to the right of the damage. Extract the integer only.
Be meticulous. Do not invent data. If a value is unreadable, use null.
"""


class ScoreboardExtractor:
    """Async Gemini client for scoreboard extraction. Safe to share across commands."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self._client = genai.Client(api_key=api_key)
        self.model = model

    async def extract(self, image: bytes, mime_type: str) -> str:
        """Send the screenshot with the fixed prompt. Returns the raw model text."""
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[SCOREBOARD_PROMPT, types.Part.from_bytes(data=image, mime_type=mime_type)],
            )
        except genai_errors.APIError as e:
            raise ExternalServiceError("The image analysis service failed. Try again later.") from e
        if not response.text:
            raise ExternalServiceError("The image analysis service returned an empty response.")
        return response.text
