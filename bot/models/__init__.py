"""Database models."""
from bot.models.base import Base, get_async_session, init_db
from bot.models.user import User
from bot.models.lol_account import LoLAccount
from bot.models.match import Match, PlayerMatchStat
from bot.models.guild_settings import GuildSettings

__all__ = [
    "Base",
    "User",
    "LoLAccount",
    "Match",
    "PlayerMatchStat",
    "GuildSettings",
    "get_async_session",
    "init_db",
]
