"""Per-guild settings: the processed-match log channel."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from bot.log import get_logger
from bot.models import GuildSettings
from bot.models.base import async_session_factory, upsert

log = get_logger("setup")


async def set_log_channel(
    guild_id: int,
    channel_id: int,
    session_factory: async_sessionmaker = async_session_factory,
) -> None:
    """Create or replace the guild's log channel."""
    async with session_factory() as session:
        await session.execute(
            upsert(session, GuildSettings, {"guild_id": guild_id, "log_channel_id": channel_id}, "guild_id")
        )
        await session.commit()


async def get_log_channel_id(
    guild_id: Optional[int],
    session_factory: async_sessionmaker = async_session_factory,
) -> Optional[int]:
    """Log channel for the guild, or None if unset or the lookup failed (failure is logged)."""
    if not guild_id:
        return None
    try:
        async with session_factory() as session:
            result = await session.execute(
                select(GuildSettings.log_channel_id).where(GuildSettings.guild_id == guild_id)
            )
            return result.scalar_one_or_none()
    except SQLAlchemyError:
        log.error("Failed to look up the log channel for guild %s", guild_id, exc_info=True)
        return None
