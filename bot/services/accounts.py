"""Account linking: one summoner name per Discord user."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bot.errors import ExternalServiceError, ValidationError
from bot.log import get_logger
from bot.models import LoLAccount, User
from bot.models.base import async_session_factory, upsert
from bot.models.lol_account import OWNER_UNIQUE, SUMMONER_UNIQUE

log = get_logger("register")

NICKNAME_MIN = 3
NICKNAME_MAX = 16


class RegisterStatus(enum.Enum):
    REGISTERED = "registered"
    ALREADY_LINKED = "already_linked"  # caller already owns an account
    NICKNAME_TAKEN = "nickname_taken"  # someone else owns this summoner name


@dataclass
class RegisterResult:
    status: RegisterStatus
    summoner_name: str
    race: bool = False  # True when the unique constraint caught it, not the pre-check


def validate_nickname(nickname: str) -> str:
    """Return the trimmed nickname or raise ValidationError."""
    name = (nickname or "").strip()
    if not NICKNAME_MIN <= len(name) <= NICKNAME_MAX:
        raise ValidationError(f"Invalid nickname. It must be between {NICKNAME_MIN} and {NICKNAME_MAX} characters.")
    return name


async def get_account_for_user(session: AsyncSession, discord_id: int) -> Optional[LoLAccount]:
    """Get the LoL account linked to a Discord user."""
    result = await session.execute(select(LoLAccount).where(LoLAccount.owner_discord_id == discord_id))
    return result.scalar_one_or_none()


async def get_account_by_name(session: AsyncSession, summoner_name: str) -> Optional[LoLAccount]:
    result = await session.execute(select(LoLAccount).where(LoLAccount.summoner_name == summoner_name))
    return result.scalar_one_or_none()


def _violates(error: IntegrityError, constraint: str, column: str) -> bool:
    # PostgreSQL names the constraint, SQLite names table.column
    message = str(error.orig)
    return constraint in message or f"{LoLAccount.__tablename__}.{column}" in message


async def register_account(
    discord_id: int,
    discord_tag: str,
    nickname: str,
    session_factory: async_sessionmaker = async_session_factory,
) -> RegisterResult:
    """Link nickname to the Discord user. Conflicts are returned, not raised."""
    summoner_name = validate_nickname(nickname)

    async with session_factory() as session:
        log.db("Upserting Discord user %s (%s)...", discord_tag, discord_id)
        try:
            await session.execute(
                upsert(session, User, {"discord_id": discord_id, "discord_tag": discord_tag}, "discord_id")
            )
            await session.commit()
        except SQLAlchemyError as e:
            log.error("User upsert failed for %s", discord_tag, exc_info=True)
            raise ExternalServiceError("Failed to sync your Discord user.") from e

        try:
            existing = await get_account_for_user(session, discord_id)
            if existing:
                log.warning("%s already has account '%s'", discord_tag, existing.summoner_name)
                return RegisterResult(RegisterStatus.ALREADY_LINKED, existing.summoner_name)

            owner = await get_account_by_name(session, summoner_name)
            if owner:
                log.warning("Nickname '%s' already registered by %s", summoner_name, owner.owner_discord_id)
                return RegisterResult(RegisterStatus.NICKNAME_TAKEN, summoner_name)
        except SQLAlchemyError as e:
            log.error("Account lookup failed for %s", discord_tag, exc_info=True)
            raise ExternalServiceError("Failed to check existing accounts.") from e

        log.db("Registering '%s' for %s...", summoner_name, discord_tag)
        session.add(LoLAccount(owner_discord_id=discord_id, summoner_name=summoner_name))
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            if _violates(e, OWNER_UNIQUE, "owner_discord_id"):
                log.warning("Unique owner constraint hit for %s", discord_tag)
                return RegisterResult(RegisterStatus.ALREADY_LINKED, summoner_name, race=True)
            if _violates(e, SUMMONER_UNIQUE, "summoner_name"):
                log.warning("Unique nickname constraint hit for '%s'", summoner_name)
                return RegisterResult(RegisterStatus.NICKNAME_TAKEN, summoner_name, race=True)
            log.error("Failed to register '%s'", summoner_name, exc_info=True)
            raise ExternalServiceError("Failed to register the LoL account.") from e
        except SQLAlchemyError as e:
            log.error("Failed to register '%s'", summoner_name, exc_info=True)
            raise ExternalServiceError("Failed to register the LoL account.") from e

    log.success("Account '%s' registered for %s", summoner_name, discord_tag)
    return RegisterResult(RegisterStatus.REGISTERED, summoner_name)
