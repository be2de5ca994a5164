"""League account linked to a Discord user."""
from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bot.models.base import Base

# Constraint names match the hosted schema so violations can be told apart
OWNER_UNIQUE = "LoL_Accounts_owner_discord_id_key"
SUMMONER_UNIQUE = "LoL_Accounts_summoner_name_key"


class LoLAccount(Base):
    """Summoner name owned by one Discord user. One account per user, one user per summoner name."""

    __tablename__ = "LoL_Accounts"
    __table_args__ = (
        UniqueConstraint("owner_discord_id", name=OWNER_UNIQUE),
        UniqueConstraint("summoner_name", name=SUMMONER_UNIQUE),
    )

    account_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_discord_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("Users.discord_id"), nullable=False)
    summoner_name: Mapped[str] = mapped_column(String(64), nullable=False)

    owner: Mapped["User"] = relationship("User", back_populates="account")
    stats = relationship("PlayerMatchStat", back_populates="account")
