"""Match and per-player stat models."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bot.models.base import Base


class Match(Base):
    """One processed post-game screenshot, keyed by its content fingerprint."""

    __tablename__ = "Matches"

    match_hash: Mapped[str] = mapped_column(String(64), primary_key=True)  # sha256 hex
    winning_team: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 1, 2 or unknown
    processed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    screenshot_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    stats = relationship("PlayerMatchStat", back_populates="match", cascade="all, delete-orphan")


class PlayerMatchStat(Base):
    """One player's line from a match. account_id is None for players who never registered."""

    __tablename__ = "Player_Match_Stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_hash: Mapped[str] = mapped_column(
        ForeignKey("Matches.match_hash", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[Optional[int]] = mapped_column(ForeignKey("LoL_Accounts.account_id"), nullable=True)
    summoner_name_snapshot: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    champion_name: Mapped[str] = mapped_column(String(64), nullable=False)
    win: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    team: Mapped[int] = mapped_column(Integer, nullable=False)
    kills: Mapped[int] = mapped_column(Integer, default=0)
    deaths: Mapped[int] = mapped_column(Integer, default=0)
    assists: Mapped[int] = mapped_column(Integer, default=0)
    damage: Mapped[int] = mapped_column(Integer, default=0)
    gold: Mapped[int] = mapped_column(Integer, default=0)

    match: Mapped["Match"] = relationship("Match", back_populates="stats")
    account: Mapped[Optional["LoLAccount"]] = relationship("LoLAccount", back_populates="stats")
