"""Per-guild bot settings."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from bot.models.base import Base


class GuildSettings(Base):
    """One row per server: where processed-match logs are posted."""

    __tablename__ = "Guild_Settings"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    log_channel_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
