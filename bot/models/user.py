"""Discord user model."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bot.models.base import Base


class User(Base):
    """Discord member who ran /register. Tag is refreshed on every registration attempt."""

    __tablename__ = "Users"

    discord_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    discord_tag: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)  # Snapshot of str(user)

    account: Mapped[Optional["LoLAccount"]] = relationship("LoLAccount", back_populates="owner", uselist=False)
