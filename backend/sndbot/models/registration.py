"""Character registrations and bot administrators."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CharacterRegistration(Base):
    """The WoW character a Discord user has linked.

    One registration per Discord username; registering again replaces it.
    """

    __tablename__ = "characters"

    discord_username: Mapped[str] = mapped_column(String(100), primary_key=True)
    character_name: Mapped[str] = mapped_column(String(64), nullable=False)
    server: Mapped[str] = mapped_column(String(100), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<CharacterRegistration(user={self.discord_username!r}, "
            f"character={self.character_name!r}, server={self.server!r})>"
        )


class Admin(Base):
    """Discord user allowed to run admin commands in DMs."""

    __tablename__ = "admins"

    discord_username: Mapped[str] = mapped_column(String(100), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Admin(user={self.discord_username!r})>"
