"""Repository for character registration database operations."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import CharacterRegistration


class RegistrationRepository:
    """Repository for character registration database operations."""

    def __init__(self, db_session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.db_session = db_session

    async def register(
        self, discord_username: str, character_name: str, server: str
    ) -> CharacterRegistration:
        """Create or replace the registration for a Discord user.

        Args:
            discord_username: Discord username owning the registration
            character_name: Character name as typed by the user
            server: Realm name as typed by the user

        Returns:
            The persisted registration
        """
        registration = await self.db_session.merge(
            CharacterRegistration(
                discord_username=discord_username,
                character_name=character_name,
                server=server,
            )
        )
        await self.db_session.flush()
        return registration

    async def get(self, discord_username: str) -> CharacterRegistration | None:
        """Get the registration for a Discord user, or None if not registered."""
        return await self.db_session.get(CharacterRegistration, discord_username)

    async def remove(self, discord_username: str) -> bool:
        """Delete a registration.

        Returns:
            True if a registration existed and was removed
        """
        stmt = delete(CharacterRegistration).where(
            CharacterRegistration.discord_username == discord_username
        )
        result = await self.db_session.execute(stmt)
        return bool(result.rowcount)

    async def list_all(self) -> list[CharacterRegistration]:
        stmt = select(CharacterRegistration).order_by(CharacterRegistration.discord_username)
        result = await self.db_session.execute(stmt)
        return list(result.scalars().all())
