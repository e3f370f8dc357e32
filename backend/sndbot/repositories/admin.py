"""Repository for bot administrator records."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Admin


class AdminRepository:
    """Repository for bot administrator records."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    async def is_admin(self, discord_username: str) -> bool:
        return await self.db_session.get(Admin, discord_username) is not None

    async def add(self, discord_username: str) -> None:
        """Grant admin rights. Adding an existing admin is a no-op."""
        if await self.is_admin(discord_username):
            return
        self.db_session.add(Admin(discord_username=discord_username))
        await self.db_session.flush()

    async def remove(self, discord_username: str) -> bool:
        stmt = delete(Admin).where(Admin.discord_username == discord_username)
        result = await self.db_session.execute(stmt)
        return bool(result.rowcount)

    async def list_all(self) -> list[str]:
        stmt = select(Admin.discord_username).order_by(Admin.discord_username)
        result = await self.db_session.execute(stmt)
        return list(result.scalars().all())
