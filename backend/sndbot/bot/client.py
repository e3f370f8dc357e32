"""discord.py adapter feeding messages to the command dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Collection

import discord

from .dispatcher import CommandDispatcher, IncomingMessage

LOGGER = logging.getLogger(__name__)


class DiscordMemberRoles:
    """Exposes a guild member's roles through the role-sync protocol."""

    def __init__(self, member: discord.Member) -> None:
        self._member = member

    def current_role_ids(self) -> Collection[str]:
        return {str(role.id) for role in self._member.roles}

    async def add_role(self, role_id: str, reason: str) -> None:
        await self._member.add_roles(discord.Object(id=int(role_id)), reason=reason)


def to_incoming(message: discord.Message) -> IncomingMessage:
    return IncomingMessage(
        author_id=str(message.author.id),
        username=message.author.name,
        content=message.content,
        is_direct=isinstance(message.channel, discord.DMChannel),
    )


class SndBot(discord.Client):
    """Discord client that answers prefixed commands."""

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        *,
        intents: discord.Intents | None = None,
    ) -> None:
        if intents is None:
            intents = discord.Intents.default()
            intents.message_content = True
        super().__init__(intents=intents)
        self._dispatcher = dispatcher

    async def on_ready(self) -> None:
        LOGGER.info("Connected to Discord", extra={"user": str(self.user)})

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if self.user is not None and message.author.id == self.user.id:
            return

        member = (
            DiscordMemberRoles(message.author)
            if isinstance(message.author, discord.Member)
            else None
        )
        replies = await self._dispatcher.handle(to_incoming(message), member)
        for reply in replies:
            try:
                await message.channel.send(reply)
            except discord.HTTPException as exc:
                LOGGER.error(
                    "Failed to send reply",
                    extra={"channel_id": message.channel.id, "status": exc.status},
                )
