"""Transport-neutral chat command handling.

The dispatcher turns a message into zero or more reply strings. It never talks to
Discord directly: role changes go through a :class:`RoleGrantTarget` supplied by the
caller, and replies are returned for the caller to send.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..blizzard.client import CharacterResolver
from ..blizzard.errors import (
    APIError,
    AuthError,
    BlizzardError,
    ParseError,
    ValidationError,
)
from ..repositories import AdminRepository, RegistrationRepository
from ..roles.reconciler import (
    GrantReason,
    RoleGrantTarget,
    RoleSynchronizer,
    RoleSyncResult,
)
from .metrics import COMMANDS_TOTAL

LOGGER = logging.getLogger(__name__)

HELP_TEXT = """Available commands:
{p}help - Show this help message
{p}register <character_name> <server> - Register your character
{p}whoami - Show your registered character
{p}guild - Show your guild information
{p}ping - Pong
{p}bye - Say goodbye"""

ADMIN_HELP_TEXT = """Available admin commands (DM only):
{p}admin-help - Show this help message
{p}addadmin <discord_username> - Add a new admin
{p}removeadmin <discord_username> - Remove an admin
{p}register-user <discord_username> <character_name> <server> - Register a character for a user
{p}remove-user <discord_username> - Remove a user's registration
{p}list-users - List all registered users"""

_REASON_LABELS = {
    GrantReason.COMMUNITY: "community",
    GrantReason.GUILD_MEMBER: "guild member",
}


@dataclass(slots=True, frozen=True)
class IncomingMessage:
    """Minimal view of a chat message."""

    author_id: str
    username: str
    content: str
    is_direct: bool


_Handler = Callable[[IncomingMessage, list[str], RoleGrantTarget | None], Awaitable[list[str]]]
_AdminHandler = Callable[[list[str]], Awaitable[list[str]]]


class CommandDispatcher:
    """Routes prefixed chat commands to the resolver, store and role synchronizer."""

    def __init__(
        self,
        resolver: CharacterResolver,
        session_factory: async_sessionmaker[AsyncSession],
        synchronizer: RoleSynchronizer,
        *,
        guild_id: int | None,
        prefix: str = "!",
    ) -> None:
        self._resolver = resolver
        self._session_factory = session_factory
        self._synchronizer = synchronizer
        self._guild_id = guild_id
        self._prefix = prefix
        self._handlers: dict[str, _Handler] = {
            "register": self._register,
            "whoami": self._whoami,
            "guild": self._guild,
            "help": self._help,
            "ping": self._ping,
            "bye": self._bye,
        }
        self._admin_handlers: dict[str, _AdminHandler] = {
            "admin-help": self._admin_help,
            "addadmin": self._add_admin,
            "removeadmin": self._remove_admin,
            "register-user": self._register_user,
            "remove-user": self._remove_user,
            "list-users": self._list_users,
        }

    async def handle(
        self, message: IncomingMessage, member: RoleGrantTarget | None = None
    ) -> list[str]:
        args = message.content.split()
        if not args or not args[0].startswith(self._prefix):
            return []
        command = args[0][len(self._prefix) :].lower()

        if command in self._admin_handlers or command.startswith("admin-"):
            return await self._handle_admin(message, command, args[1:])

        handler = self._handlers.get(command)
        if handler is None:
            return []
        return await self._run(command, handler(message, args[1:], member))

    async def _run(self, command: str, pending: Awaitable[list[str]]) -> list[str]:
        try:
            replies = await pending
        except BlizzardError as exc:
            COMMANDS_TOTAL.labels(command, "blizzard_error").inc()
            LOGGER.warning(
                "Command failed against the Blizzard API",
                extra={"command": command, "error": str(exc)},
            )
            return [describe_blizzard_error(exc)]
        except SQLAlchemyError:
            COMMANDS_TOTAL.labels(command, "database_error").inc()
            LOGGER.exception("Command failed against the registration store")
            return ["Something went wrong while accessing registrations. Please try again later."]
        COMMANDS_TOTAL.labels(command, "ok").inc()
        return replies

    async def _handle_admin(
        self, message: IncomingMessage, command: str, args: list[str]
    ) -> list[str]:
        if not message.is_direct:
            return []
        try:
            async with self._session_factory() as session:
                is_admin = await AdminRepository(session).is_admin(message.username)
        except SQLAlchemyError as exc:
            LOGGER.exception("Admin lookup failed")
            return [f"Error checking admin status: {exc.__class__.__name__}"]
        if not is_admin:
            return []

        handler = self._admin_handlers.get(command)
        if handler is None:
            return []
        LOGGER.info("Admin command", extra={"command": command, "admin": message.username})
        return await self._run(command, handler(args))

    async def _register(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        if len(args) != 2:
            return [f"Usage: {self._prefix}register <character_name> <server>"]
        character_name, server = args

        if not await self._resolver.character_exists(character_name, server):
            return [
                f"Character {character_name} was not found on realm {server}. "
                "Please check the spelling and try again."
            ]

        async with self._session_factory() as session, session.begin():
            await RegistrationRepository(session).register(
                message.username, character_name, server
            )
        LOGGER.info(
            "Registered character",
            extra={"user": message.username, "character": character_name, "server": server},
        )

        summary = f"Successfully registered character {character_name} on server {server}"
        replies: list[str] = []
        is_member = False
        if self._guild_id is not None:
            # One profile lookup answers both membership and the guild name.
            try:
                guild = await self._resolver.get_character_guild(character_name, server)
            except BlizzardError as exc:
                replies.append(
                    "Your registration was saved, but guild membership could not be "
                    f"verified: {describe_blizzard_error(exc)}"
                )
            else:
                if guild is not None and guild.id == self._guild_id:
                    is_member = True
                    summary += f" ({guild.name} member)"
        replies.insert(0, summary)

        if member is None:
            replies.append("Roles are only assigned when you register from a server channel.")
            return replies

        result = await self._synchronizer.sync(
            member, character_exists=True, is_guild_member=is_member
        )
        replies.extend(describe_role_sync(result))
        return replies

    async def _whoami(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        async with self._session_factory() as session:
            registration = await RegistrationRepository(session).get(message.username)
        if registration is None:
            return [self._not_registered()]
        return [
            f"Your registered character is {registration.character_name} "
            f"on server {registration.server}"
        ]

    async def _guild(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        async with self._session_factory() as session:
            registration = await RegistrationRepository(session).get(message.username)
        if registration is None:
            return [self._not_registered()]

        info = await self._resolver.get_guild_info(
            registration.character_name, registration.server
        )
        if info is None:
            return ["Character is not in a guild"]
        lines = [f"Guild: {info.guild_name}", f"Rank: {info.rank_label}"]
        if info.faction_name:
            lines.append(f"Faction: {info.faction_name}")
        return ["\n".join(lines)]

    async def _help(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        return [HELP_TEXT.format(p=self._prefix)]

    async def _ping(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        return ["Pong🏓"]

    async def _bye(
        self, message: IncomingMessage, args: list[str], member: RoleGrantTarget | None
    ) -> list[str]:
        return ["Good Bye👋"]

    async def _admin_help(self, args: list[str]) -> list[str]:
        return [ADMIN_HELP_TEXT.format(p=self._prefix)]

    async def _add_admin(self, args: list[str]) -> list[str]:
        if len(args) != 1:
            return [f"Usage: {self._prefix}addadmin <discord_username>"]
        async with self._session_factory() as session, session.begin():
            await AdminRepository(session).add(args[0])
        return [f"Successfully added {args[0]} as admin"]

    async def _remove_admin(self, args: list[str]) -> list[str]:
        if len(args) != 1:
            return [f"Usage: {self._prefix}removeadmin <discord_username>"]
        async with self._session_factory() as session, session.begin():
            removed = await AdminRepository(session).remove(args[0])
        if not removed:
            return [f"{args[0]} is not an admin"]
        return [f"Successfully removed {args[0]} as admin"]

    async def _register_user(self, args: list[str]) -> list[str]:
        if len(args) != 3:
            return [
                f"Usage: {self._prefix}register-user <discord_username> <character_name> <server>"
            ]
        username, character_name, server = args
        async with self._session_factory() as session, session.begin():
            await RegistrationRepository(session).register(username, character_name, server)
        return [
            f"Successfully registered character {character_name} on server {server} for {username}"
        ]

    async def _remove_user(self, args: list[str]) -> list[str]:
        if len(args) != 1:
            return [f"Usage: {self._prefix}remove-user <discord_username>"]
        async with self._session_factory() as session, session.begin():
            removed = await RegistrationRepository(session).remove(args[0])
        if not removed:
            return [f"No registration found for {args[0]}"]
        return [f"Successfully removed registration for {args[0]}"]

    async def _list_users(self, args: list[str]) -> list[str]:
        async with self._session_factory() as session:
            registrations = await RegistrationRepository(session).list_all()
        if not registrations:
            return ["No registered users found"]
        lines = ["Registered users:"]
        lines.extend(
            f"- {reg.discord_username}: {reg.character_name} on {reg.server}"
            for reg in registrations
        )
        return ["\n".join(lines)]

    def _not_registered(self) -> str:
        return (
            "You haven't registered a character yet. "
            f"Use {self._prefix}register <character_name> <server> to register."
        )


def describe_blizzard_error(exc: BlizzardError) -> str:
    if isinstance(exc, ValidationError):
        return f"Invalid input: {exc}."
    if isinstance(exc, AuthError):
        return "Unable to authenticate with the Blizzard API right now. Please try again later."
    if isinstance(exc, APIError):
        if exc.status_code is None:
            return "The Blizzard API could not be reached. Please try again later."
        return f"The Blizzard API returned an error (HTTP {exc.status_code}). Please try again later."
    if isinstance(exc, ParseError):
        return "The Blizzard API returned an unexpected response. Please try again later."
    return f"Blizzard API error: {exc}"


def describe_role_sync(result: RoleSyncResult) -> list[str]:
    """Render role-sync outcome separately from the registration outcome."""
    lines: list[str] = []
    if result.granted:
        labels = ", ".join(_REASON_LABELS[grant.reason] for grant in result.granted)
        lines.append(f"Assigned roles: {labels}")
    if result.already_satisfied:
        labels = ", ".join(_REASON_LABELS[reason] for reason in result.already_satisfied)
        lines.append(f"You already have the {labels} role(s).")
    if result.failed:
        lines.append(
            "Your registration was saved, but some roles could not be assigned. "
            "Please contact an admin."
        )
    return lines
