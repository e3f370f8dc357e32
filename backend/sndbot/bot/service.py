"""Service wiring for the Discord bot."""

from __future__ import annotations

import asyncio
import logging

import httpx

from sndbot.blizzard.client import BlizzardClient
from sndbot.config import Settings
from sndbot.db import close_db, create_all, get_session_factory, init_db
from sndbot.roles.reconciler import RolePolicy, RoleSynchronizer

from .client import SndBot
from .dispatcher import CommandDispatcher

LOGGER = logging.getLogger(__name__)


class BotService:
    """Manage the Discord client lifecycle and the resources it depends on."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._http_client: httpx.AsyncClient | None = None
        self._blizzard: BlizzardClient | None = None
        self._bot: SndBot | None = None
        self._task: asyncio.Task[None] | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if not self._settings.bot_enabled:
            LOGGER.info("Discord bot disabled via configuration")
            return

        if self._started:
            return

        init_db(self._settings)
        await create_all()

        self._http_client = httpx.AsyncClient(timeout=self._settings.blizzard_request_timeout)
        self._blizzard = BlizzardClient.from_settings(self._settings, http_client=self._http_client)

        if self._settings.blizzard_guild_id is None:
            LOGGER.warning("BLIZZARD_GUILD_ID not set; guild member roles will not be granted")
        if not self._settings.community_role_id:
            LOGGER.warning("COMMUNITY_ROLE_ID not set; community role will not be granted")

        dispatcher = CommandDispatcher(
            self._blizzard,
            get_session_factory(),
            RoleSynchronizer(RolePolicy.from_settings(self._settings)),
            guild_id=self._settings.blizzard_guild_id,
            prefix=self._settings.command_prefix,
        )
        self._bot = SndBot(dispatcher)
        self._task = asyncio.create_task(self._bot.start(self._settings.discord_token))
        self._task.add_done_callback(_log_exit)

        self._started = True
        LOGGER.info("Bot service started")

    async def stop(self) -> None:
        if not self._started:
            return

        if self._bot is not None:
            await self._bot.close()
            self._bot = None

        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        if self._blizzard is not None:
            await self._blizzard.aclose()
            self._blizzard = None

        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

        await close_db()
        self._started = False
        LOGGER.info("Bot service stopped")


def _log_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        LOGGER.error("Discord client exited", exc_info=exc)
