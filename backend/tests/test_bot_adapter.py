from __future__ import annotations

import logging
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import discord
import pytest
from sndbot.bot.service import BotService
from sndbot.bot.client import DiscordMemberRoles
from sndbot.logging_config import LOG_FILE_NAME, configure_logging

from .utils import default_settings


class RecordingMember:
    def __init__(self, role_ids: list[int]) -> None:
        self.roles = [SimpleNamespace(id=role_id) for role_id in role_ids]
        self.added: list[tuple[Any, str | None]] = []

    async def add_roles(self, *roles: Any, reason: str | None = None) -> None:
        for role in roles:
            self.added.append((role, reason))


@pytest.mark.asyncio
async def test_member_roles_are_exposed_as_strings_and_granted_by_id() -> None:
    member = RecordingMember([100, 42])
    target = DiscordMemberRoles(member)  # type: ignore[arg-type]

    await target.add_role("200", "Verified guild membership")

    assert set(target.current_role_ids()) == {"100", "42"}
    ((role, reason),) = member.added
    assert isinstance(role, discord.Object)
    assert role.id == 200
    assert reason == "Verified guild membership"


@pytest.mark.asyncio
async def test_disabled_bot_service_does_not_start() -> None:
    service = BotService(default_settings(bot_enabled=False))

    await service.start()
    await service.stop()

    assert service.started is False


def test_configure_logging_writes_to_log_dir(tmp_path: Path) -> None:
    root = logging.getLogger()
    original_level = root.level
    try:
        configure_logging(default_settings(log_dir=str(tmp_path), log_level="info"))
        configure_logging(default_settings(log_dir=str(tmp_path), log_level="info"))
        logging.getLogger("sndbot.test").info("registered character")

        ours = [handler for handler in root.handlers if getattr(handler, "_sndbot", False)]
        assert len(ours) == 2
        for handler in ours:
            handler.flush()
        assert "registered character" in (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            if getattr(handler, "_sndbot", False):
                root.removeHandler(handler)
                handler.close()
        root.setLevel(original_level)
