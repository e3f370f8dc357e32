"""Process-wide logging setup for the bot and ops API."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"
LOG_FILE_NAME = "sndbot.log"


def configure_logging(settings: Settings) -> None:
    """Send log records to stdout and, when a log directory is configured, to a file.

    The file handler appends so restarts keep earlier history.
    """
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    for handler in list(root.handlers):
        if getattr(handler, "_sndbot", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / LOG_FILE_NAME, mode="a", encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._sndbot = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # discord.py gateway chatter stays at INFO.
    if root.level < logging.INFO:
        logging.getLogger("discord").setLevel(logging.INFO)
