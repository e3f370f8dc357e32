from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import TypedDict

from pydantic import BaseModel, Field, ValidationError


class _RequiredEnv(TypedDict):
    discord_token: str
    blizzard_client_id: str
    blizzard_client_secret: str


def _parse_role_ids() -> list[str]:
    raw = os.getenv("GUILD_MEMBER_ROLE_IDS", "").strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            values = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON for GUILD_MEMBER_ROLE_IDS: {raw}") from exc
        if not isinstance(values, list):
            raise ValueError("GUILD_MEMBER_ROLE_IDS must be a JSON array")
        return [str(value).strip() for value in values if str(value).strip()]
    return [token.strip() for token in raw.split(",") if token.strip()]


def _optional_int_env(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError as exc:  # pragma: no cover - configuration validation
        raise ValueError(f"Invalid integer for {name}: {raw}") from exc


def _optional_str_env(name: str) -> str | None:
    raw = os.getenv(name, "").strip()
    return raw or None


class Settings(BaseModel):
    api_host: str = Field(default=os.getenv("API_HOST", "0.0.0.0"))
    api_port: int = Field(default=int(os.getenv("API_PORT", "8000")))

    discord_token: str
    command_prefix: str = Field(default=os.getenv("COMMAND_PREFIX", "!"))
    bot_enabled: bool = Field(default=os.getenv("BOT_ENABLED", "true").lower() == "true")

    blizzard_client_id: str
    blizzard_client_secret: str
    blizzard_region: str = Field(default=os.getenv("BLIZZARD_REGION", "us"))
    blizzard_locale: str = Field(default=os.getenv("BLIZZARD_LOCALE", "en_US"))
    blizzard_oauth_url: str = Field(
        default=os.getenv("BLIZZARD_OAUTH_URL", "https://oauth.battle.net/token")
    )
    blizzard_api_base_url_override: str | None = Field(
        default=_optional_str_env("BLIZZARD_API_BASE_URL")
    )
    blizzard_request_timeout: float = Field(
        default=float(os.getenv("BLIZZARD_REQUEST_TIMEOUT", "10"))
    )
    blizzard_guild_id: int | None = Field(default=_optional_int_env("BLIZZARD_GUILD_ID"))

    database_url: str = Field(
        default=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///characters.db")
    )
    database_echo: bool = Field(
        default=os.getenv("DATABASE_ECHO", "false").lower() == "true"
    )

    community_role_id: str | None = Field(default=_optional_str_env("COMMUNITY_ROLE_ID"))
    guild_member_role_ids: list[str] = Field(default_factory=_parse_role_ids)

    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))
    log_dir: str = Field(default=os.getenv("LOG_DIR", "logs"))

    @property
    def blizzard_api_base_url(self) -> str:
        if self.blizzard_api_base_url_override:
            return self.blizzard_api_base_url_override.rstrip("/")
        return f"https://{self.blizzard_region}.api.blizzard.com"

    @property
    def blizzard_profile_namespace(self) -> str:
        return f"profile-{self.blizzard_region}"


def _load_settings() -> Settings:
    environment = {
        "discord_token": os.getenv("DISCORD_TOKEN"),
        "blizzard_client_id": os.getenv("BLIZZARD_CLIENT_ID"),
        # BLIZZARD_SECRET is the name older deployments use.
        "blizzard_client_secret": (
            os.getenv("BLIZZARD_CLIENT_SECRET") or os.getenv("BLIZZARD_SECRET")
        ),
    }

    missing = [key.upper() for key, value in environment.items() if value in (None, "")]
    if missing:
        raise RuntimeError("Missing required environment variables: " + ", ".join(missing))

    assert environment["discord_token"] is not None
    assert environment["blizzard_client_id"] is not None
    assert environment["blizzard_client_secret"] is not None

    typed_environment: _RequiredEnv = {
        "discord_token": environment["discord_token"],
        "blizzard_client_id": environment["blizzard_client_id"],
        "blizzard_client_secret": environment["blizzard_client_secret"],
    }

    try:
        return Settings.model_validate(typed_environment)
    except ValidationError as exc:  # pragma: no cover - pydantic already exercised in tests
        raise RuntimeError(f"Invalid settings detected: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return _load_settings()
