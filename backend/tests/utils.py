from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from sndbot.blizzard.client import BlizzardClient
from sndbot.blizzard.oauth import TokenManager
from sndbot.config import Settings

API_BASE = "https://us.api.blizzard.com"
TOKEN_URL = "https://oauth.battle.net/token"


def default_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "discord_token": "discord-token",
        "blizzard_client_id": "client-id",
        "blizzard_client_secret": "client-secret",
        "blizzard_oauth_url": TOKEN_URL,
        "blizzard_region": "us",
        "blizzard_api_base_url_override": None,
        "community_role_id": "100",
        "guild_member_role_ids": ["200", "300"],
        "blizzard_guild_id": 70395110,
        "log_dir": "",
    }
    values.update(overrides)
    return Settings(**values)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def token_payload(access_token: str = "token-1", expires_in: int = 86399) -> dict[str, Any]:
    return {"access_token": access_token, "token_type": "bearer", "expires_in": expires_in}


def character_payload(
    name: str = "Arthas",
    realm_slug: str = "stormrage",
    *,
    guild: dict[str, Any] | None = None,
    faction: str = "Alliance",
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": 1,
        "name": name,
        "realm": {"name": realm_slug.title(), "id": 60, "slug": realm_slug},
        "faction": {"type": faction.upper(), "name": faction},
    }
    if guild is not None:
        payload["guild"] = guild
    return payload


def guild_payload(
    name: str = "Stand and Deliver",
    guild_id: int = 70395110,
    realm_slug: str | None = "stormrage",
    realm_name: str = "Stormrage",
) -> dict[str, Any]:
    realm: dict[str, Any] = {"name": realm_name, "id": 60}
    if realm_slug is not None:
        realm["slug"] = realm_slug
    return {
        "name": name,
        "id": guild_id,
        "realm": realm,
        "faction": {"type": "ALLIANCE", "name": "Alliance"},
    }


def roster_payload(*members: tuple[str, int]) -> dict[str, Any]:
    return {
        "members": [
            {"character": {"name": name, "realm": {"slug": "stormrage"}}, "rank": rank}
            for name, rank in members
        ]
    }


@dataclass
class FakeBlizzard:
    """Routes mock HTTP requests by path and records what was requested."""

    routes: dict[str, httpx.Response] = field(default_factory=dict)
    token_responses: list[httpx.Response] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.token_responses:
            self.token_responses.append(httpx.Response(200, json=token_payload()))

    def add(self, path: str, status: int, payload: Any = None) -> None:
        self.routes[path] = httpx.Response(status, json=payload)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def token_requests(self) -> int:
        return sum(1 for request in self.requests if str(request.url) == TOKEN_URL)

    def handler(self) -> Callable[[httpx.Request], httpx.Response]:
        def handle(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if str(request.url) == TOKEN_URL:
                if len(self.token_responses) > 1:
                    return self.token_responses.pop(0)
                return self.token_responses[0]
            response = self.routes.get(request.url.path)
            if response is None:
                return httpx.Response(404, json={"code": 404, "type": "BLZWEBAPI00000404"})
            return response

        return handle

    def client(self, clock: Callable[[], float] | None = None) -> BlizzardClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler()))
        token_kwargs: dict[str, Any] = {}
        if clock is not None:
            token_kwargs["clock"] = clock
        tokens = TokenManager(
            http_client,
            token_url=TOKEN_URL,
            client_id="client-id",
            client_secret="client-secret",
            **token_kwargs,
        )
        return BlizzardClient(
            http_client,
            tokens,
            api_base_url=API_BASE,
            namespace="profile-us",
            locale="en_US",
            owns_http_client=True,
        )
