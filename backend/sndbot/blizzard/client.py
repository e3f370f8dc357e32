"""HTTP-backed character and guild resolution against the Blizzard profile API."""

from __future__ import annotations

import logging
import time
from urllib.parse import quote
from typing import Protocol, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from .errors import APIError, GuildNotFoundError, ParseError
from .metrics import BLIZZARD_REQUEST_LATENCY_SECONDS, BLIZZARD_REQUESTS_TOTAL
from .models import (
    UNKNOWN_RANK,
    CharacterProfile,
    Guild,
    GuildInfo,
    GuildMembership,
    GuildRoster,
    Realm,
)
from .oauth import TokenManager
from .slugs import normalize_character_name, slugify

LOGGER = logging.getLogger(__name__)

_PayloadT = TypeVar("_PayloadT", bound=BaseModel)


class CharacterResolver(Protocol):
    """Capability interface consumed by the command dispatcher."""

    async def character_exists(self, name: str, realm: str) -> bool:  # pragma: no cover - protocol definition
        ...

    async def get_character_guild(self, name: str, realm: str) -> Guild | None:  # pragma: no cover - protocol definition
        ...

    async def is_character_in_guild(self, name: str, realm: str, guild_id: int) -> bool:  # pragma: no cover - protocol definition
        ...

    async def get_guild_member_info(
        self, name: str, realm_slug: str, guild_slug: str
    ) -> GuildMembership | None:  # pragma: no cover - protocol definition
        ...

    async def get_guild_info(self, name: str, realm: str) -> GuildInfo | None:  # pragma: no cover - protocol definition
        ...


class BlizzardClient:
    """Resolves characters, guilds and roster membership.

    Nothing is cached here: every call re-queries the API with a token obtained from
    the shared :class:`TokenManager`.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_manager: TokenManager,
        *,
        api_base_url: str,
        namespace: str,
        locale: str,
        owns_http_client: bool = False,
    ) -> None:
        self._http_client = http_client
        self._tokens = token_manager
        self._api_base_url = api_base_url.rstrip("/")
        self._namespace = namespace
        self._locale = locale
        self._owns_http_client = owns_http_client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> BlizzardClient:
        owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=settings.blizzard_request_timeout)
        token_manager = TokenManager(
            http_client,
            token_url=settings.blizzard_oauth_url,
            client_id=settings.blizzard_client_id,
            client_secret=settings.blizzard_client_secret,
        )
        return cls(
            http_client,
            token_manager,
            api_base_url=settings.blizzard_api_base_url,
            namespace=settings.blizzard_profile_namespace,
            locale=settings.blizzard_locale,
            owns_http_client=owns_http_client,
        )

    @property
    def token_manager(self) -> TokenManager:
        return self._tokens

    async def aclose(self) -> None:
        self._tokens.invalidate()
        if self._owns_http_client:
            await self._http_client.aclose()

    async def character_exists(self, name: str, realm: str) -> bool:
        response = await self._request_profile(name, realm)
        return response is not None

    async def get_character_guild(self, name: str, realm: str) -> Guild | None:
        response = await self._request_profile(name, realm)
        if response is None:
            return None
        profile = _parse(CharacterProfile, response, "character profile")
        guild = profile.guild
        # Guildless characters come back with an empty guild object, not a missing one.
        if guild is None or not guild.name.strip():
            return None
        faction = guild.faction or profile.faction
        return Guild(
            name=guild.name,
            id=guild.id,
            realm=Realm(name=guild.realm.name, id=guild.realm.id, slug=guild.realm.slug),
            faction_name=faction.name if faction is not None else "",
        )

    async def is_character_in_guild(self, name: str, realm: str, guild_id: int) -> bool:
        guild = await self.get_character_guild(name, realm)
        if guild is None:
            return False
        return guild.id == guild_id

    async def get_guild_member_info(
        self, name: str, realm_slug: str, guild_slug: str
    ) -> GuildMembership | None:
        character = normalize_character_name(name)
        realm_slug = slugify(realm_slug, field="realm")
        guild_slug = slugify(guild_slug, field="guild name")

        response = await self._get(
            "guild_roster", _path("data", "wow", "guild", realm_slug, guild_slug, "roster")
        )
        if response.status_code == 404:
            raise GuildNotFoundError(
                f"Guild {guild_slug} not found on realm {realm_slug}", status_code=404
            )
        if not response.is_success:
            raise APIError("Guild roster lookup failed", status_code=response.status_code)

        roster = _parse(GuildRoster, response, "guild roster")
        for entry in roster.members:
            if entry.character.name.lower() == character:
                return GuildMembership(
                    character_name=entry.character.name,
                    realm_slug=entry.character.realm.slug or realm_slug,
                    rank=entry.rank,
                )
        return None

    async def get_guild_info(self, name: str, realm: str) -> GuildInfo | None:
        guild = await self.get_character_guild(name, realm)
        if guild is None:
            return None

        # The guild may live on a different realm than the character in connected realms.
        if guild.realm.slug:
            guild_realm_slug = guild.realm.slug
        elif guild.realm.name.strip():
            guild_realm_slug = slugify(guild.realm.name, field="realm")
        else:
            guild_realm_slug = slugify(realm, field="realm")

        rank = UNKNOWN_RANK
        try:
            membership = await self.get_guild_member_info(
                name, guild_realm_slug, slugify(guild.name, field="guild name")
            )
        except (APIError, ParseError) as exc:
            LOGGER.warning(
                "Guild membership lookup failed; reporting rank as unknown",
                extra={"guild_id": guild.id, "error": str(exc)},
            )
        else:
            if membership is not None:
                rank = membership.rank

        return GuildInfo(guild_name=guild.name, rank=rank, faction_name=guild.faction_name)

    async def _request_profile(self, name: str, realm: str) -> httpx.Response | None:
        character = normalize_character_name(name)
        realm_slug = slugify(realm, field="realm")
        response = await self._get(
            "character_profile", _path("profile", "wow", "character", realm_slug, character)
        )
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise APIError("Character profile lookup failed", status_code=response.status_code)
        return response

    async def _get(self, endpoint: str, path: str) -> httpx.Response:
        token = await self._tokens.get_valid_token()
        started = time.perf_counter()
        try:
            response = await self._http_client.get(
                f"{self._api_base_url}{path}",
                params={"namespace": self._namespace, "locale": self._locale},
                headers={"Authorization": f"Bearer {token.value}"},
            )
        except httpx.HTTPError as exc:
            BLIZZARD_REQUESTS_TOTAL.labels(endpoint, "transport_error").inc()
            LOGGER.error("Blizzard %s request failed: %s", endpoint, exc.__class__.__name__)
            raise APIError(f"Blizzard {endpoint.replace('_', ' ')} request failed") from exc
        finally:
            BLIZZARD_REQUEST_LATENCY_SECONDS.labels(endpoint).observe(
                time.perf_counter() - started
            )

        BLIZZARD_REQUESTS_TOTAL.labels(endpoint, str(response.status_code)).inc()
        LOGGER.debug(
            "Blizzard %s responded",
            endpoint,
            extra={"path": path, "status_code": response.status_code},
        )
        return response


def _parse(model: type[_PayloadT], response: httpx.Response, label: str) -> _PayloadT:
    try:
        return model.model_validate(response.json())
    except (ValueError, PydanticValidationError) as exc:
        raise ParseError(f"Malformed {label} response") from exc


def _path(*segments: str) -> str:
    return "/" + "/".join(quote(segment, safe="") for segment in segments)
