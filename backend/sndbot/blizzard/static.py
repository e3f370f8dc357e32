from __future__ import annotations

from .errors import GuildNotFoundError
from .models import UNKNOWN_RANK, Guild, GuildInfo, GuildMembership
from .slugs import normalize_character_name, slugify


class StaticBlizzardClient:
    """In-memory resolver used in tests and local runs to avoid network calls.

    Characters are keyed by ``(character name, realm slug)`` after the same
    normalization the HTTP client applies, so lookups are case-insensitive.
    """

    def __init__(self) -> None:
        self._characters: set[tuple[str, str]] = set()
        self._guilds: dict[tuple[str, str], Guild] = {}
        self._rosters: dict[tuple[str, str], list[GuildMembership]] = {}
        self.roster_requests: list[tuple[str, str]] = []

    def add_character(self, name: str, realm: str, guild: Guild | None = None) -> None:
        key = _key(name, realm)
        self._characters.add(key)
        if guild is not None:
            self._guilds[key] = guild

    def add_roster(
        self, realm_slug: str, guild_slug: str, members: list[GuildMembership]
    ) -> None:
        self._rosters[(slugify(realm_slug), slugify(guild_slug))] = list(members)

    async def character_exists(self, name: str, realm: str) -> bool:
        return _key(name, realm) in self._characters

    async def get_character_guild(self, name: str, realm: str) -> Guild | None:
        return self._guilds.get(_key(name, realm))

    async def is_character_in_guild(self, name: str, realm: str, guild_id: int) -> bool:
        guild = await self.get_character_guild(name, realm)
        if guild is None:
            return False
        return guild.id == guild_id

    async def get_guild_member_info(
        self, name: str, realm_slug: str, guild_slug: str
    ) -> GuildMembership | None:
        character = normalize_character_name(name)
        roster_key = (slugify(realm_slug, field="realm"), slugify(guild_slug, field="guild name"))
        self.roster_requests.append(roster_key)
        members = self._rosters.get(roster_key)
        if members is None:
            raise GuildNotFoundError(
                f"Guild {roster_key[1]} not found on realm {roster_key[0]}", status_code=404
            )
        for member in members:
            if member.character_name.lower() == character:
                return member
        return None

    async def get_guild_info(self, name: str, realm: str) -> GuildInfo | None:
        guild = await self.get_character_guild(name, realm)
        if guild is None:
            return None
        realm_slug = guild.realm.slug or slugify(guild.realm.name or realm, field="realm")
        try:
            membership = await self.get_guild_member_info(name, realm_slug, slugify(guild.name))
        except GuildNotFoundError:
            membership = None
        rank = membership.rank if membership is not None else UNKNOWN_RANK
        return GuildInfo(guild_name=guild.name, rank=rank, faction_name=guild.faction_name)


def _key(name: str, realm: str) -> tuple[str, str]:
    return normalize_character_name(name), slugify(realm, field="realm")
