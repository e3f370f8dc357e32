"""Typed views over Blizzard responses and the simplified values handed to callers."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_RANK = -1


@dataclass(slots=True, frozen=True)
class BearerToken:
    """Cached OAuth access token; ``expires_at`` is on the manager's clock."""

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TokenResponse(_Payload):
    access_token: str = Field(min_length=1)
    token_type: str = "bearer"
    expires_in: float


class RealmRef(_Payload):
    name: str = ""
    id: int = 0
    slug: str = ""


class FactionRef(_Payload):
    type: str = ""
    name: str = ""


class GuildRef(_Payload):
    name: str = ""
    id: int = 0
    realm: RealmRef = Field(default_factory=RealmRef)
    faction: FactionRef | None = None


class CharacterProfile(_Payload):
    """Subset of the character profile summary used for identity checks."""

    name: str = ""
    id: int = 0
    realm: RealmRef = Field(default_factory=RealmRef)
    faction: FactionRef | None = None
    guild: GuildRef | None = None


class RosterCharacter(_Payload):
    name: str
    realm: RealmRef = Field(default_factory=RealmRef)


class RosterEntry(_Payload):
    character: RosterCharacter
    rank: int = UNKNOWN_RANK


class GuildRoster(_Payload):
    members: list[RosterEntry] = Field(default_factory=list)


@dataclass(slots=True, frozen=True)
class Realm:
    name: str
    id: int
    slug: str


@dataclass(slots=True, frozen=True)
class Guild:
    """Guild a character belongs to. ``id`` is the identity; names are not unique."""

    name: str
    id: int
    realm: Realm
    faction_name: str


@dataclass(slots=True, frozen=True)
class GuildMembership:
    character_name: str
    realm_slug: str
    rank: int = UNKNOWN_RANK

    @property
    def rank_known(self) -> bool:
        return self.rank != UNKNOWN_RANK


@dataclass(slots=True, frozen=True)
class GuildInfo:
    """Simplified guild view for chat replies."""

    guild_name: str
    rank: int
    faction_name: str

    @property
    def rank_known(self) -> bool:
        return self.rank != UNKNOWN_RANK

    @property
    def rank_label(self) -> str:
        return str(self.rank) if self.rank_known else "unknown"
