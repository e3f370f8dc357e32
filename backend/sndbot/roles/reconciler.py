"""Compute and apply the Discord role grants a verified character is entitled to."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from ..config import Settings
from .metrics import ROLE_GRANTS_TOTAL

LOGGER = logging.getLogger(__name__)


class GrantReason(str, Enum):
    COMMUNITY = "community"
    GUILD_MEMBER = "guild-member"


@dataclass(slots=True, frozen=True)
class RoleGrant:
    role_id: str
    reason: GrantReason


@dataclass(slots=True, frozen=True)
class RolePolicy:
    """Role ids to grant. ``guild_role_ids`` is ordered from lowest to highest tier."""

    community_role_id: str | None
    guild_role_ids: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings) -> RolePolicy:
        return cls(
            community_role_id=settings.community_role_id,
            guild_role_ids=tuple(settings.guild_member_role_ids),
        )


def reconcile_roles(
    current_roles: Collection[str],
    character_exists: bool,
    is_guild_member: bool,
    policy: RolePolicy,
) -> list[RoleGrant]:
    """Return the grants missing from ``current_roles``.

    Only the entry-level guild role is ever granted; higher tiers are assigned by
    hand, so holding any guild role satisfies membership.
    """
    if not character_exists:
        return []

    held = set(current_roles)
    grants: list[RoleGrant] = []
    if policy.community_role_id and policy.community_role_id not in held:
        grants.append(RoleGrant(policy.community_role_id, GrantReason.COMMUNITY))

    if is_guild_member and policy.guild_role_ids:
        if not any(role_id in held for role_id in policy.guild_role_ids):
            grants.append(RoleGrant(policy.guild_role_ids[0], GrantReason.GUILD_MEMBER))
    return grants


class RoleGrantTarget(Protocol):
    """A chat-platform member whose roles can be read and extended."""

    def current_role_ids(self) -> Collection[str]:  # pragma: no cover - protocol definition
        ...

    async def add_role(self, role_id: str, reason: str) -> None:  # pragma: no cover - protocol definition
        ...


@dataclass(slots=True)
class RoleSyncResult:
    granted: list[RoleGrant] = field(default_factory=list)
    already_satisfied: list[GrantReason] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def changed(self) -> bool:
        return bool(self.granted)


class RoleSynchronizer:
    """Applies reconciliation results through a :class:`RoleGrantTarget`."""

    def __init__(self, policy: RolePolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> RolePolicy:
        return self._policy

    async def sync(
        self,
        target: RoleGrantTarget,
        *,
        character_exists: bool,
        is_guild_member: bool,
    ) -> RoleSyncResult:
        current = set(target.current_role_ids())
        grants = reconcile_roles(current, character_exists, is_guild_member, self._policy)
        result = RoleSyncResult(
            already_satisfied=self._satisfied_reasons(grants, character_exists, is_guild_member)
        )

        for grant in grants:
            try:
                await target.add_role(grant.role_id, _audit_reason(grant.reason))
            except Exception as exc:  # noqa: BLE001 - reported to the caller, not raised
                ROLE_GRANTS_TOTAL.labels(grant.reason.value, "failed").inc()
                LOGGER.warning(
                    "Role grant failed",
                    extra={"role_id": grant.role_id, "reason": grant.reason.value},
                    exc_info=exc,
                )
                result.failed[grant.role_id] = str(exc) or exc.__class__.__name__
            else:
                ROLE_GRANTS_TOTAL.labels(grant.reason.value, "granted").inc()
                result.granted.append(grant)
        return result

    def _satisfied_reasons(
        self,
        grants: Sequence[RoleGrant],
        character_exists: bool,
        is_guild_member: bool,
    ) -> list[GrantReason]:
        if not character_exists:
            return []
        pending = {grant.reason for grant in grants}
        satisfied: list[GrantReason] = []
        if self._policy.community_role_id and GrantReason.COMMUNITY not in pending:
            satisfied.append(GrantReason.COMMUNITY)
        if (
            is_guild_member
            and self._policy.guild_role_ids
            and GrantReason.GUILD_MEMBER not in pending
        ):
            satisfied.append(GrantReason.GUILD_MEMBER)
        return satisfied


def _audit_reason(reason: GrantReason) -> str:
    if reason is GrantReason.COMMUNITY:
        return "Verified WoW character"
    return "Verified guild membership"
