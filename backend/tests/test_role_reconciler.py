from __future__ import annotations

from collections.abc import Collection

import pytest
from sndbot.roles.reconciler import (
    GrantReason,
    RoleGrant,
    RolePolicy,
    RoleSynchronizer,
    reconcile_roles,
)

from .utils import default_settings

POLICY = RolePolicy(community_role_id="100", guild_role_ids=("200", "300"))


class FakeMember:
    """Role target that applies grants in memory and can be told to fail."""

    def __init__(self, roles: Collection[str] = (), failing: Collection[str] = ()) -> None:
        self.roles = set(roles)
        self.failing = set(failing)
        self.calls: list[tuple[str, str]] = []

    def current_role_ids(self) -> Collection[str]:
        return frozenset(self.roles)

    async def add_role(self, role_id: str, reason: str) -> None:
        self.calls.append((role_id, reason))
        if role_id in self.failing:
            raise PermissionError("Missing Permissions")
        self.roles.add(role_id)


def test_policy_from_settings_keeps_tier_order() -> None:
    policy = RolePolicy.from_settings(default_settings(guild_member_role_ids=["9", "3", "5"]))

    assert policy.community_role_id == "100"
    assert policy.guild_role_ids == ("9", "3", "5")


def test_new_guild_member_gets_community_and_first_tier() -> None:
    grants = reconcile_roles(set(), True, True, POLICY)

    assert grants == [
        RoleGrant("100", GrantReason.COMMUNITY),
        RoleGrant("200", GrantReason.GUILD_MEMBER),
    ]


def test_non_member_only_gets_community_role() -> None:
    assert reconcile_roles({"42"}, True, False, POLICY) == [
        RoleGrant("100", GrantReason.COMMUNITY)
    ]


def test_missing_character_grants_nothing() -> None:
    assert reconcile_roles(set(), False, True, POLICY) == []


@pytest.mark.parametrize("held_tier", ["200", "300"])
def test_any_held_guild_tier_satisfies_membership(held_tier: str) -> None:
    assert reconcile_roles({"100", held_tier}, True, True, POLICY) == []


def test_higher_tier_is_never_granted_automatically() -> None:
    grants = reconcile_roles({"100"}, True, True, POLICY)

    assert [grant.role_id for grant in grants] == ["200"]


def test_reconcile_is_idempotent_once_grants_are_applied() -> None:
    current = {"7"}
    grants = reconcile_roles(current, True, True, POLICY)
    current |= {grant.role_id for grant in grants}

    assert reconcile_roles(current, True, True, POLICY) == []


def test_unconfigured_roles_are_skipped() -> None:
    policy = RolePolicy(community_role_id=None, guild_role_ids=())

    assert reconcile_roles(set(), True, True, policy) == []


@pytest.mark.asyncio
async def test_sync_applies_grants_with_audit_reasons() -> None:
    member = FakeMember()
    result = await RoleSynchronizer(POLICY).sync(
        member, character_exists=True, is_guild_member=True
    )

    assert result.ok
    assert result.changed
    assert [grant.role_id for grant in result.granted] == ["100", "200"]
    assert member.roles == {"100", "200"}
    assert member.calls == [
        ("100", "Verified WoW character"),
        ("200", "Verified guild membership"),
    ]


@pytest.mark.asyncio
async def test_sync_reports_already_satisfied_roles() -> None:
    member = FakeMember(roles={"100", "300"})
    result = await RoleSynchronizer(POLICY).sync(
        member, character_exists=True, is_guild_member=True
    )

    assert not result.changed
    assert member.calls == []
    assert result.already_satisfied == [GrantReason.COMMUNITY, GrantReason.GUILD_MEMBER]


@pytest.mark.asyncio
async def test_sync_collects_failures_without_raising() -> None:
    member = FakeMember(failing={"100"})
    result = await RoleSynchronizer(POLICY).sync(
        member, character_exists=True, is_guild_member=True
    )

    assert not result.ok
    assert result.failed == {"100": "Missing Permissions"}
    assert [grant.role_id for grant in result.granted] == ["200"]
    assert member.roles == {"200"}


@pytest.mark.asyncio
async def test_sync_twice_is_a_no_op_the_second_time() -> None:
    member = FakeMember()
    synchronizer = RoleSynchronizer(POLICY)
    await synchronizer.sync(member, character_exists=True, is_guild_member=False)
    second = await synchronizer.sync(member, character_exists=True, is_guild_member=False)

    assert second.granted == []
    assert second.already_satisfied == [GrantReason.COMMUNITY]
    assert len(member.calls) == 1
