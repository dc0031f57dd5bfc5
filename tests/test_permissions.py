"""Tests for permission grant resolution."""

import discord

from permissions import DEFAULT_DENY, LOCKED_VOICE_BITS, MEMBER_ALLOW, can_view, resolve_grants
from schemas.channels import PrincipalType

VIEW = discord.Permissions(view_channel=True).value


def test_default_deny_comes_first_and_targets_everyone():
    grants = resolve_grants(guild_id=10, roster={}, owner_id=1)

    assert len(grants) == 1
    deny = grants[0]
    assert deny.target_id == 10
    assert deny.target_type == PrincipalType.ROLE
    assert deny.allow == 0
    perms = discord.Permissions(deny.deny)
    assert perms.connect
    assert perms.view_channel


def test_default_deny_keeps_voice_mask():
    assert DEFAULT_DENY.value & LOCKED_VOICE_BITS == LOCKED_VOICE_BITS


def test_every_viewer_gets_voice_control():
    roster = {1: VIEW, 2: VIEW | discord.Permissions(send_messages=True).value, 3: 0}

    grants = resolve_grants(guild_id=10, roster=roster, owner_id=1)
    member_grants = grants[1:]

    assert [g.target_id for g in member_grants] == [1, 2]
    for grant in member_grants:
        assert grant.target_type == PrincipalType.MEMBER
        assert grant.allow == MEMBER_ALLOW.value
        assert grant.deny == 0
        assert discord.Permissions(grant.allow).connect
        assert discord.Permissions(grant.allow).view_channel


def test_owner_without_view_gets_nothing():
    grants = resolve_grants(guild_id=10, roster={1: 0, 2: VIEW}, owner_id=1)
    assert [g.target_id for g in grants[1:]] == [2]


def test_can_view():
    assert can_view(VIEW)
    assert not can_view(discord.Permissions(connect=True).value)


def test_own_grant_goes_before_default_deny():
    grants = resolve_grants(guild_id=10, roster={1: VIEW, 2: VIEW, 99: VIEW}, owner_id=1, self_id=99)

    assert grants[0].target_id == 99
    assert grants[0].target_type == PrincipalType.MEMBER
    assert grants[1].target_type == PrincipalType.ROLE
    assert [g.target_id for g in grants[2:]] == [1, 2]


def test_self_id_outside_roster_changes_nothing():
    grants = resolve_grants(guild_id=10, roster={1: VIEW}, owner_id=1, self_id=99)
    assert [g.target_type for g in grants] == [PrincipalType.ROLE, PrincipalType.MEMBER]
