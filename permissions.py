"""Works out who may join a new private voice channel.

Access is inherited from the text channel the command was issued in:
every member who can see that channel gets full voice control on the new
one, and the guild's default role is locked out.
"""
from typing import List, Mapping, Optional

import discord

from schemas.channels import PermissionGrant, PrincipalType

# connect, speak, mute, deafen, move members and voice activity
LOCKED_VOICE_BITS = 66060288

VIEW_BITS = discord.Permissions(view_channel=True).value

DEFAULT_DENY = discord.Permissions(LOCKED_VOICE_BITS | VIEW_BITS)
MEMBER_ALLOW = discord.Permissions(discord.Permissions.voice().value | VIEW_BITS)


def can_view(permission_bits: int) -> bool:
    return discord.Permissions(permission_bits).view_channel


def default_deny_grant(guild_id: int) -> PermissionGrant:
    """Deny for @everyone, whose role id is the guild id."""
    return PermissionGrant(
        target_id=guild_id,
        target_type=PrincipalType.ROLE,
        deny=DEFAULT_DENY.value,
    )


def member_grants(roster: Mapping[int, int]) -> List[PermissionGrant]:
    """One allow grant per member whose parent-channel permissions include view."""
    grants = []
    for member_id, permission_bits in roster.items():
        if not can_view(permission_bits):
            continue
        grants.append(PermissionGrant(
            target_id=member_id,
            target_type=PrincipalType.MEMBER,
            allow=MEMBER_ALLOW.value,
        ))
    return grants


def resolve_grants(
    guild_id: int, roster: Mapping[int, int], owner_id: int, self_id: Optional[int] = None
) -> List[PermissionGrant]:
    """Default deny first, then the per-member allows.

    ``owner_id`` gets no special treatment: anyone who can see the parent
    channel is granted the same rights as the member who asked for it.
    The bot's own allow, when ``self_id`` is given, goes ahead of the deny
    so the bot never loses sight of the channel it is configuring.
    """
    allows = member_grants(roster)
    own = [grant for grant in allows if grant.target_id == self_id]
    others = [grant for grant in allows if grant.target_id != self_id]
    return own + [default_deny_grant(guild_id)] + others
