from contextlib import contextmanager
from typing import Dict, Optional, Protocol

import discord

from exceptions import PlatformCallFailure
from logging_config import get_logger
from schemas.channels import PermissionGrant, PrincipalType

logger = get_logger(__name__)


class Platform(Protocol):
    """Calls the lifecycle manager makes against the chat platform."""

    async def get_channel_name(self, channel_id: int) -> Optional[str]: ...

    async def create_voice_channel(self, guild_id: int, name: str) -> int: ...

    async def delete_channel(self, channel_id: int) -> bool: ...

    async def set_permission(self, channel_id: int, grant: PermissionGrant) -> None: ...

    async def get_roster(self, guild_id: int, parent_channel_id: int) -> Dict[int, int]: ...

    async def get_occupancy(self, guild_id: int, channel_id: int) -> int: ...

    async def send_notification(self, channel_id: int, text: str) -> None: ...

    def get_self_id(self) -> Optional[int]: ...


@contextmanager
def platform_call(operation: str):
    """Turn anything discord.py raises into a PlatformCallFailure."""
    try:
        yield
    except PlatformCallFailure:
        raise
    except Exception as e:
        logger.error(f"Discord call {operation} failed: {e}", exc_info=True)
        raise PlatformCallFailure(operation, str(e)) from e


class DiscordPlatform:
    """Platform backed by a connected discord.py client and its cache."""

    def __init__(self, client: discord.Client):
        self.client = client

    def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            raise PlatformCallFailure("get_guild", f"guild {guild_id} is not available")
        return guild

    async def _channel(self, channel_id: int):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def get_channel_name(self, channel_id: int) -> Optional[str]:
        """Name of a guild text channel, or None for DMs and unknown channels."""
        with platform_call("get_channel"):
            try:
                channel = await self._channel(channel_id)
            except discord.NotFound:
                return None
        if not isinstance(channel, discord.abc.GuildChannel):
            return None
        return channel.name

    async def create_voice_channel(self, guild_id: int, name: str) -> int:
        with platform_call("create_voice_channel"):
            guild = self._guild(guild_id)
            channel = await guild.create_voice_channel(name)
        logger.debug(f"Created Discord voice channel {channel.id} in guild {guild_id}")
        return channel.id

    async def delete_channel(self, channel_id: int) -> bool:
        """Delete a channel; False when it was already gone."""
        with platform_call("delete_channel"):
            try:
                channel = await self._channel(channel_id)
                await channel.delete()
            except discord.NotFound:
                logger.debug(f"Channel {channel_id} was already deleted")
                return False
        return True

    async def set_permission(self, channel_id: int, grant: PermissionGrant) -> None:
        with platform_call("set_permission"):
            channel = await self._channel(channel_id)
            guild = channel.guild
            if grant.target_type == PrincipalType.ROLE:
                target = guild.get_role(grant.target_id)
            else:
                target = guild.get_member(grant.target_id)
            if target is None:
                raise PlatformCallFailure(
                    "set_permission",
                    f"{grant.target_type.value} {grant.target_id} not found in guild {guild.id}",
                )
            overwrite = discord.PermissionOverwrite.from_pair(
                discord.Permissions(grant.allow), discord.Permissions(grant.deny)
            )
            await channel.set_permissions(target, overwrite=overwrite)

    async def get_roster(self, guild_id: int, parent_channel_id: int) -> Dict[int, int]:
        """Member id -> resolved permission bits on the parent channel."""
        with platform_call("get_roster"):
            guild = self._guild(guild_id)
            parent = guild.get_channel(parent_channel_id)
            if parent is None:
                raise PlatformCallFailure("get_roster", f"channel {parent_channel_id} not in guild {guild_id}")
            return {member.id: parent.permissions_for(member).value for member in guild.members}

    async def get_occupancy(self, guild_id: int, channel_id: int) -> int:
        with platform_call("get_occupancy"):
            guild = self._guild(guild_id)
            return sum(
                1 for member in guild.members
                if member.voice is not None
                and member.voice.channel is not None
                and member.voice.channel.id == channel_id
            )

    def get_self_id(self) -> Optional[int]:
        """Member id of the bot itself, None before login."""
        if self.client.user is None:
            return None
        return self.client.user.id

    async def send_notification(self, channel_id: int, text: str) -> None:
        with platform_call("send_notification"):
            channel = await self._channel(channel_id)
            await channel.send(text)
