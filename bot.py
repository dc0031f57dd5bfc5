from typing import Optional, Tuple

import discord

from constants import COMMAND_PREFIX, COMMANDS
from exceptions import PlatformCallFailure, ValidationFailure
from lifecycle import LifecycleManager
from logging_config import get_logger
from platform_client import DiscordPlatform
from registry import ChannelRegistry, channel_registry
from sweeper import SweepScheduler

logger = get_logger(__name__)


def parse_command(content: str, prefix: str = COMMAND_PREFIX) -> Optional[Tuple[str, str]]:
    """Split ``!meet some title`` into ``("meet", "some title")``.

    Returns None for anything that is not one of our commands.
    """
    if not content or not content.startswith(prefix):
        return None
    words = content[len(prefix):].split(" ")
    command = words[0].lower()
    if command not in COMMANDS:
        return None
    return command, " ".join(words[1:])


class PrivateVoiceBot(discord.Client):
    def __init__(self, registry: ChannelRegistry = channel_registry, prefix: str = COMMAND_PREFIX, **kwargs):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.voice_states = True
        super().__init__(intents=intents, **kwargs)
        self.prefix = prefix
        self.manager = LifecycleManager(DiscordPlatform(self), registry)
        self.sweeper = SweepScheduler(self.manager)

    async def setup_hook(self) -> None:
        self.sweeper.start()

    async def close(self) -> None:
        await self.sweeper.stop()
        await super().close()

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} ({self.user.id}), bot is now running")

    async def on_message(self, message: discord.Message):
        if self.user is not None and message.author.id == self.user.id:
            return
        parsed = parse_command(message.content, self.prefix)
        if parsed is None:
            return
        command, argument = parsed
        logger.debug(f"Command {command} from {message.author.id} in {message.channel.id}")
        try:
            if command == "meet":
                await self.handle_meet(message, argument)
        except Exception as e:
            logger.error(f"Error handling {command} in {message.channel.id}: {e}", exc_info=True)

    async def handle_meet(self, message: discord.Message, title: str):
        if message.guild is None:
            await message.channel.send("Cannot create channel here.")
            return
        try:
            await self.manager.create_channel(message.guild.id, message.channel.id, title, message.author.id)
        except ValidationFailure as e:
            await message.channel.send(e.message)
        except PlatformCallFailure as e:
            logger.error(f"Voice channel creation failed in {message.channel.id}: {e}")
            await message.channel.send(f"<@{message.author.id}>, could not create the voice channel.")

    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel):
        try:
            await self.manager.handle_external_deletion(channel.id)
        except Exception as e:
            logger.error(f"Error handling deletion of channel {channel.id}: {e}", exc_info=True)
