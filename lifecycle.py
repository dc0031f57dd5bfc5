from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Set

from constants import CHANNEL_NAME_LIMIT, CHANNEL_TTL_SECONDS, VOICE_PREFIX
from exceptions import PlatformCallFailure, ValidationFailure
from logging_config import get_logger
from permissions import resolve_grants
from platform_client import Platform
from registry import ChannelRegistry
from schemas.channels import PermissionGrant, VoiceChannelRecord

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def created_message(name: str) -> str:
    return f"Created voice channel `{name}`"


def deleted_message(name: str) -> str:
    return f"Deleted voice channel `{name}`"


class LifecycleManager:
    """Creates, expires and forgets private voice channels.

    Called concurrently from the Discord event handlers and the sweep loop;
    all shared state lives in the registry.
    """

    def __init__(
        self,
        platform: Platform,
        registry: ChannelRegistry,
        ttl: timedelta = timedelta(seconds=CHANNEL_TTL_SECONDS),
        voice_prefix: str = VOICE_PREFIX,
        name_limit: int = CHANNEL_NAME_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.platform = platform
        self.registry = registry
        self.ttl = ttl
        self.voice_prefix = voice_prefix
        self.name_limit = name_limit
        self.clock = clock
        # Parent channels with a creation in flight, so two quick commands
        # in the same channel cannot both pass the duplicate check.
        self._creating: Set[int] = set()

    async def create_channel(self, guild_id: int, parent_channel_id: int, title: str, owner_id: int) -> VoiceChannelRecord:
        """Create a private voice channel for ``parent_channel_id``.

        Raises ValidationFailure when the request is refused and
        PlatformCallFailure when Discord rejects a call. A failure while
        applying permissions deletes the half-configured channel again.
        """
        logger.info(f"Voice channel request in {parent_channel_id} by {owner_id}, title: {title!r}")

        if len(self.voice_prefix) + len(title) > self.name_limit:
            logger.info(f"Rejected title of length {len(title)} in {parent_channel_id}")
            raise ValidationFailure(f"<@{owner_id}>, that does not fit!")

        existing = self.registry.find_by_parent(parent_channel_id)
        if existing is not None:
            logger.info(f"Parent {parent_channel_id} already has voice channel {existing.channel_id}")
            raise ValidationFailure(f"There is already a voice channel `{existing.name}`")
        if parent_channel_id in self._creating:
            raise ValidationFailure("A voice channel is already being created here")

        self._creating.add(parent_channel_id)
        try:
            return await self._create(guild_id, parent_channel_id, title, owner_id)
        finally:
            self._creating.discard(parent_channel_id)

    async def _create(self, guild_id: int, parent_channel_id: int, title: str, owner_id: int) -> VoiceChannelRecord:
        parent_name = await self.platform.get_channel_name(parent_channel_id)
        if parent_name is None:
            raise ValidationFailure("Cannot create channel here.")

        if not title:
            title = parent_name
        name = self.voice_prefix + title
        if len(name) > self.name_limit:
            raise ValidationFailure(f"<@{owner_id}>, that does not fit!")

        # Resolve access before creating anything so a roster failure leaves no channel behind.
        roster = await self.platform.get_roster(guild_id, parent_channel_id)
        grants = resolve_grants(guild_id, roster, owner_id, self_id=self.platform.get_self_id())

        channel_id = await self.platform.create_voice_channel(guild_id, name)
        record = VoiceChannelRecord(
            channel_id=channel_id,
            guild_id=guild_id,
            parent_channel_id=parent_channel_id,
            owner_id=owner_id,
            name=name,
            created_at=self.clock(),
        )
        self.registry.put(record)
        logger.info(f"Created voice channel {channel_id} ({name}) for parent {parent_channel_id}")

        try:
            await self._apply_permissions(record, grants)
        except PlatformCallFailure:
            logger.error(f"Permission setup failed for channel {channel_id}, rolling back")
            await self._rollback(record)
            raise

        try:
            await self.platform.send_notification(parent_channel_id, created_message(name))
        except PlatformCallFailure:
            logger.warning(f"Could not announce channel {channel_id} in {parent_channel_id}")
        return record

    async def _apply_permissions(self, record: VoiceChannelRecord, grants: List[PermissionGrant]) -> None:
        for grant in grants:
            await self.platform.set_permission(record.channel_id, grant)
        logger.info(f"Applied {len(grants)} permission overwrites to channel {record.channel_id}")

    async def _rollback(self, record: VoiceChannelRecord) -> None:
        try:
            await self.platform.delete_channel(record.channel_id)
        except PlatformCallFailure:
            # Still tracked, so the sweep reclaims it once it is empty and expired.
            logger.error(f"Could not delete channel {record.channel_id} during rollback, leaving it to the sweep", exc_info=True)
            return
        self.registry.remove(record.channel_id)

    async def evaluate_expiry(self) -> int:
        """Delete every tracked channel that is past its TTL and empty.

        A channel someone joins between the occupancy check and the delete
        call is still deleted. Returns the number of channels deleted.
        """
        records = self.registry.values()
        logger.debug(f"Evaluating {len(records)} tracked channels for expiry")
        deleted = 0
        for record in records:
            try:
                if await self._expire(record):
                    deleted += 1
            except PlatformCallFailure:
                logger.warning(f"Keeping channel {record.channel_id} for the next sweep after a failed call")
        return deleted

    async def _expire(self, record: VoiceChannelRecord) -> bool:
        occupancy = await self.platform.get_occupancy(record.guild_id, record.channel_id)
        if occupancy != 0 or not record.is_expired(self.clock(), self.ttl):
            return False

        logger.info(f"Channel {record.channel_id} ({record.name}) expired and is empty, deleting")
        await self.platform.delete_channel(record.channel_id)
        if self.registry.remove(record.channel_id) is None:
            # The delete event got here first and already announced it.
            return True
        await self._notify_deleted(record)
        return True

    async def handle_external_deletion(self, channel_id: int) -> Optional[VoiceChannelRecord]:
        """Forget a channel Discord reports as deleted; None if it was not tracked."""
        record = self.registry.remove(channel_id)
        if record is None:
            logger.debug(f"Ignoring deletion of untracked channel {channel_id}")
            return None
        logger.info(f"Voice channel {channel_id} ({record.name}) was deleted")
        await self._notify_deleted(record)
        return record

    async def _notify_deleted(self, record: VoiceChannelRecord) -> None:
        try:
            await self.platform.send_notification(record.parent_channel_id, deleted_message(record.name))
        except PlatformCallFailure:
            logger.warning(f"Could not announce deletion of {record.channel_id} in {record.parent_channel_id}")
