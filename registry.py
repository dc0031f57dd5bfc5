import threading
from typing import Dict, List, Optional

from logging_config import get_logger
from schemas.channels import VoiceChannelRecord

logger = get_logger(__name__)


class ChannelRegistry:
    """In-memory map of channel id -> record for channels this process owns.

    Every operation holds the lock, so callers from the sweep loop, Discord
    event handlers and HTTP handlers never see the dict mid-update.
    Nothing is persisted: channels created before a restart are forgotten.
    """

    def __init__(self):
        self._channels: Dict[int, VoiceChannelRecord] = {}
        self._lock = threading.Lock()

    def put(self, record: VoiceChannelRecord) -> None:
        with self._lock:
            self._channels[record.channel_id] = record
            count = len(self._channels)
        logger.debug(f"Tracking channel {record.channel_id} ({record.name}), {count} tracked")

    def get(self, channel_id: int) -> Optional[VoiceChannelRecord]:
        with self._lock:
            return self._channels.get(channel_id)

    def remove(self, channel_id: int) -> Optional[VoiceChannelRecord]:
        with self._lock:
            record = self._channels.pop(channel_id, None)
        if record is not None:
            logger.debug(f"Stopped tracking channel {channel_id} ({record.name})")
        return record

    def find_by_parent(self, parent_channel_id: int) -> Optional[VoiceChannelRecord]:
        with self._lock:
            for record in self._channels.values():
                if record.parent_channel_id == parent_channel_id:
                    return record
        return None

    def values(self) -> List[VoiceChannelRecord]:
        """Snapshot of the tracked records, safe to iterate while others mutate."""
        with self._lock:
            return list(self._channels.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def __contains__(self, channel_id: int) -> bool:
        with self._lock:
            return channel_id in self._channels


channel_registry = ChannelRegistry()
