from datetime import datetime, timedelta
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class PrincipalType(str, Enum):
    ROLE = "role"
    MEMBER = "member"


class VoiceChannelRecord(BaseModel):
    """A private voice channel created by the bot and tracked in memory."""

    model_config = ConfigDict(frozen=True)

    channel_id: int
    guild_id: int
    parent_channel_id: int
    owner_id: int
    name: str
    # Reserved for operator promotion; nothing populates it yet.
    operator_ids: List[int] = Field(default_factory=list)
    created_at: datetime

    def expires_at(self, ttl: timedelta) -> datetime:
        return self.created_at + ttl

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return self.created_at + ttl < now


class PermissionGrant(BaseModel):
    """A single permission overwrite to apply on a channel."""

    model_config = ConfigDict(frozen=True)

    target_id: int
    target_type: PrincipalType
    allow: int = 0
    deny: int = 0


class ChannelResponse(BaseModel):
    channel_id: str
    guild_id: str
    parent_channel_id: str
    owner_id: str
    name: str
    created_at: str
    expires_at: str
    is_expired: bool


class HealthResponse(BaseModel):
    status: str
    bot_connected: bool
    tracked_channels: int
