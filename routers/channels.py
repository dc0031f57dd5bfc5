from datetime import timedelta
from typing import List

from fastapi import APIRouter, HTTPException

from constants import CHANNEL_TTL_SECONDS
from lifecycle import utcnow
from logging_config import get_logger
from registry import channel_registry
from schemas.channels import ChannelResponse, VoiceChannelRecord

logger = get_logger(__name__)

channels_router = APIRouter(prefix="/channels", tags=["channels"])

CHANNEL_TTL = timedelta(seconds=CHANNEL_TTL_SECONDS)


def to_response(record: VoiceChannelRecord) -> ChannelResponse:
    # Snowflakes overflow JavaScript numbers, so ids go out as strings
    return ChannelResponse(
        channel_id=str(record.channel_id),
        guild_id=str(record.guild_id),
        parent_channel_id=str(record.parent_channel_id),
        owner_id=str(record.owner_id),
        name=record.name,
        created_at=record.created_at.isoformat(),
        expires_at=record.expires_at(CHANNEL_TTL).isoformat(),
        is_expired=record.is_expired(utcnow(), CHANNEL_TTL),
    )


@channels_router.get("", response_model=List[ChannelResponse])
async def list_channels():
    records = channel_registry.values()
    logger.debug(f"Listing {len(records)} tracked voice channels")
    return [to_response(record) for record in sorted(records, key=lambda r: r.created_at)]


@channels_router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(channel_id: int):
    record = channel_registry.get(channel_id)
    if record is None:
        logger.info(f"Channel details failed: channel {channel_id} is not tracked")
        raise HTTPException(status_code=404, detail="Channel not found")
    return to_response(record)
