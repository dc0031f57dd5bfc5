from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import pytest

from exceptions import PlatformCallFailure
from lifecycle import LifecycleManager
from registry import ChannelRegistry
from schemas.channels import PermissionGrant

GUILD_ID = 1000
PARENT_ID = 2000
OWNER_ID = 3000

VIEW = 1 << 10


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class FakePlatform:
    """Records every call; ``fail`` holds operation names that should raise."""

    def __init__(self):
        self.channel_names: Dict[int, str] = {PARENT_ID: "general"}
        self.roster: Dict[int, int] = {OWNER_ID: VIEW, 3001: VIEW, 3002: 0}
        self.occupancy: Dict[int, int] = {}
        self.created: List[tuple] = []
        self.deleted: List[int] = []
        self.permissions: List[tuple] = []
        self.notifications: List[tuple] = []
        self.fail: Set[str] = set()
        self.fail_grant_for: Optional[int] = None
        self.self_id: Optional[int] = None
        self._next_id = 5000

    def _check(self, operation: str):
        if operation in self.fail:
            raise PlatformCallFailure(operation, "simulated")

    async def get_channel_name(self, channel_id: int) -> Optional[str]:
        self._check("get_channel")
        return self.channel_names.get(channel_id)

    async def create_voice_channel(self, guild_id: int, name: str) -> int:
        self._check("create_voice_channel")
        self._next_id += 1
        self.created.append((guild_id, name, self._next_id))
        return self._next_id

    async def delete_channel(self, channel_id: int) -> bool:
        self._check("delete_channel")
        self.deleted.append(channel_id)
        return True

    async def set_permission(self, channel_id: int, grant: PermissionGrant) -> None:
        self._check("set_permission")
        if grant.target_id == self.fail_grant_for:
            raise PlatformCallFailure("set_permission", "simulated")
        self.permissions.append((channel_id, grant))

    async def get_roster(self, guild_id: int, parent_channel_id: int) -> Dict[int, int]:
        self._check("get_roster")
        return dict(self.roster)

    async def get_occupancy(self, guild_id: int, channel_id: int) -> int:
        self._check("get_occupancy")
        return self.occupancy.get(channel_id, 0)

    async def send_notification(self, channel_id: int, text: str) -> None:
        self._check("send_notification")
        self.notifications.append((channel_id, text))

    def get_self_id(self) -> Optional[int]:
        return self.self_id


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def registry():
    return ChannelRegistry()


@pytest.fixture
def manager(platform, registry, clock):
    return LifecycleManager(
        platform,
        registry,
        ttl=timedelta(seconds=30),
        voice_prefix="PV: ",
        name_limit=100,
        clock=clock,
    )
