from __future__ import annotations

import datetime

import disnake

from database.roster_store import RosterStore
from roster.display import DisplaySurfaceError

GUILD_ID = 1000
OWNER_ID = 1
CHANNEL_ID = 2000
EVENT_ID = 555000111222333444
COMP_NAME = "ZvZ"
ROLE_NAMES = ["1H Mace", "Hallowfall", "Rift Glaive", "Blazing", "Oathkeepers"] + [
    f"DPS {i}" for i in range(6, 23)
]
EVENT_DATE = "01.01.2030"
EVENT_TIME = "20:00"
EVENT_START = datetime.datetime(2030, 1, 1, 20, 0, tzinfo=datetime.timezone.utc)


class FakeClock:
    def __init__(self, now: datetime.datetime):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now


class FakeDisplaySurface:
    """Сообщения канала в памяти. Тест сам решает, какие из них существуют."""

    def __init__(self, channel_id: int | None = CHANNEL_ID):
        self.channel_id = channel_id
        self.artifacts: set[int] = set()
        self.updates: list[tuple[int, disnake.Embed]] = []
        self.invalidated: list[tuple[int, str]] = []
        self.deleted: list[int] = []
        self.fail_updates = False

    def publish(self, event_id: int) -> None:
        self.artifacts.add(event_id)

    async def fetch_artifact(self, event_id: int) -> bool:
        return event_id in self.artifacts

    async def update_artifact(self, event_id: int, embed: disnake.Embed) -> None:
        if self.fail_updates:
            raise DisplaySurfaceError("Discord is unavailable")
        self.updates.append((event_id, embed))

    async def invalidate_artifact(self, event_id: int, notice: str) -> None:
        self.invalidated.append((event_id, notice))

    async def delete_artifact(self, event_id: int) -> None:
        self.artifacts.discard(event_id)
        self.deleted.append(event_id)


async def occupants(store: RosterStore, event_id: int = EVENT_ID) -> dict[int, int | None]:
    event = await store.load(event_id, GUILD_ID)
    return {slot.role_id: slot.signed_up_user_id for slot in event.slots}
