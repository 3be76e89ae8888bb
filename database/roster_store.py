"""Хранилище составов с сериализацией записи по каждому событию."""

from __future__ import annotations

import asyncio
import datetime
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .crud import crud_event
from .models import Event, EventSlot
from roster.lock import event_start


@dataclass
class RosterTransaction:
    """Открытая транзакция над одним событием."""

    session: AsyncSession
    event: Event | None

    async def flush(self) -> None:
        await self.session.flush()

    async def delete(self) -> None:
        if self.event is not None:
            await self.session.delete(self.event)


class RosterStore:
    """Единственный источник правды о занятости слотов.

    Запись в одно событие сериализуется дважды: ``asyncio.Lock`` на событие
    внутри процесса и ``SELECT ... FOR UPDATE`` в PostgreSQL между процессами.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    async def create(self, event: Event) -> Event:
        async with self._lock_for(event.event_id):
            async with self._session_maker() as session:
                async with session.begin():
                    session.add(event)
        return event

    async def load(self, event_id: int, guild_id: int) -> Event | None:
        async with self._session_maker() as session:
            return await crud_event.get_event_by_id(session, event_id, guild_id)

    @asynccontextmanager
    async def transaction(self, event_id: int, guild_id: int) -> AsyncIterator[RosterTransaction]:
        """Чтение-изменение-запись события под блокировкой.

        Коммит при нормальном выходе из блока, откат при исключении.
        """
        async with self._lock_for(event_id):
            async with self._session_maker() as session:
                async with session.begin():
                    event = await crud_event.get_event_by_id(session, event_id, guild_id, for_update=True)
                    yield RosterTransaction(session=session, event=event)

    async def delete(self, event_id: int, guild_id: int) -> bool:
        async with self.transaction(event_id, guild_id) as tx:
            if tx.event is None:
                return False
            await tx.delete()
        return True

    async def list_for_participant(self, guild_id: int, user_id: int) -> Sequence[tuple[Event, EventSlot]]:
        async with self._session_maker() as session:
            return await crud_event.get_events_for_participant(session, guild_id, user_id)

    async def purge_started_before(self, instant: datetime.datetime) -> list[Event]:
        """Удаляет события, начавшиеся раньше ``instant``."""
        async with self._session_maker() as session:
            async with session.begin():
                expired = [
                    event for event in await crud_event.get_all_events(session)
                    if event_start(event.date, event.time) < instant
                ]
                for event in expired:
                    await session.delete(event)
        return expired
