from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from ..models import Event, EventSlot
from roster.templates import RoleDefinition

def build_event_with_slots(
    event_id: int, guild_id: int, owner_id: int, title: str, comp_name: str,
    date: str, time: str, roles: list[RoleDefinition], lock_offset_minutes: int | None = None,
    channel_id: int | None = None,
) -> Event:
    """Собирает событие из снимка ролей шаблона. Все слоты свободны."""
    new_event = Event(
        event_id=event_id,
        guild_id=guild_id,
        channel_id=channel_id,
        owner_id=owner_id,
        title=title,
        comp_name=comp_name,
        date=date,
        time=time,
        lock_offset_minutes=lock_offset_minutes,
    )
    new_event.slots = [
        EventSlot(role_id=r.role_id, role_name=r.role_name, party=r.party, signed_up_user_id=None)
        for r in roles
    ]
    return new_event

async def get_event_by_id(
    session: AsyncSession, event_id: int, guild_id: int, for_update: bool = False
) -> Event | None:
    """Получает событие по его ID на сервере, подгружая слоты."""
    query = select(Event).options(selectinload(Event.slots)).filter_by(event_id=event_id, guild_id=guild_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()

async def get_events_for_participant(
    session: AsyncSession, guild_id: int, user_id: int
) -> Sequence[tuple[Event, EventSlot]]:
    """События сервера, в которых пользователь занимает слот."""
    result = await session.execute(
        select(Event, EventSlot)
        .join(EventSlot, EventSlot.event_id == Event.event_id)
        .where(Event.guild_id == guild_id, EventSlot.signed_up_user_id == user_id)
        .order_by(Event.event_id)
    )
    return result.tuples().all()

async def get_all_events(session: AsyncSession) -> Sequence[Event]:
    """Все события всех серверов (для очистки устаревших)."""
    result = await session.execute(select(Event))
    return result.scalars().all()
