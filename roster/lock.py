"""Окно блокировки: время, после которого состав заморожен."""

import datetime

from database.models import Event


def event_start(date: str, time: str) -> datetime.datetime:
    """Начало события в UTC из полей ДД.ММ.ГГГГ и ЧЧ:ММ."""
    naive = datetime.datetime.strptime(f"{date} {time}", "%d.%m.%Y %H:%M")
    return naive.replace(tzinfo=datetime.timezone.utc)


def lock_instant(event: Event) -> datetime.datetime | None:
    if event.lock_offset_minutes is None:
        return None
    return event_start(event.date, event.time) - datetime.timedelta(minutes=event.lock_offset_minutes)


def is_locked(event: Event, now: datetime.datetime) -> bool:
    """Состав заблокирован строго после момента блокировки."""
    instant = lock_instant(event)
    return instant is not None and now > instant
