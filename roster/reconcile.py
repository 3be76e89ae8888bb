"""Сверка записи в базе с сообщением в Discord.

Запись и сообщение живут независимо: сообщение можно удалить руками, а
событие могло быть отменено или удалено очисткой. Перед каждой операцией
движок определяет состояние пары и при расхождении чинит его сам.
"""

from __future__ import annotations

import enum

from database.models import Event
from database.roster_store import RosterStore
from .context import RequestContext
from .errors import NotFoundError
from .rendering import GONE_NOTICE


class ArtifactState(enum.Enum):
    CONSISTENT = "consistent"
    ORPHANED_RECORD = "orphaned_record"
    GHOST_DISPLAY = "ghost_display"
    ABSENT = "absent"


def classify(has_record: bool, has_artifact: bool) -> ArtifactState:
    if has_record and has_artifact:
        return ArtifactState.CONSISTENT
    if has_record:
        return ArtifactState.ORPHANED_RECORD
    if has_artifact:
        return ArtifactState.GHOST_DISPLAY
    return ArtifactState.ABSENT


async def reconcile(store: RosterStore, ctx: RequestContext, event_id: int) -> Event:
    """Возвращает событие, если запись и сообщение на месте.

    Иначе приводит их в согласованное состояние и поднимает NotFoundError.
    """
    event = await store.load(event_id, ctx.guild_id)
    if event is not None and event.channel_id is not None and event.channel_id != ctx.display.channel_id:
        # Анонс живет в другом канале: отсюда его наличие не проверить
        ctx.log.info("roster_wrong_channel", event_id=event_id, channel_id=ctx.display.channel_id)
        raise NotFoundError("Event doesn't exist in this channel")
    has_artifact = await ctx.display.fetch_artifact(event_id)
    state = classify(event is not None, has_artifact)

    if state is ArtifactState.CONSISTENT:
        return event

    log = ctx.log.bind(event_id=event_id, state=state.value)
    if state is ArtifactState.ORPHANED_RECORD:
        await store.delete(event_id, ctx.guild_id)
        log.warning("roster_orphaned_record_deleted")
        raise NotFoundError(f"Message for event {event_id} does not exist, the event has been removed")

    if state is ArtifactState.GHOST_DISPLAY:
        await ctx.display.invalidate_artifact(event_id, GONE_NOTICE)
        log.warning("roster_ghost_display_invalidated")

    raise NotFoundError("Event doesn't exist in this channel")
