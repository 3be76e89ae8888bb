"""Движок записи на роли.

Каждая операция: сверка с сообщением -> транзакция над составом ->
коммит -> перерисовка анонса. Ошибки возвращаются как :class:`Failure`.
"""

from __future__ import annotations

import datetime
import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Iterable

import disnake
import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database.crud import crud_event
from database.models import Event, EventSlot
from database.roster_store import RosterStore
from .context import RequestContext
from .display import DisplaySurfaceError
from .errors import (
    AuthorizationError,
    ConflictError,
    ConflictReason,
    Failure,
    InternalError,
    NotFoundError,
    Result,
    RosterError,
    Success,
    ValidationError,
)
from .lock import event_start, is_locked
from .reconcile import reconcile
from .rendering import format_roster_embed, roster_components
from .templates import RoleDefinition, TemplateProvider
from .validation import (
    validate_date,
    validate_event_fields,
    validate_lock_offset,
    validate_time,
    validate_title,
)

log = structlog.get_logger("roster")

DEFAULT_MAX_AGE = datetime.timedelta(days=7)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class Outcome:
    message: str
    affected: tuple[int, ...] = ()


@dataclass(frozen=True)
class RosterCreated(Outcome):
    event_id: int = 0
    embed: disnake.Embed | None = None
    components: list[disnake.ui.Button] = field(default_factory=list)


@dataclass(frozen=True)
class SlotClaimed(Outcome):
    role_id: int = 0
    role_name: str = ""
    previous_role_id: int | None = None

    @property
    def switched(self) -> bool:
        return self.previous_role_id is not None


@dataclass(frozen=True)
class SlotReleased(Outcome):
    role_id: int = 0
    role_name: str = ""


@dataclass(frozen=True)
class SignedUpRoster:
    event_id: int
    title: str
    date: str
    time: str
    role_id: int
    role_name: str


@dataclass(frozen=True)
class MyRosters(Outcome):
    rosters: tuple[SignedUpRoster, ...] = ()


def operation(func: Callable[..., Any]) -> Callable[..., Any]:
    """Граница операции: исключения превращаются в Failure, ничего не летит наружу."""

    @functools.wraps(func)
    async def wrapper(self: "RosterEngine", ctx: RequestContext, *args: Any, **kwargs: Any) -> Result:
        try:
            return Success(await func(self, ctx, *args, **kwargs))
        except RosterError as e:
            ctx.log.info("roster_operation_refused", operation=func.__name__, error=e.message)
            return Failure(e)
        except IntegrityError as e:
            ctx.log.warning("roster_integrity_conflict", operation=func.__name__, error=str(e.orig))
            return Failure(ConflictError("This role has just been taken, try another one", ConflictReason.SLOT_TAKEN))
        except (SQLAlchemyError, DisplaySurfaceError):
            ctx.log.exception("roster_operation_failed", operation=func.__name__)
            return Failure(InternalError())

    return wrapper


def _mention(user_id: int) -> str:
    return f"<@{user_id}>"


def _slot_by_role(event: Event, role_id: int) -> EventSlot | None:
    return next((s for s in event.slots if s.role_id == role_id), None)


def _slot_of(event: Event, user_id: int) -> EventSlot | None:
    return next((s for s in event.slots if s.signed_up_user_id == user_id), None)


def _occupants(event: Event) -> list[int]:
    return [s.signed_up_user_id for s in sorted(event.slots, key=lambda s: s.role_id) if s.signed_up_user_id is not None]


def _require_event(event: Event | None) -> Event:
    # Событие могли отменить между сверкой и транзакцией
    if event is None:
        raise NotFoundError("Event doesn't exist in this channel")
    return event


def _require_manager(ctx: RequestContext, event: Event, action: str) -> None:
    if not ctx.can_manage(event.owner_id):
        raise AuthorizationError(f"{action} is allowed only to the organizer of the event or admin role")


class RosterEngine:
    def __init__(
        self,
        store: RosterStore,
        templates: TemplateProvider,
        clock: Callable[[], datetime.datetime] = utcnow,
        lock_blocks_claims: bool = False,
    ):
        self.store = store
        self.templates = templates
        self.clock = clock
        self.lock_blocks_claims = lock_blocks_claims

    async def _push(self, ctx: RequestContext, event: Event) -> None:
        """Перерисовка анонса строго после коммита."""
        await ctx.display.update_artifact(event.event_id, format_roster_embed(event))

    def _refuse_if_locked(self, event: Event, message: str) -> None:
        if is_locked(event, self.clock()):
            raise ConflictError(message, ConflictReason.LOCKED)

    @operation
    async def create_roster(
        self,
        ctx: RequestContext,
        event_id: int,
        title: str,
        date: str,
        time: str,
        comp_name: str,
        lock_offset_minutes: int | None = None,
        channel_id: int | None = None,
    ) -> RosterCreated:
        validate_event_fields(title, date, time, comp_name)
        validate_lock_offset(lock_offset_minutes)
        roles = await self.templates.get_template(comp_name, ctx.guild_id)

        if await self.store.load(event_id, ctx.guild_id) is not None:
            raise ConflictError(f"Event {event_id} already exists", ConflictReason.DUPLICATE)

        event = crud_event.build_event_with_slots(
            event_id=event_id, guild_id=ctx.guild_id, owner_id=ctx.user_id, title=title,
            comp_name=comp_name, date=date, time=time, roles=roles,
            lock_offset_minutes=lock_offset_minutes, channel_id=channel_id,
        )
        # Отрисовка до записи: при ошибке в базе ничего не остается
        embed = format_roster_embed(event)
        try:
            await self.store.create(event)
        except IntegrityError:
            raise ConflictError(f"Event {event_id} already exists", ConflictReason.DUPLICATE)

        ctx.log.info("roster_created", event_id=event_id, comp_name=comp_name, slots=len(roles))
        return RosterCreated(
            message=f"Event '{title}' has been created",
            event_id=event_id,
            embed=embed,
            components=roster_components(event_id),
        )

    @operation
    async def claim_slot(self, ctx: RequestContext, event_id: int, role_id: int) -> SlotClaimed:
        await reconcile(self.store, ctx, event_id)

        async with self.store.transaction(event_id, ctx.guild_id) as tx:
            event = _require_event(tx.event)
            locked = is_locked(event, self.clock())
            if locked and self.lock_blocks_claims:
                raise ConflictError("Sign-ups for this event are locked", ConflictReason.LOCKED)

            target = _slot_by_role(event, role_id)
            if target is None:
                raise NotFoundError(f"Role {role_id} doesn't exist in this event")
            if target.signed_up_user_id == ctx.user_id:
                raise ConflictError(
                    f"You already have {target.role_id}. {target.role_name} assigned", ConflictReason.ALREADY_ASSIGNED
                )
            if target.signed_up_user_id is not None:
                raise ConflictError(
                    f"This role is already assigned to {_mention(target.signed_up_user_id)}", ConflictReason.SLOT_TAKEN
                )

            previous = _slot_of(event, ctx.user_id)
            if previous is not None:
                if locked:
                    raise ConflictError(
                        "Sign-ups for this event are locked, you can't switch your role anymore", ConflictReason.LOCKED
                    )
                previous.signed_up_user_id = None
                # Освобождаем старый слот до записи в новый: уникальный индекс по участнику
                await tx.flush()
            target.signed_up_user_id = ctx.user_id

        await self._push(ctx, event)
        ctx.log.info(
            "roster_slot_claimed", event_id=event_id, role_id=role_id,
            previous_role_id=previous.role_id if previous else None,
        )
        if previous is None:
            message = f"Your role is: {target.role_id}. {target.role_name}"
        else:
            message = (
                f"Your role has been switched from {previous.role_id}. {previous.role_name} "
                f"to {target.role_id}. {target.role_name}"
            )
        return SlotClaimed(
            message=message,
            role_id=target.role_id,
            role_name=target.role_name,
            previous_role_id=previous.role_id if previous else None,
        )

    @operation
    async def release_slot(self, ctx: RequestContext, event_id: int) -> SlotReleased:
        await reconcile(self.store, ctx, event_id)

        async with self.store.transaction(event_id, ctx.guild_id) as tx:
            event = _require_event(tx.event)
            self._refuse_if_locked(event, "Sign-ups for this event are locked, you can't leave it anymore")
            slot = _slot_of(event, ctx.user_id)
            if slot is None:
                raise ConflictError("You are not signed up for this event", ConflictReason.NOT_IN_EVENT)
            slot.signed_up_user_id = None

        await self._push(ctx, event)
        ctx.log.info("roster_slot_released", event_id=event_id, role_id=slot.role_id)
        return SlotReleased(
            message="You have successfully left your role.", role_id=slot.role_id, role_name=slot.role_name
        )

    async def _remove_occupants(
        self, ctx: RequestContext, event_id: int, action: str, select: Callable[[Event], Iterable[EventSlot]]
    ) -> tuple[Event | None, list[int], list[int]]:
        """Общая часть clear и prune: освобождает выбранные слоты одной транзакцией."""
        async with self.store.transaction(event_id, ctx.guild_id) as tx:
            event = _require_event(tx.event)
            _require_manager(ctx, event, action)
            slots = [s for s in select(event) if s.signed_up_user_id is not None]
            if not slots:
                return None, [], []
            self._refuse_if_locked(event, "Sign-ups for this event are locked, participants can't be removed anymore")
            removed = [s.signed_up_user_id for s in slots]
            for slot in slots:
                slot.signed_up_user_id = None

        await self._push(ctx, event)
        return event, removed, [s.role_id for s in slots]

    @operation
    async def clear_slots(self, ctx: RequestContext, event_id: int, role_ids: Collection[int]) -> Outcome:
        await reconcile(self.store, ctx, event_id)

        wanted = list(dict.fromkeys(role_ids))

        def select(event: Event) -> list[EventSlot]:
            by_role = {s.role_id: s for s in event.slots}
            return [by_role[r] for r in wanted if r in by_role]

        event, removed, cleared = await self._remove_occupants(ctx, event_id, "Freeing roles in the event", select)
        if event is None:
            return Outcome(message="Nothing to clear: listed roles are already available")

        ctx.log.info("roster_slots_cleared", event_id=event_id, role_ids=cleared, removed=removed)
        return Outcome(
            message=f"Roles {', '.join(map(str, cleared))} have been cleared.",
            affected=tuple(removed),
        )

    @operation
    async def prune_absent(self, ctx: RequestContext, event_id: int, present: Collection[int]) -> Outcome:
        await reconcile(self.store, ctx, event_id)
        present = set(present)

        def select(event: Event) -> list[EventSlot]:
            return [s for s in event.slots if s.signed_up_user_id not in present]

        event, removed, _ = await self._remove_occupants(ctx, event_id, "Freeing roles in the event", select)
        if event is None:
            return Outcome(message="Wow! Everyone is present in comms!")

        ctx.log.info("roster_absent_pruned", event_id=event_id, removed=removed)
        return Outcome(
            message=f"Users {', '.join(map(_mention, removed))} have been cleared.",
            affected=tuple(removed),
        )

    @operation
    async def list_absent(self, ctx: RequestContext, event_id: int, present: Collection[int]) -> Outcome:
        event = await reconcile(self.store, ctx, event_id)
        _require_manager(ctx, event, "Checking missing participants")
        present = set(present)
        absent = [user_id for user_id in _occupants(event) if user_id not in present]
        if not absent:
            return Outcome(message="Wow! Everyone is present in comms!")
        return Outcome(
            message=f"{' '.join(map(_mention, absent))} you are signed up for **{event.title}**, please join comms!",
            affected=tuple(absent),
        )

    @operation
    async def cancel_roster(self, ctx: RequestContext, event_id: int) -> Outcome:
        event = await reconcile(self.store, ctx, event_id)
        _require_manager(ctx, event, "Cancelling events")

        if not await self.store.delete(event_id, ctx.guild_id):
            raise NotFoundError("Event doesn't exist in this channel")
        await ctx.display.delete_artifact(event_id)

        ctx.log.info("roster_cancelled", event_id=event_id)
        return Outcome(message=f"Event {event_id} has been cancelled", affected=tuple(_occupants(event)))

    @operation
    async def edit_roster_metadata(
        self,
        ctx: RequestContext,
        event_id: int,
        title: str | None = None,
        date: str | None = None,
        time: str | None = None,
        lock_offset_minutes: int | None = None,
    ) -> Outcome:
        if title is None and date is None and time is None and lock_offset_minutes is None:
            raise ValidationError("Nothing to edit: provide event name, date, time or lock")
        if title is not None:
            validate_title(title)
        if date is not None:
            validate_date(date)
        if time is not None:
            validate_time(time)
        validate_lock_offset(lock_offset_minutes)

        await reconcile(self.store, ctx, event_id)
        async with self.store.transaction(event_id, ctx.guild_id) as tx:
            event = _require_event(tx.event)
            _require_manager(ctx, event, "Editing events")
            if title is not None:
                event.title = title
            if date is not None:
                event.date = date
            if time is not None:
                event.time = time
            if lock_offset_minutes is not None:
                event.lock_offset_minutes = lock_offset_minutes

        await self._push(ctx, event)
        ctx.log.info("roster_edited", event_id=event_id)
        return Outcome(message=f"Event {event_id} has been updated")

    @operation
    async def alert_participants(self, ctx: RequestContext, event_id: int) -> Outcome:
        event = await reconcile(self.store, ctx, event_id)
        _require_manager(ctx, event, "Pinging participants")
        occupants = _occupants(event)
        if not occupants:
            return Outcome(message="No one signed up, there is no one to ping 😢")
        return Outcome(
            message=f"{_mention(ctx.user_id)} calls to arms! 🔔 {' '.join(map(_mention, occupants))}",
            affected=tuple(occupants),
        )

    @operation
    async def available_parties(self, ctx: RequestContext, event_id: int) -> list[str]:
        event = await reconcile(self.store, ctx, event_id)
        parties: list[str] = []
        for slot in sorted(event.slots, key=lambda s: s.role_id):
            if slot.signed_up_user_id is None and slot.party not in parties:
                parties.append(slot.party)
        return parties

    @operation
    async def available_roles(self, ctx: RequestContext, event_id: int, party: str) -> list[RoleDefinition]:
        event = await reconcile(self.store, ctx, event_id)
        return [
            RoleDefinition(role_id=s.role_id, role_name=s.role_name, party=s.party)
            for s in sorted(event.slots, key=lambda s: s.role_id)
            if s.party == party and s.signed_up_user_id is None
        ]

    @operation
    async def list_my_rosters(self, ctx: RequestContext) -> MyRosters:
        now = self.clock()
        rows = await self.store.list_for_participant(ctx.guild_id, ctx.user_id)
        upcoming = sorted(
            (
                SignedUpRoster(
                    event_id=event.event_id, title=event.title, date=event.date,
                    time=event.time, role_id=slot.role_id, role_name=slot.role_name,
                )
                for event, slot in rows
                if event_start(event.date, event.time) >= now
            ),
            key=lambda r: event_start(r.date, r.time),
        )
        if not upcoming:
            return MyRosters(message="There are no events you are signed up for")

        lines = ["Upcoming events:"]
        lines += [f"🚩 {r.title} on 📅 {r.date} at ⌚ {r.time} as ⚔️ {r.role_name}" for r in upcoming]
        return MyRosters(message="\n".join(lines), rosters=tuple(upcoming))

    async def purge_expired_rosters(self, max_age: datetime.timedelta = DEFAULT_MAX_AGE) -> Result:
        """Удаляет события, начавшиеся больше ``max_age`` назад.

        Сообщения не трогаем: при следующем нажатии кнопки сверка пометит их
        как удаленные.
        """
        try:
            purged = await self.store.purge_started_before(self.clock() - max_age)
        except SQLAlchemyError:
            log.exception("roster_purge_failed")
            return Failure(InternalError())

        if purged:
            log.info("roster_purge_completed", purged=[e.title for e in purged])
        else:
            log.info("roster_purge_nothing_to_delete")
        return Success(Outcome(message=f"{len(purged)} expired events have been deleted"))
