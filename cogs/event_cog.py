import os

import disnake
import structlog
from disnake.ext import commands, tasks

from database.session import async_session_maker
from database.roster_store import RosterStore
from database.template_provider import SqlTemplateProvider
from roster.context import RequestContext
from roster.engine import RosterEngine
from roster.errors import ValidationError
from roster.rendering import (
    JOIN_BUTTON_PREFIX,
    LEAVE_BUTTON_PREFIX,
    PARTY_SELECT_PREFIX,
    PING_BUTTON_PREFIX,
    ROLE_SELECT_PREFIX,
)
from roster.validation import MAX_LOCK_OFFSET_MINUTES, parse_event_id, parse_role_ids
from .template_cog import ADMIN_ROLE_NAME, autocomplete_template_name

log = structlog.get_logger("roster.bot")

HELP_TEXT = f"""
**Roster Bot** helps guilds organize events and track who plays which role.

**Available Commands**
- **/roster create <title> <date> <time> <comp> [lock]**: Post a new event built from a composition. `lock` freezes sign-ups the given number of minutes before the start.
- **/roster edit <eventid> [title] [date] [time] [lock]**: Change title, date, time or lock of an event.
- **/roster cancel <eventid>**: Cancel an event. The event ID is at the bottom of the event post.
- **/roster clearroles <eventid> <roles>**: Free up listed roles, for example `5,8,9,23`.
- **/roster prune <eventid>**: Remove people who are not in your voice channel from their roles.
- **/roster missing <eventid>**: Ping people signed up for the event who are not in your voice channel.
- **/roster my**: List upcoming events you are signed up for.
- **/template create|list|delete**: Manage compositions. Roles are split into parties of 20.

Organizer-only commands are also available to the **{ADMIN_ROLE_NAME}** role.
"""


def _flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def _voice_members(member: disnake.Member) -> set[int] | None:
    if not member.voice or not member.voice.channel:
        return None
    return {m.id for m in member.voice.channel.members}


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.engine = RosterEngine(
            RosterStore(async_session_maker),
            SqlTemplateProvider(async_session_maker),
            lock_blocks_claims=_flag("LOCK_BLOCKS_CLAIMS"),
        )

    def cog_unload(self):
        self.purge_expired.cancel()

    def context(self, inter: disnake.Interaction) -> RequestContext:
        return RequestContext.from_interaction(inter, ADMIN_ROLE_NAME)

    @commands.Cog.listener()
    async def on_ready(self):
        """Запускаем ежедневную очистку, когда бот готов к работе."""
        if not self.purge_expired.is_running():
            self.purge_expired.start()

    @tasks.loop(hours=24)
    async def purge_expired(self):
        await self.engine.purge_expired_rosters()

    @commands.slash_command(name="roster", description="Event roster commands")
    async def roster(self, inter: disnake.ApplicationCommandInteraction):
        pass

    @roster.sub_command(name="create", description="Create a new event")
    async def create(
        self,
        inter: disnake.ApplicationCommandInteraction,
        title: str = commands.Param(description="Name of the event"),
        date: str = commands.Param(description="Date of the event in DD.MM.YYYY format"),
        time: str = commands.Param(description="Time (UTC) in HH:MM format"),
        comp: str = commands.Param(description="Composition name", autocomplete=autocomplete_template_name),
        lock: int = commands.Param(default=None, min_value=0, max_value=MAX_LOCK_OFFSET_MINUTES, description="Lock sign-ups N minutes before the start"),
    ):
        # ID события = ID сообщения с анонсом, поэтому сначала получаем сообщение
        await inter.response.defer()
        message = await inter.original_response()

        result = await self.engine.create_roster(
            self.context(inter), event_id=message.id, title=title, date=date, time=time,
            comp_name=comp, lock_offset_minutes=lock, channel_id=inter.channel.id,
        )
        if not result.ok:
            await inter.delete_original_response()
            await inter.followup.send(result.message, ephemeral=True)
            return

        await inter.edit_original_response(embed=result.value.embed, components=result.value.components)

    @roster.sub_command(name="edit", description="Edit title/date/time/lock of an existing event")
    async def edit(
        self,
        inter: disnake.ApplicationCommandInteraction,
        eventid: str = commands.Param(description="Event ID"),
        title: str = commands.Param(default=None, description="Name of the event"),
        date: str = commands.Param(default=None, description="Date of the event in DD.MM.YYYY format"),
        time: str = commands.Param(default=None, description="Time (UTC) in HH:MM format"),
        lock: int = commands.Param(default=None, min_value=0, max_value=MAX_LOCK_OFFSET_MINUTES, description="Lock sign-ups N minutes before the start"),
    ):
        await inter.response.defer(ephemeral=True)
        try:
            event_id = parse_event_id(eventid)
        except ValidationError as e:
            await inter.followup.send(e.message, ephemeral=True)
            return
        result = await self.engine.edit_roster_metadata(
            self.context(inter), event_id, title=title, date=date, time=time, lock_offset_minutes=lock
        )
        await inter.followup.send(result.message, ephemeral=True)

    @roster.sub_command(name="cancel", description="Cancel event")
    async def cancel(
        self,
        inter: disnake.ApplicationCommandInteraction,
        eventid: str = commands.Param(description="Event ID"),
    ):
        await inter.response.defer(ephemeral=True)
        try:
            event_id = parse_event_id(eventid)
        except ValidationError as e:
            await inter.followup.send(e.message, ephemeral=True)
            return
        result = await self.engine.cancel_roster(self.context(inter), event_id)
        await inter.followup.send(result.message, ephemeral=True)

    @roster.sub_command(name="clearroles", description="Free up listed roles (for example, if people are unavailable)")
    async def clearroles(
        self,
        inter: disnake.ApplicationCommandInteraction,
        eventid: str = commands.Param(description="Event ID"),
        roles: str = commands.Param(description="Roles to free up separated by commas (for example: 5,8,9,23)"),
    ):
        await inter.response.defer(ephemeral=True)
        try:
            event_id = parse_event_id(eventid)
            role_ids = parse_role_ids(roles)
        except ValidationError as e:
            await inter.followup.send(e.message, ephemeral=True)
            return
        result = await self.engine.clear_slots(self.context(inter), event_id, role_ids)
        await inter.followup.send(result.message, ephemeral=True)

    @roster.sub_command(name="prune", description="Remove people not in your voice channel from the event")
    async def prune(
        self,
        inter: disnake.ApplicationCommandInteraction,
        eventid: str = commands.Param(description="Event ID"),
    ):
        await inter.response.defer(ephemeral=True)
        try:
            event_id = parse_event_id(eventid)
        except ValidationError as e:
            await inter.followup.send(e.message, ephemeral=True)
            return
        present = _voice_members(inter.author)
        if present is None:
            await inter.followup.send("You are not in a voice channel!", ephemeral=True)
            return
        result = await self.engine.prune_absent(self.context(inter), event_id, present)
        await inter.followup.send(result.message, ephemeral=True)

    @roster.sub_command(name="missing", description="Ping people signed up for the event that are not in your voice channel")
    async def missing(
        self,
        inter: disnake.ApplicationCommandInteraction,
        eventid: str = commands.Param(description="Event ID"),
    ):
        try:
            event_id = parse_event_id(eventid)
        except ValidationError as e:
            await inter.response.send_message(e.message, ephemeral=True)
            return
        present = _voice_members(inter.author)
        if present is None:
            await inter.response.send_message("You are not in a voice channel!", ephemeral=True)
            return
        result = await self.engine.list_absent(self.context(inter), event_id, present)
        # Пингуем отсутствующих публично, остальное видит только автор команды
        is_ping = result.ok and bool(result.value.affected)
        await inter.response.send_message(result.message, ephemeral=not is_ping)

    @roster.sub_command(name="my", description="List of events you are signed up for")
    async def my(self, inter: disnake.ApplicationCommandInteraction):
        await inter.response.defer(ephemeral=True)
        result = await self.engine.list_my_rosters(self.context(inter))
        await inter.followup.send(result.message, ephemeral=True)

    @roster.sub_command(name="help", description="How to use the roster bot")
    async def help(self, inter: disnake.ApplicationCommandInteraction):
        await inter.response.send_message(HELP_TEXT, ephemeral=True)

    @commands.Cog.listener("on_button_click")
    async def on_button_click(self, inter: disnake.MessageInteraction):
        action, _, raw_event_id = (inter.component.custom_id or "").partition("|")
        if action not in (JOIN_BUTTON_PREFIX, LEAVE_BUTTON_PREFIX, PING_BUTTON_PREFIX):
            return
        event_id = int(raw_event_id)
        ctx = self.context(inter)
        log.info("button_pressed", custom_id=inter.component.custom_id, guild_id=ctx.guild_id, user_id=ctx.user_id)

        if action == LEAVE_BUTTON_PREFIX:
            result = await self.engine.release_slot(ctx, event_id)
            await inter.response.send_message(result.message, ephemeral=True)
            return

        if action == PING_BUTTON_PREFIX:
            result = await self.engine.alert_participants(ctx, event_id)
            is_ping = result.ok and bool(result.value.affected)
            await inter.response.send_message(result.message, ephemeral=not is_ping)
            return

        result = await self.engine.available_parties(ctx, event_id)
        if not result.ok:
            await inter.response.send_message(result.message, ephemeral=True)
            return
        if not result.value:
            await inter.response.send_message("All roles in this event are taken 😢", ephemeral=True)
            return

        select = disnake.ui.StringSelect(
            custom_id=f"{PARTY_SELECT_PREFIX}|{event_id}",
            placeholder="Select a party",
            options=[disnake.SelectOption(label=party, value=party) for party in result.value],
        )
        await inter.response.send_message("Please select a party:", components=[select], ephemeral=True)

    @commands.Cog.listener("on_dropdown")
    async def on_dropdown(self, inter: disnake.MessageInteraction):
        parts = (inter.component.custom_id or "").split("|")
        if parts[0] not in (PARTY_SELECT_PREFIX, ROLE_SELECT_PREFIX):
            return
        event_id = int(parts[1])
        ctx = self.context(inter)
        log.info("select_menu_used", custom_id=inter.component.custom_id, values=inter.values,
                 guild_id=ctx.guild_id, user_id=ctx.user_id)

        if parts[0] == ROLE_SELECT_PREFIX:
            result = await self.engine.claim_slot(ctx, event_id, int(inter.values[0]))
            await inter.response.edit_message(content=result.message, components=[])
            return

        party = inter.values[0]
        result = await self.engine.available_roles(ctx, event_id, party)
        if not result.ok:
            await inter.response.edit_message(content=result.message, components=[])
            return
        if not result.value:
            await inter.response.edit_message(content=f"No available roles left in {party}", components=[])
            return

        select = disnake.ui.StringSelect(
            custom_id=f"{ROLE_SELECT_PREFIX}|{event_id}|{party}",
            placeholder="Select a role",
            options=[
                disnake.SelectOption(label=f"{r.role_id}. {r.role_name}", value=str(r.role_id))
                for r in result.value
            ],
        )
        await inter.response.edit_message(content=f"Picked {party}", components=[select])


def setup(bot: commands.Bot):
    bot.add_cog(EventCog(bot))
