"""Отрисовка состава в Embed и кнопки под анонсом.

Функции чистые: одинаковый состав всегда дает одинаковый Embed.
"""

import disnake

from database.models import Event
from .lock import lock_instant

EMBED_COLOR = 0x0099FF

JOIN_BUTTON_PREFIX = "roster_join"
LEAVE_BUTTON_PREFIX = "roster_leave"
PING_BUTTON_PREFIX = "roster_ping"
PARTY_SELECT_PREFIX = "roster_party"
ROLE_SELECT_PREFIX = "roster_role"

MAX_FIELD_LENGTH = 1024
FOOTER_PREFIX = "Event ID: "
GONE_NOTICE = "❌ This event no longer exists."


def format_slot(role_id: int, role_name: str, occupant: int | None) -> str:
    if occupant is None:
        return f"`🟩` {role_id}. {role_name}"
    return f"`✔️` {role_id}. {role_name} - <@{occupant}>"


def group_by_party(event: Event) -> dict[str, list]:
    """Слоты по пати в порядке номеров ролей."""
    parties: dict[str, list] = {}
    for slot in sorted(event.slots, key=lambda s: s.role_id):
        parties.setdefault(slot.party, []).append(slot)
    return parties


def _chunk_lines(lines: list[str]) -> list[str]:
    """Склеивает строки в куски не длиннее лимита поля Embed."""
    chunks = [lines[0]]
    for line in lines[1:]:
        if len(chunks[-1]) + 1 + len(line) > MAX_FIELD_LENGTH:
            chunks.append(line)
        else:
            chunks[-1] += "\n" + line
    return chunks


def format_roster_embed(event: Event) -> disnake.Embed:
    """Создает и форматирует Embed для анонса события."""
    embed = disnake.Embed(
        title=event.title,
        description=f"Date: **{event.date}**\nTime (UTC): **{event.time}**",
        color=EMBED_COLOR,
    )

    for party, slots in group_by_party(event).items():
        lines = [format_slot(s.role_id, s.role_name, s.signed_up_user_id) for s in slots]
        for i, chunk in enumerate(_chunk_lines(lines)):
            name = f"⚔️ {party}" if i == 0 else f"⚔️ {party} (cont.)"
            embed.add_field(name=name, value=chunk, inline=True)

    instant = lock_instant(event)
    if instant is not None:
        timestamp = int(instant.timestamp())
        embed.add_field(
            name="🔒 Sign-ups lock",
            value=f"<t:{timestamp}:F> (<t:{timestamp}:R>)",
            inline=False,
        )

    embed.set_footer(text=f"{FOOTER_PREFIX}{event.event_id}")
    return embed


def roster_components(event_id: int) -> list[disnake.ui.Button]:
    """Кнопки Join / Leave / Ping. ID события зашит в custom_id."""
    return [
        disnake.ui.Button(
            label="Join", style=disnake.ButtonStyle.primary, custom_id=f"{JOIN_BUTTON_PREFIX}|{event_id}"
        ),
        disnake.ui.Button(
            label="Leave", style=disnake.ButtonStyle.danger, custom_id=f"{LEAVE_BUTTON_PREFIX}|{event_id}"
        ),
        disnake.ui.Button(
            label="Ping", emoji="⚔️", style=disnake.ButtonStyle.danger, custom_id=f"{PING_BUTTON_PREFIX}|{event_id}"
        ),
    ]
