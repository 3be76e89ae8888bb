"""Поверхность отображения: сообщение Discord с анонсом события.

Сообщение может быть отредактировано или удалено людьми в любой момент,
поэтому движок считает его кэшем и сверяет с базой перед каждой операцией.
"""

from __future__ import annotations

from typing import Protocol

import disnake


class DisplaySurfaceError(Exception):
    """Discord недоступен или отказал в доступе."""


class DisplaySurface(Protocol):
    channel_id: int | None

    async def fetch_artifact(self, event_id: int) -> bool: ...

    async def update_artifact(self, event_id: int, embed: disnake.Embed) -> None: ...

    async def invalidate_artifact(self, event_id: int, notice: str) -> None: ...

    async def delete_artifact(self, event_id: int) -> None: ...


class MessageDisplaySurface:
    """Анонсы событий в одном текстовом канале. ID события = ID сообщения."""

    def __init__(self, channel: disnake.abc.Messageable):
        self.channel = channel
        self.channel_id = channel.id
        self._messages: dict[int, disnake.Message] = {}

    async def _fetch(self, event_id: int) -> disnake.Message | None:
        if event_id in self._messages:
            return self._messages[event_id]
        try:
            message = await self.channel.fetch_message(event_id)
        except disnake.NotFound:
            return None
        except disnake.HTTPException as e:
            raise DisplaySurfaceError(f"Could not fetch message {event_id}: {e}") from e
        self._messages[event_id] = message
        return message

    async def fetch_artifact(self, event_id: int) -> bool:
        return await self._fetch(event_id) is not None

    async def update_artifact(self, event_id: int, embed: disnake.Embed) -> None:
        message = await self._fetch(event_id)
        if message is None:
            raise DisplaySurfaceError(f"Message {event_id} does not exist")
        try:
            await message.edit(embed=embed)
        except disnake.HTTPException as e:
            raise DisplaySurfaceError(f"Could not edit message {event_id}: {e}") from e

    async def invalidate_artifact(self, event_id: int, notice: str) -> None:
        message = await self._fetch(event_id)
        if message is None:
            return
        try:
            await message.edit(content=notice, embeds=[], components=None)
        except disnake.HTTPException as e:
            raise DisplaySurfaceError(f"Could not edit message {event_id}: {e}") from e

    async def delete_artifact(self, event_id: int) -> None:
        message = await self._fetch(event_id)
        if message is None:
            return
        try:
            await message.delete()
        except disnake.NotFound:
            pass
        except disnake.HTTPException as e:
            raise DisplaySurfaceError(f"Could not delete message {event_id}: {e}") from e
        finally:
            self._messages.pop(event_id, None)
