from __future__ import annotations

from dataclasses import dataclass, field

import disnake
import structlog

from .display import DisplaySurface, MessageDisplaySurface


def has_admin_role(member: disnake.abc.User, admin_role_name: str) -> bool:
    """Есть ли у участника сервера админская роль бота."""
    return any(role.name == admin_role_name for role in getattr(member, "roles", []))


@dataclass(frozen=True)
class RequestContext:
    """Кто и откуда вызывает операцию.

    Передается в каждую операцию движка явно, вместо глобального контекста
    логгера. ``display`` привязан к каналу, из которого пришло взаимодействие.
    """

    guild_id: int
    user_id: int
    display: DisplaySurface | None = None
    is_privileged: bool = False
    log: structlog.typing.FilteringBoundLogger = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        logger = structlog.get_logger("roster").bind(guild_id=self.guild_id, user_id=self.user_id)
        object.__setattr__(self, "log", logger)

    @classmethod
    def from_interaction(cls, inter: disnake.Interaction, admin_role_name: str) -> RequestContext:
        return cls(
            guild_id=inter.guild_id,
            user_id=inter.author.id,
            display=MessageDisplaySurface(inter.channel),
            is_privileged=has_admin_role(inter.author, admin_role_name),
        )

    def can_manage(self, owner_id: int) -> bool:
        """Организатор события или обладатель админской роли."""
        return self.is_privileged or self.user_id == owner_id
