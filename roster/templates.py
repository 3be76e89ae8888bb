"""Шаблоны составов (композиции): определения ролей и разбивка на пати."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .errors import ValidationError

PARTY_SIZE = 20
# Embed вмещает не больше 6000 символов и 25 полей
MAX_PARTIES = 4
MAX_ROLE_NAME_LENGTH = 24
MAX_ROLES_INPUT_LENGTH = 1600


@dataclass(frozen=True)
class RoleDefinition:
    role_id: int
    role_name: str
    party: str


class TemplateProvider(Protocol):
    async def get_template(self, name: str, guild_id: int) -> list[RoleDefinition]:
        """Роли шаблона по порядку или NotFoundError."""
        ...


def party_name(index: int) -> str:
    return f"Party {index // PARTY_SIZE + 1}"


def split_into_parties(roles: str) -> list[RoleDefinition]:
    """Разбирает роли через ';' и раскладывает их по пати не больше 20 ролей.

    Номер роли равен ее позиции в списке, начиная с 1.
    """
    if len(roles) > MAX_ROLES_INPUT_LENGTH:
        raise ValidationError(
            f"Composition shouldn't be longer than {MAX_ROLES_INPUT_LENGTH} symbols. "
            "If you really need it, consider splitting list in two or more comps.",
            field="roles",
        )
    role_names = [r.strip() for r in roles.split(";") if r.strip()]
    if not role_names:
        raise ValidationError("You haven't specified any roles", field="roles")

    if len(role_names) > PARTY_SIZE * MAX_PARTIES:
        raise ValidationError(
            f"Composition can't have more than {PARTY_SIZE * MAX_PARTIES} roles ({MAX_PARTIES} parties)",
            field="roles",
        )

    too_long = [r for r in role_names if len(r) > MAX_ROLE_NAME_LENGTH]
    if too_long:
        raise ValidationError(
            f"Role names should be at most {MAX_ROLE_NAME_LENGTH} symbols: {', '.join(too_long)}",
            field="roles",
        )

    return [
        RoleDefinition(role_id=i + 1, role_name=name, party=party_name(i))
        for i, name in enumerate(role_names)
    ]
