from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from ..models import Template, TemplateRole
from roster.templates import RoleDefinition

async def create_template_with_roles(
    session: AsyncSession, guild_id: int, name: str, owner_id: int, roles: list[RoleDefinition]
) -> Template:
    """Создает шаблон с набором ролей, уже разложенных по пати."""
    new_template = Template(guild_id=guild_id, name=name, owner_id=owner_id)
    new_template.roles = [
        TemplateRole(role_id=r.role_id, role_name=r.role_name, party=r.party) for r in roles
    ]

    session.add(new_template)
    await session.commit()
    await session.refresh(new_template)
    return new_template

async def get_template_by_name(session: AsyncSession, guild_id: int, name: str) -> Template | None:
    """Находит шаблон по имени на конкретном сервере."""
    result = await session.execute(
        select(Template).where(Template.guild_id == guild_id, Template.name == name)
    )
    return result.scalar_one_or_none()

async def get_all_templates_for_guild(session: AsyncSession, guild_id: int) -> Sequence[Template]:
    """Возвращает все шаблоны для указанного сервера."""
    result = await session.execute(
        select(Template).where(Template.guild_id == guild_id).order_by(Template.name)
    )
    return result.scalars().all()

async def delete_template(session: AsyncSession, template: Template) -> None:
    """Удаляет шаблон. Уже созданные события хранят свою копию ролей."""
    await session.delete(template)
    await session.commit()
