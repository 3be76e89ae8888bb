from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .crud import crud_template
from roster.errors import NotFoundError
from roster.templates import RoleDefinition


class SqlTemplateProvider:
    """Читает шаблоны составов из таблиц templates / template_roles."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_template(self, name: str, guild_id: int) -> list[RoleDefinition]:
        async with self._session_maker() as session:
            template = await crud_template.get_template_by_name(session, guild_id, name)
            if template is None:
                raise NotFoundError(f"Composition {name} doesn't exist")
            return [
                RoleDefinition(role_id=r.role_id, role_name=r.role_name, party=r.party)
                for r in template.roles
            ]
