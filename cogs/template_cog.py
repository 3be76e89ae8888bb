import os

import disnake
import structlog
from disnake.ext import commands
from sqlalchemy.exc import IntegrityError

from database.session import async_session_maker
from database.crud import crud_template
from roster.context import has_admin_role
from roster.errors import ValidationError
from roster.templates import split_into_parties

ADMIN_ROLE_NAME = os.getenv("ADMIN_ROLE_NAME", "Roster Admin")

log = structlog.get_logger("roster.templates")

# Функция для автодополнения
async def autocomplete_template_name(inter: disnake.ApplicationCommandInteraction, user_input: str):
    async with async_session_maker() as session:
        templates = await crud_template.get_all_templates_for_guild(session, inter.guild.id)
        return [t.name for t in templates if user_input.lower() in t.name.lower()][:25]

class TemplateCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @commands.slash_command(name="template", description="Manage role compositions")
    async def template(self, inter: disnake.ApplicationCommandInteraction):
        pass

    @template.sub_command(name="create", description="Create a new composition")
    async def create(
        self,
        inter: disnake.ApplicationCommandInteraction,
        name: str = commands.Param(description="Composition name (for example, 'ZvZ 20')"),
        roles: str = commands.Param(description="Roles separated by ';' (Example: 1H Mace; Hallowfall; Rift Glaive)")
    ):
        await inter.response.defer(ephemeral=True)
        try:
            role_list = split_into_parties(roles)
        except ValidationError as e:
            await inter.followup.send(f"❌ {e.message}", ephemeral=True)
            return

        async with async_session_maker() as session:
            try:
                await crud_template.create_template_with_roles(
                    session, guild_id=inter.guild.id, name=name, owner_id=inter.author.id, roles=role_list
                )
            except IntegrityError:
                await inter.followup.send(
                    f"❌ Composition **{name}** already exists.", ephemeral=True
                )
                return

        log.info("template_created", guild_id=inter.guild.id, user_id=inter.author.id, name=name, roles=len(role_list))
        parties = len({r.party for r in role_list})
        await inter.followup.send(
            f"✅ Composition **{name}** created with {len(role_list)} roles in {parties} part{'y' if parties == 1 else 'ies'}!",
            ephemeral=True
        )

    @template.sub_command(name="list", description="List compositions or roles of a specific composition")
    async def list(
        self,
        inter: disnake.ApplicationCommandInteraction,
        name: str = commands.Param(default=None, description="Composition name", autocomplete=autocomplete_template_name)
    ):
        await inter.response.defer(ephemeral=True)
        async with async_session_maker() as session:
            if name:
                template = await crud_template.get_template_by_name(session, inter.guild.id, name)
                templates = [template] if template else []
            else:
                templates = await crud_template.get_all_templates_for_guild(session, inter.guild.id)

        if not templates:
            await inter.followup.send("No compositions found.", ephemeral=True)
            return

        embed = disnake.Embed(
            title="📋 Compositions on this server",
            color=disnake.Color.blurple()
        )
        for t in templates[:25]:
            role_names = "; ".join(f"{r.role_id}. {r.role_name}" for r in t.roles) if t.roles else "No roles"
            embed.add_field(name=f"🔹 {t.name}", value=f"`{role_names[:1000]}`", inline=False)

        await inter.followup.send(embed=embed, ephemeral=True)

    @template.sub_command(name="delete", description="Delete a composition")
    async def delete(
        self,
        inter: disnake.ApplicationCommandInteraction,
        name: str = commands.Param(description="Composition to delete", autocomplete=autocomplete_template_name)
    ):
        await inter.response.defer(ephemeral=True)
        async with async_session_maker() as session:
            template = await crud_template.get_template_by_name(session, inter.guild.id, name)
            if template is None:
                await inter.followup.send(f"❓ Composition **{name}** doesn't exist.", ephemeral=True)
                return
            if template.owner_id != inter.author.id and not has_admin_role(inter.author, ADMIN_ROLE_NAME):
                await inter.followup.send(
                    f"Only the composition owner or users with the {ADMIN_ROLE_NAME} role can delete it.", ephemeral=True
                )
                return
            await crud_template.delete_template(session, template)

        log.info("template_deleted", guild_id=inter.guild.id, user_id=inter.author.id, name=name)
        # Уже созданные события хранят свою копию ролей и не меняются
        await inter.followup.send(f"🗑️ Composition **{name}** has been deleted.", ephemeral=True)


def setup(bot):
    bot.add_cog(TemplateCog(bot))
