import os
import disnake
import structlog
from disnake.ext import commands
from dotenv import load_dotenv

from database.session import init_models
from roster.logging import configure_logging

load_dotenv()
configure_logging(os.getenv("LOG_LEVEL", "INFO"))

log = structlog.get_logger("roster.bot")

# Задаем намерения (intents)
intents = disnake.Intents.default()
intents.members = True # Нужны роли участников для проверки админской роли
intents.voice_states = True # Нужно для /roster prune и /roster missing

# Сервер для быстрой регистрации команд, без него команды глобальные
test_guild_id = os.getenv("TEST_GUILD_ID")

# Создаем экземпляр бота
bot = commands.Bot(
    command_prefix="!",
    intents=intents,
    test_guilds=[int(test_guild_id)] if test_guild_id else None,
)

@bot.event
async def on_ready():
    await init_models()
    log.info("bot_ready", user=str(bot.user), disnake_version=disnake.__version__)

# Загружаем все файлы .py из папки cogs
for filename in os.listdir("./cogs"):
    if filename.endswith(".py") and not filename.startswith("__"):
        try:
            bot.load_extension(f"cogs.{filename[:-3]}")
            log.info("cog_loaded", cog=filename)
        except commands.ExtensionError:
            log.exception("cog_load_failed", cog=filename)

if __name__ == "__main__":
    bot.run(os.getenv("DISCORD_TOKEN"))
