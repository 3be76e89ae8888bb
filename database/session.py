import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from dotenv import load_dotenv

from .base import Base
from . import models  # noqa: F401  регистрирует таблицы в Base.metadata

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise Exception("Не найдена переменная DATABASE_URL в .env файле")

async_engine = create_async_engine(DATABASE_URL)
async_session_maker = async_sessionmaker(async_engine, expire_on_commit=False)


async def init_models() -> None:
    """Создает недостающие таблицы при запуске бота."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
