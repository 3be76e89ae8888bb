"""Общие фикстуры: SQLite-база на каждый тест, фейковый Discord и часы."""

import datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from database.base import Base
from database.crud import crud_template
from database.roster_store import RosterStore
from database.template_provider import SqlTemplateProvider
from roster.context import RequestContext
from roster.engine import RosterEngine
from roster.templates import split_into_parties

from helpers import (
    CHANNEL_ID,
    COMP_NAME,
    EVENT_DATE,
    EVENT_ID,
    EVENT_START,
    EVENT_TIME,
    GUILD_ID,
    OWNER_ID,
    ROLE_NAMES,
    FakeClock,
    FakeDisplaySurface,
)


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'roster.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(EVENT_START - datetime.timedelta(hours=8))


@pytest.fixture
def display() -> FakeDisplaySurface:
    return FakeDisplaySurface()


@pytest.fixture
def make_ctx(display):
    def _make(user_id: int, privileged: bool = False) -> RequestContext:
        return RequestContext(guild_id=GUILD_ID, user_id=user_id, display=display, is_privileged=privileged)

    return _make


@pytest.fixture
def owner_ctx(make_ctx) -> RequestContext:
    return make_ctx(OWNER_ID)


@pytest.fixture
def store(session_maker) -> RosterStore:
    return RosterStore(session_maker)


@pytest_asyncio.fixture
async def roster_engine(session_maker, store, clock) -> RosterEngine:
    async with session_maker() as session:
        await crud_template.create_template_with_roles(
            session, guild_id=GUILD_ID, name=COMP_NAME, owner_id=OWNER_ID,
            roles=split_into_parties("; ".join(ROLE_NAMES)),
        )
    return RosterEngine(store, SqlTemplateProvider(session_maker), clock=clock)


@pytest_asyncio.fixture
async def event_id(roster_engine, owner_ctx, display) -> int:
    """Опубликованное событие с блокировкой за 30 минут до начала."""
    result = await roster_engine.create_roster(
        owner_ctx, event_id=EVENT_ID, title="Castle siege", date=EVENT_DATE,
        time=EVENT_TIME, comp_name=COMP_NAME, lock_offset_minutes=30, channel_id=CHANNEL_ID,
    )
    assert result.ok, result.message
    display.publish(EVENT_ID)
    return EVENT_ID
