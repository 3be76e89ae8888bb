import pytest

from roster.context import RequestContext
from roster.errors import NotFoundError
from roster.reconcile import ArtifactState, classify
from roster.rendering import GONE_NOTICE

from helpers import CHANNEL_ID, COMP_NAME, EVENT_DATE, EVENT_TIME, GUILD_ID, FakeDisplaySurface

U1 = 101


class TestClassify:
    @pytest.mark.parametrize(
        "has_record, has_artifact, state",
        [
            (True, True, ArtifactState.CONSISTENT),
            (True, False, ArtifactState.ORPHANED_RECORD),
            (False, True, ArtifactState.GHOST_DISPLAY),
            (False, False, ArtifactState.ABSENT),
        ],
    )
    def test_states(self, has_record, has_artifact, state):
        assert classify(has_record, has_artifact) is state


class TestReconciliation:
    @pytest.mark.asyncio
    async def test_orphaned_record_is_deleted(self, roster_engine, owner_ctx, make_ctx, store, display):
        created = await roster_engine.create_roster(
            owner_ctx, event_id=42, title="Siege", date=EVENT_DATE, time=EVENT_TIME,
            comp_name=COMP_NAME, channel_id=CHANNEL_ID,
        )
        assert created.ok

        result = await roster_engine.claim_slot(make_ctx(U1), 42, 1)

        assert not result.ok
        assert isinstance(result.error, NotFoundError)
        assert result.message == "Message for event 42 does not exist, the event has been removed"
        assert await store.load(42, GUILD_ID) is None
        assert display.updates == []

    @pytest.mark.asyncio
    async def test_ghost_display_is_invalidated(self, roster_engine, make_ctx, display):
        display.publish(42)

        result = await roster_engine.release_slot(make_ctx(U1), 42)

        assert isinstance(result.error, NotFoundError)
        assert result.message == "Event doesn't exist in this channel"
        assert display.invalidated == [(42, GONE_NOTICE)]

    @pytest.mark.asyncio
    async def test_absent(self, roster_engine, owner_ctx, display):
        result = await roster_engine.cancel_roster(owner_ctx, 42)

        assert isinstance(result.error, NotFoundError)
        assert display.invalidated == []
        assert display.deleted == []

    @pytest.mark.asyncio
    async def test_consistent_roster_proceeds(self, roster_engine, make_ctx, display, event_id):
        result = await roster_engine.available_parties(make_ctx(U1), event_id)

        assert result.ok
        assert result.value == ["Party 1", "Party 2"]
        assert display.invalidated == []


class TestOtherChannel:
    @pytest.mark.asyncio
    async def test_roster_kept_when_asked_from_other_channel(self, roster_engine, owner_ctx, store, display, event_id):
        elsewhere = FakeDisplaySurface(channel_id=CHANNEL_ID + 1)
        ctx = RequestContext(guild_id=GUILD_ID, user_id=owner_ctx.user_id, display=elsewhere)

        result = await roster_engine.cancel_roster(ctx, event_id)

        assert isinstance(result.error, NotFoundError)
        assert result.message == "Event doesn't exist in this channel"
        assert await store.load(event_id, GUILD_ID) is not None
        assert elsewhere.deleted == elsewhere.invalidated == []

    @pytest.mark.asyncio
    async def test_stranger_cannot_remove_roster(self, roster_engine, store, event_id):
        stranger = RequestContext(guild_id=GUILD_ID, user_id=999, display=FakeDisplaySurface(channel_id=CHANNEL_ID + 1))

        result = await roster_engine.list_absent(stranger, event_id, [])

        assert isinstance(result.error, NotFoundError)
        assert await store.load(event_id, GUILD_ID) is not None

    @pytest.mark.asyncio
    async def test_missing_message_in_own_channel_still_removes_roster(self, roster_engine, make_ctx, store, display, event_id):
        display.artifacts.discard(event_id)

        result = await roster_engine.claim_slot(make_ctx(U1), event_id, 1)

        assert isinstance(result.error, NotFoundError)
        assert await store.load(event_id, GUILD_ID) is None
